class InstallerError(Exception):
    """Base class for exceptions in this module."""
    pass

class SessionConnectionError(InstallerError):
    """Raised when the D-Bus session with the RAUC service cannot be established."""
    def __init__(self, original_exception):
        self.original_exception = original_exception
        super().__init__(f"Não foi possível conectar ao serviço do RAUC: {original_exception}")

class SubscriptionError(InstallerError):
    """Raised when a handler cannot be registered for one of the RAUC signals."""
    def __init__(self, signal_name: str, original_exception):
        self.signal_name = signal_name
        self.original_exception = original_exception
        super().__init__(f"Falha ao registrar o sinal '{signal_name}': {original_exception}")

class InvocationError(InstallerError):
    """Raised when the RAUC service rejects the install request."""
    def __init__(self, bundle: str, original_exception):
        self.bundle = bundle
        self.original_exception = original_exception
        super().__init__(f"A instalação de '{bundle}' foi recusada: {original_exception}")

class ReadinessTimeoutError(InstallerError):
    """Raised when an endpoint does not become reachable within the allowed time."""
    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(f"O endereço '{url}' não ficou disponível após {timeout} segundos.")
