from enum import IntEnum


class InstallResult(IntEnum):
    """
    Named result codes of an install operation.

    Any value below zero means the operation has not finished yet. The RAUC
    service may report other non-negative codes through its ``Completed``
    signal; those are stored as plain integers and are terminal as well.
    """
    PENDING = -2
    SUCCESS = 0
    FAILURE = 1
    DISCONNECTED = 2


def is_terminal(code: int) -> bool:
    return code >= 0
