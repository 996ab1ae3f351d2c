# -*- coding: utf-8 -*-

"""
Asyncio D-Bus session with the RAUC installer service.

The session wraps the ``de.pengutronix.rauc.Installer`` proxy and exposes the
small surface the install worker consumes: connect, subscribe to property
changes and to the ``Completed`` signal, call ``Install`` and drop every
subscription again. All handlers run on the event loop the session was
connected from.
"""

import logging
from typing import Any, Callable, Dict, List, Tuple

from dbus_fast import BusType as DBusBusType
from dbus_fast import Variant
from dbus_fast.aio import MessageBus

from rauc_installer.config import BusType, InstallerSettings
from rauc_installer.models.exceptions import (
    InvocationError,
    SessionConnectionError,
    SubscriptionError,
)

StatusHandler = Callable[[Dict[str, Any], List[str]], None]
CompletedHandler = Callable[[int], None]

DBUS_NAME = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

_BUS_TYPES = {
    BusType.SESSION: DBusBusType.SESSION,
    BusType.SYSTEM: DBusBusType.SYSTEM,
}


def unwrap_variant(value: Any) -> Any:
    while isinstance(value, Variant):
        value = value.value
    return value


class RaucInstallerSession:
    """
    Logical connection to the RAUC service on one message bus.

    Use ``await RaucInstallerSession.connect(settings)`` to create it.
    """

    def __init__(
        self,
        bus: MessageBus,
        installer,
        properties,
        bus_daemon,
        settings: InstallerSettings,
        property_names: List[str],
    ):
        self.logger = logging.getLogger(__name__)
        self._bus = bus
        self._installer = installer
        self._properties = properties
        self._bus_daemon = bus_daemon
        self._settings = settings
        self._property_names = property_names
        # (unsubscribe function, handler) pairs registered through this session
        self._subscriptions: List[Tuple[Callable, Callable]] = []

    @classmethod
    async def connect(cls, settings: InstallerSettings) -> "RaucInstallerSession":
        """
        Connects to the configured bus and builds the installer proxy.

        Raises:
            SessionConnectionError: If the bus or the RAUC service cannot be reached.
        """
        logger = logging.getLogger(__name__)
        logger.debug(f"Criando proxy D-Bus do RAUC no barramento '{settings.bus_type.value}'.")

        bus = None
        try:
            bus = await MessageBus(bus_type=_BUS_TYPES[settings.bus_type]).connect()

            introspection = await bus.introspect(settings.service_name, settings.object_path)
            proxy = bus.get_proxy_object(settings.service_name, settings.object_path, introspection)
            installer = proxy.get_interface(settings.interface_name)
            properties = proxy.get_interface(PROPERTIES_INTERFACE)

            daemon_introspection = await bus.introspect(DBUS_NAME, DBUS_PATH)
            bus_daemon = bus.get_proxy_object(
                DBUS_NAME, DBUS_PATH, daemon_introspection
            ).get_interface(DBUS_NAME)
        except Exception as e:
            if bus is not None:
                bus.disconnect()
            raise SessionConnectionError(e) from e

        property_names = [
            prop.name
            for interface in introspection.interfaces
            if interface.name == settings.interface_name
            for prop in interface.properties
        ]
        return cls(bus, installer, properties, bus_daemon, settings, property_names)

    def subscribe_status(self, handler: StatusHandler):
        """
        Registers ``handler(changed, invalidated)`` for installer property
        changes. When the service drops off the bus the handler receives every
        known property name as invalidated.
        """
        interface_name = self._settings.interface_name
        service_name = self._settings.service_name

        def on_properties_changed(changed_interface: str, changed: Dict[str, Any], invalidated: List[str]):
            if changed_interface != interface_name:
                return
            handler({key: unwrap_variant(value) for key, value in changed.items()}, list(invalidated))

        def on_name_owner_changed(name: str, old_owner: str, new_owner: str):
            if name != service_name or new_owner:
                return
            self.logger.debug(f"O serviço '{service_name}' deixou o barramento.")
            handler({}, list(self._property_names) or ["Operation"])

        self._subscribe("PropertiesChanged", self._properties, "properties_changed", on_properties_changed)
        self._subscribe("NameOwnerChanged", self._bus_daemon, "name_owner_changed", on_name_owner_changed)

    def subscribe_completed(self, handler: CompletedHandler):
        """Registers ``handler(result)`` for the ``Completed`` signal."""
        def on_completed(result: int):
            handler(int(result))

        self._subscribe("Completed", self._installer, "completed", on_completed)

    def _subscribe(self, signal_name: str, interface, member: str, callback: Callable):
        try:
            getattr(interface, f"on_{member}")(callback)
        except Exception as e:
            raise SubscriptionError(signal_name, e) from e
        self._subscriptions.append((getattr(interface, f"off_{member}"), callback))

    async def install(self, bundle: str):
        """
        Asks RAUC to install ``bundle``. Returns once the request was accepted;
        progress and the outcome arrive through the subscribed handlers.

        Raises:
            InvocationError: If the request is rejected or cannot be sent.
        """
        self.logger.debug("Tentando contatar o serviço D-Bus do RAUC.")
        try:
            await self._installer.call_install(bundle)
        except Exception as e:
            raise InvocationError(bundle, e) from e

    def disconnect_all(self):
        """Removes every handler registered through this session."""
        while self._subscriptions:
            unsubscribe, callback = self._subscriptions.pop()
            unsubscribe(callback)

    async def close(self):
        """Drops the subscriptions and closes the bus connection."""
        self.disconnect_all()
        self._bus.disconnect()
        try:
            await self._bus.wait_for_disconnect()
        except Exception as e:
            # The install outcome is already decided at this point.
            self.logger.warning(f"Conexão D-Bus encerrada com erro: {e}")
