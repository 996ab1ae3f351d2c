# tests/conftest.py
import asyncio
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from rauc_installer.config import BusType, InstallerSettings
from rauc_installer.models.exceptions import (
    InvocationError,
    SessionConnectionError,
    SubscriptionError,
)


def status_event(changed=None, invalidated=()):
    return ("status", dict(changed or {}), list(invalidated))


def completed_event(result):
    return ("completed", result)


class FakeInstallerSession:
    """
    In-process stand-in for RaucInstallerSession.

    Once ``install`` is called, the scripted events are delivered one by one
    on the running loop, the same way D-Bus signals reach the real session.
    """

    def __init__(self, events=(), fail_subscribe=None, fail_install=None):
        self.events = list(events)
        self.fail_subscribe = fail_subscribe
        self.fail_install = fail_install
        self.status_handlers = []
        self.completed_handlers = []
        self.installed = []
        self.disconnect_calls = 0
        self.closed = False

    def subscribe_status(self, handler):
        if self.fail_subscribe == "status":
            raise SubscriptionError("PropertiesChanged", RuntimeError("no such signal"))
        self.status_handlers.append(handler)

    def subscribe_completed(self, handler):
        if self.fail_subscribe == "completed":
            raise SubscriptionError("Completed", RuntimeError("no such signal"))
        self.completed_handlers.append(handler)

    async def install(self, bundle):
        if self.fail_install is not None:
            raise self.fail_install
        self.installed.append(bundle)
        loop = asyncio.get_running_loop()
        for event in self.events:
            loop.call_soon(self._dispatch, event)

    def _dispatch(self, event):
        kind, *args = event
        handlers = self.status_handlers if kind == "status" else self.completed_handlers
        for handler in list(handlers):
            handler(*args)

    def disconnect_all(self):
        self.disconnect_calls += 1
        self.status_handlers.clear()
        self.completed_handlers.clear()

    async def close(self):
        self.disconnect_all()
        self.closed = True


def session_factory_for(session):
    async def factory(settings):
        return session
    return factory


def failing_session_factory(settings_seen=None):
    async def factory(settings):
        if settings_seen is not None:
            settings_seen.append(settings)
        raise SessionConnectionError(FileNotFoundError("/run/dbus/system_bus_socket"))
    return factory


def rejected_install(bundle="/tmp/update.raucb"):
    return InvocationError(bundle, RuntimeError("Already processing a different method"))


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.delenv("DBUS_STARTER_BUS_TYPE", raising=False)
    return InstallerSettings(bus_type=BusType.SESSION)


@pytest.fixture
def recorder():
    """
    Collects what the install callbacks observe. ``on_status`` drains the
    queue the way a real consumer does.
    """
    class Recorder:
        def __init__(self):
            self.messages = []
            self.status_calls = 0
            self.complete_calls = 0
            self.results = []

        def on_status(self, context):
            self.status_calls += 1
            self.messages.extend(context.drain_status_messages())

        def on_complete(self, context):
            self.complete_calls += 1
            self.messages.extend(context.drain_status_messages())
            self.results.append(context.result)

    return Recorder()
