# -*- coding: utf-8 -*-

"""
Shared state of a single install operation.

An InstallContext is created by ``start_install`` and handed to exactly one
InstallWorker. The worker's event handlers produce status messages, the
caller's ``notify_event`` callback consumes them, and the worker releases the
context once the operation has reached a terminal result.
"""

import asyncio
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from rauc_installer.models.install_result import InstallResult, is_terminal

NotifyCallback = Callable[["InstallContext"], object]


class MainLoop:
    """
    Run/quit handle over the worker's private asyncio loop.

    ``quit()`` may be called from any thread and any number of times; a quit
    requested before the worker starts waiting makes ``wait()`` return
    immediately.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop
        self._quit_event = asyncio.Event()

    async def wait(self):
        await self._quit_event.wait()

    def quit(self):
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self._quit_event.set)


class InstallContext:
    """
    State of one install operation.

    ``status_result`` and ``status_messages`` are guarded together by
    ``status_lock``. The result starts at ``InstallResult.PENDING`` and moves
    to exactly one terminal value.
    """

    def __init__(
        self,
        bundle: str,
        notify_event: Optional[NotifyCallback] = None,
        notify_complete: Optional[NotifyCallback] = None,
    ):
        self._bundle = str(bundle)
        self.notify_event = notify_event
        self.notify_complete = notify_complete

        self.status_lock = threading.Lock()
        self.status_messages: Deque[str] = deque()
        self.status_result: int = InstallResult.PENDING

        self.loop_context = asyncio.new_event_loop()
        self.mainloop = MainLoop(self.loop_context)

    @property
    def bundle(self) -> str:
        return self._bundle

    @property
    def result(self) -> int:
        with self.status_lock:
            return self.status_result

    def set_result(self, code: int) -> bool:
        """
        Stores ``code`` unless a terminal result was already recorded.

        Returns:
            bool: True if the value was stored.
        """
        with self.status_lock:
            return self._set_result_locked(code)

    def _set_result_locked(self, code: int) -> bool:
        if is_terminal(self.status_result):
            return False
        self.status_result = int(code)
        return True

    def push_status(self, message: str):
        with self.status_lock:
            self.status_messages.append(message)

    def drain_status_messages(self) -> List[str]:
        """Removes and returns every queued status message, oldest first."""
        with self.status_lock:
            messages = list(self.status_messages)
            self.status_messages.clear()
        return messages

    def free(self):
        """
        Releases the private loop. Must only be called by the worker after
        ``notify_complete`` has run.
        """
        assert not self.loop_context.is_running(), "Install context released while its loop is running"
        with self.status_lock:
            assert is_terminal(self.status_result), (
                f"Install context released with non-terminal result {self.status_result}"
            )
            assert not self.status_messages, (
                f"Install context released with {len(self.status_messages)} undelivered status messages"
            )
        self.loop_context.close()
