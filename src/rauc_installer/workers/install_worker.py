# -*- coding: utf-8 -*-

"""
This module provides a QRunnable that runs one RAUC installation from start
to finish on its own asyncio loop, away from the caller's thread.
"""

import asyncio
import logging
from functools import partial
from typing import Awaitable, Callable, Optional

from PyQt5.QtCore import QRunnable

from rauc_installer.config import InstallerSettings
from rauc_installer.models.exceptions import InstallerError
from rauc_installer.models.install_context import InstallContext
from rauc_installer.models.install_result import InstallResult
from rauc_installer.services.installer_session import RaucInstallerSession
from rauc_installer.services.status_translator import (
    on_installer_completed,
    on_installer_status,
)

SessionFactory = Callable[[InstallerSettings], Awaitable[RaucInstallerSession]]


class InstallWorker(QRunnable):
    """
    QRunnable worker owning the whole lifecycle of an InstallContext.

    The worker connects to RAUC, subscribes to its signals, requests the
    installation and then waits on the context's main loop until a terminal
    result is recorded. Whatever happens, ``notify_complete`` is called once
    and the context is released afterwards.
    """

    def __init__(
        self,
        context: InstallContext,
        settings: InstallerSettings,
        session_factory: Optional[SessionFactory] = None,
    ):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.context = context
        self.settings = settings
        self._session_factory = session_factory or RaucInstallerSession.connect

    def run(self) -> None:
        """
        Synchronous entry point for the QRunnable. Drives the context's
        private loop until the installation ends.
        """
        context = self.context
        try:
            context.loop_context.run_until_complete(self._run_async())
        except Exception:
            self.logger.exception("Ocorreu uma falha inesperada durante a instalação.")
            context.set_result(InstallResult.FAILURE)
        finally:
            self._shutdown_loop()

        if context.notify_complete:
            try:
                context.notify_complete(context)
            except Exception:
                self.logger.exception("O callback de conclusão da instalação falhou.")

        context.free()

    async def _run_async(self):
        context = self.context
        session = None
        try:
            session = await self._session_factory(self.settings)

            session.subscribe_status(partial(on_installer_status, context))
            session.subscribe_completed(partial(on_installer_completed, context))

            self.logger.info(f"Solicitando a instalação de '{context.bundle}'...")
            await session.install(context.bundle)

            await context.mainloop.wait()
            self.logger.info(f"Instalação finalizada com o resultado {context.result}.")

        except InstallerError as e:
            self.logger.error(str(e))
            context.set_result(InstallResult.FAILURE)

        finally:
            if session is not None:
                session.disconnect_all()
                # Let notify_event calls that were already scheduled run
                # before the session goes away.
                await asyncio.sleep(0)
                await session.close()

    def _shutdown_loop(self):
        loop = self.context.loop_context
        pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.run_until_complete(loop.shutdown_asyncgens())
