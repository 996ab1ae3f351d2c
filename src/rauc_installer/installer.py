# -*- coding: utf-8 -*-

"""
Public entry point to install a RAUC bundle in the background.
"""

import logging
from typing import Optional

from PyQt5.QtCore import QThreadPool

from rauc_installer.config import InstallerSettings
from rauc_installer.models.install_context import InstallContext, NotifyCallback
from rauc_installer.workers.install_worker import InstallWorker, SessionFactory

logger = logging.getLogger(__name__)


def start_install(
    bundle: str,
    on_status: Optional[NotifyCallback] = None,
    on_complete: Optional[NotifyCallback] = None,
    settings: Optional[InstallerSettings] = None,
    thread_pool: Optional[QThreadPool] = None,
    session_factory: Optional[SessionFactory] = None,
) -> None:
    """
    Starts installing ``bundle`` and returns immediately.

    Args:
        bundle (str): Path or URL of the RAUC bundle (.raucb) to install.
        on_status: Called with the InstallContext on the worker's loop whenever
                   status messages are queued. It should drain them with
                   ``context.drain_status_messages()``.
        on_complete: Called once with the InstallContext when the installation
                     has ended; ``context.result`` holds the result code. Any
                     status message still queued must be drained here.
        settings: D-Bus settings. Read from the environment when omitted.
        thread_pool: Pool to run the worker on. Defaults to the global pool.
        session_factory: Coroutine function creating the RAUC session.
    """
    if not isinstance(bundle, str) or not bundle:
        raise ValueError("O caminho do bundle deve ser uma string não vazia.")

    context = InstallContext(bundle, notify_event=on_status, notify_complete=on_complete)
    worker = InstallWorker(context, settings or InstallerSettings(), session_factory)

    pool = thread_pool or QThreadPool.globalInstance()
    logger.debug(f"Iniciando worker de instalação para '{bundle}'.")
    pool.start(worker)
