# -*- coding: utf-8 -*-

"""
This module provides a service class that runs RAUC installations in the
background and relays their progress to the UI through Qt signals.
"""

import logging
from typing import Optional

from PyQt5.QtCore import QObject, QThreadPool, pyqtSignal

from rauc_installer.config import InstallerSettings
from rauc_installer.installer import start_install
from rauc_installer.models.install_context import InstallContext
from rauc_installer.workers.install_worker import SessionFactory


class InstallerService(QObject):
    """
    Service to manage RAUC installations in the background.

    The worker's callbacks run on the worker thread; they only drain the
    context and emit signals, which Qt delivers to receivers living in other
    threads through queued connections.
    """
    # One signal per status message, in the order RAUC produced them
    status = pyqtSignal(str)
    # Terminal result code of the installation
    completed = pyqtSignal(int)

    def __init__(
        self,
        settings: Optional[InstallerSettings] = None,
        thread_pool: Optional[QThreadPool] = None,
        session_factory: Optional[SessionFactory] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.logger = logging.getLogger(__name__)
        self._settings = settings
        self.thread_pool = thread_pool or QThreadPool.globalInstance()
        self._session_factory = session_factory

    def start_installation(self, bundle: str):
        """
        Starts installing the given bundle.

        Args:
            bundle (str): The path to the RAUC bundle.
        """
        self.logger.info(f"Iniciando a instalação do bundle '{bundle}'.")
        start_install(
            bundle,
            on_status=self._on_install_status,
            on_complete=self._on_install_complete,
            settings=self._settings,
            thread_pool=self.thread_pool,
            session_factory=self._session_factory,
        )

    def _on_install_status(self, context: InstallContext):
        for message in context.drain_status_messages():
            self.status.emit(message)

    def _on_install_complete(self, context: InstallContext):
        # No more notify_event calls happen after the worker loop stopped.
        self._on_install_status(context)
        result = context.result
        if result == 0:
            self.logger.info("Instalação concluída com sucesso.")
        else:
            self.logger.error(f"A instalação falhou com o código {result}.")
        self.completed.emit(result)
