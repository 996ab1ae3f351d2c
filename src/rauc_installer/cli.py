# -*- coding: utf-8 -*-

"""
Command line front end: installs a RAUC bundle and prints its progress.
"""

import argparse
import logging
import sys
from typing import List, Optional

from PyQt5.QtCore import QCoreApplication, Qt
from pydantic import ValidationError
import yaml

from rauc_installer.config import InstallerSettings
from rauc_installer.models.exceptions import ReadinessTimeoutError
from rauc_installer.models.install_result import InstallResult
from rauc_installer.services.installer_service import InstallerService
from rauc_installer.services.readiness_service import DEFAULT_POLL_INTERVAL, wait_until_ready
from rauc_installer.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rauc-install",
        description="Instala um bundle do RAUC através do serviço D-Bus e acompanha o progresso.",
    )
    parser.add_argument("bundle", help="Caminho do bundle (.raucb) a ser instalado.")
    parser.add_argument("--config", help="Arquivo YAML com as configurações do D-Bus.")
    parser.add_argument("--wait-for", metavar="URL", help="Aguarda este endereço HTTP responder antes de instalar.")
    parser.add_argument(
        "--wait-interval", type=float, default=DEFAULT_POLL_INTERVAL,
        help="Intervalo em segundos entre as tentativas de --wait-for.",
    )
    parser.add_argument("--wait-timeout", type=float, default=None, help="Tempo máximo de espera por --wait-for.")
    parser.add_argument("--log-file", help="Também grava os logs neste arquivo, com rotação diária.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Exibe mensagens de debug.")
    return parser


def load_settings(path: Optional[str]) -> InstallerSettings:
    if path is None:
        return InstallerSettings()
    return InstallerSettings.from_yaml(path)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, TypeError, yaml.YAMLError, ValidationError):
        logger.exception("Falha ao carregar o arquivo de configuração.")
        return InstallResult.FAILURE

    if args.wait_for:
        logger.info(f"Aguardando '{args.wait_for}' ficar disponível...")
        try:
            wait_until_ready(args.wait_for, interval=args.wait_interval, timeout=args.wait_timeout)
        except ReadinessTimeoutError as e:
            logger.error(str(e))
            return InstallResult.FAILURE

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    service = InstallerService(settings)
    # Queued so that both are delivered by this thread's event loop, in order.
    service.status.connect(lambda message: print(message, flush=True), Qt.QueuedConnection)
    service.completed.connect(app.exit, Qt.QueuedConnection)
    service.start_installation(args.bundle)

    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
