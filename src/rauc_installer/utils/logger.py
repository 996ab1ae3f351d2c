import logging
import logging.handlers
import os
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None):
    """
    Configures the logging system.

    This setup includes:
    1. A console handler for real-time output, at the given level.
    2. Optionally, a timed rotating file handler (INFO and above) that
       creates a new file each day and keeps the last 7 days' logs.
    """
    logger = logging.getLogger()
    logger.setLevel(min(level, logging.INFO) if log_file else level)

    default_formatter = logging.Formatter(DEFAULT_FORMAT)

    # 1. Console Handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(default_formatter)
    logger.addHandler(console_handler)

    # 2. Timed Rotating File Handler
    if log_file:
        logs_folder = os.path.dirname(os.path.abspath(log_file))
        if not os.path.exists(logs_folder):
            os.makedirs(logs_folder)

        file_handler = logging.handlers.TimedRotatingFileHandler(
            log_file, when='midnight', interval=1, backupCount=7
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(default_formatter)
        logger.addHandler(file_handler)

    logging.debug("Setup do logging está completo.")
