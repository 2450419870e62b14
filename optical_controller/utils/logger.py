"""
Logging configuration for the Optical Provisioning Controller
"""

import logging
import sys
from typing import Optional

from optical_controller.config.settings import settings, LogLevel


# Client libraries of the Link Database and the path computation engine
QUIET_LOGGERS = ('redis', 'urllib3', 'requests', 'uvicorn.access')


def setup_logging(
    log_level: Optional[LogLevel] = None,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Every record carries the controller id so that logs of several
    controllers sharing one collector stay apart.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to write logs to; LOG_FILE when omitted
    """
    if log_level is None:
        log_level = settings.LOG_LEVEL
    if log_file is None:
        log_file = settings.LOG_FILE

    formatter = logging.Formatter(
        f'%(asctime)s - {settings.CONTROLLER_ID} - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level.value)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level.value)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level.value)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Engine exchanges are logged by the engine client itself
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging configured with level: {log_level.value}")
    if log_file:
        logging.info(f"Logging to file: {log_file}")
