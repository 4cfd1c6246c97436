"""
Logging setup for the voice relay.

All modules log through the single "voice_relay" logger. configure_logging()
attaches a stdout handler and, when the logs directory is writable, a rotating
file handler. Chatty third-party loggers (websockets, PyAV) are capped at
WARNING so per-frame noise does not drown session events.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from voice_relay.config.constants import LOGGER_NAME

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "voice_relay.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

QUIET_LOGGERS = ("websockets", "libav", "urllib3")


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the relay logger with console and file handlers.

    Args:
        level: Level name overriding LOG_LEVEL from the environment

    Returns:
        logging.Logger: The configured relay logger
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Calling this twice must not duplicate output
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    try:
        LOG_DIR.mkdir(exist_ok=True)
        file_handler = RotatingFileHandler(LOG_FILE, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"Could not set up file logging: {e}")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.propagate = False

    logger.info(f"Logging configured at level {level_name}")
    return logger
