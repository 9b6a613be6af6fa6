"""Process-wide logging setup"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from core.config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_initialized = False


def init_logger(settings: Settings | None = None) -> logging.Logger:
    """Idempotent logging init.

    - Always logs to stdout.
    - Appends to a rotating file under LOG_DIR when LOG_TO_FILE is set. If the
      file cannot be opened the error is reported and console logging carries on.
    """
    global _initialized
    settings = settings or default_settings
    logger = logging.getLogger("blob_api")
    if _initialized:
        return logger

    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    if settings.LOG_TO_FILE:
        path = os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME)
        try:
            os.makedirs(settings.LOG_DIR, exist_ok=True)
            fh = RotatingFileHandler(
                path,
                mode="a",
                maxBytes=settings.LOG_MAX_BYTES,
                backupCount=settings.LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("Failed to open log file %s: %s", path, exc)
        else:
            fh.setLevel(level)
            fh.setFormatter(formatter)
            root.addHandler(fh)

    logging.getLogger("httpx").setLevel(logging.WARNING)

    _initialized = True
    logger.debug("Logger initialized")
    return logger
