# app/core/logging_config.py
import logging
from typing import Optional

from core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _parse_level(value: Optional[str]) -> int:
    if not value:
        return logging.INFO
    return getattr(logging, value.strip().upper(), logging.INFO)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Install one stream handler on the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(_parse_level(level or settings.LOG_LEVEL))

    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        _configured = True

    return logging.getLogger(settings.APP_NAME.lower().replace(" ", "_"))
