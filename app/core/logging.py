# app/core/logging.py
import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT)

logger = logging.getLogger("app")


def get_logger(name: str) -> logging.Logger:
    """Logger filho de "app", para que todos compartilhem nível e formato."""
    return logger.getChild(name)
