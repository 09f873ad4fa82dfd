"""Logger for the kbchat package; level comes from LOG_LEVEL."""
import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger("kbchat")
if not logger.handlers:
    h = logging.StreamHandler()
    h.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(h)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Package logger, or a child such as ``kbchat.ingestion`` sharing its handler."""
    return logger.getChild(name) if name else logger
