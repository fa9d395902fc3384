"""
Logging setup shared by the simulator and its test helpers
"""
import logging
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once; DEBUG setting wins over LOG_LEVEL"""
    if settings.DEBUG:
        resolved = logging.DEBUG
    else:
        resolved = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(level=resolved, format=LOG_FORMAT)
