"""Process-wide logging setup."""
from __future__ import annotations

import logging

from src.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# PUBLIC_INTERFACE
def configure_logging() -> None:
    """Configure the root logger once using the LOG_LEVEL setting."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    # httpx logs every request at INFO; keep it quieter than the app
    logging.getLogger("httpx").setLevel(logging.WARNING)
