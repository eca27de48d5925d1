"""Logging configuration."""
import logging
import sys
from typing import Optional

from coffee_cashier.core.config import settings

QUIET_LOGGERS = ("httpx", "openai", "websockets", "aiosqlite")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
