from __future__ import annotations

import logging
import sys
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure the root logger with a single stdout handler.

    Safe to call more than once; existing root handlers are replaced.
    """
    level_name = (log_level or settings.log_level or "INFO").upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(numeric_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
