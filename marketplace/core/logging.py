"""Logging setup for scripts and embedding applications."""
from __future__ import annotations

import logging

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Attach a basic stream handler at the configured level."""

    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
    if settings.database_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
