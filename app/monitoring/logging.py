"""Logging configuration module."""

from __future__ import annotations

import logging

from app.config.settings import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging() -> None:
    """Configure root logger according to project conventions."""

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # botocore is chatty at INFO about credential lookup
    logging.getLogger("botocore").setLevel(logging.WARNING)
