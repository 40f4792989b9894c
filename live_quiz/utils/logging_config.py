"""Logging configuration helpers for the live quiz server."""

from __future__ import annotations

import logging
from logging import Logger
import os

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str | None = None) -> Logger:
    """Configure basic logging for the application and return the package logger."""
    resolved = (level or os.environ.get("LIVE_QUIZ_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format=_LOG_FORMAT,
    )
    return logging.getLogger("live_quiz")
