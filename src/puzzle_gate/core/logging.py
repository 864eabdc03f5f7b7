"""Logging configuration for the Puzzle Gate service."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from puzzle_gate.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a console handler for the application loggers.

    Args:
        level: Log level name; defaults to ``settings.log_level``.
    """
    resolved = (level or settings.log_level).upper()
    if resolved not in logging.getLevelNamesMapping():
        resolved = "INFO"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "puzzle_gate": {
                    "handlers": ["console"],
                    "level": resolved,
                    "propagate": False,
                },
                "sqlalchemy.engine": {
                    "level": "INFO" if settings.sql_debug else "WARNING",
                },
            },
        }
    )
