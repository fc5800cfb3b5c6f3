"""Central logging configuration for the service.

Applies a root stdout handler so module loggers emit without per-module
setup, and keeps the uvicorn loggers visible.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig

from ordinal_stage.core.settings import settings


def _dict_config(level: str) -> dict[str, object]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging(level: str | None = None) -> None:
    """Configure application-wide logging once.

    Returns early when the root logger already has handlers, which happens
    under reloaders and test runners.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(_dict_config((level or settings.log_level).upper()))
