"""Logging setup shared by the API process and the maintenance scripts."""

import logging.config

from feedesk.core.config import settings


def configure_logging(level: str | None = None) -> None:
    """Configure root and app loggers once at startup."""
    level = (level or settings.log_level).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "feedesk": {"level": level, "handlers": ["console"], "propagate": False},
                # SQL echo is controlled by DEBUG, keep it out of INFO noise
                "sqlalchemy.engine": {"level": "WARNING"},
            },
            "root": {"level": "WARNING", "handlers": ["console"]},
        }
    )
