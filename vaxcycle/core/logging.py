"""Logging setup shared by the API process and the sweep script."""

from __future__ import annotations

import logging
import logging.config

_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a console handler that stamps every record with the request id."""

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "correlation_id": {
                    "()": "asgi_correlation_id.CorrelationIdFilter",
                    "uuid_length": 32,
                    "default_value": "-",
                },
            },
            "formatters": {
                "default": {"format": _FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "filters": ["correlation_id"],
                    "formatter": "default",
                },
            },
            "loggers": {
                "vaxcycle": {
                    "handlers": ["console"],
                    "level": level.upper(),
                    "propagate": False,
                },
                "uvicorn.access": {
                    "handlers": ["console"],
                    "level": "INFO",
                    "propagate": False,
                },
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", level.upper())


__all__ = ["configure_logging"]
