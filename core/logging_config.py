"""
core/logging_config.py -- Process-wide logging setup.

The environment decides verbosity and format:

  env    level  format
  local  DEBUG  text   -- human-readable while developing
  dev    DEBUG  json
  prod   INFO   json   -- one JSON object per line for log shippers

All application loggers live under the "sso" namespace (sso.api, sso.auth,
sso.store, sso.config) so one logger entry controls them. uvicorn's own
loggers are routed through the same handler so startup, shutdown and access
lines share one format.

Never log plaintext passwords, password hashes, app secrets or tokens.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

_LEVELS = {
    "local": "DEBUG",
    "dev": "DEBUG",
    "prod": "INFO",
}


class JSONFormatter(logging.Formatter):
    """Render a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def get_logging_config(env: str) -> dict[str, Any]:
    """Return a dictConfig mapping for the given environment.

    Unknown environments fall back to INFO and JSON rather than failing --
    Settings already restricts env to known values, so this only matters for
    callers that bypass Settings (tests, ad-hoc scripts).
    """
    level = _LEVELS.get(env, "INFO")
    formatter = "text" if env == "local" else "json"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {
                "format": "%(asctime)s %(levelname)-5s %(name)s %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": JSONFormatter,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "sso": {"handlers": ["default"], "level": level, "propagate": False},
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            # Request lines are emitted by the sso.api middleware instead.
            "uvicorn.access": {"handlers": [], "level": "WARNING", "propagate": False},
        },
        "root": {"handlers": ["default"], "level": "WARNING"},
    }


def setup_logging(env: str) -> None:
    """Install the logging configuration for the given environment."""
    logging.config.dictConfig(get_logging_config(env))
