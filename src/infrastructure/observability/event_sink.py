"""Structured session events written to the standard logging module.

The session loader reports everything it does through an ``EventSink``; this
is the default sink for the running service. Tests pass their own recording
sink instead of capturing log output.
"""
from __future__ import annotations

import logging
import os
from typing import Any

_LEVELS: dict[str, int] = {
    "retry_exhausted": logging.ERROR,
    "load_failed": logging.WARNING,
    "listener_failed": logging.WARNING,
    "retry_scheduled": logging.INFO,
    "load_succeeded": logging.INFO,
    "coordinator_started": logging.INFO,
    "coordinator_stopped": logging.INFO,
}


class LoggingEventSink:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("src.session")

    def emit(self, event: str, **fields: Any) -> None:
        level = _LEVELS.get(event, logging.DEBUG)
        if not self.logger.isEnabledFor(level):
            return
        details = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        self.logger.log(level, "[session] %s %s", event, details, extra={"event": event, "fields": fields})


def configure_logging() -> None:
    """Set up root logging: DEBUG in development, INFO in production.

    ``LOG_LEVEL`` overrides the choice when set.
    """
    env = os.getenv("ENV", "development")
    default = "INFO" if env == "production" else "DEBUG"
    level = os.getenv("LOG_LEVEL", default).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
