"""Runtime telemetry and structured logging sinks."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from rich.console import Console
from rich.logging import RichHandler


class Telemetry(Protocol):
    """Reports operational events such as finished area scans."""

    def emit(self, event_name: str, payload: dict) -> None:
        """Publish telemetry event to the configured sink."""


class NullTelemetry:
    def emit(self, event_name: str, payload: dict) -> None:
        return None


class LoggingTelemetry:
    """Forwards telemetry events to a logger, payload attached as ``extra``."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._logger = logger or logging.getLogger("mc_scout.telemetry")
        self._level = level

    def emit(self, event_name: str, payload: dict) -> None:
        self._logger.log(self._level, event_name, extra={"telemetry": dict(payload)})


def configure_logging(level: str | int = "INFO", **handler_options: Any) -> None:
    """Route ``mc_scout`` logs through a rich console handler."""
    handler_options.setdefault("console", Console(stderr=True))
    handler = RichHandler(rich_tracebacks=True, show_path=False, **handler_options)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("mc_scout")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = False
