from __future__ import annotations

import logging

from mc_scout.telemetry import LoggingTelemetry, configure_logging


def test_logging_telemetry_attaches_payload(caplog) -> None:
    logger = logging.getLogger("test.telemetry")
    telemetry = LoggingTelemetry(logger)

    with caplog.at_level(logging.INFO, logger="test.telemetry"):
        telemetry.emit("area_scan_completed", {"explored_cells": 3})

    record = caplog.records[-1]
    assert record.getMessage() == "area_scan_completed"
    assert record.telemetry == {"explored_cells": 3}


def test_configure_logging_installs_single_rich_handler() -> None:
    configure_logging("debug")
    configure_logging("warning")

    logger = logging.getLogger("mc_scout")
    assert len(logger.handlers) == 1
    assert type(logger.handlers[0]).__name__ == "RichHandler"
    assert logger.level == logging.WARNING
    assert logger.propagate is False
