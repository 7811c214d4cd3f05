from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from riskmap import logging_utils
from riskmap.errors import (
    REASON_CODES,
    EmptyInputError,
    NoRegionMatchError,
    PartitionExhaustedError,
    RiskMapError,
    RoutingServiceError,
    UnknownRegionError,
    localized_message,
)
from riskmap.settings import Settings


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> _ListHandler:
    logger = logging.getLogger("riskmap.test-capture")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    handler = _ListHandler()
    logger.handlers = [handler]
    monkeypatch.setattr(logging_utils, "LOGGER", logger)
    return handler


def test_log_event_attaches_structured_fields(captured: _ListHandler) -> None:
    logging_utils.log_event("routes_partitioned", requested=3, produced=2)
    logging_utils.log_warning("route_path_fallback", route_id=1)

    first, second = captured.records
    assert first.levelno == logging.INFO
    assert first.getMessage() == "routes_partitioned"
    assert first.event == "routes_partitioned"  # type: ignore[attr-defined]
    assert first.produced == 2  # type: ignore[attr-defined]
    assert second.levelno == logging.WARNING
    assert second.route_id == 1  # type: ignore[attr-defined]

    line = json.loads(logging_utils.json_formatter().format(first))
    assert line["event"] == "routes_partitioned"
    assert line["requested"] == 3


def test_parse_level_defaults_to_info() -> None:
    assert logging_utils._parse_level("debug") == logging.DEBUG
    assert logging_utils._parse_level("not-a-level") == logging.INFO


def test_log_dir_prefers_configured_out_dir(tmp_path: Path) -> None:
    log_dir = logging_utils.resolve_log_dir(str(tmp_path))
    assert log_dir == tmp_path / "logs"
    assert log_dir.is_dir()
    assert not (log_dir / ".writetest").exists()


def test_configure_logging_writes_json_lines(tmp_path: Path) -> None:
    logger = logging_utils.configure_logging(level="DEBUG", out_dir=str(tmp_path))
    try:
        assert len(logger.handlers) == 2
        # Reconfiguring replaces handlers instead of stacking them.
        logger = logging_utils.configure_logging(level="DEBUG", out_dir=str(tmp_path))
        assert len(logger.handlers) == 2

        logger.info("filters_applied", extra={"event": "filters_applied", "total": 12})
        for handler in logger.handlers:
            handler.flush()

        lines = (tmp_path / "logs" / logging_utils.LOG_FILE_NAME).read_text(encoding="utf-8").splitlines()
        record = json.loads(lines[-1])
        assert record["event"] == "filters_applied"
        assert record["total"] == 12
        assert record["level"] == "INFO"
        assert "ts" in record
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OSRM_TIMEOUT_S", "3.5")
    monkeypatch.setenv("ROUTE_RESOLVE_CONCURRENCY", "4")
    monkeypatch.setenv("RISKMAP_LOCALE", "de")
    monkeypatch.setenv("DEFAULT_PATROL_COUNT", "50")
    monkeypatch.setenv("MAX_PATROL_COUNT", "6")

    cfg = Settings()
    assert cfg.osrm_timeout_s == 3.5
    assert cfg.route_resolve_concurrency == 4
    assert cfg.locale == "fa"
    assert cfg.default_patrol_count == 6


def test_every_reason_code_has_both_locales() -> None:
    assert REASON_CODES == {
        "no_risk_data",
        "no_points_in_region",
        "no_routes_produced",
        "unknown_region",
        "routing_service_failed",
    }
    for code in REASON_CODES:
        assert localized_message(code, locale="fa") != localized_message(code, locale="en")
    assert localized_message("no_risk_data", locale="en") == "No risk data available. Please adjust the filters."
    assert localized_message("unheard_of", locale="en") == "unheard_of"
    assert localized_message("no_risk_data", locale="xx") == localized_message("no_risk_data", locale="en")


@pytest.mark.parametrize(
    ("err", "code"),
    [
        (EmptyInputError(), "no_risk_data"),
        (NoRegionMatchError({"region_id": "south"}), "no_points_in_region"),
        (PartitionExhaustedError(), "no_routes_produced"),
        (UnknownRegionError("harbour"), "unknown_region"),
    ],
)
def test_user_facing_errors_carry_reason_and_message(err: RiskMapError, code: str) -> None:
    assert isinstance(err, ValueError)
    assert err.reason_code == code
    assert str(err) == err.message
    detail = err.as_detail()
    assert detail["reason_code"] == code
    assert detail["message"] == err.message
    assert ("details" in detail) == bool(err.details)


def test_routing_errors_are_not_user_facing() -> None:
    assert not issubclass(RoutingServiceError, RiskMapError)
    assert RoutingServiceError.reason_code == "routing_service_failed"
