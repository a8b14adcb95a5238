from __future__ import annotations

import json
import logging
from decimal import Decimal

from querylab.utils.logging import ENGINE_LOGGER, JsonFormatter, _json_formatter, configure_logging

EXPECTED_ROWS = 10
EXPECTED_RUN = 3


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.rows = EXPECTED_ROWS
    record.scenario = "scenario9"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["scenario"] == "scenario9"


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"run": EXPECTED_RUN}

    payload = json.loads(_json_formatter(record))

    assert payload["run"] == EXPECTED_RUN


def test_json_formatter_serializes_non_json_values() -> None:
    record = _record()
    record.total = Decimal("12.50")

    payload = json.loads(JsonFormatter().format(record))

    assert payload["total"] == "12.50"


def test_configure_logging_sets_root_level() -> None:
    configure_logging(level="DEBUG", json_logs=True)
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(handler.formatter, JsonFormatter) for handler in root.handlers)
    configure_logging(level="INFO")
    assert logging.getLogger().level == logging.INFO


def test_json_formatter_keeps_core_fields_over_extra() -> None:
    record = _record("stage done")
    record.extra = {"message": "overridden", "stage": "where"}

    payload = json.loads(_json_formatter(record))

    assert payload["message"] == "stage done"
    assert payload["stage"] == "where"


def test_engine_level_quiets_stage_logs() -> None:
    root = logging.getLogger()
    handlers = list(root.handlers)
    try:
        configure_logging(level="DEBUG", engine_level="WARNING")
        assert root.level == logging.DEBUG
        assert not logging.getLogger("querylab.engine.pipeline").isEnabledFor(logging.DEBUG)
        assert logging.getLogger("querylab.orchestrator").isEnabledFor(logging.DEBUG)

        configure_logging(level="INFO")
        assert logging.getLogger(ENGINE_LOGGER).level == logging.INFO
    finally:
        root.handlers[:] = handlers
        logging.getLogger(ENGINE_LOGGER).setLevel(logging.NOTSET)
