"""
Logging setup for querylab.

Everything logs through `get_logger(__name__)` and stdlib logging, configured
once by the CLI via `configure_logging`. The events worth knowing about:

- `querylab.orchestrator`: `[RUN i/n]`, `[SCENARIO START]` and
  `[SCENARIO SUCCESS]` at INFO for each scenario, then a final
  `[ORCHESTRATOR COMPLETE]`. Failures go through `log.exception`.
- `querylab.engine.pipeline`: one DEBUG line per executed stage with the row
  count it produced. These are chatty, so `engine_level` lets them stay quiet
  while the rest of the application runs at DEBUG.
- `querylab.infrastructure`: fixture loading and SQLite seeding at INFO.

Context goes in `extra=` (`scenario`, `stage`, `rows`, ...). The console
formatter ignores it; the JSON formatter writes each key as a top-level field.

Usage:
    from querylab.utils.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", json_logs=True, engine_level="INFO")
    log = get_logger(__name__)
    log.info("scenario finished", extra={"scenario": "scenario9", "rows": 4})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

ENGINE_LOGGER = "querylab.engine"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = {key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRS and key != "extra"}
    # extra={"extra": {...}} is flattened into the same level.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        fields.update(nested)
    return fields


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as one JSON object per line."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    for key, value in _extra_fields(record).items():
        payload.setdefault(key, value)
    # Decimal totals and datetimes from scenario rows are written as text.
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """JSON lines formatter; `extra=` keys become top-level fields."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    engine_level: Optional[str] = None,
) -> None:
    """
    Configure root logging for the CLI.

    Parameters
    ----------
    level : str
        Logging level name for the application (e.g., "DEBUG", "INFO").
    json_logs : bool
        Emit JSON lines instead of the `time | level | logger | message` format.
    engine_level : str, optional
        Separate level for the query engine's per-stage logs. Defaults to
        `level`.
    """
    formatter_name = "json" if json_logs else "console"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter_name,
                    # stdout carries the result tables and --json output
                    "stream": "ext://sys.stderr",
                }
            },
            "loggers": {
                ENGINE_LOGGER: {"level": engine_level or level},
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


__all__ = ["ENGINE_LOGGER", "configure_logging", "get_logger", "JsonFormatter"]
