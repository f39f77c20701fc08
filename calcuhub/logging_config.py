"""Logging setup for the calcuhub engine.

Engines log through ``get_logger`` under the ``calcuhub`` namespace and pass
their figures as ``extra={...}``. Nothing is emitted until the host calls
``configure_logging`` (or configures the root logger itself).
"""

__all__ = [
    "StructuredFormatter",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, TextIO

_NAMESPACE = "calcuhub"
_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Attributes every LogRecord carries, anything else came from `extra`
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, event and extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            error = record.exc_info[1]
            payload["exc_type"] = type(error).__name__
            payload["exc_code"] = getattr(error, "code", None)

        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Logger for a calcuhub module, e.g. get_logger("services.payroll")."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")


_configured = False


def configure_logging(
    *,
    level: int | str | None = None,
    json_lines: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Attach one handler to the calcuhub logger (later calls are no-ops).

    Level and format default to LOG_LEVEL / LOG_JSON from the engine settings.
    Level names are case insensitive.
    """
    global _configured
    if _configured:
        return
    _configured = True

    from calcuhub.config import engine_settings

    if level is None:
        level = engine_settings.LOG_LEVEL
    if isinstance(level, str):
        level = level.upper()
    if json_lines is None:
        json_lines = engine_settings.LOG_JSON

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter() if json_lines else logging.Formatter(_PLAIN_FORMAT))

    logger = logging.getLogger(_NAMESPACE)
    logger.setLevel(level)
    logger.propagate = False
    logger.addHandler(handler)


def reset_logging() -> None:
    """Undo configure_logging. Used by the tests."""
    global _configured
    _configured = False
    logger = logging.getLogger(_NAMESPACE)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
