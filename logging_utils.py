"""Tagged logging helper shared by the engine, persistence and UI layers.

Messages render as ``[LEVEL][Tag] message | key=value ...``.
"""
from __future__ import annotations

import logging
from typing import Any

_logger = logging.getLogger("clickonome")
if not _logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(levelname)s][%(tag)s] %(message)s")
    handler.setFormatter(formatter)
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)
    _logger.propagate = False


class _TagAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]):
        tag = kwargs.pop("tag", "Metronome")
        kwargs.setdefault("extra", {})["tag"] = tag
        return msg, kwargs


_logger_adapter = _TagAdapter(_logger, {})


def _format(message: str, fields: dict[str, Any]) -> str:
    if not fields:
        return message
    extras = " ".join(f"{k}={v}" for k, v in fields.items())
    return f"{message} | {extras}"


def log_event(level: str, tag: str, message: str, **fields: Any) -> None:
    """Log a message with level+tag, appending key=value fields when provided."""
    level_name = level.upper()
    if level_name == "WARN":
        level_name = "WARNING"
    level_val = getattr(logging, level_name, logging.INFO)
    _logger_adapter.log(level_val, _format(message, fields), tag=tag)


def log_exception(tag: str, message: str, exc: BaseException, **fields: Any) -> None:
    """Log an ERROR with the traceback of ``exc`` attached."""
    fields.setdefault("error", repr(exc))
    _logger_adapter.error(
        _format(message, fields),
        tag=tag,
        exc_info=(type(exc), exc, exc.__traceback__),
    )


def set_log_level(level: str) -> None:
    """Set global log level (DEBUG/INFO/WARNING/ERROR)."""
    level_name = (level or "INFO").upper()
    level_val = getattr(logging, level_name, logging.INFO)
    _logger.setLevel(level_val)


def get_log_level() -> str:
    """Return current global log level name."""
    return logging.getLevelName(_logger.level)
