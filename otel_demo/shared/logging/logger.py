"""Loguru setup with a per-request correlation id."""

from __future__ import annotations

import logging
import os
import sys
from contextvars import ContextVar
from typing import Any, TextIO

from loguru import logger as _logger

from .sensitive_filter import sanitize_record

_FMT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<lvl>{level:<8}</lvl> | "
    "<magenta>req={extra[correlation_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<lvl>{message}</lvl>"
)

_NO_REQUEST = "-"
_CORRELATION_ID: ContextVar[str] = ContextVar("correlation_id", default=_NO_REQUEST)

# Libraries that are chatty at DEBUG/INFO.
_QUIET_LOGGERS = {
    "werkzeug": logging.INFO,
    "urllib3": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "opentelemetry": logging.WARNING,
}


class _InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        _logger.opt(depth=6, exception=record.exc_info).bind(
            correlation_id=_CORRELATION_ID.get()
        ).log(level, record.getMessage())


class ContextualLogger:
    """Proxy for loguru that injects correlation ids via ContextVar."""

    def __getattr__(self, name):  # pragma: no cover
        bound = _logger.bind(correlation_id=_CORRELATION_ID.get())
        return getattr(bound, name)


def set_correlation_id(value: str | None) -> None:
    _CORRELATION_ID.set(value or _NO_REQUEST)


def get_correlation_id() -> str:
    return _CORRELATION_ID.get()


def clear_correlation_id() -> None:
    _CORRELATION_ID.set(_NO_REQUEST)


def _add_sink(target: TextIO | str, level: str, **options: Any) -> None:
    _logger.add(
        target,
        level=level,
        format=_FMT,
        backtrace=False,
        diagnose=False,
        filter=sanitize_record,
        **options,
    )


def setup_logging(
    level: str | None = None,
    *,
    log_file: str | None = None,
    debug_mode: bool = False,
) -> None:
    """Route loguru and stdlib logging to stderr and, optionally, a file.

    ``DEBUG_LOGGING`` wins over ``LOG_LEVEL``.
    """
    level = "DEBUG" if debug_mode else (level or os.getenv("LOG_LEVEL") or "INFO").upper()

    _logger.remove()
    _logger.configure(extra={"correlation_id": _NO_REQUEST})
    _add_sink(sys.stderr, level, colorize=True)
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        _add_sink(log_file, level, colorize=False, enqueue=True, encoding="utf-8")

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


logger = ContextualLogger()

__all__ = [
    "logger",
    "setup_logging",
    "set_correlation_id",
    "clear_correlation_id",
    "get_correlation_id",
]
