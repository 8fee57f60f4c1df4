"""Thread-local logging context for adding fields to log records."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


class LogContext:
    """Thread-local storage for log context fields."""

    _local = threading.local()

    @classmethod
    def set(cls, **kwargs: Any) -> None:
        cls.get().update(kwargs)

    @classmethod
    def get(cls) -> dict[str, Any]:
        if not hasattr(cls._local, "context"):
            cls._local.context = {}
        ctx: dict[str, Any] = cls._local.context
        return ctx

    @classmethod
    def restore(cls, fields: dict[str, Any]) -> None:
        cls._local.context = fields


class ContextFilter(logging.Filter):
    """Injects LogContext fields into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in LogContext.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Context manager that sets logging context fields.

    Nested blocks see the outer fields too; leaving a block restores the
    fields that were set before it. Fields reach log records through
    ContextFilter (see setup_logging).
    """
    previous = dict(LogContext.get())
    LogContext.set(**kwargs)
    try:
        yield
    finally:
        LogContext.restore(previous)


@contextmanager
def log_ride_context(ride_id: int, **kwargs: Any) -> Iterator[None]:
    """Convenience context manager for ride operations."""
    with log_context(ride_id=ride_id, **kwargs):
        yield


@contextmanager
def log_driver_context(driver_id: int, **kwargs: Any) -> Iterator[None]:
    with log_context(driver_id=driver_id, **kwargs):
        yield
