"""Correlation context shared by log records and notifications."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

current_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)
current_caller: ContextVar[str | None] = ContextVar("caller", default=None)


class CorrelationFilter(logging.Filter):
    """Logging filter that adds correlation id and caller identity to records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = current_correlation_id.get() or "-"
        record.caller = current_caller.get() or "-"
        return True


@contextmanager
def with_correlation(correlation_id: str, caller: str | None = None) -> Iterator[None]:
    """Set the correlation id (and optionally the caller) for a block of code.

    Usage:
        with with_correlation(f"ride-{ride_id}", caller=identity):
            logger.info("Matching ride")
    """
    token = current_correlation_id.set(correlation_id)
    caller_token = current_caller.set(caller) if caller is not None else None
    try:
        yield
    finally:
        if caller_token is not None:
            current_caller.reset(caller_token)
        current_correlation_id.reset(token)


def get_current_correlation_id() -> str | None:
    return current_correlation_id.get()


def get_current_caller() -> str | None:
    return current_caller.get()
