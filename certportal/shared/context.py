"""
Request context management using contextvars.

Provides async-safe storage for request-scoped data such as the
correlation ID, so that log records can carry it without threading it
through every call.
"""

import logging
from contextvars import ContextVar

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str:
    """Get the correlation ID for the current request"""
    return correlation_id_var.get()


class CorrelationIdFilter(logging.Filter):
    """Attach the current correlation ID to every log record"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True
