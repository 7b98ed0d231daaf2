"""Utility functions and decorators for distributed tracing"""
import asyncio
from collections.abc import Callable
from functools import wraps

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

_SENSITIVE_ARGS = {"password", "token", "secret", "file_data"}


def _set_argument_attributes(span, kwargs: dict) -> None:
    for key, value in kwargs.items():
        if not key.startswith("_") and key not in _SENSITIVE_ARGS:
            span.set_attribute(f"arg.{key}", str(value))


def traced(operation_name: str | None = None, attributes: dict | None = None):
    """
    Decorator to create a span for a function

    Usage:
        @traced("workflow.request_transition")
        async def request_transition(self, application_id: str, ...):
            ...

    Args:
        operation_name: Name of the operation (defaults to function name)
        attributes: Additional attributes to add to the span
    """

    def decorator(func: Callable) -> Callable:
        span_name = operation_name or f"{func.__module__}.{func.__name__}"

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            tracer = trace.get_tracer(__name__)

            with tracer.start_as_current_span(span_name) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                _set_argument_attributes(span, kwargs)

                try:
                    result = await func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            tracer = trace.get_tracer(__name__)

            with tracer.start_as_current_span(span_name) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                _set_argument_attributes(span, kwargs)

                try:
                    result = func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def add_span_attributes(**attributes):
    """
    Add attributes to the current span

    Usage:
        add_span_attributes(application_id="app_123", status="approved")
    """
    span = trace.get_current_span()
    if span:
        for key, value in attributes.items():
            span.set_attribute(key, value)


def get_trace_id() -> str | None:
    """Current trace ID as a 32-char hex string, or None without an active span"""
    span = trace.get_current_span()
    if span:
        trace_id = span.get_span_context().trace_id
        return format(trace_id, "032x") if trace_id else None
    return None
