"""Correlation ID middleware for request tracing"""
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from certportal.shared.context import set_correlation_id


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Add correlation IDs to all requests.

    Features:
    - Accepts X-Correlation-ID header from clients, or generates one
    - Adds correlation ID to response headers
    - Makes correlation ID available to the logging system

    Usage in logs:
        from certportal.shared.context import get_correlation_id
        logger.info(f"[{get_correlation_id()}] Processing request")
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response
