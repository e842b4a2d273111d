"""Correlation ID middleware for request tracing."""

import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

# Lets log records pick up the current request's id from anywhere in the call stack
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get the current correlation ID from context.

    Returns empty string if called outside of a request context.
    """
    return correlation_id_var.get()


def generate_correlation_id() -> str:
    """Generate a short unique correlation ID."""
    return str(uuid.uuid4())[:16]


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Extracts the X-Correlation-ID header (or generates one), exposes it via
    get_correlation_id() for the duration of the request and echoes it back
    in the response headers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        token = correlation_id_var.set(correlation_id)

        try:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            # Reset context to prevent leaking between requests
            correlation_id_var.reset(token)
