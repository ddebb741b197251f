# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Correlation IDs for tracing one HTTP request through the logs.

The middleware reads or mints an ID per request and stores it in a context
variable; ``CorrelationIDFilter`` stamps it onto every log record emitted
while the request is handled.
"""

import contextvars
import logging
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

_correlation_id_context: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


def generate_correlation_id() -> str:
    """Generate a new UUID4 correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    """
    Set the correlation ID for the current context.

    Returns:
        Token that restores the previous value when passed to ``reset_correlation_id``
    """
    return _correlation_id_context.set(correlation_id)


def reset_correlation_id(token: contextvars.Token) -> None:
    _correlation_id_context.reset(token)


def get_correlation_id() -> str:
    """Correlation ID of the current context, or an empty string."""
    return _correlation_id_context.get()


class CorrelationIDFilter(logging.Filter):
    """Adds ``record.correlation_id`` (``-`` outside a request) to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id() or "-"
        return True


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Propagates the ``X-Correlation-ID`` header.

    An incoming ID is reused, otherwise a new one is generated. The ID is
    echoed back on the response.
    """

    CORRELATION_ID_HEADER = "X-Correlation-ID"

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(self.CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(correlation_id)
        try:
            logger.debug(f"{request.method} {request.url.path} started")
            response = await call_next(request)
            response.headers[self.CORRELATION_ID_HEADER] = correlation_id
            logger.debug(f"{request.method} {request.url.path} completed with {response.status_code}")
            return response
        finally:
            reset_correlation_id(token)


def get_correlation_id_for_logging() -> dict:
    """Correlation ID as a logging ``extra`` dict; empty outside a request."""
    correlation_id = get_correlation_id()
    if correlation_id:
        return {"correlation_id": correlation_id}
    return {}
