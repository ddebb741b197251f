# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Request body size limit for the HTTP API.

The limit is ``MAX_SNAPSHOT_BYTES``, the same one the CLI applies to
snapshot files. It is enforced before the route reads the body: a declared
``Content-Length`` over the limit is rejected outright, and a body without
one (chunked upload) is counted as it streams in.
"""

import logging
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import settings
from .correlation import get_correlation_id_for_logging

logger = logging.getLogger(__name__)


class RequestTooLargeError(HTTPException):
    """413 raised while a streamed body is being read."""

    def __init__(self, limit: int):
        super().__init__(
            status_code=413,
            detail=f"Request body exceeds the limit of {limit} bytes",
        )


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """
    Declared body length, or None when the header is absent.

    Raises:
        ValueError: If the header is not a non-negative integer
    """
    if value is None:
        return None
    value = value.strip()
    if not value.isdigit():
        raise ValueError(f"Invalid Content-Length header: {value!r}")
    return int(value)


class BodySizeLimitMiddleware:
    """
    Rejects request bodies larger than ``max_snapshot_bytes`` with a 413.

    Plain ASGI so the body can be counted chunk by chunk before any route
    parses or validates it.
    """

    def __init__(self, app: ASGIApp, max_bytes: Optional[int] = None):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.max_bytes if self.max_bytes is not None else settings().max_snapshot_bytes
        path = scope.get("path", "")

        try:
            declared = parse_content_length(Headers(scope=scope).get("content-length"))
        except ValueError as e:
            logger.warning(f"Rejected {path}: {e}", extra=get_correlation_id_for_logging())
            response = JSONResponse(
                status_code=400,
                content={"error": "Bad Request", "message": "Invalid Content-Length header"},
            )
            await response(scope, receive, send)
            return

        if declared is not None and declared > limit:
            logger.warning(
                f"Rejected {path}: body is {declared} bytes, limit is {limit} bytes",
                extra=get_correlation_id_for_logging(),
            )
            response = JSONResponse(
                status_code=413,
                content={"detail": f"Request body is {declared} bytes, limit is {limit} bytes"},
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning(
                        f"Rejected {path}: streamed body passed {limit} bytes",
                        extra=get_correlation_id_for_logging(),
                    )
                    raise RequestTooLargeError(limit)
            return message

        await self.app(scope, limited_receive, send)
