"""
HTTP middleware: request correlation and access logging.

The booking services log with the request ID and actor from the context
variables set here, so every log line of one booking request shares an ID.
"""
from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from studio_booking.core.logging import actor_id, get_logger, request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
ACTOR_HEADER = "X-User-Id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds the request ID (incoming or generated) and the caller's user ID for the request's duration."""

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        req_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = req_id
        tokens = (request_id.set(req_id), actor_id.set(request.headers.get(ACTOR_HEADER)))
        try:
            response = await call_next(request)
        finally:
            request_id.reset(tokens[0])
            actor_id.reset(tokens[1])
        response.headers[self.header_name] = req_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One log line per request with its status and duration; unhandled errors are logged and re-raised."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        context = {
            "request_id": getattr(request.state, "request_id", None),
            "method": request.method,
            "path": request.url.path,
        }
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Unhandled error: {exc}",
                exc_info=True,
                extra={**context, "error_type": type(exc).__name__},
            )
            raise

        elapsed = time.perf_counter() - started
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={**context, "status_code": response.status_code, "duration_ms": round(elapsed * 1000, 2)},
        )
        return response


def register_middlewares(app: FastAPI) -> None:
    # Added last runs first: the request context wraps the access log
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestContextMiddleware)


__all__ = ["register_middlewares", "RequestContextMiddleware", "AccessLogMiddleware"]
