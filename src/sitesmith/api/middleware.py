"""Middleware: request timing, security headers, body size limits."""

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from sitesmith.models.errors import ErrorKind
from sitesmith.preview.compositor import SANDBOX_CSP

logger = logging.getLogger("sitesmith.api")

_MB = 1024 * 1024

# Saving or previewing a project carries every generated file in the body.
_BODY_LIMITS: dict[str, int] = {
    "/projects": 5 * _MB,
    "/preview": 5 * _MB,
}
_DEFAULT_BODY_LIMIT = 1 * _MB

_API_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'",
}
# Preview documents are generated code and must be frameable, but only
# inside an opaque origin.
_PREVIEW_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "Content-Security-Policy": SANDBOX_CSP,
}


def body_limit_for(path: str) -> int:
    """Maximum accepted request body size in bytes for *path*."""
    return _BODY_LIMITS.get(path.rstrip("/"), _DEFAULT_BODY_LIMIT)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Report the handling time in ``X-Request-Duration-Ms`` and the debug log."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-Duration-Ms"] = f"{elapsed_ms:.1f}"
        logger.debug(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers.

    ``/preview`` responses get a CSP ``sandbox`` directive so their scripts
    run in an opaque origin; every other response refuses to be framed.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        is_preview = request.url.path.startswith("/preview")
        response.headers.update(_PREVIEW_HEADERS if is_preview else _API_HEADERS)
        return response


def _too_large(limit: int) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "error": f"Request body too large (max {limit // _MB} MB)",
            "kind": ErrorKind.VALIDATION.value,
            "retriable": False,
        },
    )


async def _read_within(request: Request, limit: int) -> bytes | None:
    """Read the whole body, or return ``None`` as soon as it exceeds *limit*."""
    received = bytearray()
    async for chunk in request.stream():
        received.extend(chunk)
        if len(received) > limit:
            return None
    return bytes(received)


class RequestBodyLimitMiddleware(BaseHTTPMiddleware):
    """Reject oversized request bodies with 413.

    A declared ``Content-Length`` above the limit is rejected before reading.
    Writes are then counted while streaming, so a chunked body or a wrong
    header cannot get past the limit either.  The bytes read are cached on
    the request for the route handler.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        limit = body_limit_for(request.url.path)

        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > limit:
            return _too_large(limit)

        if request.method in ("POST", "PUT", "PATCH"):
            body = await _read_within(request, limit)
            if body is None:
                return _too_large(limit)
            request._body = body  # noqa: SLF001

        return await call_next(request)
