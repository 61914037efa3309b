"""HTTP middleware for the catalog API.

Provides:
- Request context (request id, access log)
- Listing generation header on product responses
- Last-resort error envelope
"""

import time
from typing import Any, Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.catalog.invalidation import get_invalidator
from app.infrastructure.config import settings

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
GENERATION_HEADER = "X-Listing-Generation"


def error_body(
    error_code: str,
    message: str,
    request_id: str | None,
    details: list[Any] | None = None,
) -> dict[str, Any]:
    """Build the JSON envelope shared by every error response."""
    return {
        "error_code": error_code,
        "message": message,
        "details": details or [],
        "request_id": request_id,
    }


# ============================================================================
# Request Context
# ============================================================================


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id to the request, its logs and its response.

    An incoming ``X-Request-ID`` is reused so callers can correlate their
    own logs; otherwise a UUID is generated.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            logger.info(
                "Request completed",
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id", "method", "path")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


# ============================================================================
# Listing Generation
# ============================================================================


class ListingGenerationMiddleware(BaseHTTPMiddleware):
    """Expose the product listing generation on product responses.

    The value is read after the handler ran, so a mutation response already
    carries the generation its commit produced.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        if request.url.path.startswith(settings.products_path):
            response.headers[GENERATION_HEADER] = str(
                get_invalidator().generation(settings.products_path)
            )
        return response


# ============================================================================
# Error Envelope
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn exceptions that escaped every handler into a 500 envelope."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception("Unhandled exception", error=str(e))
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_body(
                    "INTERNAL_ERROR",
                    "An internal error occurred",
                    getattr(request.state, "request_id", None),
                ),
            )


def setup_middleware(app: FastAPI) -> None:
    """Install the catalog middleware stack.

    Starlette runs the last added middleware first, so the error envelope
    wraps request context, which wraps the generation header.

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(ListingGenerationMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
