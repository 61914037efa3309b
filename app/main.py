"""Catalog API application.

Wires logging, middleware, routers and the error envelope around the
catalog service.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.health import router as health_router
from app.api.middleware import error_body, setup_middleware
from app.api.products import STATUS_BY_ERROR_CODE
from app.api.products import router as products_router
from app.domain.exceptions import CatalogError
from app.infrastructure.config import settings
from app.infrastructure.database import engine
from app.infrastructure.logging_config import configure_logging

configure_logging(settings.log_level)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and release pooled connections on shutdown."""
    logger.info(
        "Catalog API starting",
        version=settings.api_version,
        database=engine.url.render_as_string(hide_password=True),
        page_sizes=settings.allowed_page_sizes,
    )
    yield
    await engine.dispose()
    logger.info("Catalog API stopped")


app = FastAPI(
    title="Catalog API",
    description="Product catalog listing and management backend",
    version=settings.api_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Listing-Generation"],
)
setup_middleware(app)

app.include_router(health_router, tags=["Health"])
app.include_router(products_router)


# ============================================================================
# Exception Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTP errors in the shared envelope."""
    detail = exc.detail if isinstance(exc.detail, dict) else {"message": str(exc.detail)}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(
            detail.get("error_code", "ERROR"),
            detail.get("message", ""),
            getattr(request.state, "request_id", None),
            detail.get("details"),
        ),
    )


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Render catalog errors that a route did not translate itself."""
    return JSONResponse(
        status_code=STATUS_BY_ERROR_CODE.get(exc.error_code, 500),
        content=error_body(
            exc.error_code,
            exc.message,
            getattr(request.state, "request_id", None),
        ),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Hide internals of unexpected failures."""
    logger.exception("Unhandled exception in handler", error=str(exc))
    return JSONResponse(
        status_code=500,
        content=error_body(
            "INTERNAL_ERROR",
            "An internal error occurred",
            getattr(request.state, "request_id", None),
        ),
    )
