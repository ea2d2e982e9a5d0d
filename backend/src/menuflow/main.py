"""MenuFlow Backend - Main FastAPI Application

Menu digitization pipeline: intake of menu documents, vision extraction,
review staging and publication into the live catalog.

This module creates and configures the FastAPI application:
- Routers (ingestion API, observability)
- Middleware (request ID correlation, CORS)
- Exception handlers rendering the {"error": {"code", "message"}} envelope
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .domain.ingestion.errors import IngestionError
from .ingestion.router import router as ingestion_router
from .observability import CorrelationMiddleware, configure_logging
from .observability.router import router as observability_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=not settings.DEBUG)

logger = logging.getLogger(__name__)


def error_envelope(status_code: int, code: str, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers=headers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("MenuFlow API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    yield
    logger.info("MenuFlow API shutting down...")


app = FastAPI(
    title="MenuFlow API",
    description="Menu digitization pipeline: upload, extraction, review and publish",
    version=__version__,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(CorrelationMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(IngestionError)
async def ingestion_exception_handler(request: Request, exc: IngestionError) -> JSONResponse:
    """Render pipeline errors with their taxonomy status code."""
    log = logger.warning if exc.http_status < 500 else logger.error
    log(f"{request.method} {request.url.path} failed: {exc.kind.value}/{exc.code}")
    return error_envelope(exc.http_status, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        ".".join(str(part) for part in error.get("loc", ())[1:]) or "body"
        for error in exc.errors()
    ]
    logger.warning(f"Validation error on {request.method} {request.url.path}: {fields}")
    return error_envelope(
        status.HTTP_400_BAD_REQUEST,
        "invalid_request",
        f"Request validation failed: {', '.join(fields)}",
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "unauthorized" if exc.status_code == status.HTTP_401_UNAUTHORIZED else "http_error"
    return error_envelope(exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Logs the full error but returns a generic message."""
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return error_envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "storage_failed",
        "A database error occurred. Please try again later.",
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return error_envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "unhandled_error",
        "Unexpected error",
    )


# =============================================================================
# ROUTERS
# =============================================================================

app.include_router(observability_router)
app.include_router(ingestion_router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    return {"name": "MenuFlow API", "version": __version__}


def create_app() -> FastAPI:
    """Application factory for tests and ASGI servers."""
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("menuflow.main:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower())
