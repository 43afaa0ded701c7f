"""Main entry point for the Inkwell application."""

from __future__ import annotations

import logging
import traceback
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from inkwell import __version__
from inkwell.api.v1 import (
    auth_router,
    comments_router,
    posts_router,
    uploads_router,
)
from inkwell.core.errors import (
    ConflictError,
    DomainError,
    InternalError,
    ValidationError,
    kind_for_status,
)
from inkwell.core.logging_config import configure_logging
from inkwell.core.settings import settings
from inkwell.schemas.common import ErrorResponse

configure_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Inkwell API",
    description="Blog platform API: posts, threaded comments, likes and image uploads",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(uploads_router, prefix="/api/v1")

# Serve stored uploads from the same origin
Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount(
    settings.upload_base_url,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)


def _error_response(error: DomainError, cause: BaseException | None = None) -> JSONResponse:
    trace = None
    if cause is not None and settings.debug:
        trace = "".join(traceback.format_exception(cause))
    body = ErrorResponse(
        kind=error.kind, message=error.message, details=error.details, trace=trace
    )
    return JSONResponse(status_code=error.status_code, content=body.model_dump(exclude_none=True))


_LOC_ROOTS = ("body", "query", "path")


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in _LOC_ROOTS),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return _error_response(ValidationError("Validation failed", details=details))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    body = {"kind": kind_for_status(exc.status_code), "message": str(exc.detail), "details": []}
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error_response(ConflictError("Resource conflicts with existing data"), exc)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(InternalError("Internal server error"), exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(InternalError("Internal server error"), exc)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Inkwell API",
        "version": __version__,
        "description": "Blog platform API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("inkwell.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
