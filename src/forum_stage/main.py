# src/forum_stage/main.py
"""Main entry point for the forum application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from forum_stage.api.v1 import categories_router, discussions_router
from forum_stage.core.settings import settings
from forum_stage.services.errors import (
    ForbiddenError,
    InvalidRangeError,
    NoCategoriesError,
    NoQueryError,
    NotFoundError,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
NOTICE_HEADER = "X-Notice"

# Initialize FastAPI app
app = FastAPI(
    title="Forum Stage API",
    description="Discussion forum backend",
    version=settings.app_version,
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
app.include_router(discussions_router, prefix=API_PREFIX)
app.include_router(categories_router, prefix=API_PREFIX)


@app.exception_handler(NotFoundError)
async def not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ForbiddenError)
async def forbidden_handler(_request: Request, exc: ForbiddenError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


def _redirect(url: str, notice: str) -> RedirectResponse:
    return RedirectResponse(
        url=url,
        status_code=status.HTTP_303_SEE_OTHER,
        headers={NOTICE_HEADER: notice},
    )


@app.exception_handler(InvalidRangeError)
async def invalid_range_handler(request: Request, exc: InvalidRangeError) -> RedirectResponse:
    """Send the client back to the same listing with the corrected value."""
    url = request.url.include_query_params(**{exc.parameter: exc.corrected})
    logger.info("Redirecting %s: %s=%s out of range", request.url.path, exc.parameter, exc.value)
    return _redirect(str(url), str(exc))


@app.exception_handler(NoQueryError)
async def no_query_handler(_request: Request, exc: NoQueryError) -> RedirectResponse:
    return _redirect(f"{API_PREFIX}/discussions/", str(exc))


@app.exception_handler(NoCategoriesError)
async def no_categories_handler(_request: Request, exc: NoCategoriesError) -> RedirectResponse:
    return _redirect(f"{API_PREFIX}/categories/", str(exc))


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("forum_stage.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
