"""
Signature Placement Service - Main FastAPI Application
Computes signature placements on rotated PDF pages and stamps them.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from sigplace import __version__
from sigplace.config import get_settings
from sigplace.exceptions import (
    AppException,
    app_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
    validation_exception_handler,
)
from sigplace.pdf.cache import PageGeometryCache
from sigplace.utils.logging import RequestIdMiddleware, get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    setup_logging(
        environment=settings.environment,
        level=logging.DEBUG if settings.debug else logging.INFO,
    )
    logger.info(f"Starting Signature Placement Service v{__version__} ({settings.environment})")
    yield
    app.state.page_cache.clear()
    logger.info("Shutting down Signature Placement Service")


app = FastAPI(
    title="Signature Placement Service",
    description="""Signature coordinate placement for PDF documents.

Signature boxes are captured as relative (0..1) coordinates against the page
as displayed (top-left origin, rotation applied). The service converts them to
bottom-left, unrotated PDF page space for rotations 0, 90, 180 and 270, and
can stamp signature images into a PDF at the computed positions.
""",
    version=__version__,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "placements", "description": "Coordinate placement computations"},
        {"name": "documents", "description": "PDF page geometry and stamping"},
        {"name": "health", "description": "Health check endpoints"},
    ],
)

app.state.page_cache = PageGeometryCache(max_entries=get_settings().page_cache_size)


from sigplace.routers import documents, health, placements

# Middleware
app.add_middleware(RequestIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_origin_regex=None if get_settings().is_production else r"http://localhost:\d+",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Routers
app.include_router(health.router)
app.include_router(placements.router)
app.include_router(documents.router)


# Health check
@app.get("/health", tags=["health"])
async def health_check():
    """Liveness check."""
    return {"status": "healthy", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("sigplace.main:app", host="0.0.0.0", port=8000)
