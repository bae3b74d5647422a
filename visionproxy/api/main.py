"""
FastAPI application entry point.

This is the main FastAPI application that wires routes, middleware and error
handlers around the analysis pipeline.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .routers import analyze, health
from .models.common import ErrorResponse
from visionproxy import __version__
from visionproxy.config.settings import Settings, load_settings
from visionproxy.models.providers.azure_vision import AzureVisionProvider
from visionproxy.models.providers.base import VisionProvider
from visionproxy.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Resource-Policy": "same-origin",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Opens the shared outbound HTTP client at startup and closes it at shutdown.
    """
    settings: Settings = app.state.settings
    if app.state.vision_provider is None:
        app.state.vision_provider = AzureVisionProvider(settings)
    logger.info("Vision proxy ready (environment=%s)", settings.environment)

    yield  # Server runs here

    logger.info("Shutting down vision proxy")
    await app.state.vision_provider.aclose()


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    settings: Settings = request.app.state.settings
    message = str(exc) if settings.is_development else "Internal Server Error"
    return _error(500, message)


def register_error_handlers(app: FastAPI) -> None:
    """Every failure leaves the app as a JSON envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error(404, "Endpoint not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Request body could not be parsed")
        details = f"{location}: {message}" if location else message
        return _error(400, "Invalid request body", details)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        return _internal_error(request, exc)


def create_app(settings: Optional[Settings] = None, provider: Optional[VisionProvider] = None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.

    Passing `settings` or `provider` replaces what would otherwise be built
    from the environment, which is how tests point the app at a fake service.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Vision Proxy API",
        description="Validating proxy in front of the Azure Computer Vision analyze API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.vision_provider = provider

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_and_harden(request: Request, call_next):
        t0 = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            # Unhandled errors still get security headers and an access log line
            response = _internal_error(request, exc)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        logger.info(
            "%s %s %s %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - t0) * 1000,
        )
        return response

    register_error_handlers(app)

    # Include API routers
    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(analyze.router, prefix="/api/v1/analyze", tags=["analyze"])

    @app.get("/")
    async def root():
        """Root endpoint with basic API information."""
        return {
            "name": "Vision Proxy API",
            "version": __version__,
            "status": "operational",
            "endpoints": {
                "health": "/health",
                "analyze_url": "/api/v1/analyze/url",
                "analyze_upload": "/api/v1/analyze/upload",
                "features": "/api/v1/analyze/features",
                "docs": "/docs",
                "redoc": "/redoc"
            }
        }

    return app


# Create the FastAPI app instance
app = create_app()
