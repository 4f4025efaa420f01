"""FastAPI application entry point for Smart Select.

This module creates and configures the FastAPI application with all
necessary middleware, routers, and lifecycle hooks.
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from smart_select import __version__
from smart_select.api.endpoints import analyze, selection
from smart_select.api.router import api_router
from smart_select.config import get_settings
from smart_select.core.exceptions import (
    ConfigurationError,
    PatternError,
    SmartSelectDisabledError,
    SmartSelectError,
)
from smart_select.selection.service import SmartSelectService
from smart_select.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

# Performance threshold for slow request warnings (seconds)
_SLOW_REQUEST_THRESHOLD = 1.0


class PerformanceLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log request performance metrics.

    Logs duration for every request and warns when requests exceed threshold.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time

        log_data = {
            "method": request.method,
            "path": request.url.path,
            "duration_ms": round(duration * 1000, 2),
            "status_code": response.status_code,
        }

        if duration > _SLOW_REQUEST_THRESHOLD:
            logger.warning("Slow request detected", **log_data)
        else:
            logger.debug("Request completed", **log_data)

        response.headers["X-Response-Time"] = f"{duration * 1000:.2f}ms"

        return response


def _inject_service(service: SmartSelectService | None) -> None:
    analyze.set_service(service)
    selection.set_service(service)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes logging and the smart select service on startup and
    detaches the service on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control returns to the application.
    """
    setup_logging()
    settings = get_settings()

    logger.info(
        "Starting Smart Select",
        version=__version__,
        environment=settings.app.env,
        workspace=str(settings.workspace.root),
        enabled=settings.analysis.enabled,
    )

    service = SmartSelectService.from_settings(settings)
    _inject_service(service)

    yield

    logger.info("Shutting down Smart Select")
    _inject_service(None)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Smart Select API",
        description="Dependency-aware file selection for JavaScript/TypeScript projects",
        version=__version__,
        docs_url="/docs" if settings.app.debug else None,
        redoc_url="/redoc" if settings.app.debug else None,
        openapi_url="/openapi.json" if settings.app.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.app.env == "development" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(PerformanceLoggingMiddleware)

    app.add_exception_handler(SmartSelectError, smart_select_exception_handler)

    app.include_router(api_router)

    return app


async def smart_select_exception_handler(
    request: Request,
    exc: SmartSelectError,
) -> JSONResponse:
    """Convert SmartSelectError instances to consistent JSON responses.

    Args:
        request: The incoming request.
        exc: The SmartSelectError exception.

    Returns:
        JSONResponse: Formatted error response.
    """
    logger.error(
        "Request failed",
        error=exc.__class__.__name__,
        message=exc.message,
        details=exc.details,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=_get_status_code(exc),
        content=exc.to_dict(),
    )


def _get_status_code(exc: SmartSelectError) -> int:
    """Map exception types to HTTP status codes.

    Args:
        exc: The exception instance.

    Returns:
        int: Appropriate HTTP status code.
    """
    # Checked in order; subclasses before their bases
    status_map: dict[type, int] = {
        SmartSelectDisabledError: status.HTTP_409_CONFLICT,
        ConfigurationError: status.HTTP_400_BAD_REQUEST,
        PatternError: status.HTTP_400_BAD_REQUEST,
    }

    for exc_type, status_code in status_map.items():
        if isinstance(exc, exc_type):
            return status_code

    return status.HTTP_500_INTERNAL_SERVER_ERROR


# Create the application instance
app = create_app()


def main() -> None:
    """Run the application using uvicorn.

    This is the entry point for the CLI command.
    """
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "smart_select.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
        workers=settings.api.workers if not settings.api.reload else 1,
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    main()
