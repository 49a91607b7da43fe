"""
Main FastAPI application.

Serverless relay endpoints with:
- Request ID tracking
- Structured logging
- Catch-all error handling (every failure is a JSON body)
- Prometheus metrics
"""
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from ipn_gateway import __version__
from ipn_gateway.config import get_settings
from ipn_gateway.monitoring.logging import (
    bind_request_context,
    clear_request_context,
    setup_logging,
)

from .responses import ALLOW_ORIGIN, MethodGated
from .routes import monitoring_router, relay_router

# Setup logging first
setup_logging()
logger = structlog.get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, Any]:
    """Log which integrations this process starts with."""
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        env=settings.app_env,
        notifications_enabled=settings.notifications_enabled,
        archive_enabled=settings.storage_configured,
        signature_required=settings.signature_required,
    )
    if not settings.signature_required:
        logger.warning("ipn_signature_verification_disabled", reason="IPN_SECRET not set")

    yield

    logger.info("application_shutdown")


app = FastAPI(
    title="IPN Gateway",
    description=(
        "Serverless endpoints that verify payment notifications and relay form "
        "submissions to a chat webhook, archiving records to object storage."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


@app.middleware("http")
async def add_request_id_middleware(request: Request, call_next: Any) -> Response:
    """
    Add request ID to all requests for tracing.

    Also adds timing information and structured logging context.
    """
    request_id = str(uuid.uuid4())
    start_time = time.time()

    bind_request_context(request_id, request.method, request.url.path)

    logger.info(
        "request_started",
        client_host=request.client.host if request.client else None,
    )

    try:
        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        duration = time.time() - start_time
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_seconds=duration,
        )

        return response

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            "request_failed",
            error=str(e),
            duration_seconds=duration,
        )
        raise

    finally:
        clear_request_context()


@app.exception_handler(MethodGated)
async def method_gated_handler(request: Request, exc: MethodGated) -> Response:
    """Preflight and wrong-verb answers raised by the relay router."""
    return exc.response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Internal server error",
            "error": str(exc),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        headers=ALLOW_ORIGIN,
    )


app.include_router(relay_router)
app.include_router(monitoring_router)


@app.get("/", tags=["root"])
async def root() -> Dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "service": settings.app_name,
        "version": __version__,
        "status": "operational",
        "environment": settings.app_env,
        "endpoints": ["/api/ipn", "/api/requests", "/api/unsubscribe"],
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
    }


def run() -> None:
    """Serve the app locally with uvicorn."""
    import uvicorn

    uvicorn.run(
        "ipn_gateway.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
