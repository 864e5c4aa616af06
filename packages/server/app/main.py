"""
NexusGuard Access API

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.core.config import get_settings
from app.core.errors import AccessModelError
from app.core.logging_config import configure_logging
from app.core.metrics import metrics
from app.core.middleware import SecurityHeadersMiddleware
from app.core.store import close_store, get_store
from app.api.v1 import router as api_v1_router
from app.api.v1.auth import router as auth_router

settings = get_settings()
log = structlog.get_logger()


async def access_model_error_handler(request: Request, exc: AccessModelError) -> JSONResponse:
    """Render domain errors as {"error": {code, message, status}}."""
    log.info(
        "request.rejected",
        path=request.url.path,
        code=exc.code,
        status=exc.status_code,
        **exc.context,
    )
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.to_dict()},
        headers=headers,
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="NexusGuard",
        description="Multi-tenant roles, memberships, resource gating and join approvals.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_exception_handler(AccessModelError, access_model_error_handler)

    app.include_router(auth_router, prefix="/auth", tags=["Identity"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness checks."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check: the document store must open and answer a read."""
        store = await get_store()
        await store.list("organizations")
        return {"status": "ready", "store": settings.store_backend}

    @app.get("/metrics", response_class=PlainTextResponse, tags=["System"])
    async def metrics_endpoint():
        return metrics.to_prometheus()

    @app.on_event("startup")
    async def on_startup():
        log.info("NexusGuard starting", store=settings.store_backend)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("NexusGuard shutting down")
        await close_store()

    return app


app = create_app()
