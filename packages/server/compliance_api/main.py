"""
Compliance Desk API Server

Entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from compliance_api.core import database
from compliance_api.core.config import get_settings
from compliance_api.core.errors import ComplianceError, error_envelope_handler
from compliance_api.core.logging_config import configure_logging
from compliance_api.core.middleware import CSRFMiddleware, SecurityHeadersMiddleware
from compliance_api.core.redis import close_redis
from compliance_api.api.v1 import router as api_v1_router
from compliance_api.api.v1.auth import router as auth_router

settings = get_settings()
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("compliance_desk.starting", debug=settings.debug)
    yield
    log.info("compliance_desk.stopping")
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Compliance Desk",
        description="Organizations, memberships and active-organization context.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware (the last one added runs outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-CSRF-Token"],
    )

    app.add_exception_handler(ComplianceError, error_envelope_handler)

    app.include_router(auth_router, prefix="/auth", tags=["Authentication"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check: the database answers a trivial query."""
        async with database.async_session_factory() as session:
            await session.execute(text("SELECT 1"))
        return {"status": "ready"}

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn using the configured host/port."""
    import uvicorn

    uvicorn.run(
        "compliance_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )
