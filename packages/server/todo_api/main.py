"""
Todo API Server

Entry point for the FastAPI application.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from todo_api.api.v1 import router as api_v1_router
from todo_api.api.v1.auth import router as auth_router
from todo_api.core.config import Settings, get_settings
from todo_api.core.container import Services, build_sql_services
from todo_api.core.database import create_engine, init_db
from todo_api.core.errors import register_exception_handlers
from todo_api.core.logconfig import configure_logging
from todo_api.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from todo_api.core.redis import close_redis

log = structlog.get_logger()


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    When ``services`` is given (tests), it is used as is and the lifespan
    does not touch the database or Redis.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("todo_api.starting", environment=settings.environment)
        if services is not None:
            app.state.services = services
            yield
            log.info("todo_api.shutting_down")
            return

        engine = create_engine(settings.database_url, echo=settings.debug)
        if not settings.is_production:
            await init_db(engine)
        app.state.services = await build_sql_services(settings, engine)
        try:
            yield
        finally:
            log.info("todo_api.shutting_down")
            await close_redis()
            await engine.dispose()

    app = FastAPI(
        title="Todo API",
        description="Multi-tenant todo lists with token sessions and role-based access.",
        version="0.1.0",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    if services is not None:
        # Available even when the ASGI lifespan is not run.
        app.state.services = services

    # Middleware (last added is outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    # Auth routes (not org-scoped)
    app.include_router(auth_router, prefix="/auth", tags=["Authentication"])

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    return app
