"""
tsg.api.app

FastAPI app factory for the Tenant Service Groups service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (DB engine/session factory).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tsg.api.errors import register_error_handlers
from tsg.api.routers.accounts import router as accounts_router
from tsg.api.routers.dev_auth import router as dev_auth_router
from tsg.api.routers.groups import router as groups_router
from tsg.api.routers.health import router as health_router
from tsg.api.routers.internal.jobs import JobRegistry
from tsg.api.routers.internal.router import router as internal_router
from tsg.db.init_db import init_db
from tsg.db.session import create_engine, create_sessionmaker
from tsg.observability.logging import configure_logging, get_logger
from tsg.observability.middleware import RequestContextMiddleware
from tsg.settings import Settings, get_settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Tenant Service Groups",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Routers resolve settings through `get_settings`; pin it to this instance.
    app.dependency_overrides[get_settings] = lambda: settings
    # Backing state of the in-process job API (used when no orchestrator URL is set).
    app.state.jobs = JobRegistry()

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(accounts_router)
    app.include_router(groups_router)
    app.include_router(internal_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; lifecycle sequencing stays in `services`.
