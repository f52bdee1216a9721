"""
main.py
-------
FastAPI application factory and entry point.

Application lifecycle:
  1. App is created by create_application().
  2. lifespan context manager runs on startup / shutdown.
  3. Routers are registered with their URL prefixes.
  4. Exception handlers render every failure as an ErrorResponse.

Run with:
    uvicorn main:app --reload              # development
    uvicorn main:app --workers 4           # production (no --reload)
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tenant_auth.api.errors import register_exception_handlers
from tenant_auth.api.routes import admin, auth, tenants
from tenant_auth.core.config import Settings, get_settings
from tenant_auth.core.logging import configure_logging, get_logger
from tenant_auth.db.session import get_engine, get_sessionmaker
from tenant_auth.services.tenant_service import TenantService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Startup / shutdown lifecycle hook.

    Startup:
      - Configure structured logging
      - Make sure the default tenant exists (self-signup depends on it)

    Shutdown:
      - Dispose the async engine (graceful connection pool drain)
    """
    settings: Settings = app.state.settings
    configure_logging(settings)
    logger.info(
        "Starting up",
        app=settings.APP_NAME,
        env=settings.APP_ENV,
        debug=settings.DEBUG,
    )
    if settings.BOOTSTRAP_DEFAULT_TENANT:
        async with get_sessionmaker(settings.DATABASE_URL, settings.DEBUG)() as session:
            await TenantService.ensure_default_tenant(session, settings)
            await session.commit()
    yield
    logger.info("Shutting down, disposing DB engine")
    await get_engine(settings.DATABASE_URL, settings.DEBUG).dispose()


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Multi-tenant authentication service: signed access tokens, "
            "single-session refresh tokens and role/scope authorization."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    # Route dependencies see the same settings as the lifespan
    app.dependency_overrides[get_settings] = lambda: settings

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(tenants.router)

    # ── Exception Handlers ────────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Health Check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["Health"], summary="Service health check")
    async def health() -> dict:
        return {"status": "ok", "app": settings.APP_NAME, "env": settings.APP_ENV}

    return app


app = create_application()
