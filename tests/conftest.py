"""Shared fixtures.

Every test gets a fresh in-memory SQLite database (aiosqlite) with the
schema and the default tenant in place. Route tests talk to the app through
httpx's ASGITransport with get_db / get_settings overridden.
"""

import os

# Settings are read at import time by main.py; set them before any app import
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("BOOTSTRAP_DEFAULT_TENANT", "false")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from tenant_auth.core.config import Settings, get_settings  # noqa: E402
from tenant_auth.core.scopes import Role  # noqa: E402
from tenant_auth.core.security import PasswordHasher  # noqa: E402
from tenant_auth.core.tokens import TokenCodec  # noqa: E402
from tenant_auth.db.session import build_sessionmaker, get_db  # noqa: E402
from tenant_auth.models import Base, User  # noqa: E402
from tenant_auth.services.auth_service import AuthService  # noqa: E402
from tenant_auth.services.refresh_tokens import RefreshTokenManager  # noqa: E402
from tenant_auth.services.store import SqlAlchemyAuthStore  # noqa: E402
from tenant_auth.services.tenant_service import TenantService  # noqa: E402

TEST_SECRET = "test-secret-key-for-testing-only-0123456789abcdef"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        JWT_SECRET=TEST_SECRET,
        DATABASE_URL="sqlite+aiosqlite://",
        ACCESS_TOKEN_EXPIRE_MS=900_000,
        REFRESH_TOKEN_EXPIRE_MS=3_600_000,
        BCRYPT_ROUNDS=4,
        BOOTSTRAP_DEFAULT_TENANT=False,
    )


@pytest.fixture
def codec(settings) -> TokenCodec:
    return TokenCodec(settings)


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def default_tenant(sessionmaker, settings):
    async with sessionmaker() as session:
        tenant = await TenantService.ensure_default_tenant(session, settings)
        await session.commit()
        return tenant


@pytest_asyncio.fixture
async def session(sessionmaker, default_tenant):
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def store(session, settings) -> SqlAlchemyAuthStore:
    return SqlAlchemyAuthStore(session, timeout=settings.STORE_TIMEOUT_SECONDS)


@pytest.fixture
def refresh_tokens(store, settings) -> RefreshTokenManager:
    return RefreshTokenManager(store, settings)


@pytest.fixture
def auth_service(store, codec, refresh_tokens, hasher, settings) -> AuthService:
    return AuthService(
        store=store,
        codec=codec,
        refresh_tokens=refresh_tokens,
        hasher=hasher,
        settings=settings,
    )


@pytest_asyncio.fixture
async def user(store, hasher, default_tenant) -> User:
    user = User(
        email="jane@example.com",
        password=await hasher.hash("password123"),
        name="Jane",
        tenant_id=default_tenant.id,
        enabled=True,
    )
    user.set_roles({Role.USER.value})
    return await store.save_user(user)


# ── HTTP ──────────────────────────────────────────────────────────────────────


@pytest.fixture
def app(settings, sessionmaker, default_tenant):
    from main import create_application

    app = create_application(settings)

    async def override_get_db():
        async with sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
