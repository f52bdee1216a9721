import asyncio

import httpx
import pytest

from tenant_auth.core.config import get_settings
from tenant_auth.core.errors import StoreUnavailableError
from tenant_auth.db.session import get_db
from tenant_auth.services.store import SqlAlchemyAuthStore


class StalledSession:
    """Stands in for an AsyncSession whose database never answers."""

    async def execute(self, *args, **kwargs):
        await asyncio.sleep(5)

    async def flush(self, *args, **kwargs):
        await asyncio.sleep(5)

    async def commit(self):
        await asyncio.sleep(5)

    async def rollback(self):
        pass

    def add(self, instance):
        pass


@pytest.mark.parametrize(
    "call",
    [
        lambda store: store.find_user_by_email("jane@example.com"),
        lambda store: store.exists_user_with_email("jane@example.com"),
        lambda store: store.find_tenant_by_slug("default"),
        lambda store: store.find_refresh_token("abc"),
        lambda store: store.lock_user("user-1"),
        lambda store: store.commit(),
    ],
)
async def test_store_call_times_out(call):
    store = SqlAlchemyAuthStore(StalledSession(), timeout=0.05)
    with pytest.raises(StoreUnavailableError):
        await call(store)


async def test_stalled_store_returns_503(app, settings):
    stalled = settings.model_copy(update={"STORE_TIMEOUT_SECONDS": 0.05})

    async def stalled_db():
        yield StalledSession()

    app.dependency_overrides[get_db] = stalled_db
    app.dependency_overrides[get_settings] = lambda: stalled

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/api/auth/login", json={"email": "jane@example.com", "password": "password123"}
        )

    assert response.status_code == 503
    body = response.json()
    assert body["code"] == "UNAVAILABLE"
    assert body["path"] == "/api/auth/login"
