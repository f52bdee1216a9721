"""
services/store.py
-----------------
Persistence contract consumed by the auth core, and its SQLAlchemy
implementation.

The auth flows only ever talk to an AuthStore. SqlAlchemyAuthStore binds one
to a request-scoped AsyncSession, so all calls made during one flow share a
single transaction that the session dependency commits or rolls back.

Every call is bounded by Settings.STORE_TIMEOUT_SECONDS. A timeout or a
dropped connection surfaces as StoreUnavailableError instead of hanging the
request.
"""

import asyncio
from typing import Awaitable, Optional, Protocol, TypeVar

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_auth.core.errors import ConflictError, StoreUnavailableError
from tenant_auth.core.logging import get_logger
from tenant_auth.models.refresh_token import RefreshToken
from tenant_auth.models.tenant import Tenant
from tenant_auth.models.user import User

logger = get_logger(__name__)

T = TypeVar("T")


class AuthStore(Protocol):
    async def find_user_by_email(self, email: str) -> Optional[User]: ...

    async def exists_user_with_email(self, email: str) -> bool: ...

    async def save_user(self, user: User) -> User: ...

    async def find_tenant_by_slug(self, slug: str) -> Optional[Tenant]: ...

    async def find_refresh_token(self, token: str) -> Optional[RefreshToken]: ...

    async def save_refresh_token(self, refresh_token: RefreshToken) -> RefreshToken: ...

    async def delete_refresh_tokens_for_user(self, user_id: str) -> int: ...

    async def delete_refresh_token(self, refresh_token: RefreshToken) -> None: ...

    async def lock_user(self, user_id: str) -> None:
        """Serialize concurrent writers for one user until the transaction ends."""
        ...

    async def commit(self) -> None: ...


class SqlAlchemyAuthStore:
    """AuthStore over a request-scoped AsyncSession."""

    def __init__(self, db: AsyncSession, timeout: float = 5.0) -> None:
        self._db = db
        self._timeout = timeout

    async def _bounded(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("Store call timed out", operation=operation, timeout=self._timeout)
            raise StoreUnavailableError("The service is temporarily unavailable")
        except DBAPIError as exc:
            if not exc.connection_invalidated:
                raise
            logger.error("Store connection lost", operation=operation, error=str(exc))
            raise StoreUnavailableError("The service is temporarily unavailable") from exc

    # ── Users ─────────────────────────────────────────────────────────────────

    async def find_user_by_email(self, email: str) -> Optional[User]:
        result = await self._bounded(
            "find_user_by_email",
            self._db.execute(select(User).where(User.email == email)),
        )
        return result.scalar_one_or_none()

    async def exists_user_with_email(self, email: str) -> bool:
        result = await self._bounded(
            "exists_user_with_email",
            self._db.execute(select(exists().where(User.email == email))),
        )
        return bool(result.scalar())

    async def save_user(self, user: User) -> User:
        self._db.add(user)
        try:
            await self._bounded("save_user", self._db.flush())
        except IntegrityError:
            await self._db.rollback()
            raise ConflictError("Email is already in use")
        logger.info("User saved", user_id=user.id, tenant_id=user.tenant_id)
        return user

    async def lock_user(self, user_id: str) -> None:
        # FOR UPDATE is dropped by dialects without row locks (SQLite)
        await self._bounded(
            "lock_user",
            self._db.execute(select(User.id).where(User.id == user_id).with_for_update()),
        )

    # ── Tenants ───────────────────────────────────────────────────────────────

    async def find_tenant_by_slug(self, slug: str) -> Optional[Tenant]:
        result = await self._bounded(
            "find_tenant_by_slug",
            self._db.execute(select(Tenant).where(Tenant.slug == slug)),
        )
        return result.scalar_one_or_none()

    # ── Refresh tokens ────────────────────────────────────────────────────────

    async def find_refresh_token(self, token: str) -> Optional[RefreshToken]:
        result = await self._bounded(
            "find_refresh_token",
            self._db.execute(select(RefreshToken).where(RefreshToken.token == token)),
        )
        return result.unique().scalar_one_or_none()

    async def save_refresh_token(self, refresh_token: RefreshToken) -> RefreshToken:
        self._db.add(refresh_token)
        await self._bounded("save_refresh_token", self._db.flush())
        return refresh_token

    async def delete_refresh_tokens_for_user(self, user_id: str) -> int:
        result = await self._bounded(
            "delete_refresh_tokens_for_user",
            self._db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id)),
        )
        return result.rowcount or 0

    async def delete_refresh_token(self, refresh_token: RefreshToken) -> None:
        await self._db.delete(refresh_token)
        await self._bounded("delete_refresh_token", self._db.flush())

    async def commit(self) -> None:
        await self._bounded("commit", self._db.commit())
