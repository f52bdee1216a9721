"""
services/user_service.py
------------------------
Admin operations on users: listing, role assignment, enable/disable.

All queries are scoped by tenant_id to enforce strict data isolation. A user
id from another tenant is reported as not found, never as forbidden, so
admins cannot probe other tenants for valid ids.

Role changes take effect at the user's next token issuance (login or
refresh); tokens already handed out keep their old claims until they expire.
"""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_auth.core.errors import NotFoundError
from tenant_auth.core.logging import get_logger
from tenant_auth.models.user import User
from tenant_auth.schemas.user import UserAdminRead

logger = get_logger(__name__)


class UserService:

    @staticmethod
    async def list_users_in_tenant(db: AsyncSession, tenant_id: str) -> list[User]:
        result = await db.execute(
            select(User).where(User.tenant_id == tenant_id).order_by(User.created_at, User.email)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_user_in_tenant(db: AsyncSession, user_id: str, tenant_id: str) -> User:
        result = await db.execute(
            select(User).where(User.id == user_id, User.tenant_id == tenant_id)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def replace_roles(
        db: AsyncSession, user_id: str, tenant_id: str, roles: Iterable[str]
    ) -> User:
        user = await UserService.get_user_in_tenant(db, user_id, tenant_id)
        user.set_roles(roles)
        await db.flush()
        logger.info("User roles replaced", user_id=user.id, roles=sorted(user.roles))
        return user

    @staticmethod
    async def set_enabled(
        db: AsyncSession, user_id: str, tenant_id: str, enabled: bool
    ) -> User:
        user = await UserService.get_user_in_tenant(db, user_id, tenant_id)
        user.enabled = enabled
        await db.flush()
        logger.info("User enabled flag changed", user_id=user.id, enabled=enabled)
        return user

    @staticmethod
    def to_admin_read(user: User) -> UserAdminRead:
        return UserAdminRead(
            id=user.id,
            email=user.email,
            name=user.name,
            created_at=user.created_at,
            updated_at=user.updated_at,
            enabled=user.enabled,
            tenant_id=user.tenant_id,
            roles=sorted(user.roles),
        )
