"""
services/tenant_service.py
--------------------------
Business logic for tenant management.

Service layer is responsible for:
  - Constructing queries
  - Enforcing business rules (unique names and slugs)
  - Returning domain objects (ORM models) to the route layer
  - Never returning HTTP responses (that's the route's job)
"""

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_auth.core.config import Settings
from tenant_auth.core.errors import ConflictError
from tenant_auth.core.logging import get_logger
from tenant_auth.models.tenant import Tenant
from tenant_auth.schemas.tenant import TenantCreate

logger = get_logger(__name__)


class TenantService:

    @staticmethod
    async def create_tenant(db: AsyncSession, data: TenantCreate) -> Tenant:
        """
        Create a new tenant.
        Raises ConflictError if the name or slug is already taken.
        """
        clash = await db.execute(
            select(Tenant.id).where(or_(Tenant.name == data.name, Tenant.slug == data.slug))
        )
        if clash.first() is not None:
            raise ConflictError(f"Tenant '{data.name}' or slug '{data.slug}' already exists")

        tenant = Tenant(name=data.name, slug=data.slug, active=True)
        db.add(tenant)
        try:
            await db.flush()  # Trigger DB constraints before commit
        except IntegrityError:
            await db.rollback()
            raise ConflictError(f"Tenant '{data.name}' or slug '{data.slug}' already exists")
        logger.info("Tenant created", tenant_id=tenant.id, slug=tenant.slug)
        return tenant

    @staticmethod
    async def get_tenant_by_slug(db: AsyncSession, slug: str) -> Tenant | None:
        result = await db.execute(select(Tenant).where(Tenant.slug == slug))
        return result.scalar_one_or_none()

    @staticmethod
    async def ensure_default_tenant(db: AsyncSession, settings: Settings) -> Tenant:
        """
        Bootstrap the tenant that self-signup assigns every user to.
        Idempotent: returns the existing row when the slug is present.
        Safe to run from several workers at once: losing the insert race
        returns the row the winner created.
        """
        tenant = await TenantService.get_tenant_by_slug(db, settings.DEFAULT_TENANT_SLUG)
        if tenant is not None:
            return tenant

        tenant = Tenant(
            id=settings.DEFAULT_TENANT_ID,
            name=settings.DEFAULT_TENANT_NAME,
            slug=settings.DEFAULT_TENANT_SLUG,
            active=True,
        )
        db.add(tenant)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            tenant = await TenantService.get_tenant_by_slug(db, settings.DEFAULT_TENANT_SLUG)
            if tenant is None:
                raise
            logger.info("Default tenant created by another worker", tenant_id=tenant.id)
            return tenant
        logger.info("Default tenant created", tenant_id=tenant.id, slug=tenant.slug)
        return tenant
