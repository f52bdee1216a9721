"""
api/routes/tenants.py
---------------------
Tenant management endpoints (ROLE_ADMIN only).

POST /api/admin/tenants         — Onboard a new tenant.
GET  /api/admin/tenants/{slug}  — Look up a tenant by slug.
"""

from fastapi import APIRouter, Depends, status

from tenant_auth.core.authorization import Policy
from tenant_auth.core.errors import NotFoundError
from tenant_auth.core.scopes import Role
from tenant_auth.dependencies import DbDep, require
from tenant_auth.schemas.error import ErrorResponse
from tenant_auth.schemas.tenant import TenantCreate, TenantRead
from tenant_auth.services.tenant_service import TenantService

router = APIRouter(
    prefix="/api/admin/tenants",
    tags=["Tenants"],
    dependencies=[Depends(require(Policy.roles(Role.ADMIN.value)))],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)


@router.post(
    "",
    response_model=TenantRead,
    status_code=status.HTTP_201_CREATED,
    summary="Onboard a new tenant",
    responses={409: {"model": ErrorResponse}},
)
async def create_tenant(body: TenantCreate, db: DbDep) -> TenantRead:
    tenant = await TenantService.create_tenant(db, body)
    return TenantRead.model_validate(tenant)


@router.get(
    "/{slug}",
    response_model=TenantRead,
    summary="Get a tenant by slug",
    responses={404: {"model": ErrorResponse}},
)
async def get_tenant(slug: str, db: DbDep) -> TenantRead:
    tenant = await TenantService.get_tenant_by_slug(db, slug)
    if tenant is None:
        raise NotFoundError(f"Tenant '{slug}' not found")
    return TenantRead.model_validate(tenant)
