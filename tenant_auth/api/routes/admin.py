"""
api/routes/admin.py
-------------------
Tenant-scoped user administration.

GET /api/admin/users                    — scope users:read:any
PUT /api/admin/users/{user_id}/roles    — role ROLE_ADMIN
PUT /api/admin/users/{user_id}/enabled  — scope users:write:any

The tenant is always taken from the caller's token; admins cannot reach
users of other tenants.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from tenant_auth.core.authorization import Policy
from tenant_auth.core.errors import AccessDeniedError
from tenant_auth.core.scopes import Role, Scope
from tenant_auth.core.tokens import ClaimSet
from tenant_auth.dependencies import DbDep, require
from tenant_auth.schemas.error import ErrorResponse
from tenant_auth.schemas.user import EnabledUpdate, RolesUpdate, UserAdminRead
from tenant_auth.services.user_service import UserService

router = APIRouter(
    prefix="/api/admin/users",
    tags=["Admin"],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)

READ_USERS = Policy.scopes(Scope.USERS_READ_ANY.value)
WRITE_USERS = Policy.scopes(Scope.USERS_WRITE_ANY.value)
ADMIN_ONLY = Policy.roles(Role.ADMIN.value)


def _tenant_of(claims: ClaimSet) -> str:
    if claims.tenant_id is None:
        raise AccessDeniedError("Token carries no tenant", reason="INSUFFICIENT_PERMISSIONS")
    return claims.tenant_id


@router.get(
    "",
    response_model=list[UserAdminRead],
    summary="List users in the caller's tenant",
)
async def list_users(
    db: DbDep,
    claims: Annotated[ClaimSet, Depends(require(READ_USERS))],
) -> list[UserAdminRead]:
    users = await UserService.list_users_in_tenant(db, _tenant_of(claims))
    return [UserService.to_admin_read(u) for u in users]


@router.put(
    "/{user_id}/roles",
    response_model=UserAdminRead,
    summary="Replace a user's role set",
    responses={404: {"model": ErrorResponse}},
)
async def replace_roles(
    user_id: str,
    body: RolesUpdate,
    db: DbDep,
    claims: Annotated[ClaimSet, Depends(require(ADMIN_ONLY))],
) -> UserAdminRead:
    """New roles show up in the user's tokens from their next login or refresh."""
    user = await UserService.replace_roles(db, user_id, _tenant_of(claims), body.roles)
    return UserService.to_admin_read(user)


@router.put(
    "/{user_id}/enabled",
    response_model=UserAdminRead,
    summary="Enable or disable a user",
    responses={404: {"model": ErrorResponse}},
)
async def set_enabled(
    user_id: str,
    body: EnabledUpdate,
    db: DbDep,
    claims: Annotated[ClaimSet, Depends(require(WRITE_USERS))],
) -> UserAdminRead:
    user = await UserService.set_enabled(db, user_id, _tenant_of(claims), body.enabled)
    return UserService.to_admin_read(user)
