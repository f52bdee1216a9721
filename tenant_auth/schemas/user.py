"""
schemas/user.py
---------------
Pydantic models for user projections and admin updates.

Security note:
  - the password hash is NEVER included in any response schema.
"""

from datetime import datetime
from typing import List

from pydantic import Field, field_validator

from tenant_auth.schemas.base import CamelModel


class UserResponse(CamelModel):
    id: str
    email: str
    name: str
    created_at: datetime
    updated_at: datetime
    enabled: bool


class UserAdminRead(UserResponse):
    """Admin listing: the projection plus tenant and roles."""
    tenant_id: str
    roles: List[str]


class RolesUpdate(CamelModel):
    roles: List[str] = Field(..., max_length=32, examples=[["ROLE_USER", "ROLE_AGENT"]])

    @field_validator("roles")
    @classmethod
    def collapse_roles(cls, v: List[str]) -> List[str]:
        cleaned = {r.strip() for r in v}
        if "" in cleaned:
            raise ValueError("Role labels must not be blank")
        return sorted(cleaned)


class EnabledUpdate(CamelModel):
    enabled: bool
