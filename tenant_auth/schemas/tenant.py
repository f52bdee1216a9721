"""
schemas/tenant.py
-----------------
Pydantic request/response models for Tenant.

Naming convention:
  TenantCreate  → inbound request body
  TenantRead    → outbound response body (never exposes internal fields)
"""

from datetime import datetime

from pydantic import Field, field_validator

from tenant_auth.schemas.base import CamelModel


class TenantCreate(CamelModel):
    name: str = Field(
        ...,
        min_length=2,
        max_length=255,
        examples=["Acme Corp"],
        description="Unique company / tenant name",
    )
    slug: str = Field(
        ...,
        min_length=2,
        max_length=255,
        pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$",
        examples=["acme-corp"],
        description="Unique URL-safe identifier; immutable once created",
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class TenantRead(CamelModel):
    id: str
    name: str
    slug: str
    active: bool
    created_at: datetime
    updated_at: datetime
