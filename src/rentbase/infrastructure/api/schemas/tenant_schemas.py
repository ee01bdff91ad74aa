"""Tenant API schemas for request/response validation."""

from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from rentbase.domain.entities.tenant import TenantStatus
from rentbase.domain.services.slug_generator import SlugGenerator


class TenantCreateRequest(BaseModel):
    """Request schema for creating a tenant with its owner.

    Attributes:
        name: Tenant display name.
        slug: Optional slug, generated from the name when omitted.
        plan: Subscription plan.
        vertical: Business vertical of the principal business unit.
        enabled_modules: Modules enabled on the principal business unit.
        owner_email: Owner login email.
        owner_password: Owner password.
        owner_first_name: Owner given name.
        owner_last_name: Owner family name.
    """

    name: str = Field(..., min_length=1, max_length=255)
    slug: str | None = None
    plan: str = "free"
    vertical: str | None = None
    enabled_modules: list[str] | None = None
    owner_email: EmailStr
    owner_password: str = Field(..., min_length=1)
    owner_first_name: str = ""
    owner_last_name: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Tenant name cannot be empty")
        return v.strip()

    @field_validator("slug")
    @classmethod
    def slug_format(cls, v: str | None) -> str | None:
        if v is None:
            return v
        errors = SlugGenerator.validate(v)
        if errors:
            raise ValueError(errors[0].message)
        return v


class TenantUpdateRequest(BaseModel):
    """Request schema for updating a tenant. ``settings`` is merged."""

    name: str | None = Field(None, min_length=1, max_length=255)
    plan: str | None = None
    settings: dict[str, Any] | None = None


class TenantStatusRequest(BaseModel):
    """Request schema for changing a tenant's status."""

    status: TenantStatus


class TenantResponse(BaseModel):
    """Response schema for a tenant."""

    id: str
    name: str
    slug: str
    plan: str
    status: str
    settings: dict[str, Any]


class TenantCreateResponse(BaseModel):
    """Response schema for tenant creation."""

    tenant: TenantResponse
    business_unit_id: str
    owner_id: str


class TenantListResponse(BaseModel):
    """Response schema for listing tenants."""

    items: list[TenantResponse]
    total: int
    offset: int
    limit: int
