"""Business unit API schemas."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class BusinessUnitCreateRequest(BaseModel):
    """Request schema for creating a business unit."""

    name: str = Field(..., min_length=1, max_length=255)
    slug: str | None = None
    description: str | None = None
    settings: dict[str, Any] | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Business unit name cannot be empty")
        return v.strip()


class BusinessUnitUpdateRequest(BaseModel):
    """Request schema for updating a business unit."""

    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = None
    description: str | None = None
    settings: dict[str, Any] | None = None


class BusinessUnitResponse(BaseModel):
    """Response schema for a business unit."""

    id: str
    tenant_id: str
    name: str
    slug: str
    description: str | None = None
    settings: dict[str, Any]


class BusinessUnitListResponse(BaseModel):
    items: list[BusinessUnitResponse]
    total: int


class MemberAssignRequest(BaseModel):
    """Request schema for assigning a user to a business unit."""

    user_id: str
    role_id: str


class MemberResponse(BaseModel):
    """Response schema for a business unit assignment."""

    user_id: str
    business_unit_id: str
    role_id: str
