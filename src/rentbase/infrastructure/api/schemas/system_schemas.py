"""Schemas for trusted system callers."""

from pydantic import BaseModel


class SystemContextResponse(BaseModel):
    """The context bound from the trusted tenant headers."""

    tenant_id: str
    tenant_name: str
    business_unit_id: str | None = None
    user_id: str
    is_system: bool
    request_id: str
