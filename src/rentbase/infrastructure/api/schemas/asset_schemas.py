"""Asset API schemas."""

from pydantic import BaseModel, Field


class AssetCreateRequest(BaseModel):
    """Request schema for registering an asset in the business unit."""

    name: str = Field(..., min_length=1, max_length=255)
    serial_number: str | None = Field(None, max_length=100)
    status: str = "AVAILABLE"


class AssetResponse(BaseModel):
    id: str
    tenant_id: str
    business_unit_id: str
    name: str
    serial_number: str | None = None
    status: str


class AssetListResponse(BaseModel):
    items: list[AssetResponse]
    total: int
