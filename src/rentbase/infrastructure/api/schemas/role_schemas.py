"""Role and permission API schemas."""

from pydantic import BaseModel, Field, field_validator

from rentbase.domain.entities.role import PermissionKey


def _check_keys(values: list[str]) -> list[str]:
    for value in values:
        PermissionKey.parse(value)
    return values


class CreateRoleRequest(BaseModel):
    """Request schema for creating a custom role.

    Attributes:
        name: Role name, unique within the tenant.
        description: Optional description of the role's purpose.
        permissions: Initial permissions as ``resource:action`` strings.
    """

    name: str = Field(..., max_length=100)
    description: str | None = None
    permissions: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        """Validate that name is not empty."""
        if not v or not v.strip():
            raise ValueError("Role name cannot be empty")
        return v.strip()

    @field_validator("permissions")
    @classmethod
    def permission_format(cls, v: list[str]) -> list[str]:
        return _check_keys(v)


class UpdateRoleRequest(BaseModel):
    """Request schema for updating a custom role."""

    name: str | None = Field(None, max_length=100)
    description: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Role name cannot be empty")
        return v.strip() if v is not None else v


class RolePermissionsRequest(BaseModel):
    """Full replacement permission set for a role."""

    permissions: list[str]

    @field_validator("permissions")
    @classmethod
    def permission_format(cls, v: list[str]) -> list[str]:
        return _check_keys(v)


class RoleResponse(BaseModel):
    """Response schema for a role with its permissions."""

    id: str
    name: str
    description: str | None = None
    is_system: bool
    tenant_id: str | None = None
    permissions: list[str]


class RoleListResponse(BaseModel):
    items: list[RoleResponse]
    total: int


class PermissionResponse(BaseModel):
    """Response schema for a catalog permission."""

    key: str
    resource: str
    action: str
    scope: str
    description: str | None = None


class PermissionListResponse(BaseModel):
    items: list[PermissionResponse]
    total: int
