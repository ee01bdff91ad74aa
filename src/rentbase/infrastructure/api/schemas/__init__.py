"""API schemas for request/response validation."""

from rentbase.infrastructure.api.schemas.asset_schemas import (
    AssetCreateRequest,
    AssetListResponse,
    AssetResponse,
)
from rentbase.infrastructure.api.schemas.auth_schemas import (
    LoginRequest,
    MeResponse,
    TokenResponse,
)
from rentbase.infrastructure.api.schemas.business_unit_schemas import (
    BusinessUnitCreateRequest,
    BusinessUnitListResponse,
    BusinessUnitResponse,
    BusinessUnitUpdateRequest,
    MemberAssignRequest,
    MemberResponse,
)
from rentbase.infrastructure.api.schemas.role_schemas import (
    CreateRoleRequest,
    PermissionListResponse,
    PermissionResponse,
    RoleListResponse,
    RolePermissionsRequest,
    RoleResponse,
    UpdateRoleRequest,
)
from rentbase.infrastructure.api.schemas.system_schemas import SystemContextResponse
from rentbase.infrastructure.api.schemas.tenant_schemas import (
    TenantCreateRequest,
    TenantCreateResponse,
    TenantListResponse,
    TenantResponse,
    TenantStatusRequest,
    TenantUpdateRequest,
)

__all__ = [
    "AssetCreateRequest",
    "AssetListResponse",
    "AssetResponse",
    "BusinessUnitCreateRequest",
    "BusinessUnitListResponse",
    "BusinessUnitResponse",
    "BusinessUnitUpdateRequest",
    "CreateRoleRequest",
    "LoginRequest",
    "MeResponse",
    "MemberAssignRequest",
    "MemberResponse",
    "PermissionListResponse",
    "PermissionResponse",
    "RoleListResponse",
    "RolePermissionsRequest",
    "RoleResponse",
    "SystemContextResponse",
    "TenantCreateRequest",
    "TenantCreateResponse",
    "TenantListResponse",
    "TenantResponse",
    "TenantStatusRequest",
    "TenantUpdateRequest",
    "UpdateRoleRequest",
]
