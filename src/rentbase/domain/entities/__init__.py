"""Domain entities for RentBase.

Entities are pure Python dataclasses that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from rentbase.domain.entities.principal import GlobalRole, Principal
from rentbase.domain.entities.role import (
    PermissionAction,
    PermissionKey,
    PermissionScope,
    Role,
    SystemRole,
)
from rentbase.domain.entities.tenant import (
    BusinessUnit,
    Tenant,
    TenantStatus,
    UserStatus,
    default_business_unit_name,
    default_business_unit_slug,
)

__all__ = [
    "BusinessUnit",
    "GlobalRole",
    "PermissionAction",
    "PermissionKey",
    "PermissionScope",
    "Principal",
    "Role",
    "SystemRole",
    "Tenant",
    "TenantStatus",
    "UserStatus",
    "default_business_unit_name",
    "default_business_unit_slug",
]
