"""Repositories for RentBase database access."""

from rentbase.infrastructure.persistence.repositories.asset_repository import AssetRepository
from rentbase.infrastructure.persistence.repositories.audit_log_repository import (
    AuditLogRepository,
)
from rentbase.infrastructure.persistence.repositories.base import TenantScopedRepository
from rentbase.infrastructure.persistence.repositories.business_unit_repository import (
    BusinessUnitRepository,
)
from rentbase.infrastructure.persistence.repositories.grant_repository import SqlGrantStore
from rentbase.infrastructure.persistence.repositories.permission_repository import (
    PermissionRepository,
)
from rentbase.infrastructure.persistence.repositories.role_repository import RoleRepository
from rentbase.infrastructure.persistence.repositories.tenant_repository import TenantRepository
from rentbase.infrastructure.persistence.repositories.user_business_unit_repository import (
    UserBusinessUnitRepository,
)
from rentbase.infrastructure.persistence.repositories.user_repository import UserRepository

__all__ = [
    "AssetRepository",
    "AuditLogRepository",
    "BusinessUnitRepository",
    "PermissionRepository",
    "RoleRepository",
    "SqlGrantStore",
    "TenantRepository",
    "TenantScopedRepository",
    "UserBusinessUnitRepository",
    "UserRepository",
]
