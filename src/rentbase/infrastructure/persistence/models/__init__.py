"""SQLAlchemy models for RentBase.

All models inherit from the Base class defined in database.py and are
created on application startup in development mode.
"""

from rentbase.infrastructure.persistence.models.asset import AssetModel
from rentbase.infrastructure.persistence.models.audit_log import AuditLogModel
from rentbase.infrastructure.persistence.models.business_unit import BusinessUnitModel
from rentbase.infrastructure.persistence.models.permission import (
    PermissionModel,
    RolePermissionModel,
    UserPermissionModel,
)
from rentbase.infrastructure.persistence.models.role import RoleModel
from rentbase.infrastructure.persistence.models.tenant import TenantModel
from rentbase.infrastructure.persistence.models.user import UserModel
from rentbase.infrastructure.persistence.models.user_business_unit import UserBusinessUnitModel

__all__ = [
    "AssetModel",
    "AuditLogModel",
    "BusinessUnitModel",
    "PermissionModel",
    "RoleModel",
    "RolePermissionModel",
    "TenantModel",
    "UserBusinessUnitModel",
    "UserModel",
    "UserPermissionModel",
]
