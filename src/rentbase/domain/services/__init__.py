"""Domain services for RentBase.

Only the services without database access are exported here. The
session-bound services (tenants, business units, provisioning, superadmin)
are imported from their modules.
"""

from rentbase.domain.services.grant_cache import GrantCache
from rentbase.domain.services.password_validator import (
    PasswordValidationError,
    PasswordValidator,
    default_password_validator,
)
from rentbase.domain.services.permission_catalog import (
    DEFAULT_CATALOG,
    PermissionCatalog,
    build_default_catalog,
    system_role_permissions,
)
from rentbase.domain.services.permission_evaluator import (
    GrantStore,
    InMemoryGrantStore,
    PermissionEvaluator,
    RoleGrant,
)
from rentbase.domain.services.slug_generator import SlugGenerator, SlugValidationError

__all__ = [
    "DEFAULT_CATALOG",
    "GrantCache",
    "GrantStore",
    "InMemoryGrantStore",
    "PasswordValidationError",
    "PasswordValidator",
    "PermissionCatalog",
    "PermissionEvaluator",
    "RoleGrant",
    "SlugGenerator",
    "SlugValidationError",
    "build_default_catalog",
    "default_password_validator",
    "system_role_permissions",
]
