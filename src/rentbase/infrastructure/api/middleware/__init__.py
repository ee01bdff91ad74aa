"""HTTP middleware."""

from rentbase.infrastructure.api.middleware.audit_middleware import AuditMiddleware
from rentbase.infrastructure.api.middleware.context_middleware import (
    ContextMiddleware,
    TenantHeaderValidator,
    ValidatedTenant,
    is_trusted_path,
)

__all__ = [
    "AuditMiddleware",
    "ContextMiddleware",
    "TenantHeaderValidator",
    "ValidatedTenant",
    "is_trusted_path",
]
