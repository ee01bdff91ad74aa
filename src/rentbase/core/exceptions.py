"""Error taxonomy for the authorization core.

Every error carries a human-readable ``message``. The API layer maps each
class to an HTTP status in ``register_exception_handlers``; services and the
data access guard only raise.
"""

from collections.abc import Iterable


class RentBaseError(Exception):
    """Base class for all domain errors raised by RentBase."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# Request context


class ContextUnavailable(RentBaseError):
    """Raised when code requires the request context but none is bound."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Request context not available. Make sure the call runs inside a context scope."
        )


class ContextFieldMissing(RentBaseError):
    """Raised when a required field of the bound context is empty."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Request context has no value for '{field}'")


# Tenant scoping


class MissingTenantFilter(RentBaseError):
    """Raised when a tenant-scoped operation lacks its tenant constraint."""

    def __init__(self, table: str, operation: str, column: str = "tenant_id") -> None:
        self.table = table
        self.operation = operation
        self.column = column
        super().__init__(f"{operation} on '{table}' has no '{column}' constraint")


class CrossTenantAccess(RentBaseError):
    """Raised when an operation targets a tenant other than the bound one."""

    def __init__(self, table: str, expected: str | None, actual: object) -> None:
        self.table = table
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Operation on '{table}' targets scope '{actual}' but the request is bound to '{expected}'"
        )


class TenantRegistryError(RentBaseError):
    """Raised when the tenant model registry is inconsistent."""


# Authorization


class PermissionDenied(RentBaseError):
    """Raised when the evaluator denies a gated operation."""

    def __init__(self, resource: str, action: str) -> None:
        self.resource = resource
        self.action = action
        super().__init__(f"Permission denied: {resource}:{action}")


class UnknownPermission(RentBaseError):
    """Raised when permission keys are not part of the catalog."""

    def __init__(self, keys: Iterable[str]) -> None:
        self.keys = sorted(keys)
        super().__init__(f"Unknown permissions: {', '.join(self.keys)}")


class RoleNotFound(RentBaseError):
    """Raised when a role does not exist or is not visible to the tenant."""

    def __init__(self, role_id: str) -> None:
        self.role_id = role_id
        super().__init__(f"Role '{role_id}' not found")


class RoleInUse(RentBaseError):
    """Raised when a role cannot be deleted because it is still referenced."""

    def __init__(self, role_id: str, message: str | None = None) -> None:
        self.role_id = role_id
        super().__init__(
            message or f"Role '{role_id}' is assigned to users; reassign them first"
        )


class SystemRoleProtected(RoleInUse):
    """Raised when attempting to modify or delete a system role."""

    def __init__(self, role_id: str) -> None:
        super().__init__(role_id, f"Role '{role_id}' is a system role and cannot be changed")


class DuplicateRoleName(RentBaseError):
    """Raised when a custom role name collides with an existing role."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A role named '{name}' already exists")


# Tenants and business units


class TenantNotFound(RentBaseError):
    """Raised when a tenant id does not resolve to a tenant."""

    def __init__(self, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        super().__init__(f"Tenant '{tenant_id}' not found")


class TenantInactive(RentBaseError):
    """Raised when a tenant exists but is suspended or cancelled."""

    def __init__(self, tenant_id: str, status: str) -> None:
        self.tenant_id = tenant_id
        self.status = status
        super().__init__(f"Tenant '{tenant_id}' is not active (status: {status})")


class DuplicateSlug(RentBaseError):
    """Raised when a tenant or business unit slug is already taken."""

    def __init__(self, slug: str, kind: str = "tenant") -> None:
        self.slug = slug
        self.kind = kind
        super().__init__(f"A {kind} with slug '{slug}' already exists")


class DuplicateEmail(RentBaseError):
    """Raised when an email address is already registered."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Email '{email}' is already registered")


class InvalidSlug(RentBaseError):
    """Raised when a supplied slug breaks the slug rules."""

    def __init__(self, slug: str, problems: list[str]) -> None:
        self.slug = slug
        self.problems = problems
        super().__init__(f"Invalid slug '{slug}': " + "; ".join(problems))


class MissingContextHeader(RentBaseError):
    """Raised when a trusted system call omits a required context header."""

    def __init__(self, header: str) -> None:
        self.header = header
        super().__init__(f"Missing required header '{header}'")


class BusinessUnitNotFound(RentBaseError):
    """Raised when a business unit is not found within the tenant."""

    def __init__(self, business_unit_id: str) -> None:
        self.business_unit_id = business_unit_id
        super().__init__(f"Business unit '{business_unit_id}' not found")


class UserNotFound(RentBaseError):
    """Raised when a user is not found within the tenant."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User '{user_id}' not found")


class EntityNotFound(RentBaseError):
    """Raised when a tenant-scoped record is not found."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


# Configuration


class ProviderConfigurationError(RentBaseError):
    """Raised at startup when a configured provider kind is unknown."""


class WeakPassword(RentBaseError):
    """Raised when a password does not satisfy the password policy."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Password validation failed: " + "; ".join(problems))
