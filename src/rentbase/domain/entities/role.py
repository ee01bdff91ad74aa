"""Role and permission entities for authorization.

Permissions are atomic ``resource:action`` capabilities defined globally.
Roles bundle permissions; the five system roles are fixed and ordered by
access level, custom roles belong to one tenant.
"""

from dataclasses import dataclass
from enum import Enum


class PermissionAction(str, Enum):
    """Standard permission actions."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class PermissionScope(str, Enum):
    """Data scope a permission applies to."""

    TENANT = "TENANT"
    BUSINESS_UNIT = "BUSINESS_UNIT"
    OWN = "OWN"


@dataclass(frozen=True, order=True)
class PermissionKey:
    """Identity of a permission: a ``(resource, action)`` pair.

    Attributes:
        resource: Business entity collection (e.g. 'assets').
        action: Operation on that collection (e.g. 'read').
    """

    resource: str
    action: str

    def __post_init__(self) -> None:
        if not self.resource or not self.action:
            raise ValueError("Permission requires both resource and action")
        if ":" in self.resource or ":" in self.action:
            raise ValueError("Resource and action must not contain ':'")

    @classmethod
    def parse(cls, value: "str | PermissionKey") -> "PermissionKey":
        """Parse a ``resource:action`` string.

        Args:
            value: String form or an existing key.

        Returns:
            The permission key.

        Raises:
            ValueError: If the string is not of the form ``resource:action``.
        """
        if isinstance(value, PermissionKey):
            return value
        resource, sep, action = value.partition(":")
        if not sep:
            raise ValueError(f"Invalid permission '{value}', expected 'resource:action'")
        return cls(resource=resource.strip(), action=action.strip())

    def __str__(self) -> str:
        return f"{self.resource}:{self.action}"


class SystemRole(str, Enum):
    """The fixed system roles, highest access first.

    Each member carries the stable identifier used to upsert it, so renaming
    a role never creates a second row.
    """

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"
    VIEWER = "VIEWER"

    @property
    def role_id(self) -> str:
        """Stable database identifier (e.g. 'role-owner')."""
        return f"role-{self.value.lower()}"

    @property
    def rank(self) -> int:
        """Access level; higher outranks lower."""
        return len(SystemRole) - list(SystemRole).index(self)

    @property
    def description(self) -> str:
        return _SYSTEM_ROLE_DESCRIPTIONS[self]

    def outranks(self, other: "SystemRole") -> bool:
        """Whether this role sits above ``other`` in the hierarchy."""
        return self.rank > other.rank

    @classmethod
    def from_role_id(cls, role_id: str) -> "SystemRole | None":
        """Resolve a stable identifier back to the system role, if any."""
        for role in cls:
            if role.role_id == role_id:
                return role
        return None

    @classmethod
    def is_system_name(cls, name: str) -> bool:
        """Case-insensitive check against the system role names."""
        return name.strip().upper() in cls.__members__


_SYSTEM_ROLE_DESCRIPTIONS = {
    SystemRole.OWNER: "Tenant owner with unrestricted access",
    SystemRole.ADMIN: "Administrator of users, business units and settings",
    SystemRole.MANAGER: "Manages day-to-day business operations",
    SystemRole.EMPLOYEE: "Works with operational records",
    SystemRole.VIEWER: "Read-only access to business data",
}


@dataclass
class Role:
    """Role entity.

    Attributes:
        id: Unique identifier. Stable ids for system roles.
        name: Role name.
        is_system: Whether this is one of the fixed system roles.
        tenant_id: Owning tenant for custom roles, None for system roles.
        description: Optional description of the role's purpose.
    """

    id: str
    name: str
    is_system: bool = False
    tenant_id: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate role data after initialization."""
        if not self.name:
            raise ValueError("Role name is required")
        if self.is_system and self.tenant_id is not None:
            raise ValueError("System roles are not tenant-scoped")
        if not self.is_system and self.tenant_id is None:
            raise ValueError("Custom roles require a tenant")
