"""Principal entity: the authenticated identity acting on a request."""

from dataclasses import dataclass, field
from enum import Enum


class GlobalRole(str, Enum):
    """Platform-wide role, independent of any tenant."""

    USER = "USER"
    SUPER_ADMIN = "SUPER_ADMIN"


@dataclass(frozen=True)
class Principal:
    """The acting identity for a request.

    Built once per request from verified authentication data and never
    mutated afterwards.

    Attributes:
        user_id: Identifier of the acting user.
        tenant_id: Tenant the user acts within. None for a platform-level
            super-principal that is not bound to a tenant.
        business_unit_id: Business unit targeted by the request, if any.
        roles: Role names the principal holds in the targeted business unit.
        global_role: Platform-wide role.
        email: Email address, when known.
    """

    user_id: str
    tenant_id: str | None = None
    business_unit_id: str | None = None
    roles: frozenset[str] = field(default_factory=frozenset)
    global_role: GlobalRole = GlobalRole.USER
    email: str | None = None

    def __post_init__(self) -> None:
        """Validate principal data after initialization."""
        if not self.user_id:
            raise ValueError("Principal user_id is required")
        if self.tenant_id is None and self.global_role != GlobalRole.SUPER_ADMIN:
            raise ValueError("Only a super-principal may act without a tenant")
        # Accept any iterable of role names from callers.
        if not isinstance(self.roles, frozenset):
            object.__setattr__(self, "roles", frozenset(self.roles))

    @property
    def is_superadmin(self) -> bool:
        """Whether this principal is the platform super-identity."""
        return self.global_role == GlobalRole.SUPER_ADMIN
