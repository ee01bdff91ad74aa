"""Tenant and business unit entities.

A tenant is the isolation boundary for one customer organization. Business
units subdivide a tenant and carry most operational data and role
assignments.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TenantStatus(str, Enum):
    """Lifecycle status of a tenant."""

    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    CANCELLED = "CANCELLED"


class UserStatus(str, Enum):
    """Lifecycle status of a user."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


@dataclass
class Tenant:
    """Tenant entity.

    Attributes:
        id: Unique identifier (UUID string).
        name: Display name.
        slug: Unique URL-friendly identifier.
        plan: Subscription plan name.
        status: Lifecycle status.
    """

    id: str
    name: str
    slug: str
    plan: str = "free"
    status: TenantStatus = TenantStatus.ACTIVE

    def __post_init__(self) -> None:
        """Validate tenant data after initialization."""
        if not self.name:
            raise ValueError("Name is required")
        if not self.slug or len(self.slug) < 3 or len(self.slug) > 48:
            raise ValueError("Slug must be 3-48 characters")

    @property
    def is_active(self) -> bool:
        """Whether the tenant accepts requests."""
        return self.status == TenantStatus.ACTIVE


@dataclass
class BusinessUnit:
    """Business unit entity.

    Attributes:
        id: Unique identifier (UUID string).
        tenant_id: Owning tenant.
        name: Display name.
        slug: URL-friendly identifier, unique within the tenant.
        settings: Free-form settings such as enabled modules.
    """

    id: str
    tenant_id: str
    name: str
    slug: str
    settings: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate business unit data after initialization."""
        if not self.tenant_id:
            raise ValueError("Business unit requires a tenant")
        if not self.name:
            raise ValueError("Name is required")


def default_business_unit_slug(tenant_slug: str) -> str:
    """Slug of the business unit created together with a tenant."""
    return f"{tenant_slug}-principal"


def default_business_unit_name(tenant_name: str) -> str:
    """Name of the business unit created together with a tenant."""
    return f"{tenant_name} - Principal"
