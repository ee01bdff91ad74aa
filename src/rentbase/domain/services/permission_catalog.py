"""Permission catalog and system role policy.

The catalog is the closed set of ``resource:action`` capabilities known to
the platform. It changes only through provisioning; anything outside it is
never granted. The policy table below defines which catalog entries each
system role receives.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from rentbase.domain.entities.role import (
    PermissionAction,
    PermissionKey,
    PermissionScope,
    SystemRole,
)

# Resources whose data lives at tenant level rather than in a business unit
TENANT_LEVEL_RESOURCES = ("users", "roles", "business-units", "settings")

BUSINESS_RESOURCES = (
    "dashboard",
    "assets",
    "asset-templates",
    "supplies",
    "supply-categories",
    "rental-contracts",
    "quotations",
    "clients",
    "accounts",
    "suppliers",
    "purchase-orders",
    "supply-quotes",
    "reports",
)

RESOURCES = TENANT_LEVEL_RESOURCES + BUSINESS_RESOURCES

# Actions beyond CRUD, granted to OWNER only unless assigned explicitly
EXTENDED_ACTIONS = (
    ("quotations", "approve"),
    ("purchase-orders", "approve"),
    ("reports", "export"),
)

FULL = (
    PermissionAction.CREATE,
    PermissionAction.READ,
    PermissionAction.UPDATE,
    PermissionAction.DELETE,
)
CRUD_BASIC = (PermissionAction.CREATE, PermissionAction.READ, PermissionAction.UPDATE)
READ = (PermissionAction.READ,)


@dataclass(frozen=True)
class CatalogEntry:
    """One permission of the catalog.

    Attributes:
        key: The ``resource:action`` identity.
        scope: Data scope the permission applies to.
        description: Human-readable description.
    """

    key: PermissionKey
    scope: PermissionScope
    description: str


def _scope_for(resource: str) -> PermissionScope:
    if resource in TENANT_LEVEL_RESOURCES:
        return PermissionScope.TENANT
    return PermissionScope.BUSINESS_UNIT


def _describe(resource: str, action: str) -> str:
    return f"{action.capitalize()} {resource.replace('-', ' ')}"


class PermissionCatalog:
    """Closed, immutable set of known permissions."""

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        self._entries: dict[PermissionKey, CatalogEntry] = {}
        for entry in entries:
            if entry.key in self._entries:
                raise ValueError(f"Duplicate catalog entry '{entry.key}'")
            self._entries[entry.key] = entry

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def keys(self) -> frozenset[PermissionKey]:
        """All permission keys in the catalog."""
        return frozenset(self._entries)

    def contains(self, resource: str, action: str) -> bool:
        """Whether ``resource:action`` is a known permission."""
        return PermissionKey(resource, action) in self._entries

    def unknown(self, keys: Iterable[PermissionKey]) -> set[PermissionKey]:
        """Return the subset of ``keys`` missing from the catalog."""
        return {key for key in keys if key not in self._entries}

    def get(self, key: PermissionKey) -> CatalogEntry | None:
        return self._entries.get(key)


def _grant(resources: Iterable[str], actions: Iterable[PermissionAction]) -> set[PermissionKey]:
    return {PermissionKey(resource, action.value) for resource in resources for action in actions}


def build_default_catalog() -> PermissionCatalog:
    """Build the platform permission catalog.

    Returns:
        PermissionCatalog: CRUD on every resource plus the extended actions.
    """
    entries = [
        CatalogEntry(
            key=PermissionKey(resource, action.value),
            scope=_scope_for(resource),
            description=_describe(resource, action.value),
        )
        for resource in RESOURCES
        for action in FULL
    ]
    entries.extend(
        CatalogEntry(
            key=PermissionKey(resource, action),
            scope=_scope_for(resource),
            description=_describe(resource, action),
        )
        for resource, action in EXTENDED_ACTIONS
    )
    return PermissionCatalog(entries)


DEFAULT_CATALOG = build_default_catalog()


def _viewer() -> set[PermissionKey]:
    return _grant(
        (
            "dashboard",
            "assets",
            "supplies",
            "clients",
            "rental-contracts",
            "quotations",
            "reports",
            "suppliers",
            "purchase-orders",
        ),
        READ,
    )


def _employee() -> set[PermissionKey]:
    granted = _grant(("dashboard",), READ)
    granted |= _grant(("assets", "supplies", "clients", "rental-contracts", "quotations"), CRUD_BASIC)
    granted |= _grant(("suppliers", "purchase-orders", "reports"), READ)
    return granted


def _manager() -> set[PermissionKey]:
    granted = _grant(BUSINESS_RESOURCES, FULL)
    granted |= _grant(("users",), READ)
    return granted


def _admin() -> set[PermissionKey]:
    granted = _manager()
    granted |= _grant(("users", "business-units", "settings"), FULL)
    granted |= _grant(("roles",), READ)
    return granted


_POLICY = {
    SystemRole.VIEWER: _viewer,
    SystemRole.EMPLOYEE: _employee,
    SystemRole.MANAGER: _manager,
    SystemRole.ADMIN: _admin,
}


def system_role_permissions(
    role: SystemRole, catalog: PermissionCatalog = DEFAULT_CATALOG
) -> frozenset[PermissionKey]:
    """Permissions granted to a system role.

    OWNER receives the whole catalog. Other roles receive their policy
    bundle, restricted to what the catalog actually contains.

    Args:
        role: The system role.
        catalog: Catalog to resolve against.

    Returns:
        frozenset[PermissionKey]: The role's permission set.
    """
    if role is SystemRole.OWNER:
        return catalog.keys
    return frozenset(key for key in _POLICY[role]() if key in catalog)
