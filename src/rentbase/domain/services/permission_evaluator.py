"""Permission evaluator.

Answers whether a principal may perform an action on a resource. Evaluation
is fail-closed: an unknown capability, a principal without a business unit
or without an assignment there is always denied. The OWNER role and the
platform super-identity are the only bypasses of the grant graph, and each
bypass is logged.
"""

from dataclasses import dataclass, field
from typing import Protocol

from rentbase.core.exceptions import PermissionDenied
from rentbase.core.logging import get_logger
from rentbase.domain.entities.principal import Principal
from rentbase.domain.entities.role import PermissionKey, SystemRole
from rentbase.domain.services.grant_cache import GrantCache
from rentbase.domain.services.permission_catalog import DEFAULT_CATALOG, PermissionCatalog

logger = get_logger(__name__)


@dataclass(frozen=True)
class RoleGrant:
    """Resolved assignment of a user in one business unit.

    Attributes:
        role_id: Assigned role.
        role_name: Name of the assigned role.
        permissions: Permissions granted through the role.
        user_permissions: Additional permissions granted to the user directly.
    """

    role_id: str
    role_name: str
    permissions: frozenset[PermissionKey] = field(default_factory=frozenset)
    user_permissions: frozenset[PermissionKey] = field(default_factory=frozenset)

    @property
    def is_owner(self) -> bool:
        return self.role_id == SystemRole.OWNER.role_id

    @property
    def effective(self) -> frozenset[PermissionKey]:
        """Role grants plus user-specific grants."""
        return self.permissions | self.user_permissions


class GrantStore(Protocol):
    """Source of role assignments for the evaluator."""

    async def load_grant(
        self, tenant_id: str, user_id: str, business_unit_id: str
    ) -> RoleGrant | None:
        """Resolve the user's assignment in a business unit, or None."""
        ...


class InMemoryGrantStore:
    """Grant store backed by plain dictionaries.

    Used by tests and tools that evaluate policies without a database.
    """

    def __init__(self) -> None:
        self._roles: dict[str, tuple[str, frozenset[PermissionKey]]] = {}
        self._assignments: dict[tuple[str, str, str], str] = {}
        self._user_permissions: dict[tuple[str, str], frozenset[PermissionKey]] = {}

    def add_role(self, role_id: str, name: str, permissions: set[PermissionKey] | frozenset[PermissionKey]) -> None:
        self._roles[role_id] = (name, frozenset(permissions))

    def assign(self, tenant_id: str, user_id: str, business_unit_id: str, role_id: str) -> None:
        if role_id not in self._roles:
            raise KeyError(role_id)
        self._assignments[(tenant_id, user_id, business_unit_id)] = role_id

    def grant_user(self, tenant_id: str, user_id: str, permissions: set[PermissionKey]) -> None:
        self._user_permissions[(tenant_id, user_id)] = frozenset(permissions)

    async def load_grant(
        self, tenant_id: str, user_id: str, business_unit_id: str
    ) -> RoleGrant | None:
        role_id = self._assignments.get((tenant_id, user_id, business_unit_id))
        if role_id is None:
            return None
        name, permissions = self._roles[role_id]
        return RoleGrant(
            role_id=role_id,
            role_name=name,
            permissions=permissions,
            user_permissions=self._user_permissions.get((tenant_id, user_id), frozenset()),
        )


class PermissionEvaluator:
    """Evaluate ``(resource, action)`` checks for a principal.

    Args:
        grant_store: Where role assignments are resolved from.
        catalog: The closed set of known permissions.
        cache: Optional cache of resolved grants.
    """

    def __init__(
        self,
        grant_store: GrantStore,
        catalog: PermissionCatalog = DEFAULT_CATALOG,
        cache: GrantCache[RoleGrant | None] | None = None,
    ) -> None:
        self.grant_store = grant_store
        self.catalog = catalog
        self.cache = cache

    async def _resolve(self, principal: Principal) -> RoleGrant | None:
        if principal.tenant_id is None or principal.business_unit_id is None:
            return None
        if self.cache is not None:
            cached = self.cache.get(principal.user_id, principal.business_unit_id)
            if cached is not None:
                return cached
        grant = await self.grant_store.load_grant(
            principal.tenant_id, principal.user_id, principal.business_unit_id
        )
        # Only positive results are cached so a new assignment takes effect at once.
        if grant is not None and self.cache is not None:
            self.cache.set(principal.user_id, principal.business_unit_id, grant)
        return grant

    async def has_permission(self, principal: Principal, resource: str, action: str) -> bool:
        """Check whether ``principal`` may perform ``action`` on ``resource``.

        Args:
            principal: The acting principal.
            resource: Resource name (e.g. 'assets').
            action: Action name (e.g. 'create').

        Returns:
            bool: True only when the permission is granted.
        """
        if not self.catalog.contains(resource, action):
            logger.warning(
                "Permission check for unknown capability denied",
                resource=resource,
                action=action,
                user_id=principal.user_id,
            )
            return False

        if principal.is_superadmin:
            logger.info(
                "Authorization bypass",
                reason="super_admin",
                user_id=principal.user_id,
                resource=resource,
                action=action,
            )
            return True

        grant = await self._resolve(principal)
        if grant is None:
            logger.debug(
                "Permission denied: no assignment in business unit",
                user_id=principal.user_id,
                business_unit_id=principal.business_unit_id,
                resource=resource,
                action=action,
            )
            return False

        if grant.is_owner:
            logger.info(
                "Authorization bypass",
                reason="owner",
                user_id=principal.user_id,
                business_unit_id=principal.business_unit_id,
                resource=resource,
                action=action,
            )
            return True

        return PermissionKey(resource, action) in grant.effective

    async def require_permission(self, principal: Principal, resource: str, action: str) -> None:
        """Raise unless the permission is granted.

        Raises:
            PermissionDenied: If ``has_permission`` returns False.
        """
        if not await self.has_permission(principal, resource, action):
            logger.info(
                "Permission denied",
                user_id=principal.user_id,
                resource=resource,
                action=action,
            )
            raise PermissionDenied(resource, action)

    async def has_any_permission(self, principal: Principal, *keys: str | PermissionKey) -> bool:
        """True if any of ``keys`` is granted."""
        for key in keys:
            parsed = PermissionKey.parse(key)
            if await self.has_permission(principal, parsed.resource, parsed.action):
                return True
        return False

    async def effective_permissions(self, principal: Principal) -> frozenset[PermissionKey]:
        """List the catalog permissions the principal holds.

        Args:
            principal: The acting principal.

        Returns:
            frozenset[PermissionKey]: Whole catalog for bypass identities,
            otherwise the granted keys that are in the catalog.
        """
        if principal.is_superadmin:
            return self.catalog.keys
        grant = await self._resolve(principal)
        if grant is None:
            return frozenset()
        if grant.is_owner:
            return self.catalog.keys
        return frozenset(key for key in grant.effective if key in self.catalog)

    async def role_of(self, principal: Principal) -> str | None:
        """Name of the principal's role in its business unit, if assigned."""
        grant = await self._resolve(principal)
        return grant.role_name if grant is not None else None
