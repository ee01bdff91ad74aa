"""Role and permission provisioning.

Seeds the permission catalog, keeps the five system roles and their policy
sets in place, and manages custom roles. Every grant change is a full
replace: the role row is locked, its grants deleted and the new set
inserted in one transaction, so a concurrent evaluation sees either the old
set or the new one.
"""

from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.core.context import get_tenant_id
from rentbase.core.exceptions import (
    DuplicateRoleName,
    RoleInUse,
    RoleNotFound,
    SystemRoleProtected,
    UnknownPermission,
    UserNotFound,
)
from rentbase.core.logging import get_logger
from rentbase.domain.entities.role import PermissionKey, SystemRole
from rentbase.domain.services.grant_cache import GrantCache
from rentbase.domain.services.permission_catalog import (
    DEFAULT_CATALOG,
    PermissionCatalog,
    system_role_permissions,
)
from rentbase.infrastructure.persistence.models import PermissionModel, RoleModel
from rentbase.infrastructure.persistence.repositories import (
    PermissionRepository,
    RoleRepository,
    UserBusinessUnitRepository,
    UserRepository,
)

logger = get_logger(__name__)


class RolePermissionProvisioner:
    """Provision the catalog, system roles and custom roles.

    Args:
        session: SQLAlchemy async session. Public methods commit it on
            success and roll it back on any failure.
        catalog: Permission catalog to seed and validate against.
        cache: Grant cache to invalidate after changes.
    """

    def __init__(
        self,
        session: AsyncSession,
        catalog: PermissionCatalog = DEFAULT_CATALOG,
        cache: GrantCache | None = None,
    ) -> None:
        self.session = session
        self.catalog = catalog
        self.cache = cache
        self.roles = RoleRepository(session)
        self.permissions = PermissionRepository(session)

    def _parse_keys(self, permissions: Iterable[str | PermissionKey]) -> set[PermissionKey]:
        try:
            keys = {PermissionKey.parse(permission) for permission in permissions}
        except ValueError as e:
            raise UnknownPermission([str(e)]) from e
        unknown = self.catalog.unknown(keys)
        if unknown:
            raise UnknownPermission(str(key) for key in unknown)
        return keys

    async def _permission_ids(self, keys: set[PermissionKey]) -> list[str]:
        stored = await self.permissions.get_by_keys(keys)
        missing = keys - stored.keys()
        if missing:
            # In the catalog but never seeded
            raise UnknownPermission(str(key) for key in missing)
        return [permission.id for permission in stored.values()]

    async def _seed(self) -> dict[PermissionKey, PermissionModel]:
        existing = {permission.key: permission for permission in await self.permissions.list_all()}
        created = 0
        for entry in self.catalog:
            permission = existing.get(entry.key)
            if permission is None:
                permission = PermissionModel(
                    resource=entry.key.resource,
                    action=entry.key.action,
                    scope=entry.scope.value,
                    description=entry.description,
                )
                self.session.add(permission)
                existing[entry.key] = permission
                created += 1
            else:
                permission.scope = entry.scope.value
                permission.description = entry.description
        await self.session.flush()
        logger.info("Permission catalog seeded", created=created, total=len(self.catalog))
        return existing

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate_all()

    async def seed_permission_catalog(self) -> int:
        """Insert every catalog permission that is not stored yet.

        Idempotent: existing rows are matched by ``(resource, action)`` and
        only their scope and description are refreshed.

        Returns:
            Number of permissions in the catalog.
        """
        try:
            seeded = await self._seed()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return len(seeded)

    async def provision_system_roles(self) -> None:
        """Create or refresh the system roles and their permission sets.

        Seeds the catalog first. Roles are matched by their stable id, so a
        renamed system role is updated in place. Running this twice leaves
        the database unchanged.
        """
        try:
            stored = await self._seed()
            for role in SystemRole:
                model = await self.roles.lock(role.role_id)
                if model is None:
                    model = RoleModel(
                        id=role.role_id,
                        tenant_id=None,
                        name=role.value,
                        description=role.description,
                        is_system=True,
                    )
                    await self.roles.create(model)
                else:
                    model.name = role.value
                    model.description = role.description
                    model.is_system = True
                    model.tenant_id = None

                keys = system_role_permissions(role, self.catalog)
                await self.permissions.replace_role_permissions(
                    role.role_id, (stored[key].id for key in keys)
                )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        self._invalidate()
        logger.info("System roles provisioned", roles=[role.value for role in SystemRole])

    async def assign_permission_set(
        self,
        role_id: str,
        permissions: Iterable[str | PermissionKey],
        tenant_id: str | None = None,
    ) -> set[PermissionKey]:
        """Replace the permissions of a role.

        Args:
            role_id: Role to update.
            permissions: New permission set as keys or ``resource:action``
                strings. Duplicates are ignored.
            tenant_id: When given, the role must be a custom role of this
                tenant; system roles are then refused.

        Returns:
            The permission keys now granted.

        Raises:
            UnknownPermission: If any key is not in the catalog.
            RoleNotFound: If the role does not exist (or belongs to another
                tenant).
            SystemRoleProtected: If a tenant tries to change a system role.
        """
        keys = self._parse_keys(permissions)
        try:
            role = await self.roles.lock(role_id)
            if role is None:
                raise RoleNotFound(role_id)
            if tenant_id is not None:
                if role.is_system:
                    raise SystemRoleProtected(role_id)
                if role.tenant_id != tenant_id:
                    raise RoleNotFound(role_id)
            await self.permissions.replace_role_permissions(role.id, await self._permission_ids(keys))
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        self._invalidate()
        logger.info("Role permissions replaced", role_id=role_id, count=len(keys))
        return keys

    async def create_custom_role(
        self,
        tenant_id: str,
        name: str,
        permissions: Iterable[str | PermissionKey],
        description: str | None = None,
    ) -> RoleModel:
        """Create a tenant role with its permission set.

        Args:
            tenant_id: Owning tenant.
            name: Role name; must not match a system role or another role
                of the tenant (case-insensitive).
            permissions: Initial permission set.
            description: Optional description.

        Returns:
            The created role.

        Raises:
            DuplicateRoleName: If the name is taken.
            UnknownPermission: If any key is not in the catalog.
        """
        name = name.strip()
        if not name:
            raise ValueError("Role name is required")
        keys = self._parse_keys(permissions)
        if SystemRole.is_system_name(name) or await self.roles.name_exists(tenant_id, name):
            raise DuplicateRoleName(name)

        role = RoleModel(tenant_id=tenant_id, name=name, description=description, is_system=False)
        try:
            await self.roles.create(role)
            await self.permissions.replace_role_permissions(role.id, await self._permission_ids(keys))
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateRoleName(name) from e
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Custom role created", role_id=role.id, role_name=name)
        return role

    async def update_custom_role(
        self,
        role_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> RoleModel:
        """Rename or re-describe a custom role of the context tenant.

        Raises:
            RoleNotFound: If the role is not visible to the tenant.
            SystemRoleProtected: If the role is a system role.
            DuplicateRoleName: If the new name is taken.
        """
        role = await self.roles.get_visible(role_id)
        if role is None:
            raise RoleNotFound(role_id)
        if role.is_system:
            raise SystemRoleProtected(role_id)

        if name is not None:
            name = name.strip()
            if SystemRole.is_system_name(name) or await self.roles.name_exists(
                role.tenant_id, name, exclude_id=role.id
            ):
                raise DuplicateRoleName(name)
            role.name = name
        if description is not None:
            role.description = description

        try:
            await self.session.flush()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return role

    async def delete_role(self, role_id: str) -> None:
        """Delete a custom role of the context tenant.

        Raises:
            RoleNotFound: If the role is not visible to the tenant.
            SystemRoleProtected: If the role is a system role.
            RoleInUse: If any business unit assignment references it.
        """
        role = await self.roles.get_visible(role_id)
        if role is None:
            raise RoleNotFound(role_id)
        if role.is_system:
            raise SystemRoleProtected(role_id)

        assignments = UserBusinessUnitRepository(self.session)
        if await assignments.count_for_role(role.id, role.tenant_id):
            raise RoleInUse(role.id)

        try:
            await self.roles.delete(role)
            await self.session.commit()
        except IntegrityError as e:
            # An assignment appeared between the check and the delete
            await self.session.rollback()
            raise RoleInUse(role.id) from e
        except Exception:
            await self.session.rollback()
            raise

        self._invalidate()
        logger.info("Custom role deleted", role_id=role_id)

    async def sync_user_permissions(
        self, user_id: str, permissions: Iterable[str | PermissionKey]
    ) -> set[PermissionKey]:
        """Replace the direct grants of a user of the context tenant.

        Raises:
            UserNotFound: If the user is not in the tenant.
            UnknownPermission: If any key is not in the catalog.
        """
        keys = self._parse_keys(permissions)
        tenant_id = get_tenant_id()
        if await UserRepository(self.session).get_by_id(user_id) is None:
            raise UserNotFound(user_id)

        try:
            await self.permissions.replace_user_permissions(
                tenant_id, user_id, await self._permission_ids(keys)
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if self.cache is not None:
            self.cache.invalidate_user(user_id)
        logger.info("User permissions replaced", target_user_id=user_id, count=len(keys))
        return keys
