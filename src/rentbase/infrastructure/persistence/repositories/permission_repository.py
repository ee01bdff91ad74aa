"""Permission repository for database operations.

Handles the global catalog and the grant tables. Grant sets are replaced
wholesale: the previous rows are deleted and the new set inserted in the
caller's transaction.
"""

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.domain.entities.role import PermissionKey
from rentbase.infrastructure.persistence.models import (
    PermissionModel,
    RolePermissionModel,
    UserPermissionModel,
)


class PermissionRepository:
    """Repository for permissions and their grants."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def list_all(self) -> list[PermissionModel]:
        """List the whole catalog ordered by resource and action."""
        result = await self.session.execute(
            select(PermissionModel).order_by(PermissionModel.resource, PermissionModel.action)
        )
        return list(result.scalars().all())

    async def get_by_key(self, key: PermissionKey) -> PermissionModel | None:
        """Get a permission by its ``resource:action`` key."""
        result = await self.session.execute(
            select(PermissionModel).where(
                PermissionModel.resource == key.resource,
                PermissionModel.action == key.action,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_keys(self, keys: Iterable[PermissionKey]) -> dict[PermissionKey, PermissionModel]:
        """Resolve permission keys to stored permissions.

        Args:
            keys: Keys to resolve.

        Returns:
            Mapping of every key found in the catalog to its model. Missing
            keys are simply absent.
        """
        wanted = set(keys)
        if not wanted:
            return {}
        resources = {key.resource for key in wanted}
        result = await self.session.execute(
            select(PermissionModel).where(PermissionModel.resource.in_(resources))
        )
        return {
            permission.key: permission
            for permission in result.scalars().all()
            if permission.key in wanted
        }

    async def create(self, permission: PermissionModel) -> PermissionModel:
        """Add a permission to the catalog."""
        self.session.add(permission)
        await self.session.flush()
        return permission

    async def get_role_permission_keys(self, role_id: str) -> set[PermissionKey]:
        """Keys granted to a role."""
        result = await self.session.execute(
            select(PermissionModel.resource, PermissionModel.action)
            .join(RolePermissionModel, RolePermissionModel.permission_id == PermissionModel.id)
            .where(RolePermissionModel.role_id == role_id)
        )
        return {PermissionKey(resource, action) for resource, action in result.all()}

    async def replace_role_permissions(self, role_id: str, permission_ids: Iterable[str]) -> None:
        """Replace every grant of a role.

        Args:
            role_id: Role whose grants are replaced.
            permission_ids: New permission set; duplicates are ignored.
        """
        await self.session.execute(
            delete(RolePermissionModel).where(RolePermissionModel.role_id == role_id)
        )
        self.session.add_all(
            RolePermissionModel(role_id=role_id, permission_id=permission_id)
            for permission_id in sorted(set(permission_ids))
        )
        await self.session.flush()

    async def get_user_permission_keys(self, tenant_id: str, user_id: str) -> set[PermissionKey]:
        """Keys granted directly to a user."""
        result = await self.session.execute(
            select(PermissionModel.resource, PermissionModel.action)
            .join(UserPermissionModel, UserPermissionModel.permission_id == PermissionModel.id)
            .where(
                UserPermissionModel.tenant_id == tenant_id,
                UserPermissionModel.user_id == user_id,
            )
        )
        return {PermissionKey(resource, action) for resource, action in result.all()}

    async def replace_user_permissions(
        self, tenant_id: str, user_id: str, permission_ids: Iterable[str]
    ) -> None:
        """Replace every direct grant of a user."""
        await self.session.execute(
            delete(UserPermissionModel).where(
                UserPermissionModel.tenant_id == tenant_id,
                UserPermissionModel.user_id == user_id,
            )
        )
        self.session.add_all(
            UserPermissionModel(tenant_id=tenant_id, user_id=user_id, permission_id=permission_id)
            for permission_id in sorted(set(permission_ids))
        )
        await self.session.flush()
