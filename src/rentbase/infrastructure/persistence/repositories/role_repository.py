"""Role repository for database operations.

The roles table mixes system roles (no tenant) with custom roles of every
tenant, so it is not covered by the generic tenant filter. Queries here
spell out "system OR owned by the context tenant" themselves.
"""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.core.context import get_context
from rentbase.infrastructure.persistence.models import RoleModel


class RoleRepository:
    """Repository for role database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    def _visible(self):
        tenant_id = get_context().tenant_id
        if tenant_id is None:
            return RoleModel.is_system.is_(True)
        return or_(RoleModel.is_system.is_(True), RoleModel.tenant_id == tenant_id)

    async def create(self, role: RoleModel) -> RoleModel:
        """Create a new role.

        Args:
            role: Role model to create.

        Returns:
            Created role model.
        """
        self.session.add(role)
        await self.session.flush()
        return role

    async def get_by_id(self, role_id: str) -> RoleModel | None:
        """Get a role by ID regardless of tenant.

        Used by provisioning and by the tenant service, which run at
        platform level.

        Args:
            role_id: Role ID.

        Returns:
            Role model if found, None otherwise.
        """
        result = await self.session.execute(select(RoleModel).where(RoleModel.id == role_id))
        return result.scalar_one_or_none()

    async def get_visible(self, role_id: str, for_update: bool = False) -> RoleModel | None:
        """Get a system role or a custom role of the context tenant.

        Args:
            role_id: Role ID.
            for_update: Lock the row until the transaction ends.

        Returns:
            Role model if visible to the tenant, None otherwise.
        """
        query = select(RoleModel).where(RoleModel.id == role_id, self._visible())
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def lock(self, role_id: str) -> RoleModel | None:
        """Load a role with a row lock, serializing grant changes per role."""
        result = await self.session.execute(
            select(RoleModel).where(RoleModel.id == role_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def list_visible(self) -> list[RoleModel]:
        """List system roles followed by the tenant's custom roles."""
        result = await self.session.execute(
            select(RoleModel)
            .where(self._visible())
            .order_by(RoleModel.is_system.desc(), RoleModel.name.asc())
        )
        return list(result.scalars().all())

    async def name_exists(self, tenant_id: str, name: str, exclude_id: str | None = None) -> bool:
        """Check if a tenant already has a role with this name.

        System role names are reserved for every tenant. Comparison is
        case-insensitive.

        Args:
            tenant_id: Tenant owning the custom role.
            name: Role name to check.
            exclude_id: Role to ignore (the one being renamed).

        Returns:
            True if the name is taken.
        """
        query = select(RoleModel.id).where(
            func.lower(RoleModel.name) == name.strip().lower(),
            or_(RoleModel.is_system.is_(True), RoleModel.tenant_id == tenant_id),
        )
        if exclude_id is not None:
            query = query.where(RoleModel.id != exclude_id)
        result = await self.session.execute(query)
        return result.first() is not None

    async def delete(self, role: RoleModel) -> None:
        """Delete a role. Its grants are removed by cascade."""
        await self.session.delete(role)
        await self.session.flush()
