"""SQL-backed grant store for the permission evaluator."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.domain.services.permission_evaluator import RoleGrant
from rentbase.infrastructure.persistence.models import RoleModel, UserBusinessUnitModel
from rentbase.infrastructure.persistence.repositories.permission_repository import (
    PermissionRepository,
)


class SqlGrantStore:
    """Resolve role assignments from the database."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the store.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session
        self.permissions = PermissionRepository(session)

    async def load_grant(
        self, tenant_id: str, user_id: str, business_unit_id: str
    ) -> RoleGrant | None:
        """Resolve a user's role and grants in a business unit.

        Args:
            tenant_id: Tenant of the principal.
            user_id: User ID.
            business_unit_id: Business unit ID.

        Returns:
            RoleGrant, or None when the user has no assignment there.
        """
        result = await self.session.execute(
            select(RoleModel.id, RoleModel.name)
            .join(UserBusinessUnitModel, UserBusinessUnitModel.role_id == RoleModel.id)
            .where(
                UserBusinessUnitModel.tenant_id == tenant_id,
                UserBusinessUnitModel.user_id == user_id,
                UserBusinessUnitModel.business_unit_id == business_unit_id,
            )
        )
        row = result.first()
        if row is None:
            return None
        role_id, role_name = row
        return RoleGrant(
            role_id=role_id,
            role_name=role_name,
            permissions=frozenset(await self.permissions.get_role_permission_keys(role_id)),
            user_permissions=frozenset(
                await self.permissions.get_user_permission_keys(tenant_id, user_id)
            ),
        )
