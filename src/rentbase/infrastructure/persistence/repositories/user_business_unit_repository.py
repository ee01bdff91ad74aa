"""Repository for user to business unit assignments."""

from sqlalchemy import func, select

from rentbase.infrastructure.persistence.models import UserBusinessUnitModel
from rentbase.infrastructure.persistence.repositories.base import TenantScopedRepository


class UserBusinessUnitRepository(TenantScopedRepository[UserBusinessUnitModel]):
    """Repository for the assignments of the context tenant."""

    model = UserBusinessUnitModel

    async def get_assignment(
        self, user_id: str, business_unit_id: str
    ) -> UserBusinessUnitModel | None:
        """Get the assignment of a user in a business unit.

        Args:
            user_id: User ID.
            business_unit_id: Business unit ID.

        Returns:
            The assignment, or None if the user is not assigned there.
        """
        result = await self.session.execute(
            self.scoped().where(
                UserBusinessUnitModel.user_id == user_id,
                UserBusinessUnitModel.business_unit_id == business_unit_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[UserBusinessUnitModel]:
        """List a user's assignments, oldest first."""
        result = await self.session.execute(
            self.scoped()
            .where(UserBusinessUnitModel.user_id == user_id)
            .order_by(UserBusinessUnitModel.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_for_business_unit(self, business_unit_id: str) -> list[UserBusinessUnitModel]:
        """List the assignments of a business unit."""
        result = await self.session.execute(
            self.scoped().where(UserBusinessUnitModel.business_unit_id == business_unit_id)
        )
        return list(result.scalars().all())

    async def count_for_role(self, role_id: str, tenant_id: str) -> int:
        """Count assignments referencing a role within a tenant.

        Args:
            role_id: Role ID.
            tenant_id: Tenant owning the role.

        Returns:
            Number of assignments.
        """
        result = await self.session.execute(
            select(func.count())
            .select_from(UserBusinessUnitModel)
            .where(
                UserBusinessUnitModel.tenant_id == tenant_id,
                UserBusinessUnitModel.role_id == role_id,
            )
        )
        return result.scalar_one()
