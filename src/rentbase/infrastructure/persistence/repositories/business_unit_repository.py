"""Business unit repository for database operations."""

from sqlalchemy import func, or_, select

from rentbase.infrastructure.persistence.models import BusinessUnitModel
from rentbase.infrastructure.persistence.repositories.base import TenantScopedRepository


class BusinessUnitRepository(TenantScopedRepository[BusinessUnitModel]):
    """Repository for the business units of the context tenant."""

    model = BusinessUnitModel

    async def get_by_slug(self, slug: str) -> BusinessUnitModel | None:
        """Get a business unit of the tenant by slug."""
        result = await self.session.execute(
            self.scoped().where(BusinessUnitModel.slug == slug)
        )
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        """Check if a slug is taken within the tenant.

        Args:
            slug: Slug to check.
            exclude_id: Business unit to ignore (the one being renamed).

        Returns:
            True if another business unit of the tenant uses the slug.
        """
        query = self.scoped(select(BusinessUnitModel.id)).where(BusinessUnitModel.slug == slug)
        if exclude_id is not None:
            query = query.where(BusinessUnitModel.id != exclude_id)
        result = await self.session.execute(query)
        return result.first() is not None

    async def list_paginated(
        self,
        offset: int = 0,
        limit: int = 25,
        search: str | None = None,
    ) -> tuple[list[BusinessUnitModel], int]:
        """Get a page of the tenant's business units.

        Args:
            offset: Number of rows to skip.
            limit: Maximum number of rows to return.
            search: Optional text matched against name and slug.

        Returns:
            Tuple of (list of business units, total count).
        """
        query = self.scoped()
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(BusinessUnitModel.name.ilike(pattern), BusinessUnitModel.slug.ilike(pattern))
            )

        total_result = await self.session.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = total_result.scalar_one()

        result = await self.session.execute(
            query.order_by(BusinessUnitModel.name.asc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total
