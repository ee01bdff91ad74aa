"""Tenant repository for database operations.

Tenants are a global table: queries here are not tenant-filtered and are
reserved for platform-level callers.
"""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.infrastructure.persistence.models import TenantModel


class TenantRepository:
    """Repository for tenant database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, tenant: TenantModel) -> TenantModel:
        """Create a new tenant.

        Args:
            tenant: Tenant model to create.

        Returns:
            Created tenant model.
        """
        self.session.add(tenant)
        await self.session.flush()
        return tenant

    async def get_by_id(self, tenant_id: str) -> TenantModel | None:
        """Get a tenant by ID.

        Args:
            tenant_id: Tenant UUID.

        Returns:
            Tenant model if found, None otherwise.
        """
        result = await self.session.execute(
            select(TenantModel).where(TenantModel.id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> TenantModel | None:
        """Get a tenant by slug."""
        result = await self.session.execute(
            select(TenantModel).where(TenantModel.slug == slug)
        )
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str) -> bool:
        """Check if a slug is already taken.

        Args:
            slug: Slug to check.

        Returns:
            True if slug exists, False otherwise.
        """
        result = await self.session.execute(
            select(TenantModel.id).where(TenantModel.slug == slug)
        )
        return result.scalar_one_or_none() is not None

    async def list_paginated(
        self,
        offset: int = 0,
        limit: int = 25,
        search: str | None = None,
        status: str | None = None,
    ) -> tuple[list[TenantModel], int]:
        """Get a page of tenants with optional search and status filter.

        Args:
            offset: Number of tenants to skip.
            limit: Maximum number of tenants to return.
            search: Optional text matched against name and slug.
            status: Optional status filter.

        Returns:
            Tuple of (list of tenants, total count).
        """
        query = select(TenantModel)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(TenantModel.name.ilike(pattern), TenantModel.slug.ilike(pattern))
            )
        if status:
            query = query.where(TenantModel.status == status)

        total_result = await self.session.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = total_result.scalar_one()

        result = await self.session.execute(
            query.order_by(TenantModel.name.asc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def update(self, tenant: TenantModel) -> TenantModel:
        """Flush changes made to a tenant."""
        await self.session.flush()
        return tenant
