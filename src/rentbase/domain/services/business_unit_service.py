"""Business unit service.

Manages the business units of the context tenant and the user assignments
inside them. The tenant always comes from the bound request context.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.core.exceptions import (
    BusinessUnitNotFound,
    DuplicateSlug,
    EntityNotFound,
    RoleNotFound,
    UserNotFound,
)
from rentbase.core.logging import get_logger
from rentbase.domain.services.grant_cache import GrantCache
from rentbase.domain.services.slug_generator import SlugGenerator
from rentbase.infrastructure.persistence.models import BusinessUnitModel, UserBusinessUnitModel
from rentbase.infrastructure.persistence.repositories import (
    BusinessUnitRepository,
    RoleRepository,
    UserBusinessUnitRepository,
    UserRepository,
)

logger = get_logger(__name__)


class BusinessUnitService:
    """Service for business units of the context tenant."""

    def __init__(self, session: AsyncSession, cache: GrantCache | None = None) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            cache: Grant cache invalidated on membership changes.
        """
        self.session = session
        self.cache = cache
        self.repo = BusinessUnitRepository(session)
        self.assignments = UserBusinessUnitRepository(session)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def list_units(
        self, offset: int = 0, limit: int = 25, search: str | None = None
    ) -> tuple[list[BusinessUnitModel], int]:
        """List business units of the tenant with their total count."""
        return await self.repo.list_paginated(offset=offset, limit=limit, search=search)

    async def get(self, business_unit_id: str) -> BusinessUnitModel:
        """Get a business unit of the tenant.

        Raises:
            BusinessUnitNotFound: If it does not exist in the tenant.
        """
        business_unit = await self.repo.get_by_id(business_unit_id)
        if business_unit is None:
            raise BusinessUnitNotFound(business_unit_id)
        return business_unit

    async def create(
        self,
        name: str,
        slug: str | None = None,
        description: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> BusinessUnitModel:
        """Create a business unit.

        Raises:
            InvalidSlug: If the slug breaks the slug rules.
            DuplicateSlug: If the tenant already has a unit with this slug.
        """
        slug = slug or SlugGenerator.generate(name, fallback="unit")
        SlugGenerator.ensure_valid(slug)
        if await self.repo.slug_exists(slug):
            raise DuplicateSlug(slug, kind="business unit")

        business_unit = BusinessUnitModel(
            name=name,
            slug=slug,
            description=description,
            settings=settings or {},
        )
        try:
            await self.repo.create(business_unit)
        except Exception:
            await self.session.rollback()
            raise
        await self._commit()
        logger.info("Business unit created", created_business_unit_id=business_unit.id, slug=slug)
        return business_unit

    async def update(
        self,
        business_unit_id: str,
        name: str | None = None,
        slug: str | None = None,
        description: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> BusinessUnitModel:
        """Update a business unit. ``settings`` replaces the stored settings."""
        business_unit = await self.get(business_unit_id)
        if slug is not None and slug != business_unit.slug:
            SlugGenerator.ensure_valid(slug)
            if await self.repo.slug_exists(slug, exclude_id=business_unit.id):
                raise DuplicateSlug(slug, kind="business unit")
            business_unit.slug = slug
        if name is not None:
            business_unit.name = name
        if description is not None:
            business_unit.description = description
        if settings is not None:
            business_unit.settings = settings

        try:
            await self.session.flush()
        except Exception:
            await self.session.rollback()
            raise
        await self._commit()
        return business_unit

    async def delete(self, business_unit_id: str) -> None:
        """Delete a business unit with its assignments and assets."""
        business_unit = await self.get(business_unit_id)
        try:
            await self.repo.delete(business_unit)
        except Exception:
            await self.session.rollback()
            raise
        await self._commit()
        if self.cache is not None:
            self.cache.invalidate_business_unit(business_unit_id)
        logger.info("Business unit deleted", deleted_business_unit_id=business_unit_id)

    async def list_members(self, business_unit_id: str) -> list[UserBusinessUnitModel]:
        """List the assignments of a business unit."""
        await self.get(business_unit_id)
        return await self.assignments.list_for_business_unit(business_unit_id)

    async def assign_member(
        self, business_unit_id: str, user_id: str, role_id: str
    ) -> UserBusinessUnitModel:
        """Give a user a role in a business unit, replacing any previous role.

        Args:
            business_unit_id: Business unit of the tenant.
            user_id: User of the tenant.
            role_id: System role or custom role of the tenant.

        Returns:
            The assignment.

        Raises:
            BusinessUnitNotFound: If the unit is not in the tenant.
            UserNotFound: If the user is not in the tenant.
            RoleNotFound: If the role is not visible to the tenant.
        """
        await self.get(business_unit_id)
        if await UserRepository(self.session).get_by_id(user_id) is None:
            raise UserNotFound(user_id)
        if await RoleRepository(self.session).get_visible(role_id) is None:
            raise RoleNotFound(role_id)

        assignment = await self.assignments.get_assignment(user_id, business_unit_id)
        try:
            if assignment is None:
                assignment = await self.assignments.create(
                    UserBusinessUnitModel(
                        user_id=user_id,
                        business_unit_id=business_unit_id,
                        role_id=role_id,
                    )
                )
            else:
                assignment.role_id = role_id
                await self.session.flush()
        except Exception:
            await self.session.rollback()
            raise
        await self._commit()

        if self.cache is not None:
            self.cache.invalidate_user(user_id)
        logger.info(
            "Business unit member assigned",
            member_id=user_id,
            target_business_unit_id=business_unit_id,
            role_id=role_id,
        )
        return assignment

    async def remove_member(self, business_unit_id: str, user_id: str) -> None:
        """Remove a user's assignment from a business unit.

        Raises:
            EntityNotFound: If the user is not assigned there.
        """
        assignment = await self.assignments.get_assignment(user_id, business_unit_id)
        if assignment is None:
            raise EntityNotFound("Membership", f"{business_unit_id}/{user_id}")
        try:
            await self.assignments.delete(assignment)
        except Exception:
            await self.session.rollback()
            raise
        await self._commit()

        if self.cache is not None:
            self.cache.invalidate_user(user_id)
        logger.info(
            "Business unit member removed",
            member_id=user_id,
            target_business_unit_id=business_unit_id,
        )
