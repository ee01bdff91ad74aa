"""Base repository for tenant-scoped tables.

Every statement built here filters by the tenant of the bound request
context, and lookups by id always include the tenant. Callers never pass
the tenant explicitly.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.core.context import get_tenant_id
from rentbase.infrastructure.persistence.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class TenantScopedRepository(Generic[ModelT]):
    """Repository whose queries are confined to the context tenant."""

    model: type[ModelT]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    @property
    def tenant_id(self) -> str:
        """Tenant of the bound request context."""
        return get_tenant_id()

    def scoped(self, statement: Select[Any] | None = None) -> Select[Any]:
        """Add the tenant constraint to ``statement`` (default: select all)."""
        if statement is None:
            statement = select(self.model)
        return statement.where(self.model.tenant_id == self.tenant_id)

    async def create(self, obj: ModelT) -> ModelT:
        """Add a record to the context tenant.

        Args:
            obj: Model to create. Its tenant id is set from the context when
                empty.

        Returns:
            The flushed model.
        """
        if obj.tenant_id is None:
            obj.tenant_id = self.tenant_id
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        """Get a record of the context tenant by ID.

        Args:
            entity_id: Record ID.

        Returns:
            Model if found in the tenant, None otherwise.
        """
        result = await self.session.execute(self.scoped().where(self.model.id == entity_id))
        return result.scalar_one_or_none()

    async def count(self) -> int:
        """Number of records in the context tenant."""
        result = await self.session.execute(
            self.scoped(select(func.count()).select_from(self.model))
        )
        return result.scalar_one()

    async def delete(self, obj: ModelT) -> None:
        """Delete a record.

        Args:
            obj: Model to delete.
        """
        await self.session.delete(obj)
        await self.session.flush()
