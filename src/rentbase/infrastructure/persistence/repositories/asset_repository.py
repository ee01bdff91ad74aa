"""Asset repository for database operations."""

from rentbase.core.context import require_business_unit_id
from rentbase.infrastructure.persistence.models import AssetModel
from rentbase.infrastructure.persistence.repositories.base import TenantScopedRepository


class AssetRepository(TenantScopedRepository[AssetModel]):
    """Repository for the assets of the context business unit."""

    model = AssetModel

    def scoped(self, statement=None):
        return super().scoped(statement).where(
            AssetModel.business_unit_id == require_business_unit_id()
        )

    async def create(self, obj: AssetModel) -> AssetModel:
        if obj.business_unit_id is None:
            obj.business_unit_id = require_business_unit_id()
        return await super().create(obj)

    async def list_page(self, offset: int = 0, limit: int = 50) -> list[AssetModel]:
        """List assets of the business unit, ordered by name."""
        result = await self.session.execute(
            self.scoped().order_by(AssetModel.name.asc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())
