"""Audit log repository.

Write-once: entries are recorded and listed, never updated or deleted.
"""

from rentbase.infrastructure.persistence.models import AuditLogModel
from rentbase.infrastructure.persistence.repositories.base import TenantScopedRepository


class AuditLogRepository(TenantScopedRepository[AuditLogModel]):
    """Repository for the audit trail of the context tenant."""

    model = AuditLogModel

    async def record(self, entry: AuditLogModel) -> AuditLogModel:
        """Add an audit entry to the context tenant.

        Args:
            entry: Entry to write. Its tenant id is set from the context when
                empty.

        Returns:
            The flushed entry.
        """
        return await self.create(entry)

    async def list_recent(self, limit: int = 50) -> list[AuditLogModel]:
        """Most recent entries of the tenant, newest first."""
        result = await self.session.execute(
            self.scoped().order_by(AuditLogModel.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
