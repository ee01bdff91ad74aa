"""SQLAlchemy model for the audit_logs table.

One row per successful mutating API request. Rows are written once and
never updated; they are scoped to the tenant the request acted in.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from rentbase.infrastructure.persistence.database import Base


class AuditLogModel(Base):
    """SQLAlchemy model for the audit_logs table.

    Attributes:
        id: UUID primary key.
        tenant_id: Tenant the request acted in.
        business_unit_id: Business unit of the request context, if any.
        user_id: Acting user, or ``system`` for trusted system calls.
        action: create, update or delete, derived from the HTTP method.
        entity: Resource segment of the request path (e.g. ``assets``).
        entity_id: Identifier segment following the resource, if any.
        method: HTTP method.
        path: Request path.
        status_code: Response status code.
        ip_address: Client address.
        user_agent: Client user agent.
        request_id: Correlation ID of the request.
        created_at: When the request completed.
    """

    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )
    business_unit_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(10), nullable=False)
    entity: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    request_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_audit_logs_tenant_created", "tenant_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, entity={self.entity})>"
