"""SQLAlchemy model for the business_units table."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from rentbase.infrastructure.persistence.database import Base


class BusinessUnitModel(Base):
    """SQLAlchemy model for the business_units table.

    Business units subdivide a tenant. Deleting one cascades to its user
    assignments and its assets.

    Attributes:
        id: UUID primary key.
        tenant_id: Owning tenant.
        name: Display name.
        slug: URL-friendly identifier, unique within the tenant.
        description: Optional description.
        settings: Free-form settings (enabled modules, vertical, ...).
    """

    __tablename__ = "business_units"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "slug", name="uq_business_units_tenant_slug"),
    )

    def __repr__(self) -> str:
        return f"<BusinessUnit(id={self.id}, tenant_id={self.tenant_id}, slug={self.slug})>"
