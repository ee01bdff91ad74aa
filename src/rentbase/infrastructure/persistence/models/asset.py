"""SQLAlchemy model for the assets table.

Assets are rental equipment. They are scoped to a tenant and to a business
unit inside it.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from rentbase.infrastructure.persistence.database import Base


class AssetModel(Base):
    """SQLAlchemy model for the assets table."""

    __tablename__ = "assets"

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
    business_unit_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("business_units.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    serial_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="AVAILABLE")
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "serial_number", name="uq_assets_tenant_serial"),
    )

    def __repr__(self) -> str:
        return f"<Asset(id={self.id}, name={self.name}, business_unit_id={self.business_unit_id})>"
