"""SQLAlchemy model for the tenants table.

Tenants are the isolation boundary of the platform. The table itself is
global: only platform-level code reads across it.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from rentbase.domain.entities.tenant import TenantStatus
from rentbase.infrastructure.persistence.database import Base


class TenantModel(Base):
    """SQLAlchemy model for the tenants table.

    Attributes:
        id: UUID primary key.
        name: Display name.
        slug: URL-friendly identifier, unique across all tenants.
        plan: Subscription plan.
        status: ACTIVE, SUSPENDED or CANCELLED.
        settings: Free-form tenant settings.
        created_at: Timestamp when the tenant was created.
        updated_at: Timestamp when the tenant was last updated.
    """

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name for the tenant",
    )
    slug: Mapped[str] = mapped_column(
        String(48),
        nullable=False,
        unique=True,
        index=True,
        comment="URL-friendly identifier (3-48 chars)",
    )
    plan: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="free",
        server_default="free",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TenantStatus.ACTIVE.value,
        server_default=TenantStatus.ACTIVE.value,
        index=True,
    )
    settings: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )
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
        CheckConstraint(
            "status IN ('ACTIVE', 'SUSPENDED', 'CANCELLED')",
            name="ck_tenants_status",
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug={self.slug}, status={self.status})>"
