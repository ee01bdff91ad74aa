"""SQLAlchemy model for the roles table.

System roles have stable ids and no tenant. Custom roles belong to one
tenant.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, false, func
from sqlalchemy.orm import Mapped, mapped_column

from rentbase.infrastructure.persistence.database import Base


class RoleModel(Base):
    """SQLAlchemy model for the roles table.

    Attributes:
        id: Primary key ('role-owner' etc. for system roles, UUID otherwise).
        tenant_id: Owning tenant for custom roles, None for system roles.
        name: Role name, unique within its tenant.
        description: Optional description of the role's purpose.
        is_system: Whether this is one of the fixed system roles.
    """

    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    tenant_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Role name (e.g., 'OWNER', 'Warehouse lead')",
    )
    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Description of the role's purpose",
    )
    is_system: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
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

    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_roles_tenant_name"),)

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name}, is_system={self.is_system})>"
