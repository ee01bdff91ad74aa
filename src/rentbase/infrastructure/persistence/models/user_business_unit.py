"""SQLAlchemy model for the user_business_units table.

An assignment gives a user exactly one role inside one business unit. It is
the edge the permission evaluator resolves.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from rentbase.infrastructure.persistence.database import Base


class UserBusinessUnitModel(Base):
    """SQLAlchemy model for the user_business_units table.

    ``role_id`` is RESTRICT: a role cannot disappear while assigned.
    """

    __tablename__ = "user_business_units"

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
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    business_unit_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("business_units.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "business_unit_id", name="uq_user_business_units_user_bu"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserBusinessUnit(user_id={self.user_id}, "
            f"business_unit_id={self.business_unit_id}, role_id={self.role_id})>"
        )
