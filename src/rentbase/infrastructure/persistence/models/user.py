"""SQLAlchemy model for the users table.

Users belong to one tenant. Platform super-principals have no tenant.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from rentbase.domain.entities.principal import GlobalRole
from rentbase.domain.entities.tenant import UserStatus
from rentbase.infrastructure.persistence.database import Base


class UserModel(Base):
    """SQLAlchemy model for the users table.

    Attributes:
        id: UUID primary key.
        tenant_id: Owning tenant, None for super-principals.
        email: Login email, unique across the platform.
        password_hash: Argon2id hash.
        first_name: Given name.
        last_name: Family name.
        global_role: USER or SUPER_ADMIN.
        status: ACTIVE or INACTIVE.
        last_login: Timestamp of the last successful login.
    """

    __tablename__ = "users"

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
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    global_role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=GlobalRole.USER.value,
        server_default=GlobalRole.USER.value,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserStatus.ACTIVE.value,
        server_default=UserStatus.ACTIVE.value,
    )
    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
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

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    @property
    def is_superadmin(self) -> bool:
        return self.global_role == GlobalRole.SUPER_ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, tenant_id={self.tenant_id})>"
