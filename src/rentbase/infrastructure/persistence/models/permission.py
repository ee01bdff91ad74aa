"""SQLAlchemy models for permissions and their grants.

The permission catalog is global. Grants connect it to roles
(``role_permissions``) and, for user-specific extras, to users
(``user_permissions``).
"""

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rentbase.domain.entities.role import PermissionKey, PermissionScope
from rentbase.infrastructure.persistence.database import Base


class PermissionModel(Base):
    """SQLAlchemy model for the permissions table.

    Attributes:
        id: UUID primary key.
        resource: Business entity collection (e.g. 'assets').
        action: Operation (e.g. 'read').
        scope: TENANT, BUSINESS_UNIT or OWN.
        description: Human-readable description.
    """

    __tablename__ = "permissions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    resource: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    scope: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PermissionScope.BUSINESS_UNIT.value,
    )
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("resource", "action", name="uq_permissions_resource_action"),
    )

    @property
    def key(self) -> PermissionKey:
        return PermissionKey(self.resource, self.action)

    def __repr__(self) -> str:
        return f"<Permission(id={self.id}, key={self.resource}:{self.action})>"


class RolePermissionModel(Base):
    """Grant of one permission to one role."""

    __tablename__ = "role_permissions"

    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    permission_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    )

    def __repr__(self) -> str:
        return f"<RolePermission(role_id={self.role_id}, permission_id={self.permission_id})>"


class UserPermissionModel(Base):
    """Additional permission granted to a single user on top of the role."""

    __tablename__ = "user_permissions"

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
    )
    permission_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "permission_id", name="uq_user_permissions_user_permission"),
    )

    def __repr__(self) -> str:
        return f"<UserPermission(user_id={self.user_id}, permission_id={self.permission_id})>"
