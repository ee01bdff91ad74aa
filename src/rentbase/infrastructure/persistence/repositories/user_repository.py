"""User repository for database operations."""

from sqlalchemy import func, select, update

from rentbase.infrastructure.persistence.models import UserModel
from rentbase.infrastructure.persistence.repositories.base import TenantScopedRepository
from rentbase.infrastructure.persistence.tenant_guard import SKIP_OPTION


class UserRepository(TenantScopedRepository[UserModel]):
    """Repository for users.

    Tenant-scoped except for the platform-wide lookups used by
    authentication, which run with the tenant guard skipped because emails
    are unique across tenants.
    """

    model = UserModel

    async def email_exists(self, email: str) -> bool:
        """Check if an email is registered on the platform.

        Args:
            email: Email address (compared case-insensitively).

        Returns:
            True if any user has this email.
        """
        result = await self.session.execute(
            select(UserModel.id)
            .where(UserModel.email == email.lower())
            .execution_options(**{SKIP_OPTION: True})
        )
        return result.first() is not None

    async def get_for_authentication(self, user_id: str) -> UserModel | None:
        """Load a user by ID across tenants for token verification.

        Args:
            user_id: User ID from a verified token.

        Returns:
            User model if found, None otherwise.
        """
        result = await self.session.execute(
            select(UserModel)
            .where(UserModel.id == user_id)
            .execution_options(**{SKIP_OPTION: True})
        )
        return result.scalar_one_or_none()

    async def get_by_email_for_login(self, email: str) -> UserModel | None:
        """Load a user by email across tenants for login."""
        result = await self.session.execute(
            select(UserModel)
            .where(UserModel.email == email.lower())
            .execution_options(**{SKIP_OPTION: True})
        )
        return result.scalar_one_or_none()

    async def list_for_tenant(self) -> list[UserModel]:
        """List the users of the context tenant."""
        result = await self.session.execute(self.scoped().order_by(UserModel.email.asc()))
        return list(result.scalars().all())

    async def update_last_login(self, user_id: str) -> None:
        """Record a successful login."""
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(last_login=func.now())
            .execution_options(synchronize_session=False, **{SKIP_OPTION: True})
        )

    async def update_password_hash(self, user_id: str, password_hash: str) -> None:
        """Store a re-hashed password."""
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(password_hash=password_hash)
            .execution_options(synchronize_session=False, **{SKIP_OPTION: True})
        )
