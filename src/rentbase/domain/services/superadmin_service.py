"""Service for creating platform superadmin users.

Superadmins carry the SUPER_ADMIN global role and no tenant. They are
created from the CLI or at startup from the configured bootstrap
credentials, outside any request, so the tenant guard is bypassed
explicitly here.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.core.exceptions import DuplicateEmail
from rentbase.core.logging import get_logger
from rentbase.domain.entities.principal import GlobalRole
from rentbase.domain.entities.tenant import UserStatus
from rentbase.domain.services.password_validator import default_password_validator
from rentbase.infrastructure.auth.password_hasher import hash_password
from rentbase.infrastructure.persistence.models import UserModel
from rentbase.infrastructure.persistence.repositories import UserRepository
from rentbase.infrastructure.persistence.tenant_guard import system_access

logger = get_logger(__name__)


class SuperadminService:
    """Service for managing superadmin users."""

    @staticmethod
    async def create_superadmin(
        email: str,
        password: str,
        session: AsyncSession,
        first_name: str = "",
        last_name: str = "",
    ) -> str:
        """Create a superadmin user.

        Args:
            email: Email address for the superadmin.
            password: Password, checked against the password policy.
            session: Database session.
            first_name: Given name.
            last_name: Family name.

        Returns:
            The new user's ID.

        Raises:
            WeakPassword: If the password fails the policy.
            DuplicateEmail: If the email is registered.
        """
        default_password_validator.ensure_valid(password)
        email = email.strip().lower()

        with system_access("superadmin bootstrap"):
            if await UserRepository(session).email_exists(email):
                raise DuplicateEmail(email)

            user = UserModel(
                tenant_id=None,
                email=email,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                global_role=GlobalRole.SUPER_ADMIN.value,
                status=UserStatus.ACTIVE.value,
            )
            try:
                session.add(user)
                await session.flush()
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info("Superadmin created", superadmin_id=user.id)
        return user.id

    @staticmethod
    async def has_superadmin(session: AsyncSession) -> bool:
        """Check if any superadmin exists."""
        with system_access("superadmin lookup"):
            result = await session.execute(
                select(UserModel.id).where(UserModel.global_role == GlobalRole.SUPER_ADMIN.value)
            )
        return result.first() is not None
