"""Resolve the acting principal from request headers.

Verifies the bearer token, then checks it against the database: the user
must exist and be active, belong to the tenant named by the token, and that
tenant must be active. The targeted business unit (header first, then the
token) must belong to the tenant and the user must be assigned to it; the
assigned role becomes the principal's role.
"""

from collections.abc import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.core.context import RequestContext, context_scope
from rentbase.core.logging import get_logger
from rentbase.domain.entities.principal import GlobalRole, Principal
from rentbase.domain.entities.tenant import TenantStatus
from rentbase.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTService,
    TokenExpiredError,
)
from rentbase.infrastructure.persistence.repositories import (
    BusinessUnitRepository,
    RoleRepository,
    TenantRepository,
    UserBusinessUnitRepository,
    UserRepository,
)

logger = get_logger(__name__)


class AuthenticationError(Exception):
    """Raised when the presented credentials are rejected.

    Attributes:
        message: Human-readable reason.
        status_code: 401 for bad credentials, 403 for valid credentials
            that may not act (inactive user or tenant, foreign business
            unit).
    """

    def __init__(self, message: str, status_code: int = 401) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class Authenticator:
    """Turn an ``Authorization: Bearer`` header into a ``Principal``."""

    def __init__(self, jwt_service: JWTService, business_unit_header: str = "X-Business-Unit-Id") -> None:
        """Initialize the authenticator.

        Args:
            jwt_service: Token verifier.
            business_unit_header: Header that overrides the token's business unit.
        """
        self.jwt_service = jwt_service
        self.business_unit_header = business_unit_header

    async def authenticate(
        self, headers: Mapping[str, str], session: AsyncSession
    ) -> Principal | None:
        """Authenticate from request headers.

        Args:
            headers: Request headers (case-insensitive mapping).
            session: Database session for the user and assignment lookups.

        Returns:
            The principal, or None when no credentials were presented.

        Raises:
            AuthenticationError: If the credentials are rejected.
        """
        auth_header = headers.get("authorization")
        if not auth_header:
            return None
        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Invalid Authorization header format")

        try:
            payload = self.jwt_service.validate_access_token(token.strip())
        except TokenExpiredError as e:
            raise AuthenticationError("Token has expired") from e
        except InvalidTokenError as e:
            raise AuthenticationError(str(e)) from e

        user = await UserRepository(session).get_for_authentication(payload["user_id"])
        if user is None:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("User account is inactive", status_code=403)

        business_unit_id = headers.get(self.business_unit_header) or payload.get("business_unit_id")

        if user.is_superadmin:
            logger.debug("Super-principal authenticated", user_id=user.id)
            return Principal(
                user_id=user.id,
                tenant_id=user.tenant_id,
                business_unit_id=business_unit_id if user.tenant_id else None,
                global_role=GlobalRole.SUPER_ADMIN,
                email=user.email,
            )

        if payload.get("tenant_id") != user.tenant_id:
            logger.warning(
                "Token tenant does not match user",
                user_id=user.id,
                token_tenant_id=payload.get("tenant_id"),
            )
            raise AuthenticationError("Token tenant does not match user", status_code=403)

        tenant = await TenantRepository(session).get_by_id(user.tenant_id)
        if tenant is None or tenant.status != TenantStatus.ACTIVE.value:
            raise AuthenticationError("Tenant is not active", status_code=403)

        roles: frozenset[str] = frozenset()
        if business_unit_id:
            # Lookups run as the user's tenant so the tenant guard applies.
            with context_scope(RequestContext.for_system(user.tenant_id)):
                business_unit = await BusinessUnitRepository(session).get_by_id(business_unit_id)
                if business_unit is None:
                    raise AuthenticationError(
                        "Business unit does not belong to the tenant", status_code=403
                    )
                assignment = await UserBusinessUnitRepository(session).get_assignment(
                    user.id, business_unit_id
                )
            if assignment is None:
                raise AuthenticationError(
                    "User is not assigned to the business unit", status_code=403
                )
            role = await RoleRepository(session).get_by_id(assignment.role_id)
            if role is not None:
                roles = frozenset({role.name})

        return Principal(
            user_id=user.id,
            tenant_id=user.tenant_id,
            business_unit_id=business_unit_id,
            roles=roles,
            global_role=GlobalRole.USER,
            email=user.email,
        )
