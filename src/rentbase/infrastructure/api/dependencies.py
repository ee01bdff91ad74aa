"""FastAPI dependencies for authentication and authorization.

Everything here reads its collaborators from ``request.app.state``, where
the application factory put them.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.core.config import Settings
from rentbase.core.context import get_context_or_none
from rentbase.core.logging import get_logger
from rentbase.domain.entities.principal import Principal
from rentbase.domain.services.grant_cache import GrantCache
from rentbase.domain.services.permission_evaluator import PermissionEvaluator
from rentbase.infrastructure.auth.jwt_service import JWTService
from rentbase.infrastructure.notifications import Notifier
from rentbase.infrastructure.persistence.database import get_db_session
from rentbase.infrastructure.persistence.repositories import SqlGrantStore

logger = get_logger(__name__)

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_grant_cache(request: Request) -> GrantCache:
    """Get the grant cache from app state."""
    return request.app.state.grant_cache


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_jwt_service(request: Request) -> JWTService:
    return request.app.state.jwt


async def get_current_principal(request: Request) -> Principal:
    """Return the principal resolved by the authentication middleware.

    Raises:
        HTTPException: 401 if no valid credentials were presented, 403 if
            the credentials were valid but may not act (inactive user,
            inactive tenant, unassigned business unit).
    """
    principal = getattr(request.state, "principal", None)
    if principal is not None:
        return principal

    error = getattr(request.state, "auth_error", None)
    if error is not None:
        logger.info("Authentication failed", reason=error.message, status_code=error.status_code)
        headers = {"WWW-Authenticate": "Bearer"} if error.status_code == 401 else None
        raise HTTPException(status_code=error.status_code, detail=error.message, headers=headers)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def require_superadmin(principal: CurrentPrincipal) -> Principal:
    """Ensure the current principal is the platform super-identity.

    Raises:
        HTTPException: 403 if it is not.
    """
    if not principal.is_superadmin:
        logger.info("Superadmin access denied", user_id=principal.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Superadmin access required",
        )
    return principal


SuperadminPrincipal = Annotated[Principal, Depends(require_superadmin)]


async def get_evaluator(request: Request, session: DbSession) -> PermissionEvaluator:
    """Permission evaluator reading grants through the request session."""
    return PermissionEvaluator(
        SqlGrantStore(session),
        catalog=request.app.state.catalog,
        cache=request.app.state.grant_cache,
    )


Evaluator = Annotated[PermissionEvaluator, Depends(get_evaluator)]


def require_permission(resource: str, action: str) -> Callable[..., Awaitable[Principal]]:
    """Build a dependency that gates a route on ``resource:action``.

    Example:
        @router.post("", dependencies=[Depends(require_permission("assets", "create"))])

    Raises:
        PermissionDenied: From the dependency when the check fails.
    """

    async def check_permission(principal: CurrentPrincipal, evaluator: Evaluator) -> Principal:
        await evaluator.require_permission(principal, resource, action)
        return principal

    return check_permission


async def require_business_unit() -> str:
    """Return the business unit of the bound context.

    Raises:
        HTTPException: 400 if the request targets no business unit.
    """
    context = get_context_or_none()
    if context is None or not context.business_unit_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A business unit is required for this operation",
        )
    return context.business_unit_id


BusinessUnitId = Annotated[str, Depends(require_business_unit)]


async def require_tenant(principal: CurrentPrincipal) -> str:
    """Return the tenant of the bound context.

    Platform super-principals act outside any tenant and are turned away
    from routes that create or change tenant data.

    Raises:
        HTTPException: 400 if the request is bound to no tenant.
    """
    context = get_context_or_none()
    if context is None or not context.tenant_id:
        logger.info("Tenant-bound route called without a tenant", user_id=principal.user_id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A tenant is required for this operation",
        )
    return context.tenant_id


TenantId = Annotated[str, Depends(require_tenant)]
