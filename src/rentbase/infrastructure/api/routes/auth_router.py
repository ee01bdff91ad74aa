"""Authentication API routes."""

from fastapi import APIRouter, HTTPException, Request, status

from rentbase.core.context import RequestContext, context_scope
from rentbase.core.logging import get_logger
from rentbase.domain.entities.tenant import TenantStatus
from rentbase.infrastructure.api.dependencies import (
    CurrentPrincipal,
    DbSession,
    Evaluator,
)
from rentbase.infrastructure.api.schemas import LoginRequest, MeResponse, TokenResponse
from rentbase.infrastructure.auth.password_hasher import hash_password, needs_rehash, verify_password
from rentbase.infrastructure.persistence.repositories import (
    TenantRepository,
    UserBusinessUnitRepository,
    UserRepository,
)

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        401: {"description": "Invalid credentials"},
        403: {"description": "Inactive user or tenant, or business unit not assigned"},
    },
)
async def login(request: Request, body: LoginRequest, session: DbSession) -> TokenResponse:
    """Exchange email and password for an access token.

    The token names the business unit to act in: the requested one, or the
    user's first assignment.
    """
    users = UserRepository(session)
    user = await users.get_by_email_for_login(body.email)
    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("Login failed: invalid credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    business_unit_id = None
    if not user.is_superadmin:
        tenant = await TenantRepository(session).get_by_id(user.tenant_id)
        if tenant is None or tenant.status != TenantStatus.ACTIVE.value:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Tenant is not active")

        with context_scope(RequestContext.for_system(user.tenant_id)):
            assignments = await UserBusinessUnitRepository(session).list_for_user(user.id)
        assigned = [assignment.business_unit_id for assignment in assignments]
        if body.business_unit_id is not None:
            if body.business_unit_id not in assigned:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="User is not assigned to the business unit",
                )
            business_unit_id = body.business_unit_id
        elif assigned:
            business_unit_id = assigned[0]

    await users.update_last_login(user.id)
    if needs_rehash(user.password_hash):
        await users.update_password_hash(user.id, hash_password(body.password))
    await session.commit()

    jwt_service = request.app.state.jwt
    token = jwt_service.create_access_token(
        user_id=user.id,
        tenant_id=user.tenant_id,
        business_unit_id=business_unit_id,
        global_role=user.global_role,
        email=user.email,
    )
    logger.info("User logged in", user_id=user.id, tenant_id=user.tenant_id)
    return TokenResponse(
        access_token=token,
        expires_in=jwt_service.get_expires_in(),
        user_id=user.id,
        tenant_id=user.tenant_id,
        business_unit_id=business_unit_id,
    )


@router.get("/me", response_model=MeResponse)
async def me(principal: CurrentPrincipal, evaluator: Evaluator) -> MeResponse:
    """Return the authenticated principal and its effective permissions."""
    permissions = await evaluator.effective_permissions(principal)
    return MeResponse(
        user_id=principal.user_id,
        email=principal.email,
        tenant_id=principal.tenant_id,
        business_unit_id=principal.business_unit_id,
        global_role=principal.global_role.value,
        role=await evaluator.role_of(principal),
        permissions=sorted(str(key) for key in permissions),
    )
