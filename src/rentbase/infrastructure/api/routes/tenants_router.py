"""Tenant API routes.

Tenants are managed by the platform super-principal only.
"""

from fastapi import APIRouter, Depends, Query, status

from rentbase.domain.entities.tenant import TenantStatus
from rentbase.domain.services.tenant_service import TenantService
from rentbase.infrastructure.api.dependencies import (
    DbSession,
    SuperadminPrincipal,
    get_notifier,
)
from rentbase.infrastructure.api.schemas import (
    TenantCreateRequest,
    TenantCreateResponse,
    TenantListResponse,
    TenantResponse,
    TenantStatusRequest,
    TenantUpdateRequest,
)
from rentbase.infrastructure.notifications import Notifier
from rentbase.infrastructure.persistence.models import TenantModel

router = APIRouter()


def _to_response(tenant: TenantModel) -> TenantResponse:
    return TenantResponse(
        id=tenant.id,
        name=tenant.name,
        slug=tenant.slug,
        plan=tenant.plan,
        status=tenant.status,
        settings=tenant.settings or {},
    )


@router.get("", response_model=TenantListResponse)
async def list_tenants(
    principal: SuperadminPrincipal,
    session: DbSession,
    search: str | None = Query(None, description="Match name or slug"),
    status_filter: TenantStatus | None = Query(None, alias="status"),
    offset: int = Query(0, ge=0),
    limit: int = Query(25, ge=1, le=100),
) -> TenantListResponse:
    """List tenants with optional search and status filter."""
    tenants, total = await TenantService(session).list_tenants(
        search=search, status=status_filter, offset=offset, limit=limit
    )
    return TenantListResponse(
        items=[_to_response(tenant) for tenant in tenants],
        total=total,
        offset=offset,
        limit=limit,
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=TenantCreateResponse,
    responses={
        400: {"description": "Invalid slug or weak owner password"},
        409: {"description": "Slug or owner email already taken"},
    },
)
async def create_tenant(
    body: TenantCreateRequest,
    principal: SuperadminPrincipal,
    session: DbSession,
    notifier: Notifier = Depends(get_notifier),
) -> TenantCreateResponse:
    """Create a tenant with its principal business unit and owner."""
    tenant, business_unit, owner = await TenantService(session, notifier=notifier).create_tenant(
        name=body.name,
        slug=body.slug,
        owner_email=body.owner_email,
        owner_password=body.owner_password,
        owner_first_name=body.owner_first_name,
        owner_last_name=body.owner_last_name,
        plan=body.plan,
        vertical=body.vertical,
        enabled_modules=body.enabled_modules,
    )
    return TenantCreateResponse(
        tenant=_to_response(tenant),
        business_unit_id=business_unit.id,
        owner_id=owner.id,
    )


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(tenant_id: str, principal: SuperadminPrincipal, session: DbSession) -> TenantResponse:
    return _to_response(await TenantService(session).get_tenant(tenant_id))


@router.patch("/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: str,
    body: TenantUpdateRequest,
    principal: SuperadminPrincipal,
    session: DbSession,
) -> TenantResponse:
    """Update name, plan or settings (merged) of a tenant."""
    tenant = await TenantService(session).update_tenant(
        tenant_id, name=body.name, plan=body.plan, settings=body.settings
    )
    return _to_response(tenant)


@router.post("/{tenant_id}/status", response_model=TenantResponse)
async def set_tenant_status(
    tenant_id: str,
    body: TenantStatusRequest,
    principal: SuperadminPrincipal,
    session: DbSession,
) -> TenantResponse:
    """Suspend, reactivate or cancel a tenant."""
    return _to_response(await TenantService(session).set_status(tenant_id, body.status))


@router.delete("/{tenant_id}", response_model=TenantResponse)
async def cancel_tenant(tenant_id: str, principal: SuperadminPrincipal, session: DbSession) -> TenantResponse:
    """Cancel a tenant. Data is kept; the tenant can no longer sign in."""
    return _to_response(await TenantService(session).cancel_tenant(tenant_id))
