"""Roles API routes.

Lists the system roles and the tenant's custom roles, and manages custom
roles and their permission sets.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentbase.core.exceptions import RoleNotFound
from rentbase.core.logging import get_logger
from rentbase.domain.services.grant_cache import GrantCache
from rentbase.domain.services.role_provisioning_service import RolePermissionProvisioner
from rentbase.infrastructure.api.dependencies import (
    DbSession,
    TenantId,
    get_grant_cache,
    require_permission,
)
from rentbase.infrastructure.api.schemas import (
    CreateRoleRequest,
    RoleListResponse,
    RolePermissionsRequest,
    RoleResponse,
    UpdateRoleRequest,
)
from rentbase.infrastructure.persistence.models import RoleModel
from rentbase.infrastructure.persistence.repositories import PermissionRepository, RoleRepository

logger = get_logger(__name__)

router = APIRouter()


async def _to_response(session: AsyncSession, role: RoleModel) -> RoleResponse:
    keys = await PermissionRepository(session).get_role_permission_keys(role.id)
    return RoleResponse(
        id=role.id,
        name=role.name,
        description=role.description,
        is_system=role.is_system,
        tenant_id=role.tenant_id,
        permissions=sorted(str(key) for key in keys),
    )


def _provisioner(
    session: DbSession, cache: GrantCache = Depends(get_grant_cache)
) -> RolePermissionProvisioner:
    return RolePermissionProvisioner(session, cache=cache)


@router.get(
    "",
    response_model=RoleListResponse,
    dependencies=[Depends(require_permission("roles", "read"))],
)
async def list_roles(session: DbSession) -> RoleListResponse:
    """List system roles and the tenant's custom roles with their permissions."""
    roles = await RoleRepository(session).list_visible()
    items = [await _to_response(session, role) for role in roles]
    return RoleListResponse(items=items, total=len(items))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=RoleResponse,
    dependencies=[Depends(require_permission("roles", "create"))],
    responses={
        400: {"description": "Unknown permission or no tenant"},
        409: {"description": "Role name already exists"},
    },
)
async def create_role(
    body: CreateRoleRequest,
    session: DbSession,
    tenant_id: TenantId,
    provisioner: RolePermissionProvisioner = Depends(_provisioner),
) -> RoleResponse:
    """Create a custom role for the tenant."""
    role = await provisioner.create_custom_role(
        tenant_id, body.name, body.permissions, description=body.description
    )
    return await _to_response(session, role)


@router.get(
    "/{role_id}",
    response_model=RoleResponse,
    dependencies=[Depends(require_permission("roles", "read"))],
)
async def get_role(role_id: str, session: DbSession) -> RoleResponse:
    role = await RoleRepository(session).get_visible(role_id)
    if role is None:
        raise RoleNotFound(role_id)
    return await _to_response(session, role)


@router.patch(
    "/{role_id}",
    response_model=RoleResponse,
    dependencies=[Depends(require_permission("roles", "update"))],
)
async def update_role(
    role_id: str,
    body: UpdateRoleRequest,
    session: DbSession,
    provisioner: RolePermissionProvisioner = Depends(_provisioner),
) -> RoleResponse:
    role = await provisioner.update_custom_role(role_id, name=body.name, description=body.description)
    return await _to_response(session, role)


@router.put(
    "/{role_id}/permissions",
    response_model=RoleResponse,
    dependencies=[Depends(require_permission("roles", "update"))],
    responses={
        400: {"description": "No tenant"},
        409: {"description": "System roles cannot be changed"},
    },
)
async def replace_role_permissions(
    role_id: str,
    body: RolePermissionsRequest,
    session: DbSession,
    tenant_id: TenantId,
    provisioner: RolePermissionProvisioner = Depends(_provisioner),
) -> RoleResponse:
    """Replace the whole permission set of a custom role."""
    await provisioner.assign_permission_set(role_id, body.permissions, tenant_id=tenant_id)
    role = await RoleRepository(session).get_visible(role_id)
    if role is None:
        raise RoleNotFound(role_id)
    return await _to_response(session, role)


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("roles", "delete"))],
    responses={409: {"description": "Role is a system role or still assigned"}},
)
async def delete_role(
    role_id: str,
    provisioner: RolePermissionProvisioner = Depends(_provisioner),
) -> Response:
    await provisioner.delete_role(role_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
