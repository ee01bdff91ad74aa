"""Permission catalog API routes."""

from fastapi import APIRouter, Depends

from rentbase.infrastructure.api.dependencies import DbSession, require_permission
from rentbase.infrastructure.api.schemas import PermissionListResponse, PermissionResponse
from rentbase.infrastructure.persistence.repositories import PermissionRepository

router = APIRouter()


@router.get(
    "",
    response_model=PermissionListResponse,
    dependencies=[Depends(require_permission("roles", "read"))],
)
async def list_permissions(session: DbSession) -> PermissionListResponse:
    """List the permission catalog."""
    permissions = await PermissionRepository(session).list_all()
    items = [
        PermissionResponse(
            key=str(permission.key),
            resource=permission.resource,
            action=permission.action,
            scope=permission.scope,
            description=permission.description,
        )
        for permission in permissions
    ]
    return PermissionListResponse(items=items, total=len(items))
