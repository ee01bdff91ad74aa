"""Business unit API routes."""

from fastapi import APIRouter, Depends, Query, Response, status

from rentbase.domain.services.business_unit_service import BusinessUnitService
from rentbase.domain.services.grant_cache import GrantCache
from rentbase.infrastructure.api.dependencies import (
    DbSession,
    get_grant_cache,
    require_permission,
    require_tenant,
)
from rentbase.infrastructure.api.schemas import (
    BusinessUnitCreateRequest,
    BusinessUnitListResponse,
    BusinessUnitResponse,
    BusinessUnitUpdateRequest,
    MemberAssignRequest,
    MemberResponse,
)
from rentbase.infrastructure.persistence.models import BusinessUnitModel, UserBusinessUnitModel

# Business units live inside a tenant; super-principals have none.
router = APIRouter(dependencies=[Depends(require_tenant)])


def _to_response(business_unit: BusinessUnitModel) -> BusinessUnitResponse:
    return BusinessUnitResponse(
        id=business_unit.id,
        tenant_id=business_unit.tenant_id,
        name=business_unit.name,
        slug=business_unit.slug,
        description=business_unit.description,
        settings=business_unit.settings or {},
    )


def _member(assignment: UserBusinessUnitModel) -> MemberResponse:
    return MemberResponse(
        user_id=assignment.user_id,
        business_unit_id=assignment.business_unit_id,
        role_id=assignment.role_id,
    )


def _service(session: DbSession, cache: GrantCache = Depends(get_grant_cache)) -> BusinessUnitService:
    return BusinessUnitService(session, cache=cache)


@router.get(
    "",
    response_model=BusinessUnitListResponse,
    dependencies=[Depends(require_permission("business-units", "read"))],
)
async def list_business_units(
    service: BusinessUnitService = Depends(_service),
    search: str | None = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(25, ge=1, le=100),
) -> BusinessUnitListResponse:
    """List the business units of the tenant."""
    units, total = await service.list_units(offset=offset, limit=limit, search=search)
    return BusinessUnitListResponse(items=[_to_response(unit) for unit in units], total=total)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BusinessUnitResponse,
    dependencies=[Depends(require_permission("business-units", "create"))],
    responses={409: {"description": "Slug already used in the tenant"}},
)
async def create_business_unit(
    body: BusinessUnitCreateRequest,
    service: BusinessUnitService = Depends(_service),
) -> BusinessUnitResponse:
    business_unit = await service.create(
        name=body.name,
        slug=body.slug,
        description=body.description,
        settings=body.settings,
    )
    return _to_response(business_unit)


@router.get(
    "/{business_unit_id}",
    response_model=BusinessUnitResponse,
    dependencies=[Depends(require_permission("business-units", "read"))],
)
async def get_business_unit(
    business_unit_id: str, service: BusinessUnitService = Depends(_service)
) -> BusinessUnitResponse:
    return _to_response(await service.get(business_unit_id))


@router.patch(
    "/{business_unit_id}",
    response_model=BusinessUnitResponse,
    dependencies=[Depends(require_permission("business-units", "update"))],
)
async def update_business_unit(
    business_unit_id: str,
    body: BusinessUnitUpdateRequest,
    service: BusinessUnitService = Depends(_service),
) -> BusinessUnitResponse:
    business_unit = await service.update(
        business_unit_id,
        name=body.name,
        slug=body.slug,
        description=body.description,
        settings=body.settings,
    )
    return _to_response(business_unit)


@router.delete(
    "/{business_unit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("business-units", "delete"))],
)
async def delete_business_unit(
    business_unit_id: str, service: BusinessUnitService = Depends(_service)
) -> Response:
    """Delete a business unit together with its assignments and assets."""
    await service.delete(business_unit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{business_unit_id}/members",
    response_model=list[MemberResponse],
    dependencies=[Depends(require_permission("business-units", "read"))],
)
async def list_members(
    business_unit_id: str, service: BusinessUnitService = Depends(_service)
) -> list[MemberResponse]:
    return [_member(assignment) for assignment in await service.list_members(business_unit_id)]


@router.post(
    "/{business_unit_id}/members",
    status_code=status.HTTP_201_CREATED,
    response_model=MemberResponse,
    dependencies=[Depends(require_permission("users", "update"))],
)
async def assign_member(
    business_unit_id: str,
    body: MemberAssignRequest,
    service: BusinessUnitService = Depends(_service),
) -> MemberResponse:
    """Assign a user of the tenant to the business unit with a role."""
    assignment = await service.assign_member(business_unit_id, body.user_id, body.role_id)
    return _member(assignment)


@router.delete(
    "/{business_unit_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permission("users", "update"))],
)
async def remove_member(
    business_unit_id: str,
    user_id: str,
    service: BusinessUnitService = Depends(_service),
) -> Response:
    await service.remove_member(business_unit_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
