"""Asset API routes.

Assets live in a business unit; every route needs one in the context.
"""

from fastapi import APIRouter, Depends, Query, status

from rentbase.core.exceptions import EntityNotFound
from rentbase.infrastructure.api.dependencies import BusinessUnitId, DbSession, require_permission
from rentbase.infrastructure.api.schemas import AssetCreateRequest, AssetListResponse, AssetResponse
from rentbase.infrastructure.persistence.models import AssetModel
from rentbase.infrastructure.persistence.repositories import AssetRepository

router = APIRouter()


def _to_response(asset: AssetModel) -> AssetResponse:
    return AssetResponse(
        id=asset.id,
        tenant_id=asset.tenant_id,
        business_unit_id=asset.business_unit_id,
        name=asset.name,
        serial_number=asset.serial_number,
        status=asset.status,
    )


@router.get(
    "",
    response_model=AssetListResponse,
    dependencies=[Depends(require_permission("assets", "read"))],
)
async def list_assets(
    business_unit_id: BusinessUnitId,
    session: DbSession,
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
) -> AssetListResponse:
    repo = AssetRepository(session)
    assets = await repo.list_page(offset=offset, limit=limit)
    return AssetListResponse(items=[_to_response(asset) for asset in assets], total=await repo.count())


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=AssetResponse,
    dependencies=[Depends(require_permission("assets", "create"))],
)
async def create_asset(
    body: AssetCreateRequest,
    business_unit_id: BusinessUnitId,
    session: DbSession,
) -> AssetResponse:
    """Register an asset in the context business unit."""
    asset = AssetModel(name=body.name, serial_number=body.serial_number, status=body.status)
    try:
        await AssetRepository(session).create(asset)
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    return _to_response(asset)


@router.get(
    "/{asset_id}",
    response_model=AssetResponse,
    dependencies=[Depends(require_permission("assets", "read"))],
)
async def get_asset(asset_id: str, business_unit_id: BusinessUnitId, session: DbSession) -> AssetResponse:
    asset = await AssetRepository(session).get_by_id(asset_id)
    if asset is None:
        raise EntityNotFound("Asset", asset_id)
    return _to_response(asset)
