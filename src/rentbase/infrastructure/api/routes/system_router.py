"""Routes for trusted system callers.

Mounted under a trusted context path: the context comes from the tenant
headers validated by the context middleware, not from a bearer token.
"""

from fastapi import APIRouter, Request

from rentbase.core.context import get_context
from rentbase.infrastructure.api.schemas import SystemContextResponse

router = APIRouter()


@router.get("/context", response_model=SystemContextResponse)
async def system_context(request: Request) -> SystemContextResponse:
    """Echo the context bound for this call."""
    context = get_context()
    return SystemContextResponse(
        tenant_id=context.tenant_id,
        tenant_name=request.state.validated_tenant.tenant_name,
        business_unit_id=context.business_unit_id,
        user_id=context.user_id,
        is_system=context.is_system,
        request_id=context.request_id,
    )
