"""Middleware recording successful mutating requests in the audit log.

Runs inside the context middleware, so the context bound for the request is
still available once the endpoint has answered. Requests without a tenant
(anonymous calls, platform super-principals) are not recorded.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from rentbase.core.context import RequestContext, get_context_or_none
from rentbase.core.logging import get_logger
from rentbase.infrastructure.persistence.models import AuditLogModel
from rentbase.infrastructure.persistence.repositories import AuditLogRepository

logger = get_logger(__name__)

AUDITED_ACTIONS = {
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "DELETE": "delete",
}


def describe_path(path: str, api_prefix: str) -> tuple[str, str | None]:
    """Split a request path into the audited entity and its identifier.

    Example:
        ``/api/v1/roles/r1/permissions`` gives ``("roles", "r1")``.
    """
    if path.startswith(api_prefix):
        path = path[len(api_prefix):]
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return "unknown", None
    return segments[0], segments[1] if len(segments) > 1 else None


def build_entry(request: Request, response: Response, context: RequestContext) -> AuditLogModel:
    """Audit row for a completed request."""
    entity, entity_id = describe_path(request.url.path, request.app.state.settings.api_prefix)
    return AuditLogModel(
        tenant_id=context.tenant_id,
        business_unit_id=context.business_unit_id,
        user_id=context.user_id,
        action=AUDITED_ACTIONS[request.method],
        entity=entity,
        entity_id=entity_id,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        request_id=context.request_id,
    )


class AuditMiddleware(BaseHTTPMiddleware):
    """Middleware writing one audit row per successful mutating request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        if request.method not in AUDITED_ACTIONS or response.status_code >= 400:
            return response
        context = get_context_or_none()
        if context is None or not context.tenant_id:
            return response

        try:
            async with request.app.state.db.session() as session:
                await AuditLogRepository(session).record(build_entry(request, response, context))
                await session.commit()
        except Exception as e:
            # The mutation already happened; a lost audit row must not fail it.
            logger.error(
                "Failed to write audit log",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
        return response
