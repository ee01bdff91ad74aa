"""Middleware binding the request context.

Two modes:

- Strict (all paths by default): the context is built from the principal
  the authentication middleware resolved. Without a principal the request
  proceeds with no context; tenant headers are ignored.
- Trusted header (paths under ``settings.trusted_context_paths``): the
  context is built from the tenant and business unit headers of a trusted
  system caller. The headers are validated against the database first; only
  a ``ValidatedTenant`` can be bound.

The binding lasts for the downstream call and is reset afterwards.
"""

from dataclasses import dataclass, field

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from rentbase.core.context import RequestContext, context_scope
from rentbase.core.exceptions import (
    BusinessUnitNotFound,
    MissingContextHeader,
    RentBaseError,
    TenantInactive,
    TenantNotFound,
)
from rentbase.core.logging import get_logger
from rentbase.domain.entities.tenant import TenantStatus
from rentbase.infrastructure.persistence.database import DatabaseManager
from rentbase.infrastructure.persistence.repositories import (
    BusinessUnitRepository,
    TenantRepository,
)

logger = get_logger(__name__)

_VALIDATOR_SEAL = object()

_STATUS_CODES: dict[type[RentBaseError], int] = {
    MissingContextHeader: 400,
    TenantNotFound: 404,
    BusinessUnitNotFound: 404,
    TenantInactive: 403,
}


@dataclass(frozen=True)
class ValidatedTenant:
    """Tenant and business unit taken from headers and checked to exist.

    Only ``TenantHeaderValidator.validate`` produces instances.
    """

    tenant_id: str
    tenant_name: str
    business_unit_id: str | None = None
    _seal: object = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self._seal is not _VALIDATOR_SEAL:
            raise TypeError("ValidatedTenant is only produced by TenantHeaderValidator")

    def to_context(self, request_id: str | None = None) -> RequestContext:
        """Context for the trusted system caller."""
        return RequestContext.for_system(
            self.tenant_id,
            business_unit_id=self.business_unit_id,
            request_id=request_id,
        )


class TenantHeaderValidator:
    """Check the tenant headers of a trusted system call.

    Args:
        database: Database manager for the lookups.
        tenant_header: Header naming the tenant.
        business_unit_header: Header naming the business unit (optional).
    """

    def __init__(
        self,
        database: DatabaseManager,
        tenant_header: str = "X-Tenant-Id",
        business_unit_header: str = "X-Business-Unit-Id",
    ) -> None:
        self.database = database
        self.tenant_header = tenant_header
        self.business_unit_header = business_unit_header

    async def validate(self, request: Request) -> ValidatedTenant:
        """Validate the headers of ``request``.

        Returns:
            ValidatedTenant: The tenant (and business unit) to bind.

        Raises:
            MissingContextHeader: No tenant header.
            TenantNotFound: The tenant does not exist.
            TenantInactive: The tenant is suspended or cancelled.
            BusinessUnitNotFound: The business unit is not in the tenant.
        """
        tenant_id = (request.headers.get(self.tenant_header) or "").strip()
        if not tenant_id:
            raise MissingContextHeader(self.tenant_header)
        business_unit_id = (request.headers.get(self.business_unit_header) or "").strip() or None

        async with self.database.session() as session:
            tenant = await TenantRepository(session).get_by_id(tenant_id)
            if tenant is None:
                raise TenantNotFound(tenant_id)
            if tenant.status != TenantStatus.ACTIVE.value:
                raise TenantInactive(tenant_id, tenant.status)

            if business_unit_id is not None:
                with context_scope(RequestContext.for_system(tenant_id)):
                    business_unit = await BusinessUnitRepository(session).get_by_id(business_unit_id)
                if business_unit is None:
                    raise BusinessUnitNotFound(business_unit_id)

        return ValidatedTenant(
            tenant_id=tenant.id,
            tenant_name=tenant.name,
            business_unit_id=business_unit_id,
            _seal=_VALIDATOR_SEAL,
        )


def is_trusted_path(path: str, prefixes: list[str]) -> bool:
    """Whether ``path`` equals or lies under one of ``prefixes``."""
    for prefix in prefixes:
        prefix = prefix.rstrip("/")
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


class ContextMiddleware(BaseHTTPMiddleware):
    """Middleware to bind the request context for every request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Bind the context and call the rest of the stack.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint to call.

        Returns:
            The response from the application.
        """
        settings = request.app.state.settings
        request_id = getattr(request.state, "correlation_id", None)

        if is_trusted_path(request.url.path, settings.trusted_context_paths):
            validator = TenantHeaderValidator(
                request.app.state.db,
                tenant_header=settings.tenant_header,
                business_unit_header=settings.business_unit_header,
            )
            try:
                validated = await validator.validate(request)
            except tuple(_STATUS_CODES) as e:
                logger.info(
                    "Trusted context rejected",
                    path=request.url.path,
                    error=e.message,
                )
                return JSONResponse(
                    status_code=_STATUS_CODES[type(e)],
                    content={"error": type(e).__name__, "detail": e.message},
                )
            request.state.validated_tenant = validated
            context = validated.to_context(request_id)
        else:
            principal = getattr(request.state, "principal", None)
            if principal is None:
                return await call_next(request)
            context = RequestContext.from_principal(principal, request_id=request_id)

        with context_scope(context):
            return await call_next(request)
