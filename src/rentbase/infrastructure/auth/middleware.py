"""Authentication middleware for RentBase.

Resolves the principal of every request and stores it on
``request.state.principal``. Rejected credentials are stored on
``request.state.auth_error``; the request proceeds and the
``get_current_principal`` dependency answers 401/403 where a principal is
required.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from rentbase.core.logging import get_logger
from rentbase.infrastructure.auth.authenticator import AuthenticationError, Authenticator

logger = get_logger(__name__)

PUBLIC_PATHS = frozenset({"/health", "/ready"})


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Middleware to authenticate all requests."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Authenticate the request and enrich request state.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint to call.

        Returns:
            The response from the application.
        """
        request.state.principal = None
        request.state.auth_error = None

        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        authenticator = Authenticator(
            request.app.state.jwt,
            business_unit_header=request.app.state.settings.business_unit_header,
        )
        try:
            async with request.app.state.db.session() as session:
                request.state.principal = await authenticator.authenticate(request.headers, session)
        except AuthenticationError as e:
            logger.debug(
                "Authentication failed in middleware",
                error=e.message,
                status_code=e.status_code,
                path=request.url.path,
            )
            request.state.auth_error = e

        return await call_next(request)
