"""JWT token service.

Issues and validates the HS256 access tokens carrying the principal claims
(``user_id``, ``tenant_id``, ``business_unit_id``, ``global_role``).
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from rentbase.core.config import Settings


class JWTError(Exception):
    """Base exception for JWT-related errors."""


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""


class JWTService:
    """Create and validate access tokens.

    One instance is built by the application factory from the settings and
    kept on ``app.state.jwt``.
    """

    ALGORITHM = "HS256"
    ISSUER = "rentbase"
    REQUIRED_CLAIMS = ("user_id", "global_role")

    def __init__(self, secret_key: str, access_token_expire_minutes: int = 60) -> None:
        """Initialize the JWT service.

        Args:
            secret_key: Secret key for signing tokens.
            access_token_expire_minutes: Default token lifetime.
        """
        self.secret_key = secret_key
        self.access_token_expire_minutes = access_token_expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTService":
        return cls(settings.secret_key, settings.access_token_expire_minutes)

    def create_access_token(
        self,
        user_id: str,
        tenant_id: str | None,
        business_unit_id: str | None,
        global_role: str,
        email: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create an access token.

        Args:
            user_id: The user's unique identifier.
            tenant_id: Tenant of the user, None for super-principals.
            business_unit_id: Business unit selected at login, if any.
            global_role: USER or SUPER_ADMIN.
            email: The user's email address.
            expires_delta: Custom expiration time. Defaults to the configured
                lifetime.

        Returns:
            Encoded JWT access token.
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        payload = {
            "iss": self.ISSUER,
            "sub": user_id,
            "iat": now,
            "exp": now + expires_delta,
            "user_id": user_id,
            "tenant_id": tenant_id,
            "business_unit_id": business_unit_id,
            "global_role": global_role,
            "email": email,
            "type": "access",
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.ALGORITHM)

    def decode_token(self, token: str) -> dict[str, Any]:
        """Decode and validate a JWT token.

        Args:
            token: The encoded JWT token.

        Returns:
            Decoded token payload.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                issuer=self.ISSUER,
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid token") from e

    def validate_access_token(self, token: str) -> dict[str, Any]:
        """Decode an access token and check its claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid, not an access token
                or lacks a required claim.
        """
        payload = self.decode_token(token)
        if payload.get("type") != "access":
            raise InvalidTokenError("Not an access token")
        missing = [claim for claim in self.REQUIRED_CLAIMS if not payload.get(claim)]
        if missing:
            raise InvalidTokenError(f"Missing claim: {', '.join(missing)}")
        return payload

    def get_expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return self.access_token_expire_minutes * 60
