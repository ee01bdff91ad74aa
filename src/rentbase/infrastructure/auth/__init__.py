"""Authentication infrastructure components.

Password hashing, JWT tokens and the principal resolution performed by the
authentication middleware.
"""

from rentbase.infrastructure.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
)
from rentbase.infrastructure.auth.password_hasher import (
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "TokenExpiredError",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
