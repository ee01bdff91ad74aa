"""Authentication API schemas."""

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Request schema for login.

    Attributes:
        email: Login email.
        password: Plaintext password.
        business_unit_id: Business unit to act in. Defaults to the user's
            first assignment.
    """

    email: EmailStr
    password: str = Field(..., min_length=1)
    business_unit_id: str | None = None


class TokenResponse(BaseModel):
    """Response schema for a successful login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: str
    tenant_id: str | None = None
    business_unit_id: str | None = None


class MeResponse(BaseModel):
    """The authenticated principal and what it may do."""

    user_id: str
    email: str | None = None
    tenant_id: str | None = None
    business_unit_id: str | None = None
    global_role: str
    role: str | None = None
    permissions: list[str]
