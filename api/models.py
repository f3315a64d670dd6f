"""
API request and response models for the SSO REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request models reject unknown fields (extra="forbid") so a typo such as
"appId" fails loudly instead of being silently ignored.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.passwords import MAX_PASSWORD_BYTES

# Ids are stored as signed 64-bit SQL integers.
MAX_ID = 2**63 - 1

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class _CredentialsBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """bcrypt reads at most 72 bytes. Counted in UTF-8 bytes, not characters."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(_CredentialsBody):
    """Request body for POST /api/v1/auth/login."""

    app_id: int = Field(gt=0, le=MAX_ID, description="Id of the app the token is issued for.")


class RegisterRequest(_CredentialsBody):
    """Request body for POST /api/v1/auth/register."""


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    token: str


class RegisterResponse(BaseModel):
    user_id: int


class IsAdminResponse(BaseModel):
    user_id: int
    is_admin: bool


class VerifyResponse(BaseModel):
    """Identity carried by a valid token, for the app it was checked against."""

    user_id: int
    app_id: int


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: str | None = None


class ErrorResponse(BaseModel):
    """Uniform error body: {"error": {"code": ..., "message": ..., "detail": ...}}."""

    error: ErrorDetail
