"""
API request and response models for the SSO RPC endpoints.

These Pydantic v2 models define the wire contract. They are intentionally
separate from the dataclasses in auth/models.py, which own the internal
domain representation. Route handlers map between the two.

Request fields all default to their zero value ("" or 0). A missing field
therefore reaches the per-operation validators in api/routes/v1/auth.py,
which report it by name, instead of failing inside Pydantic with a generic
"field required".

Ids are StrictInt: JSON booleans, floats and numeric strings are rejected
rather than coerced, as an int32/int64 wire field would.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = ""
    password: str = ""
    app_id: StrictInt = Field(default=0, ge=INT32_MIN, le=INT32_MAX)


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    email: str = ""
    password: str = ""


class IsAdminRequest(BaseModel):
    """Request body for POST /api/v1/auth/is-admin."""

    user_id: StrictInt = Field(default=0, ge=INT64_MIN, le=INT64_MAX)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int


class IsAdminResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_admin: bool


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
