"""
api/routes/v1/auth.py -- RPC facade over AuthService.

Routes (unary, JSON in / JSON out):
  POST /api/v1/auth/login     -- {email, password, app_id} -> {token}
  POST /api/v1/auth/register  -- {email, password}         -> {user_id}
  POST /api/v1/auth/is-admin  -- {user_id}                 -> {is_admin}

Every handler runs its validate_* function before touching the service.
Validation is structural: each required field must be present and non-zero
(non-empty string, non-zero integer). The first offending field, in the
order listed above, is reported as "<field> is required". No semantic checks
(email format, password strength) happen here.

Domain errors raised by the service propagate out of the handlers and are
translated to transport status by the AuthError handler in api/main.py.

Handlers are plain `def` so FastAPI runs each call in its worker thread pool;
the service and store are safe to share across those threads.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from api.models import (
    IsAdminRequest,
    IsAdminResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)
from auth.errors import ValidationError
from auth.service import AuthService

router = APIRouter()


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


def validate_login(body: LoginRequest) -> None:
    if not body.email:
        raise ValidationError("email")
    if not body.password:
        raise ValidationError("password")
    if body.app_id == 0:
        raise ValidationError("app_id")


def validate_register(body: RegisterRequest) -> None:
    if not body.email:
        raise ValidationError("email")
    if not body.password:
        raise ValidationError("password")


def validate_is_admin(body: IsAdminRequest) -> None:
    if body.user_id == 0:
        raise ValidationError("user_id")


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> LoginResponse:
    """Exchange email + password for a token scoped to app_id."""
    validate_login(body)
    token = _service(request).login(body.email, body.password, body.app_id)
    return LoginResponse(token=token)


@router.post("/auth/register", response_model=RegisterResponse)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Create a user and return its id."""
    validate_register(body)
    user_id = _service(request).register_new_user(body.email, body.password)
    return RegisterResponse(user_id=user_id)


@router.post("/auth/is-admin", response_model=IsAdminResponse)
def is_admin(request: Request, body: IsAdminRequest) -> IsAdminResponse:
    """Report whether user_id holds the admin flag."""
    validate_is_admin(body)
    return IsAdminResponse(is_admin=_service(request).is_admin(body.user_id))
