"""
api/main.py -- FastAPI application entry point for the SSO service.

Run with:      python main.py serve
               uvicorn asgi:app

Lifespan builds the object graph once per process:
  Settings -> logger -> AuthStore -> BcryptHasher / JWTIssuer -> AuthService
and parks each piece on app.state. Route handlers only read app.state.
Shutdown closes the store. uvicorn turns SIGINT/SIGTERM into a graceful
lifespan shutdown, so no signal handling lives here.

Error mapping (AuthError -> transport status):
  ValidationError          -> 400 invalid_argument
  UserAlreadyExistsError   -> 409 already_exists
  AppNotFoundError         -> 404 not_found
  everything else          -> 500 internal, generic message

InvalidCredentialsError is deliberately folded into "internal": a client is
told the request failed, never why. The precise error kind is logged here,
server-side only.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.errors import AppNotFoundError, AuthError, UserAlreadyExistsError, ValidationError
from auth.passwords import BcryptHasher
from auth.service import AuthService
from auth.tokens import JWTIssuer
from core.config import get_settings
from core.logger import setup_logger
from storage.store import AuthStore

VERSION = "0.1.0"

logger = structlog.get_logger("sso.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the service graph on startup and release the store on shutdown."""
    settings = get_settings()
    log = setup_logger(settings.env)
    log.info("starting application", **settings.model_dump())

    store = AuthStore(settings.storage_path)
    app.state.store = store
    app.state.auth_service = AuthService(
        log=log,
        token_ttl=settings.token_ttl,
        user_saver=store,
        user_provider=store,
        app_provider=store,
        hasher=BcryptHasher(rounds=settings.bcrypt_rounds),
        issuer=JWTIssuer(),
    )
    log.info("auth service initialized", token_ttl=str(settings.token_ttl))

    yield

    store.close()
    log.info("application stopped")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="SSO",
    description="Email/password authentication issuing per-app signed session tokens.",
    version=VERSION,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time is captured around call_next to report latency.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        ms=round(ms, 1),
        client=request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------

# AuthError subclass -> (HTTP status, wire code). Anything not listed is internal.
_CLIENT_VISIBLE: dict[type[AuthError], tuple[int, str]] = {
    ValidationError: (400, "invalid_argument"),
    UserAlreadyExistsError: (409, "already_exists"),
    AppNotFoundError: (404, "not_found"),
}


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Translate a domain error into one of the transport outcomes."""
    for error_cls, (status_code, code) in _CLIENT_VISIBLE.items():
        if isinstance(exc, error_cls):
            logger.info("request rejected", path=request.url.path, code=exc.code, error=str(exc))
            message = str(exc) if isinstance(exc, ValidationError) else code.replace("_", " ")
            return _error_response(status_code, code, message)

    logger.error("request failed", path=request.url.path, code=exc.code, error=str(exc))
    return _error_response(500, "internal", "internal error")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 invalid_argument when the body is not JSON or a field has the wrong type."""
    errors = exc.errors()
    loc = errors[0].get("loc", ()) if errors else ()
    field = str(loc[-1]) if loc else "body"
    # Only the messages: "input" would echo request values such as passwords.
    detail = "; ".join(str(e.get("msg", "")) for e in errors)
    return _error_response(400, "invalid_argument", f"{field} is invalid", detail=detail or None)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404, 405, ...)."""
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("unhandled exception", method=request.method, path=request.url.path)
    return _error_response(500, "internal", "internal error")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and database reachability."""
    db_ok = request.app.state.store.ping()
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
