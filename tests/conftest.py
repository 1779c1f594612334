"""
tests/conftest.py -- Shared test fixtures for the SSO service.

This module provides:
  - In-memory fakes for the three collaborator contracts (FakeDirectory,
    FakeApps) so service tests run without SQLAlchemy
  - hasher: BcryptHasher at the minimum work factor (4) for speed
  - app_secret / token_ttl: the signing secret of app 1 and the service TTL
  - build_service: AuthService factory over caller-supplied collaborators
  - service: AuthService wired to the fakes, with one app (id=1) provisioned
  - _make_test_store(): named shared-memory SQLite AuthStore
  - api_client: TestClient over the real FastAPI app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from datetime import timedelta

import pytest
import structlog
from fastapi.testclient import TestClient

from api.main import app
from auth.models import App, User
from auth.passwords import BcryptHasher
from auth.service import AuthService
from auth.tokens import JWTIssuer
from storage.errors import AppNotFound, UserExists, UserNotFound
from storage.store import AuthStore

TEST_TTL = timedelta(minutes=15)
APP_SECRET = b"test-app-secret-0123456789abcdef"

# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class FakeDirectory:
    """UserSaver + UserProvider over a dict. Ids are assigned from 1."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    def save_user(self, email: str, pass_hash: bytes) -> int:
        if email in self.users:
            raise UserExists(email)
        user = User(id=len(self.users) + 1, email=email, pass_hash=pass_hash)
        self.users[email] = user
        return user.id

    def user(self, email: str) -> User:
        try:
            return self.users[email]
        except KeyError:
            raise UserNotFound(email) from None

    def is_admin(self, user_id: int) -> bool:
        for user in self.users.values():
            if user.id == user_id:
                return user.is_admin
        raise UserNotFound(str(user_id))


class FakeApps:
    def __init__(self, *apps: App) -> None:
        self.apps = {a.id: a for a in apps}

    def app(self, app_id: int) -> App:
        try:
            return self.apps[app_id]
        except KeyError:
            raise AppNotFound(str(app_id)) from None


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    """Undo any structlog configuration a test installed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def hasher() -> BcryptHasher:
    return BcryptHasher(rounds=4)


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def apps() -> FakeApps:
    return FakeApps(App(id=1, name="web", secret=APP_SECRET))


@pytest.fixture
def app_secret() -> bytes:
    return APP_SECRET


@pytest.fixture
def token_ttl() -> timedelta:
    return TEST_TTL


@pytest.fixture
def build_service() -> Callable[..., AuthService]:
    """Factory for an AuthService over caller-supplied collaborators.

    Tests pass MagicMock directories, app registries, hashers or issuers to
    force a specific failure path.
    """

    def _build(directory, apps, hasher, issuer=None) -> AuthService:
        return AuthService(
            log=structlog.get_logger("sso.test"),
            token_ttl=TEST_TTL,
            user_saver=directory,
            user_provider=directory,
            app_provider=apps,
            hasher=hasher,
            issuer=issuer or JWTIssuer(),
        )

    return _build


@pytest.fixture
def service(directory: FakeDirectory, apps: FakeApps, hasher: BcryptHasher, build_service) -> AuthService:
    return build_service(directory, apps, hasher)


# ---------------------------------------------------------------------------
# Store / API helpers
# ---------------------------------------------------------------------------


def _make_test_store(db_suffix: str) -> AuthStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return AuthStore(db_url=f"sqlite:///file:test_sso_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: AuthStore, service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-built store and service into app.state so TestClient routes
    see the isolated test DB rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.auth_service = service
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, AuthStore], None, None]:
    """Yield (client, store) for API integration tests.

    The TestClient uses the real FastAPI app, real AuthStore (in-memory) and
    real AuthService. One app is provisioned: id=1, name="web".
    Each test module gets its own database, so the first user a module
    registers is always id 1.
    """
    store = _make_test_store(request.module.__name__.rsplit(".", 1)[-1])
    store.create_app("web", APP_SECRET, app_id=1)
    service = AuthService(
        log=structlog.get_logger("sso.test"),
        token_ttl=TEST_TTL,
        user_saver=store,
        user_provider=store,
        app_provider=store,
        hasher=BcryptHasher(rounds=4),
        issuer=JWTIssuer(),
    )

    app.router.lifespan_context = _patch_lifespan(store, service)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store

    store.close()
