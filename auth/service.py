"""
auth/service.py -- Login, registration, and admin-check use cases.

AuthService orchestrates four collaborators it only knows by contract:

  UserSaver / UserProvider -- the user directory (save, find by email, admin flag)
  AppProvider              -- the app registry (find by id)
  PasswordHasher           -- auth.passwords
  TokenIssuer              -- auth.tokens

Each use case runs a fixed sequential pipeline and translates collaborator
failures into the auth.errors taxonomy:

  not found (user)   -> InvalidCredentialsError  (never reveals which emails exist)
  not found (app)    -> AppNotFoundError         (operator error, not a guessing vector)
  duplicate email    -> UserAlreadyExistsError
  anything else      -> InternalError

Every raised error is prefixed with the operation tag and chained to its
cause, and every use case logs through a structlog logger with op plus
email or user_id bound.

Security:
  login() runs bcrypt even when the email is unknown, against a dummy hash
  computed once at construction. Response time therefore does not reveal
  whether an address is registered.

Concurrency: the service holds only immutable references after __init__,
so a single instance is shared by every request worker thread.

Layer rule: may import storage/errors (the collaborator error contract).
No imports from api/ or core/.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Protocol

from structlog.typing import FilteringBoundLogger

from auth.errors import (
    AppNotFoundError,
    HashingError,
    InternalError,
    InvalidCredentialsError,
    MalformedHashError,
    SigningError,
    UserAlreadyExistsError,
)
from auth.models import App, User
from auth.passwords import PasswordHasher
from auth.tokens import TokenIssuer
from storage.errors import AppNotFound, StorageError, UserExists, UserNotFound

_DUMMY_PASSWORD = "sso_timing_dummy"


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------


class UserSaver(Protocol):
    def save_user(self, email: str, pass_hash: bytes) -> int:
        """Persist a user. Raises UserExists on a duplicate email."""
        ...


class UserProvider(Protocol):
    def user(self, email: str) -> User:
        """Raises UserNotFound if no user has this email."""
        ...

    def is_admin(self, user_id: int) -> bool:
        """Raises UserNotFound if no user has this id."""
        ...


class AppProvider(Protocol):
    def app(self, app_id: int) -> App:
        """Raises AppNotFound if no app has this id."""
        ...


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AuthService:
    def __init__(
        self,
        log: FilteringBoundLogger,
        token_ttl: timedelta,
        user_saver: UserSaver,
        user_provider: UserProvider,
        app_provider: AppProvider,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
    ) -> None:
        self._log = log
        self._token_ttl = token_ttl
        self._user_saver = user_saver
        self._user_provider = user_provider
        self._app_provider = app_provider
        self._hasher = hasher
        self._issuer = issuer
        # Computed once so the first unknown-email login is not measurably
        # slower than later ones.
        self._dummy_hash = hasher.hash(_DUMMY_PASSWORD)

    @property
    def token_ttl(self) -> timedelta:
        return self._token_ttl

    def login(self, email: str, password: str, app_id: int) -> str:
        """Check credentials and return a token scoped to app_id.

        Raises:
            InvalidCredentialsError: unknown email or wrong password.
            AppNotFoundError:        app_id does not resolve.
            InternalError:           storage, hash, or signing failure.
        """
        op = "auth.login"
        log = self._log.bind(op=op, email=email)
        log.info("attempting to login user")

        try:
            user = self._user_provider.user(email)
        except UserNotFound as exc:
            self._hasher.verify(self._dummy_hash, password)
            log.bind(error=str(exc)).warning("user not found")
            raise InvalidCredentialsError(f"{op}: invalid credentials") from exc
        except StorageError as exc:
            log.bind(error=str(exc)).error("failed to get user")
            raise InternalError(f"{op}: {exc}") from exc

        try:
            matched = self._hasher.verify(user.pass_hash, password)
        except MalformedHashError as exc:
            log.bind(error=str(exc), user_id=user.id).error("stored password hash is malformed")
            raise InternalError(f"{op}: {exc}") from exc
        if not matched:
            log.bind(user_id=user.id).warning("invalid credentials")
            raise InvalidCredentialsError(f"{op}: invalid credentials")

        try:
            app = self._app_provider.app(app_id)
        except AppNotFound as exc:
            log.bind(error=str(exc), app_id=app_id).error("app not found")
            raise AppNotFoundError(f"{op}: app {app_id} not found") from exc
        except StorageError as exc:
            log.bind(error=str(exc), app_id=app_id).error("failed to get app")
            raise InternalError(f"{op}: {exc}") from exc

        try:
            token = self._issuer.issue(user, app, self._token_ttl)
        except SigningError as exc:
            log.bind(error=str(exc), app_id=app_id).error("failed to generate token")
            raise InternalError(f"{op}: {exc}") from exc

        log.bind(user_id=user.id, app_id=app.id).info("user logged in successfully")
        return token

    def register_new_user(self, email: str, password: str) -> int:
        """Hash the password, persist the user, and return the new user id.

        Nothing is written if hashing fails.

        Raises:
            UserAlreadyExistsError: email is already registered.
            InternalError:          hash or storage failure.
        """
        op = "auth.register_new_user"
        log = self._log.bind(op=op, email=email)
        log.info("registering user")

        try:
            pass_hash = self._hasher.hash(password)
        except HashingError as exc:
            log.bind(error=str(exc)).error("failed to generate password hash")
            raise InternalError(f"{op}: {exc}") from exc

        try:
            user_id = self._user_saver.save_user(email, pass_hash)
        except UserExists as exc:
            log.bind(error=str(exc)).warning("user already exists")
            raise UserAlreadyExistsError(f"{op}: user already exists") from exc
        except StorageError as exc:
            log.bind(error=str(exc)).error("failed to save user")
            raise InternalError(f"{op}: {exc}") from exc

        log.bind(user_id=user_id).info("user registered")
        return user_id

    def is_admin(self, user_id: int) -> bool:
        """Return whether user_id holds the admin flag.

        Raises:
            InvalidCredentialsError: user_id does not resolve.
            InternalError:           storage failure.
        """
        op = "auth.is_admin"
        log = self._log.bind(op=op, user_id=user_id)
        log.info("checking if user is admin")

        try:
            is_admin = self._user_provider.is_admin(user_id)
        except UserNotFound as exc:
            log.bind(error=str(exc)).warning("user not found")
            raise InvalidCredentialsError(f"{op}: invalid credentials") from exc
        except StorageError as exc:
            log.bind(error=str(exc)).error("failed to get admin status")
            raise InternalError(f"{op}: {exc}") from exc

        log.bind(is_admin=is_admin).info("checked if user is admin")
        return is_admin
