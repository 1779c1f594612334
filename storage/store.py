"""
storage/store.py -- SQLAlchemy Core persistence layer for users and apps.

Pattern: Repository + Data Mapper.
AuthStore is the repository; _row_to_user / _row_to_app are the mappers.
The auth service and API routes never touch SQL directly.

AuthStore satisfies the three collaborator contracts AuthService consumes:
  UserSaver    -- save_user()
  UserProvider -- user(), is_admin()
  AppProvider  -- app()
plus operator-only helpers (create_app, set_admin) used by the CLI.

Error contract:
  Lookups raise UserNotFound / AppNotFound instead of returning None, and a
  duplicate email raises UserExists. Every other SQLAlchemyError is wrapped
  in StorageError so callers only ever see storage.errors types.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Email uniqueness is a UNIQUE constraint, so two concurrent registrations
  for the same address cannot both succeed.

Layer rule: imports auth/models only. No imports from api/ or core/.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    create_engine,
    event,
    false,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import App, User
from storage.errors import AppExists, AppNotFound, StorageError, UserExists, UserNotFound

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("pass_hash", LargeBinary, nullable=False),
    Column("is_admin", Boolean, nullable=False, server_default=false()),
)

_apps = Table(
    "apps",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("secret", LargeBinary, nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuthStore:
    """Repository for User and App records.

    Usage:
        store = AuthStore("sqlite:///./sso.db")
        app_id = store.create_app("web", b"...secret...")
        uid = store.save_user("a@x.com", pass_hash)
        user = store.user("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        try:
            _metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"storage.init: {exc}") from exc

    # ------------------------------------------------------------------
    # User contracts
    # ------------------------------------------------------------------

    def save_user(self, email: str, pass_hash: bytes) -> int:
        """Insert a new user and return its assigned ID.

        Raises UserExists if the email is already registered.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.insert().values(email=email, pass_hash=pass_hash, is_admin=False))
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise UserExists(f"storage.save_user: {email!r} already registered") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"storage.save_user: {exc}") from exc

    def user(self, email: str) -> User:
        """Look up a user by exact email. Raises UserNotFound if absent."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        except SQLAlchemyError as exc:
            raise StorageError(f"storage.user: {exc}") from exc
        if row is None:
            raise UserNotFound(f"storage.user: no user with email {email!r}")
        return _row_to_user(row)

    def is_admin(self, user_id: int) -> bool:
        """Return the admin flag for user_id. Raises UserNotFound if absent."""
        try:
            with self.engine.connect() as conn:
                flag = conn.execute(select(_users.c.is_admin).where(_users.c.id == user_id)).fetchone()
        except SQLAlchemyError as exc:
            raise StorageError(f"storage.is_admin: {exc}") from exc
        if flag is None:
            raise UserNotFound(f"storage.is_admin: no user with id {user_id}")
        return bool(flag[0])

    # ------------------------------------------------------------------
    # App contract
    # ------------------------------------------------------------------

    def app(self, app_id: int) -> App:
        """Look up an app by primary key. Raises AppNotFound if absent."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_apps.select().where(_apps.c.id == app_id)).fetchone()
        except SQLAlchemyError as exc:
            raise StorageError(f"storage.app: {exc}") from exc
        if row is None:
            raise AppNotFound(f"storage.app: no app with id {app_id}")
        return _row_to_app(row)

    # ------------------------------------------------------------------
    # Operator helpers (CLI only -- not part of the service contracts)
    # ------------------------------------------------------------------

    def create_app(self, name: str, secret: bytes, app_id: int | None = None) -> int:
        """Provision a client app and return its ID.

        Raises AppExists if the name (or the explicit app_id) is taken.
        """
        values: dict = {"name": name, "secret": secret}
        if app_id is not None:
            values["id"] = app_id
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_apps.insert().values(**values))
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise AppExists(f"storage.create_app: app {name!r} already exists") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"storage.create_app: {exc}") from exc

    def set_admin(self, user_id: int, is_admin: bool) -> None:
        """Set the admin flag on an existing user. Raises UserNotFound if absent."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.update().where(_users.c.id == user_id).values(is_admin=is_admin))
                conn.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"storage.set_admin: {exc}") from exc
        if result.rowcount == 0:
            raise UserNotFound(f"storage.set_admin: no user with id {user_id}")

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        pass_hash=bytes(row.pass_hash),
        is_admin=bool(row.is_admin),
    )


def _row_to_app(row) -> App:
    return App(id=row.id, name=row.name, secret=bytes(row.secret))
