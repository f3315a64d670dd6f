"""
auth/store.py -- SQLAlchemy Core persistence layer for users and apps.

Pattern: Repository + Data Mapper. SqlStore is the repository; _row_to_user /
_row_to_app are the mappers. The service never touches SQL directly -- it
sees SqlStore only through the narrow protocols in auth/storage.py
(UserSaver, UserProvider, AppProvider, AdminProvider), all of which this
class satisfies.

Async boundary:
  The protocol methods are async. Each one runs its blocking SQLAlchemy call
  in a worker thread via asyncio.to_thread, so slow disk I/O does not stall
  the event loop and the awaiting task can be cancelled. Operator methods
  (create_app, set_admin, get_user_by_id) stay synchronous for the CLI.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email uniqueness is a UNIQUE constraint on users.email. Concurrent inserts
  for the same email race inside SQLite, exactly one wins, and the losers get
  IntegrityError, which is translated to UserExistsError. No application-level
  lock is involved.

DB path: ./storage/sso.db by default (see core.config.Settings.database_url).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Boolean, Column, Integer, LargeBinary, MetaData, String, Table, create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import AppNotFoundError, UserExistsError, UserNotFoundError
from auth.models import App, User

logger = logging.getLogger("sso.store")

_DEFAULT_DB_URL = "sqlite:///./storage/sso.db"

# Secret length for apps created without an explicit secret (HS256 key size).
_APP_SECRET_BYTES = 32

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),  # case-sensitive
    Column("pass_hash", LargeBinary, nullable=False),
    Column("is_admin", Boolean, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
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
    """Enable WAL journal mode so readers do not block behind a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ensure_sqlite_dir(db_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    database = make_url(db_url).database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).parent.mkdir(parents=True, exist_ok=True)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SqlStore:
    """Repository for User and App entities.

    Usage:
        store = SqlStore("sqlite:///./storage/sso.db")
        app = store.create_app("billing")
        user_id = await store.save_user("alice@example.com", pass_hash)
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        is_sqlite = db_url.startswith("sqlite")
        if is_sqlite:
            connect_args["check_same_thread"] = False
            _ensure_sqlite_dir(db_url)
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if is_sqlite:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # UserSaver / UserProvider / AdminProvider
    # ------------------------------------------------------------------

    async def save_user(self, email: str, pass_hash: bytes) -> int:
        return await asyncio.to_thread(self._insert_user, email, pass_hash)

    async def get_user(self, email: str) -> User:
        user = await asyncio.to_thread(self._select_user, _users.c.email == email)
        if user is None:
            raise UserNotFoundError()
        return user

    async def is_admin(self, user_id: int) -> bool:
        user = await asyncio.to_thread(self.get_user_by_id, user_id)
        if user is None:
            raise UserNotFoundError()
        return user.is_admin

    # ------------------------------------------------------------------
    # AppProvider
    # ------------------------------------------------------------------

    async def get_app(self, app_id: int) -> App:
        app = await asyncio.to_thread(self._select_app, app_id)
        if app is None:
            raise AppNotFoundError(app_id)
        return app

    # ------------------------------------------------------------------
    # Operator operations (synchronous, used by main.py and tests)
    # ------------------------------------------------------------------

    def get_user_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        return self._select_user(_users.c.id == user_id)

    def set_admin(self, user_id: int, is_admin: bool = True) -> bool:
        """Grant or revoke the admin flag.

        Returns True if a row was updated, False if user_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(is_admin=is_admin))
            conn.commit()
        logger.info("Admin flag for user %d set to %s (updated=%s)", user_id, is_admin, result.rowcount > 0)
        return result.rowcount > 0

    def create_app(self, name: str, secret: bytes | None = None) -> App:
        """Provision a client app and return it.

        A random 256-bit secret is generated when none is given. Raises
        sqlalchemy.exc.IntegrityError if the name is already taken.
        """
        secret = secret if secret is not None else secrets.token_bytes(_APP_SECRET_BYTES)
        with self.engine.connect() as conn:
            result = conn.execute(_apps.insert().values(name=name, secret=secret))
            conn.commit()
            app_id = result.inserted_primary_key[0]
        logger.info("Created app %d (%s)", app_id, name)
        return App(id=app_id, name=name, secret=secret)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database ping failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Blocking queries
    # ------------------------------------------------------------------

    def _insert_user(self, email: str, pass_hash: bytes) -> int:
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        email=email,
                        pass_hash=pass_hash,
                        is_admin=False,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise UserExistsError() from exc

    def _select_user(self, clause) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(clause)).fetchone()
        return _row_to_user(row) if row is not None else None

    def _select_app(self, app_id: int) -> App | None:
        with self.engine.connect() as conn:
            row = conn.execute(_apps.select().where(_apps.c.id == app_id)).fetchone()
        return _row_to_app(row) if row is not None else None


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
