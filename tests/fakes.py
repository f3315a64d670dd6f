"""
tests/fakes.py -- In-memory test doubles for the storage protocols.

One fake per capability so service tests can mix a working provider with a
failing one. Shared by conftest.py fixtures and test modules that build
their own AuthService.
"""

from __future__ import annotations

from datetime import timedelta

from auth.errors import AppNotFoundError, UserExistsError, UserNotFoundError
from auth.models import App, User

TEST_TTL = timedelta(hours=1)

# ---------------------------------------------------------------------------
# Fakes -- one per storage capability
# ---------------------------------------------------------------------------


class FakeUserStore:
    """In-memory UserSaver + UserProvider + AdminProvider.

    save_user has no await between the uniqueness check and the insert, so
    it is atomic with respect to other coroutines on the same loop.
    """

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.admins: set[int] = set()
        self._next_id = 1

    async def save_user(self, email: str, pass_hash: bytes) -> int:
        if email in self.users:
            raise UserExistsError()
        user = User(id=self._next_id, email=email, pass_hash=pass_hash)
        self.users[email] = user
        self._next_id += 1
        return user.id

    async def get_user(self, email: str) -> User:
        try:
            return self.users[email]
        except KeyError:
            raise UserNotFoundError() from None

    async def is_admin(self, user_id: int) -> bool:
        if not any(u.id == user_id for u in self.users.values()):
            raise UserNotFoundError()
        return user_id in self.admins


class FakeAppStore:
    """In-memory AppProvider."""

    def __init__(self, *apps: App) -> None:
        self.apps = {a.id: a for a in apps}

    async def get_app(self, app_id: int) -> App:
        try:
            return self.apps[app_id]
        except KeyError:
            raise AppNotFoundError(app_id) from None


class BrokenStore:
    """Every operation fails the way an unreachable database would."""

    async def save_user(self, email: str, pass_hash: bytes) -> int:
        raise RuntimeError("connection refused: db.internal:5432")

    async def get_user(self, email: str) -> User:
        raise RuntimeError("connection refused: db.internal:5432")

    async def get_app(self, app_id: int) -> App:
        raise RuntimeError("connection refused: db.internal:5432")

    async def is_admin(self, user_id: int) -> bool:
        raise RuntimeError("connection refused: db.internal:5432")


APP_ONE = App(id=1, name="app-one", secret=b"a" * 32)
APP_TWO = App(id=2, name="app-two", secret=b"b" * 32)
