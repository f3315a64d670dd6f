"""
auth/storage.py -- Storage contract consumed by the auth service.

Four narrow capability interfaces instead of one broad data-access object.
The service depends only on the operations it calls, and tests can supply
a fake per capability. One concrete store (auth/store.py SqlStore)
satisfies all four.

Invariants:
    - Each operation is atomic on its own; the service never locks around them.
    - Email uniqueness is enforced by the saver (UserExistsError), not by the
      service.
    - Methods are async because implementations do I/O. Cancelling the
      awaiting task abandons the call.

Design decisions:
    - Protocol over ABC: structural subtyping, implementations do not inherit.
"""

from __future__ import annotations

from typing import Protocol

from auth.models import App, User


class UserSaver(Protocol):
    async def save_user(self, email: str, pass_hash: bytes) -> int:
        """Persist a new user and return its id. Raises UserExistsError."""
        ...


class UserProvider(Protocol):
    async def get_user(self, email: str) -> User:
        """Fetch a user by exact email. Raises UserNotFoundError."""
        ...


class AppProvider(Protocol):
    async def get_app(self, app_id: int) -> App:
        """Fetch an app, including its signing secret. Raises AppNotFoundError."""
        ...


class AdminProvider(Protocol):
    async def is_admin(self, user_id: int) -> bool:
        """Return the user's admin flag. Raises UserNotFoundError for unknown ids."""
        ...
