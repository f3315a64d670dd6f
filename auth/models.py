"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store and the service do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class User:
    """An end-user identity shared by every app.

    email is unique and compared case-sensitively, exactly as stored.
    is_admin is a per-user flag set only by the operator path
    (SqlStore.set_admin / `main.py set-admin`); the core never mutates it.
    """

    id: int
    email: str
    pass_hash: bytes = field(repr=False)
    is_admin: bool = False


@dataclass(frozen=True)
class App:
    """A client application that consumes SSO tokens.

    secret signs every token issued for this app. A token signed with one
    app's secret is invalid for any other app.
    """

    id: int
    name: str
    secret: bytes = field(repr=False)
