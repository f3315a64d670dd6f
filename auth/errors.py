"""
auth/errors.py -- Error taxonomy for the authentication core.

Every error the service hands to its caller is one of these classes. Storage
implementations raise the named kinds (UserExistsError, UserNotFoundError,
AppNotFoundError); the token issuer raises TokenInvalidError and
TokenExpiredError; the service raises InvalidCredentialsError and wraps
everything else in InternalError.

The transport layer maps `code` to a status and a client-facing message. The
message of InternalError is an operation name for operator logs only -- it
is never sent to the client.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all errors raised by the auth package."""

    code = "auth_error"


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password. Deliberately the same error for both [C1]."""

    code = "invalid_credentials"

    def __init__(self) -> None:
        super().__init__("invalid email or password")


class UserExistsError(AuthError):
    code = "user_exists"

    def __init__(self) -> None:
        super().__init__("user already exists")


class UserNotFoundError(AuthError):
    code = "user_not_found"

    def __init__(self) -> None:
        super().__init__("user not found")


class AppNotFoundError(AuthError):
    code = "app_not_found"

    def __init__(self, app_id: int) -> None:
        super().__init__(f"app {app_id} not found")
        self.app_id = app_id


class TokenInvalidError(AuthError):
    """Signature, structure or app binding of a token did not check out."""

    code = "token_invalid"

    def __init__(self, reason: str = "invalid token") -> None:
        super().__init__(reason)


class TokenExpiredError(AuthError):
    code = "token_expired"

    def __init__(self) -> None:
        super().__init__("token expired")


class InternalError(AuthError):
    """Opaque failure (storage down, hashing or signing failed).

    `op` names the service operation that failed ("auth.login", ...). The
    underlying exception is attached as __cause__ via `raise ... from exc`.
    """

    code = "internal_error"

    def __init__(self, op: str) -> None:
        super().__init__(f"{op}: internal error")
        self.op = op
