"""
auth/service.py -- The authentication service: login, registration, admin check.

Orchestrates the password hasher, the token issuer and the storage protocols.
The transport layer calls this; nothing here knows about HTTP.

Error policy:
  - Named errors (AppNotFoundError, UserExistsError, UserNotFoundError,
    TokenInvalidError, TokenExpiredError) are passed through unchanged so the
    transport can map them to client responses.
  - login() turns "no such user" and "wrong password" into the same
    InvalidCredentialsError, after the same amount of bcrypt work [C1].
  - Every other failure is logged with its operation name and re-raised as
    InternalError chained to the cause. No raw storage or library error
    reaches the caller.
  - asyncio.CancelledError is a BaseException, so it passes through the
    `except Exception` wrappers untouched.

Concurrency:
  The service keeps no mutable state. bcrypt runs in a worker thread via
  asyncio.to_thread so a slow hash does not stall the event loop; every await
  is a cancellation point.

Layer rule: no imports from api/ or core/. Configuration is passed in.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from auth.errors import (
    AppNotFoundError,
    InternalError,
    InvalidCredentialsError,
    TokenExpiredError,
    TokenInvalidError,
    UserExistsError,
    UserNotFoundError,
)
from auth.passwords import PasswordHasher
from auth.storage import AdminProvider, AppProvider, UserProvider, UserSaver
from auth.tokens import TokenIssuer

logger = logging.getLogger("sso.auth")


class AuthService:
    """Issues tokens for valid credentials and registers new users.

    Usage:
        store = SqlStore()
        service = AuthService(store, store, store, store, token_ttl=timedelta(hours=1))
        user_id = await service.register_new_user("alice@example.com", "correct-pw")
        token = await service.login("alice@example.com", "correct-pw", app_id=1)
    """

    def __init__(
        self,
        user_saver: UserSaver,
        user_provider: UserProvider,
        app_provider: AppProvider,
        admin_provider: AdminProvider,
        token_ttl: timedelta,
        hasher: PasswordHasher | None = None,
        issuer: TokenIssuer | None = None,
    ) -> None:
        self._user_saver = user_saver
        self._user_provider = user_provider
        self._app_provider = app_provider
        self._admin_provider = admin_provider
        self._token_ttl = token_ttl
        self._hasher = hasher or PasswordHasher()
        self._issuer = issuer or TokenIssuer()

    async def login(self, email: str, password: str, app_id: int) -> str:
        """Check credentials and return a token scoped to (user, app).

        Raises:
            AppNotFoundError: app_id does not resolve.
            InvalidCredentialsError: unknown email or wrong password.
            InternalError: anything else.
        """
        op = "auth.login"
        logger.debug("%s: attempting login for app %d", op, app_id)

        try:
            app = await self._app_provider.get_app(app_id)
        except AppNotFoundError:
            logger.info("%s: unknown app %d", op, app_id)
            raise
        except Exception as exc:
            logger.exception("%s: failed to load app %d", op, app_id)
            raise InternalError(op) from exc

        try:
            user = await self._user_provider.get_user(email)
        except UserNotFoundError:
            # Spend the same bcrypt time as a real mismatch before answering [C1].
            await asyncio.to_thread(self._hasher.verify, self._hasher.dummy_hash, password)
            logger.info("%s: user not found", op)
            raise InvalidCredentialsError() from None
        except Exception as exc:
            logger.exception("%s: failed to load user", op)
            raise InternalError(op) from exc

        try:
            matches = await asyncio.to_thread(self._hasher.verify, user.pass_hash, password)
        except Exception as exc:
            logger.exception("%s: password verification failed for user %d", op, user.id)
            raise InternalError(op) from exc
        if not matches:
            logger.info("%s: wrong password for user %d", op, user.id)
            raise InvalidCredentialsError()

        try:
            token = self._issuer.issue(user.id, app.id, app.secret, self._token_ttl)
        except Exception as exc:
            logger.exception("%s: failed to issue token for user %d", op, user.id)
            raise InternalError(op) from exc

        logger.info("%s: user %d logged in to app %d", op, user.id, app.id)
        return token

    async def register_new_user(self, email: str, password: str) -> int:
        """Hash the password, persist the user and return the new id.

        Raises:
            UserExistsError: the email is already registered.
            InternalError: anything else.
        """
        op = "auth.register_new_user"
        logger.debug("%s: registering user", op)

        try:
            pass_hash = await asyncio.to_thread(self._hasher.hash, password)
        except Exception as exc:
            logger.exception("%s: failed to hash password", op)
            raise InternalError(op) from exc

        try:
            user_id = await self._user_saver.save_user(email, pass_hash)
        except UserExistsError:
            logger.info("%s: user already exists", op)
            raise
        except Exception as exc:
            logger.exception("%s: failed to save user", op)
            raise InternalError(op) from exc

        logger.info("%s: registered user %d", op, user_id)
        return user_id

    async def is_admin(self, user_id: int) -> bool:
        """Return whether the user holds the admin flag.

        Raises:
            UserNotFoundError: user_id does not resolve.
            InternalError: anything else.
        """
        op = "auth.is_admin"
        try:
            admin = await self._admin_provider.is_admin(user_id)
        except UserNotFoundError:
            logger.info("%s: user %d not found", op, user_id)
            raise
        except Exception as exc:
            logger.exception("%s: failed to check admin flag for user %d", op, user_id)
            raise InternalError(op) from exc

        logger.debug("%s: user %d is_admin=%s", op, user_id, admin)
        return admin

    async def verify_token(self, token: str, app_id: int) -> int:
        """Validate a token against the app it claims to be for; return the user id.

        Raises:
            AppNotFoundError: app_id does not resolve.
            TokenInvalidError / TokenExpiredError: the token does not check out.
            InternalError: anything else.
        """
        op = "auth.verify_token"
        try:
            app = await self._app_provider.get_app(app_id)
        except AppNotFoundError:
            raise
        except Exception as exc:
            logger.exception("%s: failed to load app %d", op, app_id)
            raise InternalError(op) from exc

        try:
            return self._issuer.parse(token, app.id, app.secret)
        except (TokenInvalidError, TokenExpiredError):
            raise
        except Exception as exc:
            logger.exception("%s: failed to parse token for app %d", op, app_id)
            raise InternalError(op) from exc
