"""
auth/tokens.py -- JWT issuing and parsing, keyed per app.

Security design decisions:
  JWT: python-jose with HS256. Every token is signed with the secret of the
       app it was issued for and carries sub/uid (user id), app_id, iat and
       exp. The signature covers all claims, so none can be altered without
       invalidating the token.

  App binding: parse() takes the app id the caller expects and that app's
       secret. A token minted for app A fails signature verification under
       app B's secret; if two apps ever share a secret, the app_id claim check
       still rejects the cross-app token.

  Expiry: strict by default (leeway 0). jose checks the signature before the
       claims, so an expired token with a bad signature is reported as
       invalid rather than expired -- "expired" is only ever said about a
       token we actually issued.

  Algorithm pinning: algorithms=["HS256"] on decode. Tokens declaring "none"
       or an asymmetric algorithm are rejected before the key is used.

Layer rule: no imports from api/ or core/. TTL and leeway arrive as
arguments; this module never reads settings.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import TokenExpiredError, TokenInvalidError

logger = logging.getLogger("sso.auth.tokens")

_ALGORITHM = "HS256"


class TokenIssuer:
    """Builds and validates signed, time-bounded tokens.

    Stateless: nothing about issued tokens is remembered. Validity is
    recomputed from the claims on every parse().
    """

    def __init__(self, leeway_seconds: int = 0) -> None:
        self.leeway_seconds = leeway_seconds

    def issue(self, user_id: int, app_id: int, secret: bytes, ttl: timedelta) -> str:
        """Encode a signed JWT scoped to (user_id, app_id), valid for ttl.

        A non-positive ttl yields a token that is already expired.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),  # RFC 7519: sub is a string
            "uid": user_id,
            "app_id": app_id,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, secret, algorithm=_ALGORITHM)

    def parse(self, token: str, app_id: int, secret: bytes) -> int:
        """Verify a token against an app's secret and return its user id.

        Raises:
            TokenExpiredError: signature valid but exp is in the past.
            TokenInvalidError: anything else wrong with the token.
        """
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[_ALGORITHM],
                options={"require_exp": True, "require_sub": True, "leeway": self.leeway_seconds},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except JWTError as exc:
            logger.debug("Token rejected for app %d: %s", app_id, exc)
            raise TokenInvalidError() from exc

        if claims.get("app_id") != app_id:
            raise TokenInvalidError("token issued for another app")

        uid = claims.get("uid")
        # bool is an int subclass; a literal `true` is not a user id.
        if not isinstance(uid, int) or isinstance(uid, bool) or claims["sub"] != str(uid):
            raise TokenInvalidError("malformed subject")
        return uid
