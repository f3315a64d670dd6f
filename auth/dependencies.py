"""
auth/dependencies.py -- FastAPI Depends() helpers for the auth routes.

get_auth_service() hands routes the AuthService built in the lifespan.
bearer_token() extracts the credential from an `Authorization: Bearer <token>`
header; a missing or malformed header is reported the same way as a bad
token, so callers cannot tell "no token" from "wrong token".

Layer rule: may import from fastapi (this module is part of the FastAPI
dependency injection system) but not from api/ or core/.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import TokenInvalidError
from auth.service import AuthService

_BEARER_PREFIX = "Bearer "


def get_auth_service(request: Request) -> AuthService:
    """Return the process-wide AuthService stored on app.state.

    Use as a FastAPI dependency:
        @router.post("/login")
        async def route(service: AuthService = Depends(get_auth_service)): ...
    """
    return request.app.state.auth_service


def bearer_token(request: Request) -> str:
    """Return the bearer token from the Authorization header.

    Raises TokenInvalidError (mapped to 401) when the header is absent or
    does not use the Bearer scheme.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_BEARER_PREFIX):
        raise TokenInvalidError("missing bearer token")
    token = auth_header[len(_BEARER_PREFIX) :].strip()
    if not token:
        raise TokenInvalidError("missing bearer token")
    return token
