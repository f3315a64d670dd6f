"""
api/routes/v1/auth.py -- Login, registration and token verification endpoints.

Routes:
  POST /api/v1/auth/login      -- email/password/app_id -> signed token
  POST /api/v1/auth/register   -- email/password -> new user id
  GET  /api/v1/auth/verify     -- Bearer token + app_id -> user id

Security:
  [H2] POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  [C1] Unknown email and wrong password produce the same 401 body. The
       service guarantees it; this layer must not add a distinguishing field.
  [M5] Cache-Control: no-store on login responses (they carry a credential).

Errors raised by the service (auth.errors.AuthError subclasses) are not caught
here. The exception handlers in api/main.py map them to status codes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_rate_limit
from api.models import MAX_ID, LoginRequest, LoginResponse, RegisterRequest, RegisterResponse, VerifyResponse
from auth.dependencies import bearer_token, get_auth_service
from auth.service import AuthService

# Auth policy: every route in this module is public -- they are how a caller
# obtains or checks a credential in the first place.
router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(login_rate_limit)  # [H2] innermost, so FastAPI registers the rate-limited wrapper
async def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Exchange email + password for a token scoped to body.app_id."""
    token = await service.login(body.email, body.password, body.app_id)
    resp = JSONResponse(status_code=200, content=LoginResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
async def register(
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> RegisterResponse:
    """Create a user account. 409 if the email is already registered."""
    user_id = await service.register_new_user(body.email, body.password)
    return RegisterResponse(user_id=user_id)


@router.get("/auth/verify", response_model=VerifyResponse)
async def verify(
    app_id: int = Query(gt=0, le=MAX_ID),
    token: str = Depends(bearer_token),
    service: AuthService = Depends(get_auth_service),
) -> VerifyResponse:
    """Check a bearer token against the secret of app_id.

    401 token_invalid if the token was not signed for this app or is malformed,
    401 token_expired if it was but its validity window has passed.
    """
    user_id = await service.verify_token(token, app_id)
    return VerifyResponse(user_id=user_id, app_id=app_id)
