"""
api/main.py -- FastAPI application entry point for the SSO service.

Exposes the authentication service over HTTP. The auth core (auth/service.py)
knows nothing about HTTP; this module wires it up and maps its errors to
status codes.

Run with:  python main.py serve
           uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. log_requests     -- one log line per request with latency
  2. SlowAPIMiddleware -- enforces per-route rate limits from api.limiter

Lifespan builds the store and the service on startup and closes the store
on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.errors import AuthError, InternalError
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import SqlStore
from auth.tokens import TokenIssuer
from core.config import get_settings

logger = logging.getLogger("sso.api")

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Error mapping -- AuthError.code -> (HTTP status, client-facing message)
#
# Messages are fixed strings. The exception's own text may carry ids or
# operation names meant for operator logs and is never sent to the client.
# ---------------------------------------------------------------------------

_ERROR_STATUS: dict[str, tuple[int, str]] = {
    "invalid_credentials": (401, "Invalid email or password."),
    "token_invalid": (401, "Invalid token."),
    "token_expired": (401, "Token expired."),
    "app_not_found": (404, "App not found."),
    "user_not_found": (404, "User not found."),
    "user_exists": (409, "User already exists."),
}


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the storage collaborator and the auth service; tear down on exit.

    Configuration is read here, once, and passed by value into the service.
    One SqlStore instance serves as all four storage capabilities.
    """
    settings = get_settings()
    logger.info(
        "SSO API starting up (env=%s, token_ttl=%ss, bcrypt_rounds=%d)",
        settings.env,
        settings.token_ttl_seconds,
        settings.bcrypt_rounds,
    )
    store = SqlStore(settings.database_url)
    app.state.store = store
    app.state.auth_service = AuthService(
        user_saver=store,
        user_provider=store,
        app_provider=store,
        admin_provider=store,
        token_ttl=settings.token_ttl,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        issuer=TokenIssuer(leeway_seconds=settings.token_leeway_seconds),
    )
    logger.info("Auth service initialized")

    yield

    app.state.store.close()
    logger.info("SSO API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="SSO API",
    description="Single sign-on: user registration, per-app token issuance, admin role lookup.",
    version=_VERSION,
    lifespan=lifespan,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map named auth errors to client responses; collapse the rest to 500.

    InternalError was already logged with its cause by the service, so only
    a one-line pointer is added here.
    """
    mapped = _ERROR_STATUS.get(exc.code)
    if mapped is None:
        if isinstance(exc, InternalError):
            logger.error("Internal error in %s on %s %s", exc.op, request.method, request.url.path)
        else:
            logger.error("Unmapped auth error %r on %s %s", exc, request.method, request.url.path)
        return _error(500, "internal_error", "An unexpected error occurred.")
    status_code, message = mapped
    return _error(status_code, exc.code, message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the body, path or query fails validation.

    Malformed JSON, missing email/password/app_id and unknown fields all land
    here. Input values are stripped from the detail so a rejected password is
    never echoed back.
    """
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    return _error(400, "validation_error", "Request validation failed.", str(errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured body for FastAPI HTTPException and Starlette 404/405."""
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit -- health checks from load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health(request: Request, response: Response) -> HealthResponse:
    """Return liveness, version and database reachability.

    503 with status "degraded" when the database does not answer.
    """
    db_ok = await asyncio.to_thread(request.app.state.store.ping)
    if not db_ok:
        response.status_code = 503
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
