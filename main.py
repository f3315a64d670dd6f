#!/usr/bin/env python3
"""
SSO -- single sign-on service for multiple client apps.

Usage:
  python main.py serve                     # run the HTTP API (uvicorn)
  python main.py create-app billing        # provision an app, print its id
  python main.py set-admin 42              # grant the admin flag to user 42
  python main.py set-admin 42 --revoke     # take it away again

Configuration comes from environment variables or .env (see core/config.py):
  ENV                  local | dev | prod (logging verbosity)
  DATABASE_URL         SQLAlchemy URL, default sqlite:///./storage/sso.db
  HOST / PORT          bind address for `serve`
  TOKEN_TTL_SECONDS    lifetime of issued tokens
  BCRYPT_ROUNDS        password hashing cost

SIGINT / SIGTERM stop `serve` gracefully: uvicorn stops accepting
connections, waits up to SHUTDOWN_TIMEOUT_SECONDS for in-flight requests,
then runs the app lifespan shutdown (closes the store).
"""

import argparse
import logging
import sys

import uvicorn
from sqlalchemy.exc import IntegrityError

from auth.store import SqlStore
from core.config import Settings, get_settings
from core.logging_config import get_logging_config, setup_logging

logger = logging.getLogger("sso.main")


def _serve(settings: Settings, args: argparse.Namespace) -> int:
    logger.info(
        "starting application (env=%s, addr=%s:%d, database=%s)",
        settings.env,
        settings.host,
        settings.port,
        settings.database_url,
    )
    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=get_logging_config(settings.env),
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
    )
    logger.info("application stopped")
    return 0


def _create_app(settings: Settings, args: argparse.Namespace) -> int:
    store = SqlStore(settings.database_url)
    try:
        app = store.create_app(args.name)
    except IntegrityError:
        print(f"  [!] An app named '{args.name}' already exists.")
        return 1
    finally:
        store.close()
    # The secret stays in the database; only the id is needed by clients.
    print(f"  Created app '{app.name}' with id {app.id}")
    return 0


def _set_admin(settings: Settings, args: argparse.Namespace) -> int:
    store = SqlStore(settings.database_url)
    try:
        updated = store.set_admin(args.user_id, not args.revoke)
    finally:
        store.close()
    if not updated:
        print(f"  [!] No user with id {args.user_id}.")
        return 1
    state = "revoked from" if args.revoke else "granted to"
    print(f"  Admin flag {state} user {args.user_id}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sso",
        description="Single sign-on service: per-app tokens, registration, admin lookup.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.set_defaults(func=_serve)

    create_app = sub.add_parser("create-app", help="Provision a client app with a random signing secret.")
    create_app.add_argument("name", help="Unique app name.")
    create_app.set_defaults(func=_create_app)

    set_admin = sub.add_parser("set-admin", help="Grant or revoke a user's admin flag.")
    set_admin.add_argument("user_id", type=int)
    set_admin.add_argument("--revoke", action="store_true", help="Remove the flag instead of setting it.")
    set_admin.set_defaults(func=_set_admin)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.env)
    return args.func(settings, args)


if __name__ == "__main__":
    sys.exit(main())
