#!/usr/bin/env python3
"""
SSO -- email/password authentication issuing per-app signed session tokens.

Usage:
  python main.py serve
  python main.py add-app web
  python main.py add-app web --secret "$WEB_APP_SECRET" --id 1
  python main.py grant-admin 42
  python main.py grant-admin 42 --revoke

Environment variables (see core/config.py):
  ENV                 local | dev | prod (logging format and level)
  STORAGE_PATH        SQLAlchemy URL, default sqlite:///./sso.db
  TOKEN_TTL_SECONDS   Lifetime of issued tokens, default 3600
  HOST / PORT         Listen address for `serve`, default 127.0.0.1:44044
"""

import argparse
import secrets
import sys

import uvicorn

from api.models import INT32_MAX
from core.config import get_settings
from storage.errors import StorageError
from storage.store import AuthStore


def _serve(args: argparse.Namespace) -> int:
    settings = get_settings()
    uvicorn.run("asgi:app", host=settings.host, port=settings.port)
    return 0


def _add_app(args: argparse.Namespace) -> int:
    """Provision a client app. Prints the id, and the secret if one was generated."""
    generated = args.secret is None
    secret = secrets.token_hex(32) if generated else args.secret
    if not secret:
        print("  [!] --secret must not be empty.", file=sys.stderr)
        return 2
    if args.id is not None and not 0 < args.id <= INT32_MAX:
        print(f"  [!] --id must be between 1 and {INT32_MAX}.", file=sys.stderr)
        return 2

    try:
        store = AuthStore(get_settings().storage_path)
    except StorageError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 1
    try:
        app_id = store.create_app(args.name, secret.encode("utf-8"), app_id=args.id)
    except StorageError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 1
    finally:
        store.close()

    print(f"  app '{args.name}' created with id {app_id}")
    if generated:
        # Shown once. It is only ever stored, never printed again.
        print(f"  secret: {secret}")
    return 0


def _grant_admin(args: argparse.Namespace) -> int:
    try:
        store = AuthStore(get_settings().storage_path)
    except StorageError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 1
    try:
        store.set_admin(args.user_id, not args.revoke)
    except StorageError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 1
    finally:
        store.close()

    state = "revoked from" if args.revoke else "granted to"
    print(f"  admin {state} user {args.user_id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sso",
        description="SSO authentication service and operator tools.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP RPC server")
    serve.set_defaults(func=_serve)

    add_app = sub.add_parser("add-app", help="Provision a client app and its signing secret")
    add_app.add_argument("name", help="Unique app name")
    add_app.add_argument("--secret", help="Signing secret (random 256-bit hex if omitted)")
    add_app.add_argument("--id", type=int, help="Explicit app id (auto-assigned if omitted)")
    add_app.set_defaults(func=_add_app)

    grant = sub.add_parser("grant-admin", help="Set or clear a user's admin flag")
    grant.add_argument("user_id", type=int)
    grant.add_argument("--revoke", action="store_true", help="Clear the flag instead of setting it")
    grant.set_defaults(func=_grant_admin)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
