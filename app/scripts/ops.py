"""
Operator commands for the consultation backend.

Every command goes through the same service layer the API uses, so a fix
made here behaves exactly like the equivalent request would.

    python -m app.scripts.ops check-config
    python -m app.scripts.ops reset-password someone@example.com 'new-password'
    python -m app.scripts.ops confirm-email someone@example.com
    python -m app.scripts.ops set-online <practitioner-user-id> [--offline]
    python -m app.scripts.ops list-online
    python -m app.scripts.ops expire-sessions
    python -m app.scripts.ops inspect-token <token>
"""

import argparse
import json
import sys
import logging
from typing import List, Optional

from fastapi import HTTPException

from app.config.settings import ConfigurationError, Settings, settings as default_settings
from app.database.supabase_client import SupabaseClients
from app.modules.auth.service import AuthService
from app.modules.practitioners.service import PractitionerService
from app.modules.sessions.service import SessionService
from app.modules.video.service import describe_token

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

OFFLINE_COMMANDS = ("check-config", "inspect-token")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="consult-ops",
        description="Operator tooling for the consultation backend",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check-config", help="List missing or invalid settings")

    reset = subparsers.add_parser("reset-password", help="Set a new password for an auth user")
    reset.add_argument("email")
    reset.add_argument("password")

    confirm = subparsers.add_parser("confirm-email", help="Mark an auth user's email as confirmed")
    confirm.add_argument("email")

    online = subparsers.add_parser("set-online", help="Set a practitioner's presence")
    online.add_argument("user_id")
    online.add_argument("--offline", action="store_true", help="Mark offline instead of online")

    subparsers.add_parser("list-online", help="List practitioners currently online")
    subparsers.add_parser("expire-sessions", help="End waiting sessions past the waiting timeout")

    inspect = subparsers.add_parser("inspect-token", help="Decode the privileges of a video token")
    inspect.add_argument("token")
    return parser


def _emit(payload) -> None:
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(by_alias=True, mode="json")
    print(json.dumps(payload, indent=2, default=str))


def run(args: argparse.Namespace, app_settings: Settings, clients: Optional[SupabaseClients]) -> int:
    if args.command == "check-config":
        problems = app_settings.missing_required()
        for problem in problems:
            print(f"  - {problem}")
        if problems:
            return 1
        print("Configuration OK")
        return 0

    if args.command == "inspect-token":
        try:
            _emit(describe_token(args.token))
        except ValueError as e:
            logger.error(str(e))
            return 1
        return 0

    if args.command == "reset-password":
        user_id = AuthService(clients).reset_password(args.email, args.password)
        _emit({"userId": user_id, "passwordReset": True})
    elif args.command == "confirm-email":
        user_id = AuthService(clients).confirm_email(args.email)
        _emit({"userId": user_id, "emailConfirmed": True})
    elif args.command == "set-online":
        _emit(PractitionerService(clients.db).set_online(args.user_id, not args.offline))
    elif args.command == "list-online":
        practitioners = PractitionerService(clients.db).list_practitioners(online_only=True)
        _emit([p.model_dump(by_alias=True, mode="json") for p in practitioners])
    elif args.command == "expire-sessions":
        _emit(SessionService(clients.db, app_settings).expire_stale_sessions())
    return 0


def main(
    argv: Optional[List[str]] = None,
    app_settings: Settings = default_settings,
    clients: Optional[SupabaseClients] = None
) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command not in OFFLINE_COMMANDS and clients is None:
            app_settings.validate_required()
            clients = SupabaseClients.from_settings(app_settings)
        return run(args, app_settings, clients)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1
    except HTTPException as e:
        logger.error(f"{args.command} failed: {e.detail}")
        return 1
    except Exception as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
