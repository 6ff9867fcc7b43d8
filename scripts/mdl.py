"""Command-line wrapper around the Moodle web service client.

This module serves as a CLI wrapper around moodle_ws.core.moodle services.
Results are printed to stdout as JSON; errors go to stderr.
"""
from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from moodle_ws.config import load_settings
from moodle_ws.core.moodle import MoodleAPI, Result
from moodle_ws.core.moodle.enrolments import STUDENT_ROLE_ID
from moodle_ws.exceptions import ConfigError


def _print_result(result: Result) -> int:
    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.success else 1


def _parse_payload(raw: str, parser: argparse.ArgumentParser) -> dict:
    try:
        payload = json.loads(raw)
    except ValueError as e:
        parser.error(f"--payload must be valid JSON: {e}")
    if not isinstance(payload, dict):
        parser.error("--payload must be a JSON object")
    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Moodle web service helper")
    parser.add_argument("--credentials", default=os.environ.get("MOODLE_CREDENTIALS_FILE"),
                        help="Path to credentials.ini (default: ini/credentials.ini)")
    parser.add_argument("--format", choices=["json", "xml"], default=None,
                        help="Override the rest_format from the credentials file")
    parser.add_argument("--verbose", "-v", action="store_true")

    sub = parser.add_subparsers(dest="cmd")

    sc = sub.add_parser("create-user")
    sc.add_argument("--username", required=True)
    sc.add_argument("--first", required=True)
    sc.add_argument("--last", required=True)
    sc.add_argument("--email", required=True)
    sc.add_argument("--idnumber")
    sc.add_argument("--lang")
    sc.add_argument("--auth")
    sc.add_argument("--password")

    su = sub.add_parser("update-user")
    su.add_argument("--id", type=int, required=True)
    su.add_argument("--username")
    su.add_argument("--first")
    su.add_argument("--last")
    su.add_argument("--email")
    su.add_argument("--idnumber")

    for name in ("get-users", "user-exists"):
        sg = sub.add_parser(name)
        sg.add_argument("--id", type=int)
        sg.add_argument("--username")
        sg.add_argument("--email")
        sg.add_argument("--first")
        sg.add_argument("--last")
        sg.add_argument("--idnumber")

    sgu = sub.add_parser("get-user")
    sgu.add_argument("--id", type=int)
    sgu.add_argument("--username")

    sd = sub.add_parser("delete-user")
    sd.add_argument("--id", type=int, required=True)

    se = sub.add_parser("enrol")
    se.add_argument("--user-id", type=int, required=True)
    se.add_argument("--course-id", type=int, required=True)
    se.add_argument("--role-id", type=int, default=STUDENT_ROLE_ID)

    sco = sub.add_parser("courses")
    sco.add_argument("--user-id", type=int, required=True)

    sa = sub.add_parser("call")
    sa.add_argument("function")
    sa.add_argument("--payload", default="{}", help="JSON object of parameters")

    sub.add_parser("available")
    return parser


def _search_params(args: argparse.Namespace) -> dict:
    fields = {
        "id": args.id,
        "username": args.username,
        "email": args.email,
        "firstname": args.first,
        "lastname": args.last,
        "idnumber": args.idnumber,
    }
    return {key: value for key, value in fields.items() if value is not None}


def main(argv: list[str] | None = None) -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(name)s] %(levelname)s %(message)s",
    )

    if args.cmd == "available":
        print(json.dumps(MoodleAPI.available(), indent=2))
        return

    try:
        mdl = MoodleAPI(settings=load_settings(args.credentials, rest_format=args.format))
    except ConfigError as e:
        print(f"[config] Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.cmd == "create-user":
        result = mdl.users.create_user({
            "username": args.username,
            "firstname": args.first,
            "lastname": args.last,
            "email": args.email,
            "idnumber": args.idnumber,
            "lang": args.lang,
            "auth": args.auth,
            "password": args.password,
        })
    elif args.cmd == "update-user":
        result = mdl.users.update_user({
            "id": args.id,
            "username": args.username,
            "firstname": args.first,
            "lastname": args.last,
            "email": args.email,
            "idnumber": args.idnumber,
        })
    elif args.cmd == "get-users":
        params = _search_params(args)
        if not params:
            parser.error("get-users requires at least one search field")
        result = mdl.users.get_users(params)
    elif args.cmd == "get-user":
        if args.id is None and not args.username:
            parser.error("get-user requires --id or --username")
        result = mdl.users.get_user({"id": args.id, "username": args.username})
    elif args.cmd == "user-exists":
        params = _search_params(args)
        if not params:
            parser.error("user-exists requires at least one search field")
        exists = mdl.users.user_exists(params)
        print(json.dumps({"exists": exists}))
        sys.exit(0 if exists else 1)
    elif args.cmd == "delete-user":
        result = mdl.users.delete_user(args.id)
    elif args.cmd == "enrol":
        result = mdl.enrolments.enrol_user({
            "roleid": args.role_id,
            "userid": args.user_id,
            "courseid": args.course_id,
        })
    elif args.cmd == "courses":
        result = mdl.enrolments.get_users_courses(args.user_id)
    elif args.cmd == "call":
        result = mdl.any(args.function, _parse_payload(args.payload, parser))
    else:
        parser.print_help()
        return

    if not result.success:
        print(f"[{args.cmd}] Error: {result.to_dict().get('message')}", file=sys.stderr)
    code = _print_result(result)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
