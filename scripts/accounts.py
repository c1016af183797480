"""Command-line helper for inspecting and managing Identity Toolkit accounts.

This module serves as a CLI wrapper around identity_admin.core.identity_toolkit services.
Records are printed as one JSON object per line.
"""
from __future__ import annotations
import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from identity_admin.config import AppConfig, load_settings
from identity_admin.core.identity_toolkit import (
    IdentityError,
    IdentityToolkitClient,
    Page,
    TenantService,
    UserService,
)

logger = logging.getLogger("identity_admin.cli")


def _emit(record) -> None:
    if dataclasses.is_dataclass(record):
        record = dataclasses.asdict(record)
    print(json.dumps(record, sort_keys=True))


def _emit_page(page: Page, iterate_all: bool) -> None:
    """Print one page (plus its next_page_token) or every record from that page on."""
    if not iterate_all:
        for record in page.values:
            _emit(record)
        _emit({"next_page_token": page.next_page_token})
        return

    iterator = iter(page.iterate_all())
    while True:
        step = iterator.step()
        if step.done:
            return
        _emit(step.unwrap())


def configure(args: argparse.Namespace) -> AppConfig:
    """Load settings, apply CLI overrides and set up logging to stderr."""
    settings = load_settings(args.project_id)
    if args.token:
        settings.access_token = args.token
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return settings


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Identity Toolkit account helper")
    parser.add_argument("--project-id", default=os.environ.get("IDENTITY_PROJECT_ID"))
    parser.add_argument("--token", default=None, help="Access token (default: IDENTITY_ACCESS_TOKEN)")

    sub = parser.add_subparsers(dest="cmd")

    lu = sub.add_parser("list-users")
    lu.add_argument("--tenant", default=None, help="Tenant ID (default: IDENTITY_TENANT_ID)")
    lu.add_argument("--page-size", type=int, default=None)
    lu.add_argument("--page-token", default=None)
    lu.add_argument("--all", action="store_true", help="Walk every page lazily")

    lt = sub.add_parser("list-tenants")
    lt.add_argument("--page-size", type=int, default=None)
    lt.add_argument("--page-token", default=None)
    lt.add_argument("--all", action="store_true", help="Walk every page lazily")

    gu = sub.add_parser("get-user")
    gu.add_argument("--tenant", default=None)
    ident = gu.add_mutually_exclusive_group(required=True)
    ident.add_argument("--uid")
    ident.add_argument("--email")
    ident.add_argument("--phone")

    du = sub.add_parser("delete-user")
    du.add_argument("--tenant", default=None)
    du.add_argument("--uid", required=True)

    pr = sub.add_parser("password-reset-link")
    pr.add_argument("--tenant", default=None)
    pr.add_argument("--email", required=True)

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    if not args.project_id:
        parser.error("Missing --project-id (or IDENTITY_PROJECT_ID)")

    try:
        settings = configure(args)
        page_size = getattr(args, "page_size", None)
        if page_size is None:
            page_size = settings.page_size
        run(args, settings.build_client(), page_size, settings.tenant_id)
    except (IdentityError, RuntimeError) as exc:
        logger.error(f"{args.cmd} failed: {exc}")
        print(f"[accounts] {args.cmd} failed: {exc}", file=sys.stderr)
        sys.exit(1)


def run(
    args: argparse.Namespace,
    client: IdentityToolkitClient,
    page_size: int,
    default_tenant: str = "",
) -> None:
    if args.cmd == "list-tenants":
        service = TenantService(client)
        page = service.list_tenants(page_token=args.page_token, max_results=page_size)
        _emit_page(page, args.all)
        return

    users = UserService(client, tenant_id=args.tenant or default_tenant or None)

    if args.cmd == "list-users":
        page = users.list_users(page_token=args.page_token, max_results=page_size)
        _emit_page(page, args.all)
    elif args.cmd == "get-user":
        if args.uid:
            _emit(users.get_user(args.uid))
        elif args.email:
            _emit(users.get_user_by_email(args.email))
        else:
            _emit(users.get_user_by_phone_number(args.phone))
    elif args.cmd == "delete-user":
        users.delete_user(args.uid)
        print(f"[accounts] User '{args.uid}' deleted", file=sys.stderr)
    elif args.cmd == "password-reset-link":
        print(users.generate_password_reset_link(args.email))


if __name__ == "__main__":
    main()
