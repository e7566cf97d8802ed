"""Command-line maintenance for the admin allow-list and database.

Examples:
    python -m tickety.scripts.maintenance create-tables
    python -m tickety.scripts.maintenance add-admin 0xabc... --note "box office"
    python -m tickety.scripts.maintenance remove-admin 0xabc...
    python -m tickety.scripts.maintenance list-admins
"""
from __future__ import annotations

import argparse
import sys

from tickety.core.security import is_eth_address
from tickety.db.session import SessionLocal, create_tables
from tickety.services.admins import get_admin_registry


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tickety maintenance tasks")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("create-tables", help="Create all database tables")

    add = sub.add_parser("add-admin", help="Persist an admin address")
    add.add_argument("address")
    add.add_argument("--note", default=None)

    remove = sub.add_parser("remove-admin", help="Delete a persisted admin address")
    remove.add_argument("address")

    sub.add_parser("list-admins", help="Print configured and persisted admins")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "create-tables":
        create_tables()
        print("Created database tables")
        return 0

    if args.command in {"add-admin", "remove-admin"} and not is_eth_address(args.address):
        print(f"Invalid address: {args.address}", file=sys.stderr)
        return 2

    registry = get_admin_registry()
    db = SessionLocal()
    try:
        if args.command == "add-admin":
            row = registry.add(db, args.address, args.note)
            print(f"Added admin {row.address}")
        elif args.command == "remove-admin":
            if not registry.remove(db, args.address):
                print(f"No persisted admin {args.address}", file=sys.stderr)
                return 1
            print(f"Removed admin {args.address}")
        else:
            for entry in registry.list_admins(db):
                print(f"{entry.address}\t{entry.source}\t{entry.note or ''}")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
