"""Checkout management CLI.

Provides schema management for the checkout database and the purchase
intent expiry sweep, which a scheduler runs every few minutes.

Usage:
    python src/manage.py setup-db        # Create all tables
    python src/manage.py drop-db         # Drop all tables
    python src/manage.py sweep-intents   # Expire lapsed purchase intents
    python src/manage.py sweep-intents --as-of 2025-01-01T12:00:00+00:00
"""

import argparse
import sys
from datetime import datetime


def _domain():
    from checkout.domain import checkout

    checkout.init()
    return checkout


def setup_database():
    from checkout.utils.db import setup_db

    domain = _domain()
    print("Creating checkout database schema...")
    touched = setup_db(domain)
    if not touched:
        print("  No SQL providers configured, nothing to create.")
    print("Done.")


def drop_database():
    from checkout.utils.db import drop_db

    domain = _domain()
    print("Dropping checkout database schema...")
    touched = drop_db(domain)
    if not touched:
        print("  No SQL providers configured, nothing to drop.")
    print("Done.")


def sweep_intents(as_of=None) -> int:
    from checkout.intent.expiry import sweep_expired

    domain = _domain()
    with domain.domain_context():
        expired = sweep_expired(as_of)
    print(f"Expired {expired} purchase intent(s).")
    return expired


def main(argv=None):
    parser = argparse.ArgumentParser(description="Checkout management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    sweep_parser = subparsers.add_parser("sweep-intents", help="Expire purchase intents past their TTL")
    sweep_parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="Reference time as ISO-8601 (default: now)",
    )

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "sweep-intents":
        sweep_intents(args.as_of)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
