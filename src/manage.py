"""Consumables ledger database management CLI.

Creates and drops the relational schema for the configured provider.
Memory providers have nothing to set up.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    from consumables.domain import consumables
    from consumables.utils.db import setup_db

    print("Initializing consumables domain...")
    consumables.init()
    print("Creating consumables database schema...")
    setup_db(consumables)
    print("Done.")


def drop_database():
    from consumables.domain import consumables
    from consumables.utils.db import drop_db

    print("Initializing consumables domain...")
    consumables.init()
    print("Dropping consumables database schema...")
    drop_db(consumables)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Consumables ledger database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
