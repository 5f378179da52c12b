"""Storefront database management CLI.

Creates and drops the cart tables on the database named by
``STOREFRONT_DATABASE_URL`` (or ``--database-url``).

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys

from storefront.config import settings
from storefront.domain import storefront
from storefront.utils.db import configure_database, drop_db, setup_db


def _prepare(database_url: str | None) -> str:
    url = database_url or settings.database_url
    if not url:
        print("No database configured; set STOREFRONT_DATABASE_URL or pass --database-url.")
        sys.exit(1)
    storefront.init()
    configure_database(storefront, url)
    return url


def setup_database(database_url: str | None = None):
    """Create the storefront schema."""
    url = _prepare(database_url)
    print(f"Creating storefront schema on {url}...")
    setup_db(storefront)
    print("Done.")


def drop_database(database_url: str | None = None):
    """Drop the storefront schema."""
    url = _prepare(database_url)
    print(f"Dropping storefront schema on {url}...")
    drop_db(storefront)
    print("Done.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("setup-db", "Create all database tables"), ("drop-db", "Drop all database tables")):
        command_parser = subparsers.add_parser(name, help=help_text)
        command_parser.add_argument(
            "--database-url",
            default=None,
            help="SQLAlchemy URL, e.g. sqlite:///./storefront.db (default: STOREFRONT_DATABASE_URL)",
        )

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database(args.database_url)
    elif args.command == "drop-db":
        drop_database(args.database_url)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
