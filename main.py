"""
main.py
-------
Command-line entry point for the library database tools.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Drop the schema (destructive, needs --yes).
    - Run the periodic overdue/fine update (schedule it with cron or similar).
    - Report connectivity and server information.

Usage:
    python main.py init-db [--seed]
    python main.py drop-db --yes
    python main.py update-overdue
    python main.py check-db
"""

import argparse
import sys

import psycopg2

from db.connection import Database
from db.init_db import create_tables, drop_tables, seed_reference_data
from services.borrowing_service import BorrowingService
from utils.logger import get_logger

logger = get_logger(__name__)


def init_db_command(db: Database, args: argparse.Namespace) -> int:
    """Create the schema, optionally with sample reference data."""
    create_tables(db)
    if args.seed:
        ids = seed_reference_data(db)
        print(f"✅ Schema ready. Reference data: {ids}")
    else:
        print("✅ Schema ready.")
    return 0


def drop_db_command(db: Database, args: argparse.Namespace) -> int:
    """Drop every library table. Refuses to run without --yes."""
    if not args.yes:
        print("❌ Refusing to drop tables without --yes.")
        return 1
    drop_tables(db)
    print("✅ Schema dropped.")
    return 0


def update_overdue_command(db: Database, args: argparse.Namespace) -> int:
    """Mark overdue borrowings and refresh their fines."""
    result = BorrowingService(db).update_overdue_status()
    print(f"Overdue borrowings processed: {result.total}")
    print(f"  updated: {len(result.updated)}")
    print(f"  failed:  {len(result.failed)}")
    if result.failed:
        print(f"  failed IDs: {', '.join(str(i) for i in result.failed)}")
        return 1
    return 0


def check_db_command(db: Database, args: argparse.Namespace) -> int:
    """Test the connection and print server details."""
    if not db.test_connection():
        print("❌ Database connection failed.")
        return 1
    info = db.database_info()
    print("✅ Database connection OK")
    print(f"  Database: {info['database']}")
    print(f"  User:     {info['user']}")
    print(f"  Server:   {info['version']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="library-db", description="Library database tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-db", help="Create tables, constraints and triggers")
    init_parser.add_argument("--seed", action="store_true", help="Insert sample author/publisher/category")
    init_parser.set_defaults(handler=init_db_command)

    drop_parser = subparsers.add_parser("drop-db", help="Drop all library tables and the trigger function")
    drop_parser.add_argument("--yes", action="store_true", help="Confirm that all data will be lost")
    drop_parser.set_defaults(handler=drop_db_command)

    overdue_parser = subparsers.add_parser("update-overdue", help="Mark overdue borrowings and update fines")
    overdue_parser.set_defaults(handler=update_overdue_command)

    check_parser = subparsers.add_parser("check-db", help="Test the database connection")
    check_parser.set_defaults(handler=check_db_command)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, open the pool, run the command and close the pool."""
    args = build_parser().parse_args(argv)

    db = Database()
    try:
        db.init_pool()
    except psycopg2.OperationalError as e:
        logger.error(f"Cannot connect to the database: {e}")
        print("❌ Database connection failed.")
        return 1

    try:
        return args.handler(db, args)
    finally:
        db.close_pool()


if __name__ == "__main__":
    sys.exit(main())
