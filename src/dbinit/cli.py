"""CLI for bootstrapping the application database.

Exit status is 0 when the database is at the application version and 1 on any
fatal error, so a process supervisor can refuse to start the application
against an unready database.
"""

import argparse
import sys
from pathlib import Path

from common.constants import MIGRATION_EXTENSIONS
from common.env import env
from common.logger import error, get_logger, progress, setup_logging, success, warning
from dbinit.bootstrapper import Bootstrapper
from dbinit.catalog import MigrationCatalog
from dbinit.connection import ConnectionManager
from dbinit.db import DatabaseConfig
from dbinit.errors import BootstrapError, ConfigurationError
from dbinit.ledger import VersionControlStore

logger = get_logger(__name__)


def build_bootstrapper(args) -> Bootstrapper:
    """Assemble a bootstrapper from the environment and CLI overrides.

    Raises:
        ConfigurationError: If a setting is missing or malformed
    """
    migrations_dir = Path(args.migrations_dir) if args.migrations_dir else env.migrations_dir()
    ledger_table = args.ledger_table or env.ledger_table()

    try:
        max_attempts = env.connect_attempts()
        initial_delay = env.connect_retry_delay()
    except ValueError as e:
        raise ConfigurationError(f"Invalid connection retry setting: {e}") from e

    connection_manager = ConnectionManager(
        DatabaseConfig.from_env(),
        max_attempts=max_attempts,
        initial_delay=initial_delay,
    )
    return Bootstrapper(
        connection_manager=connection_manager,
        catalog=MigrationCatalog(migrations_dir, MIGRATION_EXTENSIONS),
        store=VersionControlStore(ledger_table),
    )


def cmd_migrate(args) -> int:
    """Bring the database to the application version."""
    try:
        bootstrapper = build_bootstrapper(args)
    except BootstrapError as e:
        error(f"Invalid configuration: {e}")
        return 1

    try:
        result = bootstrapper.run()
    except BootstrapError as e:
        logger.debug("Bootstrap failure", exc_info=True)
        error(f"A fatal error occurred in phase '{bootstrapper.failed_in.value}': {e}")
        return 1

    if result.initialized:
        progress("Database was reset and placed under version control")
    if result.applied:
        success(
            f"Applied {len(result.applied)} migration(s); "
            f"database is at version {result.final_version}"
        )
    else:
        success(f"No new migrations; database is at version {result.final_version}")
    return 0


def cmd_status(args) -> int:
    """Print database and application versions without changing anything."""
    try:
        status = build_bootstrapper(args).inspect()
    except BootstrapError as e:
        error(f"Cannot determine database status: {e}")
        return 1

    if not status.initialized:
        warning("Database is not version controlled; it will be reset on first migrate")

    progress(
        f"Current database version = {status.database_version}, "
        f"application version = {status.application_version}"
    )
    if status.history:
        progress(f"Ledger ({len(status.history)} row(s)):")
    for record in status.history:
        state = "applied" if record.succeeded else "failed"
        progress(f"  {record.version}  {state} {record.applied_at:%Y-%m-%d %H:%M:%S}")

    if status.is_skewed:
        error("This application version is behind the database version")
        return 1

    if status.pending:
        progress(f"Pending migrations ({len(status.pending)}):")
        for unit in status.pending:
            progress(f"  {unit.version}  {unit.name}")
    else:
        success("Database is at the latest version")
    return 0


def main():
    """Main entry point for the dbinit CLI."""
    parser = argparse.ArgumentParser(
        description="Place the application database under version control and migrate it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--migrations-dir",
        "-m",
        help="Directory of <version>.sql files (default: $MIGRATIONS_DIR)",
    )
    parser.add_argument(
        "--ledger-table",
        help="Version-control table name (default: $LEDGER_TABLE)",
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser(
        "migrate",
        help="Initialize or advance the database to the application version",
        description=(
            "Initialize or advance the database to the application version.\n\n"
            "A database without a ledger table is DROPPED and recreated.\n"
            "Connection settings come from DATABASE_TYPE and POSTGRES_* (or\n"
            "DATABASE_PATH for SQLite) environment variables.\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers.add_parser(
        "status",
        help="Show database and application versions and pending migrations",
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(log_file=args.log_file)

    if args.command == "migrate":
        sys.exit(cmd_migrate(args))
    elif args.command == "status":
        sys.exit(cmd_status(args))


if __name__ == "__main__":
    main()
