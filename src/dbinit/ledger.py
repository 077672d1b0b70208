"""Version-control ledger backed by a dedicated table.

The ledger is append-only: one row per applied migration, never updated or
deleted. Every operation receives the open adapter explicitly; the store keeps
no connection state between calls.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from common.constants import DEFAULT_LEDGER_TABLE, MAX_VERSION_LENGTH
from common.logger import get_logger
from dbinit.db import DatabaseAdapter, DatabaseError, is_valid_identifier
from dbinit.errors import ConfigurationError, SchemaError, WriteError
from dbinit.versions import Version, max_version

if TYPE_CHECKING:
    from dbinit.catalog import MigrationUnit

logger = get_logger(__name__)


@dataclass(frozen=True)
class VersionRecord:
    """One row of the ledger."""

    version: Version
    applied_at: datetime
    succeeded: bool
    sql_text: str


class VersionControlStore:
    """Reads and appends ledger rows."""

    def __init__(self, table_name: str = DEFAULT_LEDGER_TABLE):
        """Initialize store.

        Args:
            table_name: Ledger table name; interpolated into SQL, so it must
                be a plain identifier

        Raises:
            ConfigurationError: If the table name is not a plain identifier
        """
        if not is_valid_identifier(table_name):
            raise ConfigurationError(f"Invalid ledger table name: {table_name!r}")
        self.table_name = table_name

    def is_initialized(self, conn: DatabaseAdapter) -> bool:
        """Check whether the ledger table exists.

        Raises:
            SchemaError: If the schema catalog cannot be queried
        """
        try:
            return conn.table_exists(self.table_name)
        except DatabaseError as e:
            raise SchemaError(f"Cannot check for ledger table {self.table_name}: {e}") from e

    def create_table(self, conn: DatabaseAdapter) -> None:
        """Create the ledger table.

        Only valid while the table does not exist yet.

        Raises:
            SchemaError: If the DDL fails
        """
        create_table = f"""
            CREATE TABLE {self.table_name} (
                version VARCHAR({MAX_VERSION_LENGTH}) PRIMARY KEY,
                succeeded BOOLEAN NOT NULL,
                applied_at TIMESTAMP NOT NULL,
                sql_text TEXT NOT NULL
            )
        """
        try:
            conn.execute(create_table)
        except DatabaseError as e:
            raise SchemaError(f"Failed to create ledger table {self.table_name}: {e}") from e
        logger.info(f"Created ledger table {self.table_name}")

    def applied_versions(self, conn: DatabaseAdapter) -> list[Version]:
        """Get versions recorded as succeeded, in version order.

        Raises:
            SchemaError: If the ledger cannot be read
        """
        try:
            rows = conn.fetchall(
                f"SELECT version FROM {self.table_name} WHERE succeeded = ?",
                (True,),
            )
        except DatabaseError as e:
            raise SchemaError(f"Failed to read ledger table {self.table_name}: {e}") from e
        return sorted(Version(row["version"]) for row in rows)

    def current_version(self, conn: DatabaseAdapter) -> Version:
        """Get the database version.

        The maximum is taken with the version comparator rather than SQL
        MAX(), which would order "10" before "9".

        Returns:
            Highest succeeded version, or ZERO for an empty ledger
        """
        return max_version(self.applied_versions(conn))

    def history(self, conn: DatabaseAdapter) -> list[VersionRecord]:
        """Get every ledger row in version order.

        Raises:
            SchemaError: If the ledger cannot be read
        """
        try:
            rows = conn.fetchall(
                f"SELECT version, applied_at, succeeded, sql_text FROM {self.table_name}"
            )
        except DatabaseError as e:
            raise SchemaError(f"Failed to read ledger table {self.table_name}: {e}") from e

        records = [
            VersionRecord(
                version=Version(row["version"]),
                applied_at=_as_datetime(row["applied_at"]),
                succeeded=bool(row["succeeded"]),
                sql_text=row["sql_text"],
            )
            for row in rows
        ]
        return sorted(records, key=lambda record: record.version)

    def record(
        self,
        conn: DatabaseAdapter,
        unit: "MigrationUnit",
        sql_text: str,
        succeeded: bool,
    ) -> VersionRecord:
        """Append one ledger row for an applied migration.

        Does not commit; the caller owns the transaction.

        Raises:
            WriteError: If the insert fails
        """
        record = VersionRecord(
            version=unit.version,
            applied_at=datetime.now(timezone.utc).replace(tzinfo=None),
            succeeded=succeeded,
            sql_text=sql_text,
        )
        try:
            conn.execute(
                f"INSERT INTO {self.table_name} (version, succeeded, applied_at, sql_text) "
                "VALUES (?, ?, ?, ?)",
                (record.version.token, record.succeeded, record.applied_at, record.sql_text),
            )
        except DatabaseError as e:
            raise WriteError(f"Failed to record version {unit.version}: {e}") from e
        return record


def _as_datetime(value) -> datetime:
    # SQLite hands timestamps back as text
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value
