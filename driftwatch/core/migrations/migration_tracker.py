"""
Migration Tracker

Reads which migrations the target database has recorded as applied.
The tracker is read-only: it never creates or alters the tracking table.
"""
import re
import logging
from typing import List, Set, Optional
from databases import Database
from driftwatch.core.migrations.errors import MigrationSchemaError
from driftwatch.core.migrations.migration_models import AppliedMigration, MigrationStatus

logger = logging.getLogger("driftwatch.migrations.tracker")

DEFAULT_TRACKING_TABLE = "schema_migrations"

TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def validate_table_name(table_name: str) -> str:
    """
    Validate a (optionally schema-qualified) table name before it is
    interpolated into SQL.

    Raises:
        ValueError: If the name is not a plain identifier
    """
    if not table_name or not TABLE_NAME_PATTERN.match(table_name):
        raise ValueError(f"Invalid tracking table name: {table_name!r}")
    return table_name


class MigrationTracker:
    """
    Queries the schema_migrations tracking table.

    Expected columns: migration_number, filename, applied_at, error_message.
    """

    def __init__(
        self,
        database: Database,
        table_name: str = DEFAULT_TRACKING_TABLE,
        target: Optional[str] = None,
    ):
        """
        Initialize migration tracker.

        Args:
            database: Connected Database instance
            table_name: Tracking table, optionally schema-qualified
            target: Display name of the database, used in error messages
        """
        self.database = database
        self.table_name = validate_table_name(table_name)
        self.target = target

    @property
    def dialect(self) -> str:
        return self.database.url.dialect

    async def tracking_table_exists(self) -> bool:
        """
        Check whether the tracking table exists.
        """
        if self.dialect == "sqlite":
            bare_name = self.table_name.split(".")[-1]
            found = await self.database.fetch_val(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = :name",
                {"name": bare_name},
            )
        else:
            found = await self.database.fetch_val(
                "SELECT to_regclass(:name)",
                {"name": self.table_name},
            )
        return found is not None

    async def get_applied_records(self) -> List[AppliedMigration]:
        """
        Get every row of the tracking table, ordered by migration number.

        Returns:
            List of AppliedMigration, including failed applications

        Raises:
            MigrationSchemaError: If the tracking table does not exist
        """
        if not await self.tracking_table_exists():
            logger.info(f"Tracking table '{self.table_name}' does not exist")
            raise MigrationSchemaError(self.table_name, self.target)

        query = (
            f"SELECT migration_number, filename, applied_at, error_message "
            f"FROM {self.table_name} ORDER BY migration_number"
        )
        rows = await self.database.fetch_all(query)
        records = [
            AppliedMigration(
                number=int(row["migration_number"]),
                filename=row["filename"],
                applied_at=row["applied_at"],
                error_message=row["error_message"],
            )
            for row in rows
        ]
        logger.info(f"Read {len(records)} tracking rows from {self.table_name}")
        return records

    async def get_applied_migrations(self) -> Set[int]:
        """
        Get the set of successfully applied migration numbers.

        Raises:
            MigrationSchemaError: If the tracking table does not exist
        """
        records = await self.get_applied_records()
        return {record.number for record in records if record.succeeded}

    async def get_migration_status(self, migration_number: int) -> MigrationStatus:
        """
        Get the status of a specific migration.

        Args:
            migration_number: Migration number

        Returns:
            MigrationStatus; PENDING when no row exists

        Raises:
            MigrationSchemaError: If the tracking table does not exist
        """
        if not await self.tracking_table_exists():
            raise MigrationSchemaError(self.table_name, self.target)

        query = f"""
        SELECT error_message FROM {self.table_name}
        WHERE migration_number = :number
        """

        row = await self.database.fetch_one(query, {"number": migration_number})
        if not row:
            return MigrationStatus.PENDING

        if row["error_message"]:
            return MigrationStatus.FAILED

        return MigrationStatus.APPLIED
