"""
Drift Checker

Reads the migration inventory, probes the target database under a bounded
timeout and diffs the two. One synchronous pass per check; nothing is
written anywhere.
"""
import asyncio
import logging
import sqlite3
from typing import List, Optional
import asyncpg
from driftwatch.core.migrations.drift import compute_drift
from driftwatch.core.migrations.errors import (
    ConfigurationError,
    DuplicateMigrationError,
    MigrationConnectionError,
    MigrationNotFoundError,
    MigrationProbeError,
    MigrationSchemaError,
    ProbeTimeoutError,
)
from driftwatch.core.migrations.migration_models import (
    AppliedMigration,
    CheckOutcome,
    CheckStatus,
    DriftReport,
)
from driftwatch.core.migrations.migration_registry import MigrationRegistry
from driftwatch.core.migrations.migration_tracker import MigrationTracker
from driftwatch.modules.settings import CheckSettings
from driftwatch.services.database.connection_manager import TRANSIENT_ERRORS, ConnectionManager

logger = logging.getLogger("driftwatch.checker")


class DriftChecker:
    """
    Compares the migration inventory with the applied migrations of one database.
    """

    def __init__(
        self,
        settings: CheckSettings,
        registry: Optional[MigrationRegistry] = None,
        connection_manager: Optional[ConnectionManager] = None,
    ):
        """
        Initialize drift checker.

        Args:
            settings: Resolved check settings
            registry: Inventory reader; built from settings when omitted
            connection_manager: Connection owner; built from settings when omitted
        """
        self.settings = settings
        self.registry = registry or MigrationRegistry(settings.migrations_dir, settings.suffixes)
        self.connection_manager = connection_manager or ConnectionManager(
            settings.database_url,
            max_retries=settings.max_retries,
            retry_backoff_seconds=settings.retry_backoff_seconds,
            connect_timeout=connect_timeout_for(settings),
        )

    @property
    def target(self) -> str:
        return self.settings.masked_url()

    async def _probe(self) -> List[AppliedMigration]:
        database = await self.connection_manager.connect()
        try:
            tracker = MigrationTracker(database, self.settings.tracking_table, target=self.target)
            return await tracker.get_applied_records()
        except TRANSIENT_ERRORS as e:
            logger.error(f"Lost connection to {self.target} while reading {self.settings.tracking_table}: {e}")
            raise MigrationConnectionError(self.target, 1, str(e)) from e
        except (asyncpg.exceptions.PostgresError, sqlite3.Error) as e:
            logger.error(f"Cannot read {self.settings.tracking_table} on {self.target}: {e}")
            raise MigrationProbeError(self.settings.tracking_table, self.target, str(e)) from e
        finally:
            await self.connection_manager.disconnect()

    async def probe_applied(self) -> List[AppliedMigration]:
        """
        Read the tracking table, bounded by settings.timeout_seconds.

        Raises:
            ProbeTimeoutError: If connecting and reading took too long
            MigrationConnectionError: If the database stayed unreachable
            MigrationSchemaError: If the tracking table does not exist
            MigrationProbeError: If the tracking table exists but cannot be read
        """
        timeout = self.settings.timeout_seconds
        try:
            return await asyncio.wait_for(self._probe(), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Database probe against {self.target} timed out after {timeout:g}s")
            raise ProbeTimeoutError(timeout, self.target) from e

    async def check(self) -> DriftReport:
        """
        Strict variant: return the drift report or raise the typed error.
        """
        inventory = self.registry.discover_migrations()
        applied = await self.probe_applied()
        return compute_drift(inventory, applied)

    def _outcome(self, status: CheckStatus, **kwargs) -> CheckOutcome:
        return CheckOutcome(
            status=status,
            target=self.target,
            migrations_dir=self.registry.migrations_dir,
            **kwargs,
        )

    def _failure(self, status: CheckStatus, error: Exception) -> CheckOutcome:
        return self._outcome(status, error=str(error), error_type=type(error).__name__)

    async def run(self) -> CheckOutcome:
        """
        Run the check and classify the result.

        Returns:
            CheckOutcome tagged IN_SYNC, DRIFT, NO_TRACKING_TABLE, UNKNOWN or ERROR
        """
        try:
            inventory = self.registry.discover_migrations()
        except (MigrationNotFoundError, DuplicateMigrationError) as e:
            logger.error(f"Cannot read migration inventory: {e}")
            return self._failure(CheckStatus.ERROR, e)

        try:
            applied = await self.probe_applied()
        except MigrationSchemaError as e:
            logger.warning(str(e))
            return self._outcome(
                CheckStatus.NO_TRACKING_TABLE,
                report=compute_drift(inventory, []),
                error=str(e),
                error_type=type(e).__name__,
            )
        except ProbeTimeoutError as e:
            return self._failure(CheckStatus.UNKNOWN, e)
        except (MigrationConnectionError, MigrationProbeError) as e:
            return self._failure(CheckStatus.ERROR, e)

        report = compute_drift(inventory, applied)
        if report.in_sync:
            logger.info(f"All {report.inventory_count} migrations are applied on {self.target}")
            return self._outcome(CheckStatus.IN_SYNC, report=report)

        logger.warning(
            f"{report.missing_count} of {report.inventory_count} migrations missing on {self.target}: "
            f"{', '.join(m.identifier for m in report.missing)}"
        )
        return self._outcome(CheckStatus.DRIFT, report=report)


def run_check(settings: CheckSettings) -> CheckOutcome:
    """Run a single drift check from synchronous code."""
    return asyncio.run(DriftChecker(settings).run())


def connect_timeout_for(settings: CheckSettings) -> float:
    """
    Per-attempt connect timeout. Half of an even share of the probe budget,
    leaving room for backoff delays and the tracking table read.
    """
    return settings.timeout_seconds / (settings.max_retries + 1) / 2


def configuration_failure(error: ConfigurationError, migrations_dir: str = "") -> CheckOutcome:
    """ERROR outcome for a check that could not be configured."""
    logger.error(f"Drift check is not configured: {error}")
    return CheckOutcome(
        status=CheckStatus.ERROR,
        target="unconfigured",
        migrations_dir=migrations_dir,
        error=str(error),
        error_type=type(error).__name__,
    )
