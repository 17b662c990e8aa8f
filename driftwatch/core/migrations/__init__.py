"""
Migrations Core

- migration_models: Migration, AppliedMigration, DriftReport, CheckOutcome
- migration_registry: inventory discovery
- migration_tracker: tracking table queries
- drift: inventory vs. applied comparison
"""

from driftwatch.core.migrations.drift import compute_drift
from driftwatch.core.migrations.errors import (
    ConfigurationError,
    DuplicateMigrationError,
    MigrationCheckError,
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
    Migration,
    MigrationStatus,
)
from driftwatch.core.migrations.migration_registry import MigrationRegistry
from driftwatch.core.migrations.migration_tracker import MigrationTracker

__all__ = [
    "compute_drift",
    "ConfigurationError",
    "DuplicateMigrationError",
    "MigrationCheckError",
    "MigrationConnectionError",
    "MigrationNotFoundError",
    "MigrationProbeError",
    "MigrationSchemaError",
    "ProbeTimeoutError",
    "AppliedMigration",
    "CheckOutcome",
    "CheckStatus",
    "DriftReport",
    "Migration",
    "MigrationStatus",
    "MigrationRegistry",
    "MigrationTracker",
]
