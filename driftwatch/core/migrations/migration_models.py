"""
Migration Models

Data models for migration metadata, applied-migration records and drift
check results.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Dict, Any
from datetime import datetime


class MigrationStatus(Enum):
    """Status of a single migration against the tracking table."""
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"


class CheckStatus(Enum):
    """Outcome of a drift check."""
    IN_SYNC = "in_sync"
    DRIFT = "drift"
    NO_TRACKING_TABLE = "no_tracking_table"
    UNKNOWN = "unknown"
    ERROR = "error"


EXIT_CODES = {
    CheckStatus.IN_SYNC: 0,
    CheckStatus.DRIFT: 1,
    CheckStatus.NO_TRACKING_TABLE: 2,
    CheckStatus.UNKNOWN: 3,
    CheckStatus.ERROR: 4,
}


@dataclass(frozen=True)
class Migration:
    """
    A migration file from the inventory.
    """
    number: int
    name: str
    filename: str
    filepath: str

    @property
    def identifier(self) -> str:
        return f"{self.number:03d}_{self.name}"

    def __str__(self) -> str:
        return f"Migration({self.identifier})"

    def __repr__(self) -> str:
        return self.__str__()


@dataclass(frozen=True)
class AppliedMigration:
    """
    A row from the tracking table.

    A row with an error_message records a failed application and does not
    count as applied.
    """
    number: int
    filename: Optional[str] = None
    applied_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error_message is None


@dataclass(frozen=True)
class DriftReport:
    """
    Result of comparing the inventory against applied records.

    missing keeps inventory order. failed is the subset of missing whose
    tracking row records an error.
    """
    missing: Tuple[Migration, ...] = ()
    failed: Tuple[Migration, ...] = ()
    unexpected: Tuple[int, ...] = ()
    inventory_count: int = 0
    applied_count: int = 0
    inventory: Tuple[Migration, ...] = ()

    @property
    def missing_count(self) -> int:
        return len(self.missing)

    @property
    def in_sync(self) -> bool:
        return not self.missing

    def to_dict(self) -> Dict[str, Any]:
        return {
            "in_sync": self.in_sync,
            "missing_count": self.missing_count,
            "missing": [m.identifier for m in self.missing],
            "failed": [m.identifier for m in self.failed],
            "unexpected": list(self.unexpected),
            "inventory_count": self.inventory_count,
            "applied_count": self.applied_count,
        }


@dataclass(frozen=True)
class CheckOutcome:
    """
    Tagged result of a drift check.

    report is only set for IN_SYNC, DRIFT and NO_TRACKING_TABLE; error is set
    for every status except IN_SYNC and DRIFT. UNKNOWN and ERROR never carry a
    report, so a failure cannot be read as an empty success.
    """
    status: CheckStatus
    target: str
    migrations_dir: str
    report: Optional[DriftReport] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    checked_at: datetime = field(default_factory=datetime.now)

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.status]

    @property
    def ok(self) -> bool:
        return self.status is CheckStatus.IN_SYNC

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "exit_code": self.exit_code,
            "target": self.target,
            "migrations_dir": self.migrations_dir,
            "checked_at": self.checked_at.isoformat(),
            "report": self.report.to_dict() if self.report is not None else None,
            "error": self.error,
            "error_type": self.error_type,
        }
