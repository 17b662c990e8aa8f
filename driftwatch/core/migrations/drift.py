"""
Drift Computation

Pure comparison of the migration inventory against applied records.
"""
from typing import Iterable, Sequence, Union
from driftwatch.core.migrations.migration_models import AppliedMigration, DriftReport, Migration


def compute_drift(
    inventory: Sequence[Migration],
    applied: Iterable[Union[AppliedMigration, int]],
) -> DriftReport:
    """
    Compute missing = inventory - applied, preserving inventory order.

    Args:
        inventory: Migrations sorted by number
        applied: Tracking rows, or bare migration numbers that are known applied

    Returns:
        DriftReport; in_sync when nothing is missing
    """
    applied_numbers = set()
    failed_numbers = set()
    for entry in applied:
        if isinstance(entry, AppliedMigration):
            if entry.succeeded:
                applied_numbers.add(entry.number)
            else:
                failed_numbers.add(entry.number)
        else:
            applied_numbers.add(int(entry))

    missing = tuple(m for m in inventory if m.number not in applied_numbers)
    failed = tuple(m for m in missing if m.number in failed_numbers)
    known = {m.number for m in inventory}
    unexpected = tuple(sorted(applied_numbers - known))

    return DriftReport(
        missing=missing,
        failed=failed,
        unexpected=unexpected,
        inventory_count=len(inventory),
        applied_count=len(applied_numbers),
        inventory=tuple(inventory),
    )
