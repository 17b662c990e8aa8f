"""
Drift Report Formatting

Renders a CheckOutcome for operators (text) and machines (JSON).
"""
import json
from typing import List
from driftwatch.core.migrations.migration_models import CheckOutcome, CheckStatus

HEADLINES = {
    CheckStatus.IN_SYNC: "✅ In sync",
    CheckStatus.DRIFT: "❌ Drift detected",
    CheckStatus.NO_TRACKING_TABLE: "⚠️ No tracking table (zero migrations applied)",
    CheckStatus.UNKNOWN: "❓ Unknown (database probe timed out)",
    CheckStatus.ERROR: "❌ Check failed",
}


def format_text(outcome: CheckOutcome, verbose: bool = False) -> str:
    lines: List[str] = [
        f"Migration status: {HEADLINES[outcome.status]}",
        f"   Target: {outcome.target}",
        f"   Migrations: {outcome.migrations_dir}",
    ]

    if outcome.error:
        lines.append(f"   {outcome.error_type or 'Error'}: {outcome.error}")

    report = outcome.report
    if report is not None:
        lines.append(
            f"   Applied: {report.applied_count} | Inventory: {report.inventory_count} "
            f"| Missing: {report.missing_count}"
        )
        if report.missing:
            lines.append("")
            lines.append(f"Missing migrations ({report.missing_count}):")
            failed = {m.number for m in report.failed}
            for migration in report.missing:
                suffix = "  (last attempt failed)" if migration.number in failed else ""
                lines.append(f"  - {migration.filename}{suffix}")
        if report.unexpected:
            lines.append("")
            lines.append("Applied but not in inventory:")
            lines.extend(f"  - {number:03d}" for number in report.unexpected)
        if verbose and report.inventory:
            missing = {m.number for m in report.missing}
            lines.append("")
            lines.append("Inventory:")
            for migration in report.inventory:
                mark = " " if migration.number in missing else "x"
                lines.append(f"  [{mark}] {migration.filename}")

    return "\n".join(lines)


def format_json(outcome: CheckOutcome) -> str:
    return json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False)
