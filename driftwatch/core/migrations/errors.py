"""
Migration Check Errors

Typed failures raised by the inventory reader, the applied-migration prober
and the settings loader. Each error keeps the context an operator needs
(path, target, table) so callers never have to guess what went wrong.
"""
from typing import Dict, List, Optional


class MigrationCheckError(Exception):
    """Base class for all drift check failures."""


class ConfigurationError(MigrationCheckError, ValueError):
    """Settings are missing or malformed."""


class MigrationNotFoundError(MigrationCheckError, FileNotFoundError):
    """
    The migration inventory source cannot be read.

    Fatal: reported to the operator, never retried.
    """

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        message = f"Migration inventory not found: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class DuplicateMigrationError(MigrationCheckError, ValueError):
    """Two or more migration files share the same version number."""

    def __init__(self, duplicates: Dict[int, List[str]]):
        self.duplicates = duplicates
        lines = ["Duplicate migration numbers found:"]
        for number in sorted(duplicates):
            lines.append(f"  {number:03d}: {', '.join(sorted(duplicates[number]))}")
        super().__init__("\n".join(lines))


class MigrationConnectionError(MigrationCheckError, ConnectionError):
    """The target database could not be reached after all retries."""

    def __init__(self, target: str, attempts: int, reason: Optional[str] = None):
        self.target = target
        self.attempts = attempts
        self.reason = reason
        message = f"Could not connect to {target} after {attempts} attempt(s)"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MigrationSchemaError(MigrationCheckError):
    """
    The migration tracking table does not exist.

    This is a legitimate terminal state meaning no migration has ever been
    applied. It is not a connection failure.
    """

    def __init__(self, table: str, target: Optional[str] = None):
        self.table = table
        self.target = target
        where = f" on {target}" if target else ""
        super().__init__(
            f"Tracking table '{table}' does not exist{where}; "
            f"zero migrations have been applied"
        )


class MigrationProbeError(MigrationCheckError):
    """
    The tracking table exists but could not be read, e.g. missing privileges
    or columns that do not match the schema_migrations layout.
    """

    def __init__(self, table: str, target: Optional[str] = None, reason: Optional[str] = None):
        self.table = table
        self.target = target
        self.reason = reason
        where = f" on {target}" if target else ""
        message = f"Could not read tracking table '{table}'{where}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ProbeTimeoutError(MigrationCheckError, TimeoutError):
    """The database probe did not finish within the configured timeout."""

    def __init__(self, timeout: float, target: Optional[str] = None):
        self.timeout = timeout
        self.target = target
        where = f" against {target}" if target else ""
        super().__init__(f"Database probe timed out after {timeout:g}s{where}")
