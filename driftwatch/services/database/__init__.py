"""
Database Services

- connection_manager: connection lifecycle with bounded retries
- drift_checker: inventory read, probe and diff
"""

from driftwatch.services.database.connection_manager import ConnectionManager
from driftwatch.services.database.drift_checker import DriftChecker, run_check

__all__ = [
    "ConnectionManager",
    "DriftChecker",
    "run_check",
]
