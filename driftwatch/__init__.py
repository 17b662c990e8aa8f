"""
driftwatch

Detects drift between the migration files a project ships and the
migrations its database has recorded as applied.
"""

__version__ = "0.1.0"
