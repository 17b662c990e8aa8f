"""
Migration Registry

Discovers migrations from the migrations directory.
"""
import os
import re
import logging
from typing import List, Dict, Iterable, Optional
from driftwatch.core.migrations.errors import DuplicateMigrationError, MigrationNotFoundError
from driftwatch.core.migrations.migration_models import Migration

logger = logging.getLogger("driftwatch.migrations.registry")

DEFAULT_SUFFIXES = (".sql",)


class MigrationRegistry:
    """
    Reads the migration inventory from a directory.
    """

    def __init__(self, migrations_dir: str, suffixes: Optional[Iterable[str]] = None):
        """
        Initialize migration registry.

        Args:
            migrations_dir: Path to the migrations directory
            suffixes: File extensions that count as migrations. Defaults to .sql
        """
        self.migrations_dir = str(migrations_dir)
        self.suffixes = tuple(
            s if s.startswith(".") else f".{s}" for s in (suffixes or DEFAULT_SUFFIXES)
        )
        # 001_name.sql, 015_name.sql
        alternatives = "|".join(re.escape(s) for s in self.suffixes)
        self.migration_pattern = re.compile(rf"^(\d+)_(.+)({alternatives})$")

    def _list_directory(self) -> List[str]:
        if not os.path.exists(self.migrations_dir):
            raise MigrationNotFoundError(self.migrations_dir, "directory does not exist")
        if not os.path.isdir(self.migrations_dir):
            raise MigrationNotFoundError(self.migrations_dir, "not a directory")
        try:
            return sorted(os.listdir(self.migrations_dir))
        except OSError as e:
            raise MigrationNotFoundError(self.migrations_dir, e.strerror or str(e)) from e

    def discover_migrations(self) -> List[Migration]:
        """
        Discover all migration files in the migrations directory.

        Returns:
            List of Migration objects, sorted by migration number.

        Raises:
            MigrationNotFoundError: If the directory cannot be read.
            DuplicateMigrationError: If two files share a migration number.
        """
        migrations: Dict[int, List[Migration]] = {}

        for filename in self._list_directory():
            if not filename.endswith(self.suffixes):
                continue

            match = self.migration_pattern.match(filename)
            if not match:
                logger.warning(f"Skipping file with invalid migration name format: {filename}")
                continue

            migration = Migration(
                number=int(match.group(1)),
                name=match.group(2),
                filename=filename,
                filepath=os.path.join(self.migrations_dir, filename),
            )
            migrations.setdefault(migration.number, []).append(migration)

        duplicates = {
            num: [m.filename for m in migs]
            for num, migs in migrations.items()
            if len(migs) > 1
        }
        if duplicates:
            error = DuplicateMigrationError(duplicates)
            logger.error(str(error))
            raise error

        result = [migrations[num][0] for num in sorted(migrations)]
        logger.info(f"Discovered {len(result)} migrations from {self.migrations_dir}")
        return result

    def get_migration_by_number(self, number: int) -> Migration:
        """
        Get a specific migration by number.

        Raises:
            KeyError: If no migration carries that number
            MigrationNotFoundError: If the inventory itself cannot be read
        """
        for migration in self.discover_migrations():
            if migration.number == number:
                return migration

        raise KeyError(f"Migration {number:03d} not found in {self.migrations_dir}")
