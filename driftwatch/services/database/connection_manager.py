"""
Database Connection Manager

Handles connection lifecycle with bounded retries and health checks.
"""
import asyncio
import logging
from typing import Optional
from urllib.parse import urlparse
import asyncpg
from databases import Database
from driftwatch.core.migrations.errors import MigrationConnectionError
from driftwatch.modules.settings import mask_database_url

logger = logging.getLogger("driftwatch.database.connection")

# Failures worth another attempt: network trouble and a server that is
# starting up or saturated.
TRANSIENT_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.TooManyConnectionsError,
)

# Retrying will not fix these.
FATAL_ERRORS = (
    asyncpg.exceptions.InvalidAuthorizationSpecificationError,
    asyncpg.exceptions.InvalidCatalogNameError,
)


class ConnectionManager:
    """
    Manages database connection lifecycle.
    """

    def __init__(
        self,
        database_url: str,
        max_retries: int = 3,
        retry_backoff_seconds: float = 0.5,
        connect_timeout: Optional[float] = None,
    ):
        """
        Initialize connection manager.

        Args:
            database_url: Database URL
            max_retries: Extra connection attempts after the first one fails
            retry_backoff_seconds: Base delay; doubles after every failed attempt
            connect_timeout: Per-attempt connect timeout in seconds (PostgreSQL only)
        """
        if not database_url:
            raise ValueError("database_url is required")

        self.database_url = database_url
        self.max_retries = max(0, int(max_retries))
        self.retry_backoff_seconds = max(0.0, float(retry_backoff_seconds))
        self.connect_timeout = connect_timeout
        self._database: Optional[Database] = None

    @property
    def target(self) -> str:
        return mask_database_url(self.database_url)

    @property
    def database(self) -> Database:
        """
        Get the database instance. Creates it if it doesn't exist.
        """
        if self._database is None:
            self._database = Database(self.database_url, **self._database_options())
        return self._database

    def _database_options(self) -> dict:
        # asyncpg defaults to a 60s connect timeout
        if self.connect_timeout and urlparse(self.database_url).scheme.startswith("postgres"):
            return {"timeout": self.connect_timeout}
        return {}

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (0-based)."""
        return self.retry_backoff_seconds * (2 ** attempt)

    async def connect(self) -> Database:
        """
        Establish the database connection, retrying transient failures.

        Returns:
            The connected Database

        Raises:
            MigrationConnectionError: When every attempt failed or the failure
                is not transient
        """
        database = self.database
        if database.is_connected:
            return database

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            try:
                await database.connect()
                logger.info(f"Database connection established: {self.target}")
                return database
            except FATAL_ERRORS as e:
                logger.error(f"Cannot connect to {self.target}: {e}")
                raise MigrationConnectionError(self.target, attempt + 1, str(e)) from e
            except TRANSIENT_ERRORS as e:
                if attempt + 1 >= attempts:
                    logger.error(f"Giving up on {self.target} after {attempts} attempt(s): {e}")
                    raise MigrationConnectionError(self.target, attempts, str(e)) from e
                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"Connection attempt {attempt + 1}/{attempts} to {self.target} failed: {e}; "
                    f"retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

        # range() above always returns or raises
        raise MigrationConnectionError(self.target, attempts)

    async def disconnect(self) -> None:
        """
        Close database connection.
        """
        if self._database is not None and self._database.is_connected:
            await self._database.disconnect()
            logger.info("Database connection closed")

    async def health_check(self) -> None:
        """
        Verify the connection answers a trivial query.

        Raises:
            MigrationConnectionError: If not connected or the query fails
        """
        if not self.is_connected():
            raise MigrationConnectionError(self.target, 0, "not connected")
        try:
            await self._database.fetch_val("SELECT 1")
        except TRANSIENT_ERRORS as e:
            raise MigrationConnectionError(self.target, 1, str(e)) from e

    def is_connected(self) -> bool:
        """
        Check if database is currently connected.
        """
        return self._database is not None and self._database.is_connected

    async def __aenter__(self) -> Database:
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()
