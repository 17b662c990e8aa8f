"""
Drift Check Settings

Resolves database and inventory settings from the environment (and .env
files) once, so components receive them explicitly.
"""
import os
import logging
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Tuple
from urllib.parse import urlparse, quote
from dotenv import load_dotenv, dotenv_values
from driftwatch.core.migrations.errors import ConfigurationError
from driftwatch.core.migrations.migration_tracker import DEFAULT_TRACKING_TABLE, validate_table_name

logger = logging.getLogger("driftwatch.settings")


def mask_database_url(database_url: str) -> str:
    """Hide the password in a database URL."""
    parsed = urlparse(database_url)
    if not parsed.password:
        return database_url
    netloc = parsed.netloc.replace(f":{parsed.password}@", ":***@", 1)
    return parsed._replace(netloc=netloc).geturl()


def _build_url_from_parts(env: Mapping[str, str]) -> Optional[str]:
    host = env.get("PGHOST")
    if not host:
        return None
    port = env.get("PGPORT", "5432")
    user = env.get("PGUSER", "postgres")
    password = env.get("PGPASSWORD")
    name = env.get("PGDATABASE", user)
    credentials = quote(user, safe="")
    if password:
        credentials += ":" + quote(password, safe="")
    return f"postgresql://{credentials}@{host}:{port}/{name}"


def _parse_number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a {cast.__name__}, got {raw!r}") from e


def parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class CheckSettings:
    """
    Everything a drift check needs.
    """
    database_url: str
    migrations_dir: str = "migrations"
    tracking_table: str = DEFAULT_TRACKING_TABLE
    timeout_seconds: float = 10.0
    max_retries: int = 3
    retry_backoff_seconds: float = 0.5
    suffixes: Tuple[str, ...] = field(default=(".sql",))
    fail_on_drift: bool = False

    def __post_init__(self):
        if not self.database_url:
            raise ConfigurationError("A database URL is required")
        if self.timeout_seconds <= 0:
            raise ConfigurationError("timeout_seconds must be positive")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative")
        if self.retry_backoff_seconds < 0:
            raise ConfigurationError("retry_backoff_seconds cannot be negative")
        try:
            validate_table_name(self.tracking_table)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
    ) -> "CheckSettings":
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read instead of os.environ. When omitted, .env is
                loaded into the process environment first.
            dotenv_path: Explicit env file; its values sit below real
                environment variables.

        Raises:
            ConfigurationError: If no database is configured or a value is invalid
        """
        source = {}
        if dotenv_path:
            if not os.path.isfile(dotenv_path):
                raise ConfigurationError(f"Env file not found: {dotenv_path}")
            source.update({k: v for k, v in dotenv_values(dotenv_path).items() if v is not None})
        if env is None:
            load_dotenv()
            env = os.environ
        source.update(env)

        database_url = source.get("DATABASE_URL") or _build_url_from_parts(source)
        if not database_url:
            raise ConfigurationError(
                "DATABASE_URL (or PGHOST and friends) must be set to run a drift check"
            )

        suffixes = tuple(
            s.strip() for s in source.get("DRIFTWATCH_SUFFIXES", ".sql").split(",") if s.strip()
        )

        return cls(
            database_url=database_url,
            migrations_dir=source.get("DRIFTWATCH_MIGRATIONS_DIR", "migrations"),
            tracking_table=source.get("DRIFTWATCH_TRACKING_TABLE", DEFAULT_TRACKING_TABLE),
            timeout_seconds=_parse_number(source, "DRIFTWATCH_TIMEOUT_SECONDS", 10.0, float),
            max_retries=_parse_number(source, "DRIFTWATCH_MAX_RETRIES", 3, int),
            retry_backoff_seconds=_parse_number(source, "DRIFTWATCH_RETRY_BACKOFF_SECONDS", 0.5, float),
            suffixes=suffixes or (".sql",),
            fail_on_drift=parse_bool(source.get("DRIFTWATCH_FAIL_ON_DRIFT")),
        )

    def with_overrides(self, **overrides) -> "CheckSettings":
        """Return a copy with the non-None overrides applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)

    def masked_url(self) -> str:
        return mask_database_url(self.database_url)
