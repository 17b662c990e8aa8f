#!/usr/bin/env python3
"""
Migration Drift Check

Compares the migration files on disk with the migrations recorded in the
target database and exits with a status code usable as a CI or startup gate:

    0  in sync
    1  drift detected
    2  tracking table missing (zero migrations applied)
    3  unknown (database probe timed out)
    4  error (inventory unreadable, database unreachable, bad configuration)
"""
import os
import sys
import logging
import argparse
from typing import List, Optional
from dotenv import load_dotenv
from driftwatch.core.migrations.errors import ConfigurationError
from driftwatch.core.migrations.migration_models import EXIT_CODES, CheckStatus
from driftwatch.core.migrations.report_formatter import format_json, format_text
from driftwatch.modules.settings import CheckSettings
from driftwatch.services.database.drift_checker import run_check


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="driftwatch",
        description="Detect drift between migration files and applied database migrations",
    )
    parser.add_argument("--database-url", help="Database URL (default: DATABASE_URL or PG* variables)")
    parser.add_argument("--migrations-dir", help="Directory holding NNN_name.sql files")
    parser.add_argument("--table", dest="tracking_table", help="Tracking table name")
    parser.add_argument("--timeout", dest="timeout_seconds", type=float, help="Probe timeout in seconds")
    parser.add_argument("--retries", dest="max_retries", type=int, help="Extra connection attempts")
    parser.add_argument("--backoff", dest="retry_backoff_seconds", type=float, help="Base retry delay in seconds")
    parser.add_argument(
        "--suffix",
        dest="suffixes",
        action="append",
        help="Migration file extension; repeat for several (default: .sql)",
    )
    parser.add_argument("--env-file", help="Extra .env file to read settings from")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="List every inventory entry")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for diagnostics on stderr",
    )
    return parser


def load_settings(args: argparse.Namespace) -> CheckSettings:
    env = None
    if args.database_url:
        load_dotenv()
        env = {**os.environ, "DATABASE_URL": args.database_url}
    settings = CheckSettings.from_env(env=env, dotenv_path=args.env_file)
    return settings.with_overrides(
        migrations_dir=args.migrations_dir,
        tracking_table=args.tracking_table,
        timeout_seconds=args.timeout_seconds,
        max_retries=args.max_retries,
        retry_backoff_seconds=args.retry_backoff_seconds,
        suffixes=tuple(args.suffixes) if args.suffixes else None,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = load_settings(args)
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return EXIT_CODES[CheckStatus.ERROR]

    outcome = run_check(settings)

    if args.json:
        print(format_json(outcome))
    else:
        print(format_text(outcome, verbose=args.verbose))

    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
