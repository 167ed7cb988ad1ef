"""CLI command for the generation job retention sweep.

Deletes completed and failed jobs older than the retention threshold.
Queued and processing jobs are never touched. Safe to run repeatedly or from
several schedulers at once.

Usage:
    python -m mockjson.cli cleanup-jobs [OPTIONS]
    python -m mockjson.cli.cleanup_jobs [OPTIONS]

Examples:
    # Default retention (JOB_RETENTION_DAYS, 7 days)
    python -m mockjson.cli cleanup-jobs

    # Keep only the last day
    python -m mockjson.cli cleanup-jobs --max-age-days 1

    # Count what would be deleted
    python -m mockjson.cli cleanup-jobs --dry-run
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace
from typing import Optional, Sequence

import structlog

from mockjson.core import timezone  # noqa: F401
from mockjson.core.config import Settings, configure_logging
from mockjson.core.database import setup_db_session
from mockjson.services.job_store import JobStore
from mockjson.uow import create_uow_factory

logger = structlog.get_logger()


def add_arguments(parser: ArgumentParser) -> ArgumentParser:
    parser.add_argument(
        "--max-age-days",
        type=int,
        default=None,
        help="Delete terminal jobs created more than N days ago (default: JOB_RETENTION_DAYS)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Count matching jobs without deleting them",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(description="Delete old completed/failed generation jobs")
    return add_arguments(parser).parse_args(argv)


async def run_cleanup(args: Namespace, settings: Optional[Settings] = None) -> int:
    """Run the sweep.

    Returns:
        Exit code: 0 (success), 1 (error)
    """
    settings = settings or Settings()  # type: ignore[call-arg]
    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    if args.max_age_days is not None and args.max_age_days < 0:
        logger.error("cleanup_jobs.error", message="--max-age-days must be >= 0")
        return 1

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    job_store = JobStore(create_uow_factory(session_factory), settings)

    try:
        count = await job_store.cleanup_old_jobs(args.max_age_days, dry_run=args.dry_run)
    except Exception as e:
        logger.error("cleanup_jobs.fatal_error", error=str(e), exc_info=True)
        return 1
    finally:
        await session_factory.kw["bind"].dispose()

    if args.dry_run:
        logger.info("cleanup_jobs.dry_run_complete", would_delete=count)
    else:
        logger.info("cleanup_jobs.complete", deleted=count)
    return 0


async def async_main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point (async)."""
    return await run_cleanup(parse_args(argv))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Synchronous wrapper for async main."""
    return asyncio.run(async_main(argv))


if __name__ == "__main__":
    sys.exit(main())
