"""CLI entry point for the mockjson.cli module.

Enables execution via: python -m mockjson.cli <command> [OPTIONS]

Commands:
    cleanup-jobs   Delete old completed/failed generation jobs
    create-user    Provision a free-tier user
    set-plan       Move a user between the free and pro tiers
"""

import asyncio
import sys
from argparse import ArgumentParser
from typing import Optional, Sequence

from mockjson.cli import accounts, cleanup_jobs


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = ArgumentParser(prog="python -m mockjson.cli", description="mockjson maintenance")
    commands = parser.add_subparsers(dest="command", required=True)
    cleanup_jobs.add_arguments(
        commands.add_parser("cleanup-jobs", help="Delete old completed/failed generation jobs")
    )
    accounts.add_create_user_arguments(
        commands.add_parser("create-user", help="Provision a free-tier user")
    )
    accounts.add_set_plan_arguments(
        commands.add_parser("set-plan", help="Move a user between the free and pro tiers")
    )

    args = parser.parse_args(argv)
    if args.command == "cleanup-jobs":
        return asyncio.run(cleanup_jobs.run_cleanup(args))
    if args.command == "create-user":
        return asyncio.run(accounts.run_create_user(args))
    if args.command == "set-plan":
        return asyncio.run(accounts.run_set_plan(args))
    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
