"""CLI commands for account provisioning and plan changes.

Usage:
    python -m mockjson.cli create-user EMAIL
    python -m mockjson.cli set-plan USER_ID (--pro | --free)

Examples:
    # Provision a free-tier user with INITIAL_CREDITS
    python -m mockjson.cli create-user someone@example.com

    # Upgrade to pro (balance reset to PRO_CREDITS)
    python -m mockjson.cli set-plan 3f1c2a9d-7b10-4c3e-9a55-0d6f1b2e8c41 --pro
"""

from argparse import ArgumentParser, Namespace
from typing import Optional
from uuid import UUID

import structlog

from mockjson.core import timezone  # noqa: F401
from mockjson.core.config import Settings, configure_logging
from mockjson.core.database import setup_db_session
from mockjson.services.account import AccountService
from mockjson.services.exceptions import UserNotFound
from mockjson.uow import create_uow_factory

logger = structlog.get_logger()


def add_create_user_arguments(parser: ArgumentParser) -> ArgumentParser:
    parser.add_argument("email", help="Email reported by the identity provider")
    return parser


def add_set_plan_arguments(parser: ArgumentParser) -> ArgumentParser:
    parser.add_argument("user_id", type=UUID, help="User UUID")
    tier = parser.add_mutually_exclusive_group(required=True)
    tier.add_argument("--pro", dest="is_pro", action="store_true", help="Upgrade to pro")
    tier.add_argument("--free", dest="is_pro", action="store_false", help="Downgrade to free")
    return parser


async def run_create_user(args: Namespace, settings: Optional[Settings] = None) -> int:
    """Provision a user.

    Returns:
        Exit code: 0 (created or already present), 1 (error)
    """
    settings = settings or Settings()  # type: ignore[call-arg]
    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    service = AccountService(create_uow_factory(session_factory), settings)
    try:
        user, created = await service.register_user(args.email)
    except ValueError as e:
        logger.error("create_user.invalid", error=str(e))
        return 1
    finally:
        await session_factory.kw["bind"].dispose()

    logger.info("create_user.complete", user_id=str(user.id), created=created)
    print(user.id)
    return 0


async def run_set_plan(args: Namespace, settings: Optional[Settings] = None) -> int:
    """Change a user's tier.

    Returns:
        Exit code: 0 (success), 1 (unknown user)
    """
    settings = settings or Settings()  # type: ignore[call-arg]
    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    service = AccountService(create_uow_factory(session_factory), settings)
    try:
        user = await service.set_plan(args.user_id, args.is_pro)
    except UserNotFound as e:
        logger.error("set_plan.user_not_found", error=str(e))
        return 1
    finally:
        await session_factory.kw["bind"].dispose()

    logger.info(
        "set_plan.complete", user_id=str(user.id), is_pro=user.is_pro, credits=user.credits
    )
    return 0
