"""Account provisioning and plan changes.

Users are provisioned when the identity provider reports a sign-up, and move
between tiers when billing reports a subscription change. Each tier comes
with its own starting balance.
"""

from typing import Any, Callable
from uuid import UUID

import structlog

from mockjson.core.config import Settings
from mockjson.models.user import User
from mockjson.services.exceptions import UserNotFound

logger = structlog.get_logger()


class AccountService:
    """User provisioning and tier changes.

    Args:
        uow_factory: Factory producing UnitOfWork instances
        settings: Application settings (INITIAL_CREDITS, PRO_CREDITS)
    """

    def __init__(self, uow_factory: Callable[[], Any], settings: Settings):
        self.uow_factory = uow_factory
        self.settings = settings

    async def register_user(self, email: str) -> tuple[User, bool]:
        """Create a free-tier user with INITIAL_CREDITS, or return the existing one.

        Sign-up events can be delivered more than once; a repeat returns the
        stored user unchanged.

        Returns:
            Tuple of (user, created)

        Raises:
            ValueError: If email is blank
        """
        if not email or not email.strip():
            raise ValueError("Email cannot be empty")

        async with await self.uow_factory() as uow:
            existing = await uow.users.get_by_email(email)
            if existing is not None:
                return existing, False
            user = await uow.users.add(
                User(email=email, is_pro=False, credits=self.settings.initial_credits)
            )

        logger.info("user.registered", user_id=str(user.id), credits=user.credits)
        return user, True

    async def set_plan(self, user_id: UUID, is_pro: bool) -> User:
        """Switch a user's tier and reset the balance to that tier's allowance.

        Raises:
            UserNotFound: If the user does not exist
        """
        credits = self.settings.pro_credits if is_pro else self.settings.initial_credits
        async with await self.uow_factory() as uow:
            if not await uow.users.set_pro(user_id, is_pro, credits):
                raise UserNotFound(f"User {user_id} not found")
            user = await uow.users.get_by_id(user_id)

        logger.info("user.plan_changed", user_id=str(user_id), is_pro=is_pro, credits=credits)
        return user
