"""User repository.

Provides data access methods for User entities, including the atomic counter
updates used for credit accounting and live-gateway quotas.
"""

from uuid import UUID

from sqlalchemy import and_, case, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mockjson.models.user import User


class UserRepository:
    """Repository for User entities.

    Counter mutations are single UPDATE statements relative to the stored value,
    so concurrent requests for the same user never lose updates.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Retrieve user by UUID.

        Args:
            user_id: User's unique identifier

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(select(User).where(User.id == user_id))  # type: ignore[arg-type]
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Retrieve user by email (case-insensitive, stored lowercase).

        Args:
            email: Email address as supplied by the identity provider

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def add(self, user: User) -> User:
        """Persist new user to database.

        Args:
            user: User entity to persist

        Returns:
            Persisted user with generated ID
        """
        user.email = user.email.strip().lower()
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_credits(self, user_id: UUID) -> int | None:
        """Read the stored credit balance without going through the identity map."""
        result = await self.session.execute(select(User.credits).where(User.id == user_id))  # type: ignore[arg-type]
        return result.scalar_one_or_none()

    async def decrement_credits(self, user_id: UUID, amount: int) -> bool:
        """Atomically subtract credits from the stored balance.

        Query explanation:
            UPDATE users SET credits = credits - :amount WHERE id = :user_id

        Args:
            user_id: User's unique identifier
            amount: Credits to subtract

        Returns:
            True if a row was updated, False if the user does not exist
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .values(credits=User.credits - amount)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def set_pro(self, user_id: UUID, is_pro: bool, credits: int) -> bool:
        """Change the user's tier and reset the credit balance for that tier.

        Args:
            user_id: User's unique identifier
            is_pro: New tier flag
            credits: Balance granted for the new tier

        Returns:
            True if a row was updated, False if the user does not exist
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .values(is_pro=is_pro, credits=credits)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def consume_api_request(self, user_id: UUID, period: str, limit: int) -> int | None:
        """Count one live-gateway request against the user's monthly quota.

        A single conditional UPDATE performs the lazy period reset, the limit
        check and the increment, so the limit is enforced before incrementing
        and concurrent requests cannot overshoot it.

        Query explanation:
            UPDATE users
            SET api_requests_this_month = CASE
                    WHEN api_requests_period = :period THEN api_requests_this_month + 1
                    ELSE 1
                END,
                api_requests_period = :period
            WHERE id = :user_id
              AND (api_requests_period IS NULL
                   OR api_requests_period != :period
                   OR api_requests_this_month < :limit)

        Args:
            user_id: User's unique identifier
            period: Current billing period key (e.g. "2024-2")
            limit: Monthly request ceiling for the user's tier

        Returns:
            Request count for the period after incrementing, or None if the
            quota is already used up (counter left unchanged)
        """
        same_period = User.api_requests_period == period  # type: ignore[arg-type]
        result = await self.session.execute(
            update(User)
            .where(
                and_(
                    User.id == user_id,  # type: ignore[arg-type]
                    or_(
                        User.api_requests_period.is_(None),  # type: ignore[union-attr]
                        User.api_requests_period != period,  # type: ignore[arg-type]
                        User.api_requests_this_month < limit,  # type: ignore[arg-type]
                    ),
                )
            )
            .values(
                api_requests_this_month=case(
                    (same_period, User.api_requests_this_month + 1),
                    else_=1,
                ),
                api_requests_period=period,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

        if result.rowcount == 0:  # type: ignore[attr-defined]
            return None

        count_result = await self.session.execute(
            select(User.api_requests_this_month).where(User.id == user_id)  # type: ignore[arg-type]
        )
        return count_result.scalar_one()

