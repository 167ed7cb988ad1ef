"""ApiUsageLog repository.

Provides data access methods for the live-gateway audit trail.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mockjson.models.api_usage import ApiUsageLog


class ApiUsageLogRepository:
    """Repository for ApiUsageLog entities (append-only)."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def add(self, entry: ApiUsageLog) -> ApiUsageLog:
        """Append an audit entry.

        Args:
            entry: ApiUsageLog entity to persist

        Returns:
            Persisted entry with generated ID
        """
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_by_resource(self, resource_id: UUID, limit: int = 100) -> list[ApiUsageLog]:
        """Retrieve audit entries for a resource, newest first.

        Args:
            resource_id: Resource's unique identifier
            limit: Maximum number of entries to return (default: 100)

        Returns:
            List of entries ordered by created_at descending
        """
        result = await self.session.execute(
            select(ApiUsageLog)
            .where(ApiUsageLog.resource_id == resource_id)  # type: ignore[arg-type]
            .order_by(ApiUsageLog.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(result.scalars().all())
