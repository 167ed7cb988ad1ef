"""Resource repository.

Provides data access methods for Resource entities.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mockjson.models.resource import Resource


class ResourceRepository:
    """Repository for Resource entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def add(self, resource: Resource) -> Resource:
        """Persist new resource to database.

        Args:
            resource: Resource entity to persist

        Returns:
            Persisted resource with generated ID
        """
        self.session.add(resource)
        await self.session.flush()
        return resource

    async def get_by_id(self, resource_id: UUID) -> Resource | None:
        """Retrieve resource by UUID.

        Args:
            resource_id: Resource's unique identifier

        Returns:
            Resource if found, None otherwise
        """
        result = await self.session.execute(
            select(Resource).where(Resource.id == resource_id)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def count_by_user(self, user_id: UUID) -> int:
        """Count resources owned by a user.

        Args:
            user_id: Owning user's identifier

        Returns:
            Number of resources
        """
        result = await self.session.execute(
            select(func.count(Resource.id)).where(Resource.user_id == user_id)  # type: ignore[arg-type]
        )
        return result.scalar() or 0

    async def set_live(self, resource: Resource, live: bool) -> None:
        """Publish or unpublish a resource on the public gateway.

        Args:
            resource: Resource entity to update
            live: New visibility flag
        """
        resource.live = live
        self.session.add(resource)
        await self.session.flush()
        await self.session.refresh(resource)

    async def delete(self, resource: Resource) -> None:
        """Remove a resource.

        Args:
            resource: Resource entity to delete
        """
        await self.session.delete(resource)
        await self.session.flush()
