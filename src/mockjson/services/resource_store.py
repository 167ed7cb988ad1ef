"""Saved resources: create from data or from a completed job, publish, fetch, delete."""

from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from mockjson.core.config import Settings
from mockjson.models.job import JobStatus
from mockjson.models.resource import Resource
from mockjson.services.exceptions import (
    InvalidState,
    JobNotFound,
    ResourceLimitReached,
    ResourceNotFound,
    UserNotFound,
)

logger = structlog.get_logger()


class ResourceStore:
    """Resource operations scoped to the owning user.

    A resource owned by someone else is reported as not found.
    """

    def __init__(self, uow_factory: Callable[[], Any], settings: Settings):
        self.uow_factory = uow_factory
        self.settings = settings

    async def create_resource(
        self,
        user_id: UUID,
        project_id: str,
        name: str,
        data: Optional[list[dict[str, Any]]] = None,
        job_id: Optional[UUID] = None,
    ) -> Resource:
        """Save a named result set.

        Exactly one of ``data`` or ``job_id`` must be given; with ``job_id`` the
        result of the caller's completed job is copied.

        Raises:
            ValueError: If neither or both sources are given, or name is blank
            UserNotFound: If the user does not exist
            ResourceLimitReached: If a free user already has FREE_RESOURCE_LIMIT resources
            JobNotFound: If job_id is unknown or belongs to another user
            InvalidState: If the job has not completed
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Resource name cannot be empty")
        if (data is None) == (job_id is None):
            raise ValueError("Provide either data or job_id")

        async with await self.uow_factory() as uow:
            user = await uow.users.get_by_id(user_id)
            if user is None:
                raise UserNotFound(f"User {user_id} not found")

            if not user.is_pro:
                owned = await uow.resources.count_by_user(user_id)
                if owned >= self.settings.free_resource_limit:
                    raise ResourceLimitReached(
                        "You have reached the maximum number of resources for the free plan"
                    )

            if job_id is not None:
                job = await uow.jobs.get_by_id(job_id)
                if job is None or job.user_id != user_id:
                    raise JobNotFound(f"Job {job_id} not found")
                if job.status != JobStatus.COMPLETED or not job.result:
                    raise InvalidState("Only completed jobs can be saved as a resource")
                data = job.result

            resource = await uow.resources.add(
                Resource(
                    user_id=user_id,
                    project_id=project_id,
                    name=name,
                    data=list(data or []),
                )
            )

        logger.info(
            "resource.created",
            resource_id=str(resource.id),
            user_id=str(user_id),
            project_id=project_id,
            item_count=len(resource.data),
            from_job=job_id is not None,
        )
        return resource

    async def get_resource(self, user_id: UUID, resource_id: UUID) -> Resource:
        async with await self.uow_factory() as uow:
            resource = await uow.resources.get_by_id(resource_id)
        if resource is None or resource.user_id != user_id:
            raise ResourceNotFound("Resource not found")
        return resource

    async def set_live(
        self, user_id: UUID, resource_id: UUID, live: Optional[bool] = None
    ) -> Resource:
        """Publish or unpublish a resource; toggles when ``live`` is None."""
        async with await self.uow_factory() as uow:
            resource = await uow.resources.get_by_id(resource_id)
            if resource is None or resource.user_id != user_id:
                raise ResourceNotFound("Resource not found")
            target = (not resource.live) if live is None else live
            await uow.resources.set_live(resource, target)

        logger.info("resource.live_changed", resource_id=str(resource_id), live=target)
        return resource

    async def delete_resource(self, user_id: UUID, resource_id: UUID) -> None:
        async with await self.uow_factory() as uow:
            resource = await uow.resources.get_by_id(resource_id)
            if resource is None or resource.user_id != user_id:
                raise ResourceNotFound("Resource not found")
            await uow.resources.delete(resource)

        logger.info("resource.deleted", resource_id=str(resource_id), user_id=str(user_id))
