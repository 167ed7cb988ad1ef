"""GenerationJob repository.

Provides data access methods for GenerationJob entities with row-level locking
for status transitions.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mockjson.models.job import TERMINAL_STATUSES, GenerationJob, JobStatus


class GenerationJobRepository:
    """Repository for GenerationJob entities.

    Status changes go through update_status(), which locks the row
    (SELECT ... FOR UPDATE) and applies the model's transition rules, so a
    poller never observes transitions out of order.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def add(self, job: GenerationJob) -> GenerationJob:
        """Persist new job to database.

        Args:
            job: GenerationJob entity to persist

        Returns:
            Persisted job with generated ID
        """
        self.session.add(job)
        await self.session.flush()
        return job

    async def get_by_id(self, job_id: UUID) -> GenerationJob | None:
        """Retrieve job by UUID.

        Args:
            job_id: Job's unique identifier

        Returns:
            GenerationJob if found, None otherwise
        """
        result = await self.session.execute(
            select(GenerationJob).where(GenerationJob.id == job_id)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def get_latest_for_project(self, user_id: UUID, project_id: str) -> GenerationJob | None:
        """Retrieve the most recently created job for a (user, project) pair.

        Args:
            user_id: Owning user's identifier
            project_id: Project identifier

        Returns:
            Latest GenerationJob if found, None otherwise
        """
        result = await self.session.execute(
            select(GenerationJob)
            .where(
                GenerationJob.user_id == user_id,  # type: ignore[arg-type]
                GenerationJob.project_id == project_id,  # type: ignore[arg-type]
            )
            .order_by(GenerationJob.created_at.desc())  # type: ignore[attr-defined]
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def update_status(
        self,
        job_id: UUID,
        status: JobStatus,
        result: list[dict[str, Any]] | None = None,
        error: str | None = None,
        processing_time_ms: int | None = None,
        provider_used: str | None = None,
    ) -> GenerationJob | None:
        """Transition a job to a new status under a row lock.

        Args:
            job_id: Job's unique identifier
            status: Target status
            result: Normalized records (completed only)
            error: Human-readable failure description (failed only)
            processing_time_ms: Wall-clock duration of the run
            provider_used: Provider identifier that produced the result

        Returns:
            Updated job, or None if the job does not exist

        Raises:
            InvalidStateTransition: If the change would move the job backward
        """
        locked = await self.session.execute(
            select(GenerationJob)
            .where(GenerationJob.id == job_id)  # type: ignore[arg-type]
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        job = locked.scalar_one_or_none()
        if job is None:
            return None

        job.transition_to(
            status,
            result=result,
            error=error,
            processing_time_ms=processing_time_ms,
            provider_used=provider_used,
        )
        self.session.add(job)
        await self.session.flush()
        await self.session.refresh(job)
        return job

    async def delete_terminal_older_than(self, cutoff: datetime) -> int:
        """Delete completed/failed jobs created before the cutoff (idempotent).

        Query explanation:
            DELETE FROM generation_jobs
            WHERE status IN ('completed', 'failed') AND created_at < :cutoff

        Args:
            cutoff: Jobs created strictly before this moment are removed

        Returns:
            Number of jobs deleted
        """
        result = await self.session.execute(
            delete(GenerationJob)
            .where(
                GenerationJob.status.in_(TERMINAL_STATUSES),  # type: ignore[attr-defined]
                GenerationJob.created_at < cutoff,  # type: ignore[arg-type]
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount  # type: ignore[attr-defined]

    async def count_terminal_older_than(self, cutoff: datetime) -> int:
        """Count the jobs delete_terminal_older_than() would remove."""
        result = await self.session.execute(
            select(GenerationJob.id).where(
                GenerationJob.status.in_(TERMINAL_STATUSES),  # type: ignore[attr-defined]
                GenerationJob.created_at < cutoff,  # type: ignore[arg-type]
            )
        )
        return len(result.scalars().all())
