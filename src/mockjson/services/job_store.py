"""Durable job records: creation with the credit pre-check, polling, status changes, retention.

Each operation runs in its own unit of work, so a poller reading through a
different session sees every intermediate status as soon as it is committed.
"""

from datetime import timedelta
from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from mockjson.core.config import Settings
from mockjson.core.timezone import utcnow
from mockjson.models.job import GenerationJob, JobStatus
from mockjson.services.exceptions import InsufficientCredits, JobNotFound, UserNotFound
from mockjson.services.generation.prompt_builder import validate_prompt

logger = structlog.get_logger()


class JobStore:
    """Job persistence operations on top of the unit of work.

    Args:
        uow_factory: Factory producing UnitOfWork instances
        settings: Application settings (credit thresholds, submission limits)
    """

    def __init__(self, uow_factory: Callable[[], Any], settings: Settings):
        self.uow_factory = uow_factory
        self.settings = settings

    async def create_job(
        self,
        user_id: UUID,
        project_id: str,
        prompt: str,
        objects_count: int,
        metadata: Optional[dict[str, Any]] = None,
    ) -> GenerationJob:
        """Insert a queued job after checking the submission and the user's balance.

        Pro users skip the balance check.

        Raises:
            ValueError: If prompt or objects_count is out of bounds
            UserNotFound: If the user does not exist
            InsufficientCredits: If a free user's balance is below the minimum
        """
        prompt = validate_prompt(prompt, self.settings.max_prompt_length)
        if objects_count < 1 or objects_count > self.settings.max_objects_per_job:
            raise ValueError(
                f"objects_count must be between 1 and {self.settings.max_objects_per_job}"
            )

        async with await self.uow_factory() as uow:
            user = await uow.users.get_by_id(user_id)
            if user is None:
                raise UserNotFound(f"User {user_id} not found")

            if not user.is_pro and user.credits < self.settings.min_generation_credits:
                raise InsufficientCredits(
                    "Insufficient credits. Please upgrade to Pro or wait for your credits to reset."
                )

            job = await uow.jobs.add(
                GenerationJob(
                    user_id=user_id,
                    project_id=project_id,
                    prompt=prompt,
                    objects_count=objects_count,
                    job_metadata=metadata,
                )
            )

        logger.info(
            "job.created",
            job_id=str(job.id),
            user_id=str(user_id),
            project_id=project_id,
            objects_count=objects_count,
            prompt_length=len(prompt),
        )
        return job

    async def get_job(self, job_id: UUID) -> GenerationJob:
        """Return a job by id.

        Raises:
            JobNotFound: If the job does not exist
        """
        async with await self.uow_factory() as uow:
            job = await uow.jobs.get_by_id(job_id)
        if job is None:
            raise JobNotFound(f"Job {job_id} not found")
        return job

    async def get_latest_job_for_project(
        self, user_id: UUID, project_id: str
    ) -> Optional[GenerationJob]:
        """Return the most recently created job for a (user, project) pair, if any."""
        async with await self.uow_factory() as uow:
            return await uow.jobs.get_latest_for_project(user_id, project_id)

    async def update_job_status(
        self,
        job_id: UUID,
        status: JobStatus,
        result: Optional[list[dict[str, Any]]] = None,
        error: Optional[str] = None,
        processing_time_ms: Optional[int] = None,
        provider_used: Optional[str] = None,
    ) -> GenerationJob:
        """Apply a forward status transition atomically.

        Raises:
            JobNotFound: If the job does not exist
            InvalidStateTransition: If the transition would move the job backward
        """
        async with await self.uow_factory() as uow:
            job = await uow.jobs.update_status(
                job_id,
                status,
                result=result,
                error=error,
                processing_time_ms=processing_time_ms,
                provider_used=provider_used,
            )
        if job is None:
            raise JobNotFound(f"Job {job_id} not found")

        logger.info(
            "job.status_changed",
            job_id=str(job_id),
            status=job.status.value,
            attempts=job.attempts,
            processing_time_ms=processing_time_ms,
        )
        return job

    async def cleanup_old_jobs(
        self, max_age_days: Optional[int] = None, dry_run: bool = False
    ) -> int:
        """Delete completed/failed jobs older than max_age_days.

        Args:
            max_age_days: Age threshold (default: JOB_RETENTION_DAYS)
            dry_run: Only count matching jobs

        Returns:
            Number of jobs deleted (or that would be deleted on dry run)
        """
        if max_age_days is None:
            max_age_days = self.settings.job_retention_days
        if max_age_days < 0:
            raise ValueError("max_age_days must be >= 0")

        cutoff = utcnow() - timedelta(days=max_age_days)
        async with await self.uow_factory() as uow:
            if dry_run:
                count = await uow.jobs.count_terminal_older_than(cutoff)
            else:
                count = await uow.jobs.delete_terminal_older_than(cutoff)

        logger.info(
            "jobs.cleanup",
            max_age_days=max_age_days,
            cutoff=cutoff.isoformat(),
            count=count,
            dry_run=dry_run,
        )
        return count
