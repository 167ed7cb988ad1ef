"""End-to-end execution of a generation job.

Steps, each committed on its own so pollers observe them in order:

1. queued/failed → processing
2. FallbackOrchestrator.generate()
3. normalize_response() (and fit_to_count() when PAD_RESULTS_TO_COUNT is on)
4. processing → completed, with result and elapsed time
5. charge GENERATION_COST credits (best effort, logged on failure)

Generation failures end in a failed job and a failure RunResult; they are
never raised to the caller. Storage errors (SQLAlchemyError) propagate.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError

from mockjson.core.config import Settings
from mockjson.models.job import InvalidStateTransition, JobStatus
from mockjson.services.exceptions import (
    AllProvidersExhausted,
    InvalidState,
    JobNotFound,
    MalformedOutput,
)
from mockjson.services.generation.normalizer import fit_to_count, normalize_response
from mockjson.services.generation.orchestrator import FallbackOrchestrator
from mockjson.services.job_store import JobStore

logger = structlog.get_logger()


@dataclass
class RunResult:
    """Outcome of one job run."""

    job_id: UUID
    success: bool
    processing_time_ms: int
    item_count: Optional[int] = None
    error: Optional[str] = None
    provider_used: Optional[str] = None


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class GenerationJobRunner:
    """Drive a job from processing to a terminal state.

    Args:
        job_store: Job persistence operations
        orchestrator: Provider fallback chain
        uow_factory: Factory producing UnitOfWork instances (credit accounting)
        settings: Application settings (generation cost, padding policy)
    """

    def __init__(
        self,
        job_store: JobStore,
        orchestrator: FallbackOrchestrator,
        uow_factory: Callable[[], Any],
        settings: Settings,
    ):
        self.job_store = job_store
        self.orchestrator = orchestrator
        self.uow_factory = uow_factory
        self.settings = settings

    async def run(
        self,
        job_id: UUID,
        prompt: str,
        objects_count: int,
        user_id: UUID,
        metadata: Optional[dict[str, Any]] = None,
    ) -> RunResult:
        """Run a queued (or failed, on retry) job to completion or failure.

        Returns:
            RunResult describing the terminal state reached
        """
        start = time.monotonic()
        log = logger.bind(job_id=str(job_id), user_id=str(user_id))

        try:
            await self.job_store.update_job_status(job_id, JobStatus.PROCESSING)
        except (InvalidStateTransition, JobNotFound) as e:
            # Job is missing or owned by another run; leave its record untouched
            log.warning("job.start_rejected", error=str(e))
            return RunResult(
                job_id=job_id, success=False, processing_time_ms=_elapsed_ms(start), error=str(e)
            )

        try:
            try:
                raw_text, provider_used = await self.orchestrator.generate(
                    prompt, objects_count, metadata=metadata
                )
            except AllProvidersExhausted as e:
                return await self._fail(job_id, str(e), start)

            try:
                records = normalize_response(raw_text)
            except MalformedOutput as e:
                log.warning("job.malformed_output", provider=provider_used, error=str(e))
                return await self._fail(job_id, f"Failed to process response: {e}", start)

            if self.settings.pad_results_to_count:
                records = fit_to_count(records, objects_count)

            processing_time_ms = _elapsed_ms(start)
            await self.job_store.update_job_status(
                job_id,
                JobStatus.COMPLETED,
                result=records,
                processing_time_ms=processing_time_ms,
                provider_used=provider_used,
            )
        except SQLAlchemyError:
            raise
        except Exception as e:
            log.exception("job.run_failed", error=str(e))
            return await self._fail(job_id, f"Unexpected error: {e}", start)

        await self._charge_credits(job_id, user_id)

        log.info(
            "job.completed",
            provider=provider_used,
            item_count=len(records),
            processing_time_ms=processing_time_ms,
        )
        return RunResult(
            job_id=job_id,
            success=True,
            processing_time_ms=processing_time_ms,
            item_count=len(records),
            provider_used=provider_used,
        )

    async def retry(self, job_id: UUID) -> RunResult:
        """Re-run a failed job with its original prompt, count and owner.

        Raises:
            JobNotFound: If the job does not exist
            InvalidState: If the job is not failed
        """
        job = await self.job_store.get_job(job_id)
        if job.status != JobStatus.FAILED:
            raise InvalidState("Can only retry failed jobs")

        return await self.run(
            job.id,
            job.prompt,
            job.objects_count,
            job.user_id,
            metadata=job.job_metadata,
        )

    async def _fail(self, job_id: UUID, error: str, start: float) -> RunResult:
        processing_time_ms = _elapsed_ms(start)
        try:
            await self.job_store.update_job_status(
                job_id,
                JobStatus.FAILED,
                error=error,
                processing_time_ms=processing_time_ms,
            )
        except (InvalidStateTransition, JobNotFound) as e:
            logger.warning("job.fail_rejected", job_id=str(job_id), error=str(e))

        logger.warning("job.failed", job_id=str(job_id), error=error)
        return RunResult(
            job_id=job_id, success=False, processing_time_ms=processing_time_ms, error=error
        )

    async def _charge_credits(self, job_id: UUID, user_id: UUID) -> None:
        """Subtract the generation cost; a failure here never undoes the completed job."""
        try:
            async with await self.uow_factory() as uow:
                charged = await uow.users.decrement_credits(
                    user_id, self.settings.generation_cost
                )
        except Exception as e:
            logger.error(
                "credits.decrement_failed",
                job_id=str(job_id),
                user_id=str(user_id),
                error=str(e),
            )
            return

        if not charged:
            logger.error(
                "credits.decrement_failed",
                job_id=str(job_id),
                user_id=str(user_id),
                error="user not found",
            )
