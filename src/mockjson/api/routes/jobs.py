"""Generation job API endpoints.

- POST /api/jobs - Submit a prompt and run the job synchronously
- GET /api/jobs/{job_id} - Poll a job
- GET /api/projects/{project_id}/jobs/latest - Most recent job for a project
- POST /api/jobs/{job_id}/retry - Re-run a failed job
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from mockjson.api.dependencies import (
    get_current_user_id,
    get_job_runner,
    get_job_store,
)
from mockjson.models.job import GenerationJob
from mockjson.services.exceptions import (
    InsufficientCredits,
    InvalidState,
    JobNotFound,
    UserNotFound,
)
from mockjson.services.job_runner import GenerationJobRunner, RunResult
from mockjson.services.job_store import JobStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api", tags=["jobs"])


# Request/Response Models


class FieldSpec(BaseModel):
    """One target field of the generated records."""

    label: str = Field(..., min_length=1, max_length=100)
    type: str = Field(default="string", max_length=50)


class CreateJobRequest(BaseModel):
    """Request model for submitting a generation job."""

    project_id: str = Field(..., min_length=1, max_length=255)
    prompt: str = Field(..., min_length=1, description="What to generate")
    objects_count: int = Field(..., ge=1, description="Number of records to generate")
    model: Optional[str] = Field(default=None, max_length=100)
    resource_type: Optional[str] = Field(default=None, max_length=100)
    resource_name: Optional[str] = Field(default=None, max_length=255)
    fields: list[FieldSpec] = Field(default_factory=list)

    def job_metadata(self) -> Optional[dict[str, Any]]:
        metadata = {
            "model": self.model,
            "resource_type": self.resource_type,
            "resource_name": self.resource_name,
            "fields": [field.model_dump() for field in self.fields],
        }
        if not any(metadata.values()):
            return None
        return metadata


class JobDTO(BaseModel):
    """Data Transfer Object for job records in API responses."""

    id: UUID
    project_id: str
    status: str
    objects_count: int
    result: Optional[list[dict[str, Any]]] = None
    error: Optional[str] = None
    error_history: list[str] = Field(default_factory=list)
    attempts: int
    provider_used: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    processing_time_ms: Optional[int] = None

    @classmethod
    def from_job(cls, job: GenerationJob) -> "JobDTO":
        return cls(
            id=job.id,
            project_id=job.project_id,
            status=job.status.value,
            objects_count=job.objects_count,
            result=job.result,
            error=job.error,
            error_history=job.error_history or [],
            attempts=job.attempts,
            provider_used=job.provider_used,
            metadata=job.job_metadata,
            created_at=job.created_at,
            completed_at=job.completed_at,
            processing_time_ms=job.processing_time_ms,
        )


class RunResponse(BaseModel):
    """Outcome of a synchronous job run."""

    job_id: UUID
    success: bool
    item_count: Optional[int] = None
    error: Optional[str] = None
    processing_time_ms: int
    provider_used: Optional[str] = None

    @classmethod
    def from_result(cls, result: RunResult) -> "RunResponse":
        return cls(
            job_id=result.job_id,
            success=result.success,
            item_count=result.item_count,
            error=result.error,
            processing_time_ms=result.processing_time_ms,
            provider_used=result.provider_used,
        )


async def _get_owned_job(job_store: JobStore, job_id: UUID, user_id: UUID) -> GenerationJob:
    try:
        job = await job_store.get_job(job_id)
    except JobNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    if job.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


# API Endpoints


@router.post("/jobs", response_model=RunResponse, status_code=status.HTTP_201_CREATED)
async def submit_job(
    request: CreateJobRequest,
    user_id: UUID = Depends(get_current_user_id),
    job_store: JobStore = Depends(get_job_store),
    runner: GenerationJobRunner = Depends(get_job_runner),
) -> RunResponse:
    """Create a queued job and run it to a terminal state.

    Generation failures are reported in the response body (success=false) and
    on the job record; clients may poll GET /api/jobs/{job_id} either way.

    Raises:
        HTTPException 402: Balance below the minimum for a free user
        HTTPException 404: Unknown user
        HTTPException 422: Prompt or object count out of bounds
    """
    try:
        job = await job_store.create_job(
            user_id=user_id,
            project_id=request.project_id,
            prompt=request.prompt,
            objects_count=request.objects_count,
            metadata=request.job_metadata(),
        )
    except InsufficientCredits as e:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(e))
    except UserNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    result = await runner.run(
        job.id,
        job.prompt,
        job.objects_count,
        user_id,
        metadata=job.job_metadata,
    )
    return RunResponse.from_result(result)


@router.get("/jobs/{job_id}", response_model=JobDTO)
async def get_job(
    job_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    job_store: JobStore = Depends(get_job_store),
) -> JobDTO:
    """Poll a job owned by the caller."""
    job = await _get_owned_job(job_store, job_id, user_id)
    return JobDTO.from_job(job)


@router.get("/projects/{project_id}/jobs/latest", response_model=Optional[JobDTO])
async def get_latest_job(
    project_id: str,
    user_id: UUID = Depends(get_current_user_id),
    job_store: JobStore = Depends(get_job_store),
) -> Optional[JobDTO]:
    """Most recently created job for the caller's project, or null."""
    job = await job_store.get_latest_job_for_project(user_id, project_id)
    return JobDTO.from_job(job) if job else None


@router.post("/jobs/{job_id}/retry", response_model=RunResponse)
async def retry_job(
    job_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    job_store: JobStore = Depends(get_job_store),
    runner: GenerationJobRunner = Depends(get_job_runner),
) -> RunResponse:
    """Re-run a failed job.

    Raises:
        HTTPException 404: Job not found
        HTTPException 409: Job is not in failed state
    """
    await _get_owned_job(job_store, job_id, user_id)
    try:
        result = await runner.retry(job_id)
    except JobNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    except InvalidState as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info("job.retried", job_id=str(job_id), success=result.success)
    return RunResponse.from_result(result)
