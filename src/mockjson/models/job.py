"""GenerationJob entity - one AI generation request with lifecycle status tracking."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, Text
from sqlmodel import Field, SQLModel

from mockjson.core.timezone import utcnow

ERROR_MAX_LENGTH = 1000


class JobStatus(str, Enum):
    """Job lifecycle status."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED)


class InvalidStateTransition(Exception):
    """Raised when attempting an invalid job state transition."""

    pass


class GenerationJob(SQLModel, table=True):
    """GenerationJob tracks a prompt through queued → processing → completed | failed.

    A failed job may re-enter processing (retry). The error of the failed attempt
    is moved to error_history so earlier outcomes are preserved.
    """

    __tablename__ = "generation_jobs"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    project_id: str = Field(max_length=255, index=True)
    prompt: str = Field(sa_column=Column(Text, nullable=False))
    objects_count: int = Field(ge=1)
    status: JobStatus = Field(default=JobStatus.QUEUED, index=True)

    result: Optional[list[dict[str, Any]]] = Field(default=None, sa_column=Column(JSON))
    error: Optional[str] = Field(default=None, max_length=ERROR_MAX_LENGTH)
    error_history: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    provider_used: Optional[str] = Field(default=None, max_length=100)
    attempts: int = Field(default=0, ge=0)

    # {model, resource_type, resource_name, fields: [{label, type}]}
    job_metadata: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, index=True)
    completed_at: Optional[datetime] = Field(default=None)
    processing_time_ms: Optional[int] = Field(default=None, ge=0)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def mark_processing(self) -> None:
        """Transition from queued (first run) or failed (retry) to processing.

        Raises:
            InvalidStateTransition: If current status is processing or completed
        """
        if self.status not in (JobStatus.QUEUED, JobStatus.FAILED):
            raise InvalidStateTransition(
                f"Cannot mark processing from {self.status.value}. "
                "Job must be in queued or failed state."
            )
        if self.status == JobStatus.FAILED:
            if self.error:
                self.error_history = [*(self.error_history or []), self.error]
            self.error = None
            self.result = None
            self.completed_at = None
            self.processing_time_ms = None
        self.attempts += 1
        self.status = JobStatus.PROCESSING

    def mark_completed(
        self,
        result: list[dict[str, Any]],
        processing_time_ms: Optional[int] = None,
        provider_used: Optional[str] = None,
    ) -> None:
        """Transition from processing to completed.

        Raises:
            InvalidStateTransition: If current status is not processing
            ValueError: If result is empty
        """
        if self.status != JobStatus.PROCESSING:
            raise InvalidStateTransition(
                f"Cannot mark completed from {self.status.value}. "
                "Job must be in processing state."
            )
        if not result:
            raise ValueError("result is required")
        self.result = result
        self.provider_used = provider_used
        self.processing_time_ms = processing_time_ms
        self.completed_at = utcnow()
        self.status = JobStatus.COMPLETED

    def mark_failed(self, error: str, processing_time_ms: Optional[int] = None) -> None:
        """Transition from any non-terminal state to failed.

        Raises:
            InvalidStateTransition: If current status is already terminal
        """
        if self.is_terminal:
            raise InvalidStateTransition(
                f"Cannot mark failed from terminal state {self.status.value}."
            )
        self.error = (error or "Generation failed")[:ERROR_MAX_LENGTH]
        self.processing_time_ms = processing_time_ms
        self.completed_at = utcnow()
        self.status = JobStatus.FAILED

    def transition_to(
        self,
        status: JobStatus,
        result: Optional[list[dict[str, Any]]] = None,
        error: Optional[str] = None,
        processing_time_ms: Optional[int] = None,
        provider_used: Optional[str] = None,
    ) -> None:
        """Apply a status change by target status.

        Raises:
            InvalidStateTransition: If the change would move the job backward
        """
        if status == JobStatus.PROCESSING:
            self.mark_processing()
        elif status == JobStatus.COMPLETED:
            self.mark_completed(result or [], processing_time_ms, provider_used)
        elif status == JobStatus.FAILED:
            self.mark_failed(error or "Generation failed", processing_time_ms)
        else:
            raise InvalidStateTransition(
                f"Cannot move job back to {status.value} from {self.status.value}."
            )
