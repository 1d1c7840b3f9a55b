"""Processing job models and job outcomes."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from app.core.clock import utcnow
from app.models.vehicle import ProcessingStatus


class JobStatus(str, Enum):
    """Possible states for processing jobs."""

    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    @property
    def is_in_flight(self) -> bool:
        return self in (JobStatus.QUEUED, JobStatus.PROCESSING)


class ProcessingJob(BaseModel):
    """Optimization work requested for a set of a vehicle's images.

    Only ``status``, ``error_message`` and ``completed_at`` ever change.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"job_{uuid.uuid4().hex}")
    vehicle_id: str
    image_ids: Tuple[str, ...]
    force: bool = False
    status: JobStatus = JobStatus.QUEUED
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    def with_status(self, status: JobStatus) -> "ProcessingJob":
        """Return a copy with an updated status."""

        return self.model_copy(update={"status": status})

    def with_completion(self, at: datetime) -> "ProcessingJob":
        return self.model_copy(update={"status": JobStatus.COMPLETED, "completed_at": at})

    def with_error(self, message: str, at: datetime) -> "ProcessingJob":
        """Return a copy with an error message and failed status."""

        return self.model_copy(
            update={
                "status": JobStatus.FAILED,
                "error_message": message,
                "completed_at": at,
            }
        )


class FullSuccess(BaseModel):
    """Every key image in the job is optimized."""

    kind: Literal["full_success"] = "full_success"
    optimized_image_ids: List[str] = Field(default_factory=list)
    skipped_image_ids: List[str] = Field(default_factory=list)


class PartialSuccess(BaseModel):
    """Some images failed; the rest were optimized or already up to date."""

    kind: Literal["partial_success"] = "partial_success"
    failed_image_ids: List[str]
    optimized_image_ids: List[str] = Field(default_factory=list)
    skipped_image_ids: List[str] = Field(default_factory=list)


class Fatal(BaseModel):
    """The job as a whole could not be carried out."""

    kind: Literal["fatal"] = "fatal"
    reason: str
    failed_image_ids: List[str] = Field(default_factory=list)
    optimized_image_ids: List[str] = Field(default_factory=list)
    skipped_image_ids: List[str] = Field(default_factory=list)


JobOutcome = Union[FullSuccess, PartialSuccess, Fatal]


class JobCreateRequest(BaseModel):
    """Payload accepted by the job creation endpoints."""

    vehicle_id: str
    image_ids: Optional[List[str]] = Field(
        default=None,
        description="Ordered image ids to process; defaults to every unoptimized key image.",
    )


class JobStatusResponse(BaseModel):
    """API response for job status queries."""

    job_id: str
    vehicle_id: str
    image_ids: List[str]
    force: bool
    status: JobStatus
    error_message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: ProcessingJob) -> "JobStatusResponse":
        return cls(
            job_id=job.id,
            vehicle_id=job.vehicle_id,
            image_ids=list(job.image_ids),
            force=job.force,
            status=job.status,
            error_message=job.error_message,
            created_at=job.created_at,
            completed_at=job.completed_at,
        )


class VehicleProcessingStatusResponse(BaseModel):
    """Aggregate processing state of a vehicle plus its most recent job."""

    vehicle_id: str
    processing_status: ProcessingStatus
    latest_job: Optional[JobStatusResponse] = None
