"""Processing job lifecycle: QUEUED -> PROCESSING -> COMPLETED | FAILED."""

from __future__ import annotations

from collections.abc import Sequence
from threading import Lock
from typing import List, Optional

from app.core.clock import Clock, utcnow
from app.core.config import settings
from app.core.exceptions import InvalidInput, InvalidState, NotFound
from app.core.logging import get_logger
from app.models.job import JobStatus, ProcessingJob
from app.models.vehicle import ProcessingStatus
from app.services.vehicle_store import VehicleImageStore, vehicle_store

logger = get_logger(__name__)

UNKNOWN_ERROR = "Unknown error"


def derive_processing_status(jobs: Sequence[ProcessingJob]) -> ProcessingStatus:
    """Aggregate vehicle status as a pure function of its job history."""

    if not jobs:
        return ProcessingStatus.NOT_STARTED
    if any(job.status.is_in_flight for job in jobs):
        return ProcessingStatus.IN_PROGRESS

    latest = max(jobs, key=lambda job: (job.completed_at or job.created_at, job.created_at))
    if latest.status is JobStatus.FAILED:
        return ProcessingStatus.ERROR
    return ProcessingStatus.COMPLETED


def truncate_error(message: Optional[str], limit: int) -> str:
    text = (message or "").strip() or UNKNOWN_ERROR
    if len(text) <= limit:
        return text
    if limit < 3:
        return text[: max(limit, 0)]
    return text[: limit - 3] + "..."


class JobLifecycleManager:
    """Owns job creation and every status transition."""

    def __init__(
        self,
        store: VehicleImageStore,
        clock: Clock = utcnow,
        error_max_length: Optional[int] = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._error_max_length = (
            settings.job_error_max_length if error_max_length is None else error_max_length
        )
        self._lock = Lock()

    def create_job(self, vehicle_id: str, image_ids: Sequence[str], force: bool = False) -> ProcessingJob:
        """Register a new QUEUED job for ``image_ids`` (ordered, no duplicates)."""

        ids = list(image_ids)
        if not ids:
            raise InvalidInput("At least one image id is required", {"vehicle_id": vehicle_id})
        if len(set(ids)) != len(ids):
            raise InvalidInput("Image ids must not repeat", {"vehicle_id": vehicle_id})

        try:
            self._store.get_vehicle(vehicle_id)
        except NotFound as exc:
            raise InvalidInput(f"Vehicle {vehicle_id} not found", {"vehicle_id": vehicle_id}) from exc

        for image_id in ids:
            try:
                image = self._store.get_image(image_id)
            except NotFound as exc:
                raise InvalidInput(f"Image {image_id} not found", {"image_id": image_id}) from exc
            if image.vehicle_id != vehicle_id:
                raise InvalidInput(
                    f"Image {image_id} does not belong to vehicle {vehicle_id}",
                    {"image_id": image_id, "vehicle_id": vehicle_id},
                )

        job = ProcessingJob(vehicle_id=vehicle_id, image_ids=tuple(ids), force=force, created_at=self._clock())
        self._store.add_job(job)
        logger.info("job_created", job_id=job.id, vehicle_id=vehicle_id, image_count=len(ids), force=force)
        return job

    def start_job(self, job_id: str) -> ProcessingJob:
        """Mark job as in-flight. Only one caller can win this transition."""

        return self._transition(job_id, JobStatus.QUEUED, lambda job: job.with_status(JobStatus.PROCESSING), "job_started")

    def complete_job(self, job_id: str) -> ProcessingJob:
        return self._transition(
            job_id,
            JobStatus.PROCESSING,
            lambda job: job.with_completion(self._clock()),
            "job_completed",
        )

    def fail_job(self, job_id: str, error_message: Optional[str]) -> ProcessingJob:
        """Mark job as failed with a bounded, non-empty message."""

        message = truncate_error(error_message, self._error_max_length)
        return self._transition(
            job_id,
            JobStatus.PROCESSING,
            lambda job: job.with_error(message, self._clock()),
            "job_failed",
        )

    def get_job(self, job_id: str) -> ProcessingJob:
        return self._store.get_job(job_id)

    def jobs_for_vehicle(self, vehicle_id: str) -> List[ProcessingJob]:
        return self._store.list_jobs(vehicle_id)

    def processing_status(self, vehicle_id: str) -> ProcessingStatus:
        self._store.get_vehicle(vehicle_id)
        return derive_processing_status(self._store.list_jobs(vehicle_id))

    def _transition(self, job_id, expected: JobStatus, change, event: str) -> ProcessingJob:
        with self._lock:
            job = self._store.get_job(job_id)
            if job.status is not expected:
                raise InvalidState(
                    f"Job {job_id} is {job.status.value}, expected {expected.value}",
                    {"job_id": job_id, "status": job.status.value},
                )
            updated = self._store.save_job(change(job))

        log = logger.warning if updated.status is JobStatus.FAILED else logger.info
        log(event, job_id=job_id, vehicle_id=updated.vehicle_id, status=updated.status.value, error=updated.error_message)
        return updated


job_manager = JobLifecycleManager(vehicle_store)
