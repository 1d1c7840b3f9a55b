"""Routes for image processing jobs."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_auth_dependency
from app.models.job import JobCreateRequest, JobStatusResponse
from app.services.intake import intake_service
from app.services.job_lifecycle import job_manager
from app.tasks.image_tasks import process_vehicle_job

router = APIRouter(prefix="/jobs", tags=["jobs"], dependencies=[Depends(get_auth_dependency)])


@router.post(
    "",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=JobStatusResponse,
    summary="Enqueue an image processing job",
)
def enqueue_processing_job(payload: JobCreateRequest) -> JobStatusResponse:
    """Create a QUEUED job for the given images and dispatch it to the worker."""

    job = intake_service.request_processing(payload.vehicle_id, payload.image_ids)
    process_vehicle_job.delay(job_id=job.id)
    return JobStatusResponse.from_job(job)


@router.post(
    "/reprocess",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=JobStatusResponse,
    summary="Enqueue a forced reprocessing job for already optimized images",
)
def enqueue_reprocessing_job(payload: JobCreateRequest) -> JobStatusResponse:
    job = intake_service.request_reprocessing(payload.vehicle_id, payload.image_ids or [])
    process_vehicle_job.delay(job_id=job.id, force=True)
    return JobStatusResponse.from_job(job)


@router.get(
    "/{job_id}",
    response_model=JobStatusResponse,
    summary="Retrieve processing job status",
)
def get_processing_job(job_id: str) -> JobStatusResponse:
    """Return the current state of a job."""

    return JobStatusResponse.from_job(job_manager.get_job(job_id))
