"""Routes for registering vehicles and their uploads."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_auth_dependency
from app.models.image import ImageAttachRequest, VehicleImageResponse
from app.models.job import JobStatusResponse, VehicleProcessingStatusResponse
from app.models.vehicle import VehicleCreateRequest, VehicleResponse
from app.services.intake import intake_service
from app.services.job_lifecycle import job_manager

router = APIRouter(prefix="/vehicles", tags=["vehicles"], dependencies=[Depends(get_auth_dependency)])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=VehicleResponse, summary="Register a vehicle")
def create_vehicle(payload: VehicleCreateRequest) -> VehicleResponse:
    vehicle = intake_service.register_vehicle(payload)
    return intake_service.describe_vehicle(vehicle.id)


@router.get("/{vehicle_id}", response_model=VehicleResponse, summary="Retrieve a vehicle")
def get_vehicle(vehicle_id: str) -> VehicleResponse:
    return intake_service.describe_vehicle(vehicle_id)


@router.post(
    "/{vehicle_id}/images",
    status_code=status.HTTP_201_CREATED,
    response_model=VehicleImageResponse,
    summary="Attach an uploaded image to a vehicle",
)
def attach_vehicle_image(vehicle_id: str, payload: ImageAttachRequest) -> VehicleImageResponse:
    return VehicleImageResponse.from_image(intake_service.attach_image(vehicle_id, payload))


@router.get(
    "/{vehicle_id}/processing-status",
    response_model=VehicleProcessingStatusResponse,
    summary="Aggregate processing status derived from the vehicle's jobs",
)
def get_processing_status(vehicle_id: str) -> VehicleProcessingStatusResponse:
    """Report the vehicle's status together with its most recent job."""

    processing_status = job_manager.processing_status(vehicle_id)
    jobs = job_manager.jobs_for_vehicle(vehicle_id)
    return VehicleProcessingStatusResponse(
        vehicle_id=vehicle_id,
        processing_status=processing_status,
        latest_job=JobStatusResponse.from_job(jobs[-1]) if jobs else None,
    )
