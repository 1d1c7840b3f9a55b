"""Vehicle and upload registration, and turning uploads into processing jobs."""

from __future__ import annotations

from typing import List, Optional, Sequence

from app.core.clock import Clock, utcnow
from app.core.exceptions import InvalidInput
from app.core.logging import get_logger
from app.models.image import KEY_IMAGE_TYPES, ImageAttachRequest, VehicleImage
from app.models.job import ProcessingJob
from app.models.vehicle import Vehicle, VehicleCreateRequest, VehicleResponse
from app.services.job_lifecycle import JobLifecycleManager, job_manager
from app.services.vehicle_store import VehicleImageStore, vehicle_store

logger = get_logger(__name__)


class IntakeService:
    def __init__(self, store: VehicleImageStore, manager: JobLifecycleManager, clock: Clock = utcnow) -> None:
        self._store = store
        self._manager = manager
        self._clock = clock

    def register_vehicle(self, request: VehicleCreateRequest) -> Vehicle:
        now = self._clock()
        vehicle = Vehicle(
            stock_number=request.stock_number,
            vin=request.vin,
            store_id=request.store_id,
            created_at=now,
            updated_at=now,
        )
        self._store.add_vehicle(vehicle)
        logger.info("vehicle_registered", vehicle_id=vehicle.id, stock_number=vehicle.stock_number)
        return vehicle

    def attach_image(self, vehicle_id: str, request: ImageAttachRequest) -> VehicleImage:
        """Record an uploaded photo; it starts unoptimized at the end of its type group.

        Each key type appears at most once per vehicle.
        """

        self._store.get_vehicle(vehicle_id)
        if request.image_type.is_key and self._store.list_images(vehicle_id, image_types=[request.image_type]):
            raise InvalidInput(
                f"Vehicle {vehicle_id} already has a {request.image_type.value} image",
                {"vehicle_id": vehicle_id, "image_type": request.image_type.value},
            )
        sort_order = request.sort_order
        if sort_order is None:
            group = self._store.list_images(vehicle_id, image_types=[request.image_type])
            sort_order = max((image.sort_order for image in group), default=-1) + 1

        now = self._clock()
        image = VehicleImage(
            vehicle_id=vehicle_id,
            original_url=request.original_url,
            thumbnail_url=request.thumbnail_url,
            image_type=request.image_type,
            sort_order=sort_order,
            uploaded_at=now,
            updated_at=now,
        )
        self._store.add_image(image)
        logger.info("image_attached", vehicle_id=vehicle_id, image_id=image.id, image_type=image.image_type.value)
        return image

    def request_processing(self, vehicle_id: str, image_ids: Optional[Sequence[str]] = None) -> ProcessingJob:
        """Queue a job for the given images, or for every unoptimized key image."""

        if image_ids is None:
            pending = self._store.list_images(vehicle_id, image_types=KEY_IMAGE_TYPES, optimized=False)
            image_ids = [image.id for image in pending]
            if not image_ids:
                raise InvalidInput("No unoptimized key images found for processing", {"vehicle_id": vehicle_id})
        return self._manager.create_job(vehicle_id, image_ids)

    def request_reprocessing(self, vehicle_id: str, image_ids: Sequence[str]) -> ProcessingJob:
        """Queue a forced job limited to images that were already optimized."""

        optimized = {image.id for image in self._store.list_images(vehicle_id, optimized=True)}
        selected: List[str] = [image_id for image_id in image_ids if image_id in optimized]
        if not selected:
            raise InvalidInput("No processed images found for reprocessing", {"vehicle_id": vehicle_id})
        return self._manager.create_job(vehicle_id, selected, force=True)

    def describe_vehicle(self, vehicle_id: str) -> VehicleResponse:
        vehicle = self._store.get_vehicle(vehicle_id)
        images = self._store.list_images(vehicle_id)
        jobs = self._manager.jobs_for_vehicle(vehicle_id)
        return VehicleResponse(
            **vehicle.model_dump(),
            processing_status=self._manager.processing_status(vehicle_id),
            image_count=len(images),
            optimized_key_image_count=sum(1 for image in images if image.is_optimized and image.image_type.is_key),
            latest_job_id=jobs[-1].id if jobs else None,
        )


intake_service = IntakeService(vehicle_store, job_manager)
