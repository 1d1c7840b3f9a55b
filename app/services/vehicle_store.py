"""Vehicle, image and job storage behind a narrow interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from threading import RLock
from typing import Dict, List, Optional, Tuple

from app.core.exceptions import InvalidInput, NotFound
from app.models.image import KEY_IMAGE_TYPES, ImageType, VehicleImage
from app.models.job import ProcessingJob
from app.models.vehicle import Vehicle

FeedRow = Tuple[Vehicle, List[VehicleImage]]


def image_sort_key(image: VehicleImage) -> tuple:
    """Display/feed order: sort order, then canonical type order."""

    return (image.sort_order, image.image_type.canonical_index, image.uploaded_at, image.id)


class VehicleImageStore(ABC):
    """Operations the pipeline needs from the persistence layer."""

    @abstractmethod
    def add_vehicle(self, vehicle: Vehicle) -> Vehicle: ...

    @abstractmethod
    def get_vehicle(self, vehicle_id: str) -> Vehicle: ...

    @abstractmethod
    def list_vehicles(self) -> List[Vehicle]: ...

    @abstractmethod
    def add_image(self, image: VehicleImage) -> VehicleImage: ...

    @abstractmethod
    def get_image(self, image_id: str) -> VehicleImage: ...

    @abstractmethod
    def list_images(
        self,
        vehicle_id: str,
        image_types: Optional[Iterable[ImageType]] = None,
        optimized: Optional[bool] = None,
    ) -> List[VehicleImage]: ...

    @abstractmethod
    def update_image_optimized(self, image_id: str, optimized_url: str, processed_at: datetime) -> VehicleImage: ...

    @abstractmethod
    def update_image_placement(
        self,
        image_id: str,
        at: datetime,
        sort_order: Optional[int] = None,
        image_type: Optional[ImageType] = None,
    ) -> VehicleImage: ...

    @abstractmethod
    def delete_image(self, image_id: str) -> None: ...

    @abstractmethod
    def add_job(self, job: ProcessingJob) -> ProcessingJob: ...

    @abstractmethod
    def get_job(self, job_id: str) -> ProcessingJob: ...

    @abstractmethod
    def save_job(self, job: ProcessingJob) -> ProcessingJob: ...

    @abstractmethod
    def list_jobs(self, vehicle_id: str) -> List[ProcessingJob]: ...

    @abstractmethod
    def feed_snapshot(self) -> List[FeedRow]:
        """Vehicles with at least one optimized key image, read at a single point in time."""


class InMemoryVehicleStore(VehicleImageStore):
    """Thread-safe in-process store. Rows are immutable models replaced wholesale on write."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._vehicles: Dict[str, Vehicle] = {}
        self._images: Dict[str, VehicleImage] = {}
        self._jobs: Dict[str, ProcessingJob] = {}

    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        with self._lock:
            for existing in self._vehicles.values():
                if existing.store_id == vehicle.store_id and existing.stock_number == vehicle.stock_number:
                    raise InvalidInput(
                        f"Stock number {vehicle.stock_number} already exists for store {vehicle.store_id}",
                        {"vehicle_id": existing.id},
                    )
            self._vehicles[vehicle.id] = vehicle
            return vehicle

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        with self._lock:
            vehicle = self._vehicles.get(vehicle_id)
        if vehicle is None:
            raise NotFound(f"Vehicle {vehicle_id} not found")
        return vehicle

    def list_vehicles(self) -> List[Vehicle]:
        with self._lock:
            return sorted(self._vehicles.values(), key=lambda v: (v.created_at, v.id))

    def add_image(self, image: VehicleImage) -> VehicleImage:
        with self._lock:
            if image.vehicle_id not in self._vehicles:
                raise NotFound(f"Vehicle {image.vehicle_id} not found")
            self._images[image.id] = image
            return image

    def get_image(self, image_id: str) -> VehicleImage:
        with self._lock:
            image = self._images.get(image_id)
        if image is None:
            raise NotFound(f"Image {image_id} not found")
        return image

    def list_images(
        self,
        vehicle_id: str,
        image_types: Optional[Iterable[ImageType]] = None,
        optimized: Optional[bool] = None,
    ) -> List[VehicleImage]:
        wanted = set(image_types) if image_types is not None else None
        with self._lock:
            images = [image for image in self._images.values() if image.vehicle_id == vehicle_id]
        if wanted is not None:
            images = [image for image in images if image.image_type in wanted]
        if optimized is not None:
            images = [image for image in images if image.is_optimized == optimized]
        return sorted(images, key=image_sort_key)

    def update_image_optimized(self, image_id: str, optimized_url: str, processed_at: datetime) -> VehicleImage:
        with self._lock:
            updated = self.get_image(image_id).with_optimized(optimized_url, processed_at)
            self._images[image_id] = updated
            return updated

    def update_image_placement(
        self,
        image_id: str,
        at: datetime,
        sort_order: Optional[int] = None,
        image_type: Optional[ImageType] = None,
    ) -> VehicleImage:
        with self._lock:
            updated = self.get_image(image_id).with_placement(at, sort_order=sort_order, image_type=image_type)
            self._images[image_id] = updated
            return updated

    def delete_image(self, image_id: str) -> None:
        with self._lock:
            if self._images.pop(image_id, None) is None:
                raise NotFound(f"Image {image_id} not found")

    def add_job(self, job: ProcessingJob) -> ProcessingJob:
        with self._lock:
            self._jobs[job.id] = job
            return job

    def get_job(self, job_id: str) -> ProcessingJob:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise NotFound(f"Job {job_id} not found")
        return job

    def save_job(self, job: ProcessingJob) -> ProcessingJob:
        with self._lock:
            if job.id not in self._jobs:
                raise NotFound(f"Job {job.id} not found")
            self._jobs[job.id] = job
            return job

    def list_jobs(self, vehicle_id: str) -> List[ProcessingJob]:
        with self._lock:
            jobs = [job for job in self._jobs.values() if job.vehicle_id == vehicle_id]
        return sorted(jobs, key=lambda j: (j.created_at, j.id))

    def feed_snapshot(self) -> List[FeedRow]:
        with self._lock:
            vehicles = list(self._vehicles.values())
            images = list(self._images.values())

        by_vehicle: Dict[str, List[VehicleImage]] = {}
        for image in images:
            if image.is_optimized and image.image_type in KEY_IMAGE_TYPES:
                by_vehicle.setdefault(image.vehicle_id, []).append(image)

        rows: List[FeedRow] = []
        for vehicle in sorted(vehicles, key=lambda v: (v.created_at, v.id)):
            selected = by_vehicle.get(vehicle.id)
            if selected:
                rows.append((vehicle, sorted(selected, key=image_sort_key)))
        return rows

    def clear(self) -> None:
        with self._lock:
            self._vehicles.clear()
            self._images.clear()
            self._jobs.clear()


vehicle_store = InMemoryVehicleStore()
