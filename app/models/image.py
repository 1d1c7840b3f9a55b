"""Pydantic models for vehicle photography."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.clock import utcnow


class ImageType(str, Enum):
    """Photo roles. Declaration order is the canonical feed order for key images."""

    FRONT_QUARTER = "FRONT_QUARTER"
    FRONT = "FRONT"
    BACK_QUARTER = "BACK_QUARTER"
    BACK = "BACK"
    DRIVER_SIDE = "DRIVER_SIDE"
    PASSENGER_SIDE = "PASSENGER_SIDE"
    GALLERY = "GALLERY"
    GALLERY_EXTERIOR = "GALLERY_EXTERIOR"
    GALLERY_INTERIOR = "GALLERY_INTERIOR"

    @property
    def is_key(self) -> bool:
        return self in KEY_IMAGE_TYPES

    @property
    def canonical_index(self) -> int:
        return _CANONICAL_ORDER[self]


KEY_IMAGE_TYPES = (
    ImageType.FRONT_QUARTER,
    ImageType.FRONT,
    ImageType.BACK_QUARTER,
    ImageType.BACK,
    ImageType.DRIVER_SIDE,
    ImageType.PASSENGER_SIDE,
)
GALLERY_IMAGE_TYPES = (ImageType.GALLERY, ImageType.GALLERY_EXTERIOR, ImageType.GALLERY_INTERIOR)

_CANONICAL_ORDER = {image_type: index for index, image_type in enumerate(ImageType)}


class VehicleImage(BaseModel):
    """A single photo attached to a vehicle.

    ``updated_at`` is the cache-busting source of truth for the feed and moves
    forward on every mutation.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"img_{uuid.uuid4().hex}")
    vehicle_id: str
    original_url: str
    optimized_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    image_type: ImageType
    sort_order: int = 0
    is_optimized: bool = False
    processed_at: Optional[datetime] = None
    uploaded_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_optimized_fields(self) -> "VehicleImage":
        """``is_optimized`` must agree with ``optimized_url`` and ``processed_at``."""

        has_output = self.optimized_url is not None and self.processed_at is not None
        if self.is_optimized != has_output:
            raise ValueError("is_optimized must be set exactly when optimized_url and processed_at are present")
        if self.processed_at is not None and self.updated_at < self.processed_at:
            raise ValueError("updated_at cannot precede processed_at")
        return self

    def with_optimized(self, optimized_url: str, at: datetime) -> "VehicleImage":
        """Return a copy carrying a freshly written optimization result."""

        return self._validated_copy(
            optimized_url=optimized_url,
            is_optimized=True,
            processed_at=at,
            updated_at=max(at, self.updated_at),
        )

    def with_placement(
        self,
        at: datetime,
        sort_order: Optional[int] = None,
        image_type: Optional[ImageType] = None,
    ) -> "VehicleImage":
        """Return a copy with new ordering/role and a bumped ``updated_at``."""

        return self._validated_copy(
            sort_order=self.sort_order if sort_order is None else sort_order,
            image_type=self.image_type if image_type is None else image_type,
            updated_at=max(at, self.updated_at),
        )

    def _validated_copy(self, **changes) -> "VehicleImage":
        # model_copy skips validation; round-trip so the invariants hold.
        return VehicleImage.model_validate({**self.model_dump(), **changes})


class ImageAttachRequest(BaseModel):
    """Register an already uploaded photo against a vehicle."""

    original_url: str = Field(..., min_length=1, description="Location of the raw upload.")
    image_type: ImageType
    thumbnail_url: Optional[str] = None
    sort_order: Optional[int] = Field(
        default=None,
        ge=0,
        description="Position within its type group; defaults to the end of the group.",
    )


class VehicleImageResponse(BaseModel):
    """API representation of a vehicle image."""

    id: str
    vehicle_id: str
    original_url: str
    optimized_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    image_type: ImageType
    sort_order: int
    is_optimized: bool
    processed_at: Optional[datetime] = None
    updated_at: datetime

    @classmethod
    def from_image(cls, image: VehicleImage) -> "VehicleImageResponse":
        return cls.model_validate(image.model_dump())
