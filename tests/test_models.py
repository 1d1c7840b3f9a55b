from datetime import timedelta

import pytest
from pydantic import ValidationError

from app.models.image import GALLERY_IMAGE_TYPES, KEY_IMAGE_TYPES, ImageType, VehicleImage
from app.models.job import JobStatus
from app.models.vehicle import Vehicle, normalize_vin
from tests.helpers import START


def test_vin_is_uppercased_and_trimmed():
    assert normalize_vin(" wbadt43452g123456 ") == "WBADT43452G123456"


@pytest.mark.parametrize(
    "vin, message",
    [
        ("", "required"),
        ("WBADT43452G12345", "provided: 16"),
        ("WBADT43452G1234567", "provided: 18"),
        ("WBADT43452G12345I", "excluding I, O, and Q"),
        ("WBADT43452G1234O5", "excluding I, O, and Q"),
        ("WBADT43452G1-3456", "excluding I, O, and Q"),
    ],
)
def test_invalid_vins_are_rejected(vin, message):
    with pytest.raises(ValueError, match=message):
        normalize_vin(vin)


def test_vehicle_rejects_bad_stock_number():
    with pytest.raises(ValidationError):
        Vehicle(vin="WBADT43452G123456", stock_number="TEST 001", store_id="s1")

    vehicle = Vehicle(vin="WBADT43452G123456", stock_number="TEST_E2E-001", store_id="s1")
    assert vehicle.stock_number == "TEST_E2E-001"


def test_image_type_groups_and_canonical_order():
    assert [t.value for t in KEY_IMAGE_TYPES] == [
        "FRONT_QUARTER",
        "FRONT",
        "BACK_QUARTER",
        "BACK",
        "DRIVER_SIDE",
        "PASSENGER_SIDE",
    ]
    assert all(t.is_key for t in KEY_IMAGE_TYPES)
    assert not any(t.is_key for t in GALLERY_IMAGE_TYPES)
    assert ImageType.FRONT_QUARTER.canonical_index < ImageType.PASSENGER_SIDE.canonical_index


def test_image_optimized_flag_must_match_fields():
    with pytest.raises(ValidationError):
        VehicleImage(vehicle_id="v", original_url="u", image_type=ImageType.FRONT, is_optimized=True)

    with pytest.raises(ValidationError):
        VehicleImage(
            vehicle_id="v",
            original_url="u",
            image_type=ImageType.FRONT,
            optimized_url="/o.jpg",
            processed_at=START,
            updated_at=START,
        )


def test_with_optimized_writes_all_fields_and_keeps_updated_at_monotonic():
    image = VehicleImage(
        vehicle_id="v",
        original_url="u",
        image_type=ImageType.FRONT,
        uploaded_at=START,
        updated_at=START + timedelta(minutes=5),
    )

    optimized = image.with_optimized("/optimized/v/front.jpg", START + timedelta(minutes=1))

    assert optimized.is_optimized
    assert optimized.optimized_url == "/optimized/v/front.jpg"
    assert optimized.processed_at == START + timedelta(minutes=1)
    assert optimized.updated_at == START + timedelta(minutes=5)
    assert not image.is_optimized


def test_with_placement_bumps_updated_at():
    image = VehicleImage(vehicle_id="v", original_url="u", image_type=ImageType.BACK, updated_at=START)

    moved = image.with_placement(START + timedelta(seconds=3), sort_order=4)

    assert moved.sort_order == 4
    assert moved.image_type is ImageType.BACK
    assert moved.updated_at == START + timedelta(seconds=3)


def test_job_status_helpers():
    assert JobStatus.COMPLETED.is_terminal and JobStatus.FAILED.is_terminal
    assert JobStatus.QUEUED.is_in_flight and JobStatus.PROCESSING.is_in_flight
    assert not JobStatus.PROCESSING.is_terminal
