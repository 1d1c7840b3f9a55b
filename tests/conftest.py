"""Shared fixtures: isolated store, fixed clock, scripted transformation client."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.models.image import ImageType, VehicleImage
from app.models.vehicle import Vehicle
from app.services.feed_generator import CSVFeedGenerator
from app.services.image_optimizer import ImageOptimizer, image_optimizer
from app.services.intake import IntakeService
from app.services.job_lifecycle import JobLifecycleManager
from app.services.vehicle_store import InMemoryVehicleStore, vehicle_store
from app.worker.celery_app import celery_app
from tests.helpers import BASE_URL, TEST_API_KEY, FakeClock, FakeTransformer


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryVehicleStore:
    return InMemoryVehicleStore()


@pytest.fixture
def manager(store, clock) -> JobLifecycleManager:
    return JobLifecycleManager(store, clock=clock, error_max_length=50)


@pytest.fixture
def transformer() -> FakeTransformer:
    return FakeTransformer()


@pytest.fixture
def optimizer(store, transformer, manager, clock) -> ImageOptimizer:
    return ImageOptimizer(store, transformer, manager, clock=clock, path_prefix="optimized")


@pytest.fixture
def feed(store) -> CSVFeedGenerator:
    return CSVFeedGenerator(store)


@pytest.fixture
def intake(store, manager, clock) -> IntakeService:
    return IntakeService(store, manager, clock=clock)


@pytest.fixture
def make_vehicle(store, clock):
    counter = {"n": 0}

    def _make(vin: str = "1HGCM82633A004352", stock_number: Optional[str] = None, store_id: str = "store-1") -> Vehicle:
        counter["n"] += 1
        created = clock() + timedelta(seconds=counter["n"])
        vehicle = Vehicle(
            vin=vin,
            stock_number=stock_number or f"STK-{counter['n']:03d}",
            store_id=store_id,
            created_at=created,
            updated_at=created,
        )
        return store.add_vehicle(vehicle)

    return _make


@pytest.fixture
def make_image(store, clock):
    def _make(
        vehicle: Vehicle,
        image_type: ImageType,
        sort_order: int = 0,
        optimized_url: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> VehicleImage:
        stamp = updated_at or clock()
        fields = dict(
            vehicle_id=vehicle.id,
            original_url=f"https://uploads.example.com/{vehicle.id}/{image_type.value.lower()}-{sort_order}.jpg",
            image_type=image_type,
            sort_order=sort_order,
            uploaded_at=stamp,
            updated_at=stamp,
        )
        if optimized_url is not None:
            fields.update(optimized_url=optimized_url, is_optimized=True, processed_at=stamp)
        return store.add_image(VehicleImage(**fields))

    return _make


@pytest.fixture
def api_transformer(monkeypatch) -> FakeTransformer:
    fake = FakeTransformer()
    monkeypatch.setattr(image_optimizer, "transformer", fake)
    return fake


@pytest.fixture
def client(monkeypatch, api_transformer):
    """TestClient over the real app wired to a clean global store."""

    from app.main import app

    vehicle_store.clear()
    monkeypatch.setattr(settings, "feed_api_key", TEST_API_KEY)
    monkeypatch.setattr(settings, "public_base_url", BASE_URL)
    monkeypatch.setattr(settings, "operator_api_token", None)
    monkeypatch.setitem(celery_app.conf, "task_always_eager", True)

    with TestClient(app) as test_client:
        yield test_client

    vehicle_store.clear()
