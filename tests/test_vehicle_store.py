from datetime import timedelta

import pytest

from app.core.exceptions import InvalidInput, NotFound
from app.models.image import ImageType
from app.models.job import ProcessingJob
from app.models.vehicle import Vehicle


def test_duplicate_stock_number_within_store(store, make_vehicle):
    make_vehicle(stock_number="DUP-1")

    with pytest.raises(InvalidInput, match="already exists"):
        store.add_vehicle(Vehicle(vin="JH4KA8260MC000000", stock_number="DUP-1", store_id="store-1"))


def test_missing_rows_raise_not_found(store):
    with pytest.raises(NotFound):
        store.get_vehicle("veh_missing")
    with pytest.raises(NotFound):
        store.get_image("img_missing")
    with pytest.raises(NotFound):
        store.get_job("job_missing")
    with pytest.raises(NotFound):
        store.save_job(ProcessingJob(vehicle_id="veh_missing", image_ids=("img_1",)))


def test_list_images_filters(store, make_vehicle, make_image):
    vehicle = make_vehicle()
    front = make_image(vehicle, ImageType.FRONT, optimized_url="/o/front.jpg")
    back = make_image(vehicle, ImageType.BACK, sort_order=1)
    make_image(vehicle, ImageType.GALLERY, sort_order=2)

    assert store.list_images(vehicle.id, image_types=[ImageType.FRONT, ImageType.BACK]) == [front, back]
    assert store.list_images(vehicle.id, optimized=False, image_types=[ImageType.BACK]) == [back]
    assert [image.id for image in store.list_images(vehicle.id, optimized=True)] == [front.id]


def test_update_optimized_keeps_updated_at_monotonic(store, clock, make_vehicle, make_image):
    vehicle = make_vehicle()
    image = make_image(vehicle, ImageType.FRONT, updated_at=clock() + timedelta(hours=1))

    updated = store.update_image_optimized(image.id, "/o/front.jpg", clock())

    assert updated.is_optimized
    assert updated.updated_at == image.updated_at
    assert store.get_image(image.id) == updated


def test_feed_snapshot_orders_vehicles_and_images(store, make_vehicle, make_image):
    first = make_vehicle(vin="WBADT43452G123456")
    second = make_vehicle(vin="JH4KA8260MC000000")
    make_vehicle(vin="1HGCM82633A004352")
    b = make_image(second, ImageType.BACK, sort_order=0, optimized_url="/o/b.jpg")
    a = make_image(second, ImageType.FRONT, sort_order=0, optimized_url="/o/a.jpg")
    f = make_image(first, ImageType.FRONT, optimized_url="/o/f.jpg")
    make_image(first, ImageType.GALLERY, optimized_url="/o/g.jpg")

    rows = store.feed_snapshot()

    assert [(vehicle.id, [image.id for image in images]) for vehicle, images in rows] == [
        (first.id, [f.id]),
        (second.id, [a.id, b.id]),
    ]


def test_clear_empties_everything(store, make_vehicle, make_image):
    vehicle = make_vehicle()
    make_image(vehicle, ImageType.FRONT)

    store.clear()

    assert store.list_vehicles() == []
    assert store.list_images(vehicle.id) == []
