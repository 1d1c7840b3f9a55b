"""CSV inventory feed polled by the inventory consumer."""

from __future__ import annotations

import csv
import io
from datetime import datetime, timedelta, timezone
from typing import Iterable, List
from urllib.parse import urlsplit

from app.core.clock import ensure_utc
from app.core.logging import get_logger
from app.models.image import VehicleImage
from app.services.vehicle_store import VehicleImageStore, vehicle_store

logger = get_logger(__name__)

FEED_HEADER = ("VIN", "StockNumber", "ImageURLs")
LINE_TERMINATOR = "\r\n"
URL_SEPARATOR = "|"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def epoch_millis(value: datetime) -> int:
    return (ensure_utc(value) - _EPOCH) // timedelta(milliseconds=1)


def build_image_url(base_url: str, optimized_url: str, updated_at: datetime) -> str:
    """Absolute, cache-busted URL for one optimized image.

    Relative optimized locations are served from ``base_url``; absolute ones
    are kept as they are. The version token is the image's own ``updated_at``.
    """

    parts = urlsplit(optimized_url)
    if parts.scheme and parts.netloc:
        url = optimized_url
    else:
        url = f"{base_url.rstrip('/')}/{optimized_url.lstrip('/')}"
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}v={epoch_millis(updated_at)}"


class CSVFeedGenerator:
    """Serializes the current optimized key images into the consumer's CSV format."""

    def __init__(self, store: VehicleImageStore) -> None:
        self._store = store

    def generate_feed(self, base_url: str) -> str:
        """Render ``VIN,StockNumber,ImageURLs`` with one CRLF-terminated row per vehicle."""

        rows = self._store.feed_snapshot()

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator=LINE_TERMINATOR)
        writer.writerow(FEED_HEADER)
        written = 0
        for vehicle, images in rows:
            urls = self._image_urls(base_url, images)
            if not urls:
                continue
            writer.writerow((vehicle.vin, vehicle.stock_number, URL_SEPARATOR.join(urls)))
            written += 1

        logger.info("feed_generated", vehicle_count=written)
        return buffer.getvalue()

    @staticmethod
    def _image_urls(base_url: str, images: Iterable[VehicleImage]) -> List[str]:
        return [
            build_image_url(base_url, image.optimized_url, image.updated_at)
            for image in images
            if image.is_optimized and image.optimized_url and image.image_type.is_key
        ]


feed_generator = CSVFeedGenerator(vehicle_store)
