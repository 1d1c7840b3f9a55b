"""Inventory feed endpoint polled by the consumer."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from app.api.dependencies import require_feed_key
from app.core.config import settings
from app.services.feed_generator import feed_generator

router = APIRouter(prefix="/inventory", tags=["feed"])

FEED_HEADERS = {
    "Content-Disposition": 'attachment; filename="inventory-feed.csv"',
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get(
    "/feed.csv",
    dependencies=[Depends(require_feed_key)],
    summary="Download the inventory image feed",
    response_class=Response,
)
def get_inventory_feed(request: Request) -> Response:
    """Return the CSV feed of vehicles with optimized key images."""

    base_url = settings.public_base_url or str(request.base_url)
    content = feed_generator.generate_feed(base_url)
    return Response(content=content, media_type="text/csv; charset=utf-8", headers=FEED_HEADERS)
