"""Test doubles and constants shared across test modules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Tuple

from app.core.exceptions import TransformationFailure, TransformationUnreachable
from app.services.transformation import TransformationClient

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
START_MILLIS = 1714564800000

TEST_API_KEY = "test-api-key"
BASE_URL = "https://photos.example.com"


class FakeClock:
    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now += timedelta(**delta)
        return self.now


class FakeTransformer(TransformationClient):
    """Records calls; fails or goes unreachable for chosen source URLs."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []
        self.failing: Dict[str, str] = {}
        self.unreachable: Dict[str, str] = {}

    def transform(self, source_url: str, target_name: str) -> str:
        self.calls.append((source_url, target_name))
        if source_url in self.unreachable:
            raise TransformationUnreachable(self.unreachable[source_url])
        if source_url in self.failing:
            raise TransformationFailure(self.failing[source_url])
        return f"/{target_name}"

    @property
    def sources(self) -> List[str]:
        return [source for source, _ in self.calls]
