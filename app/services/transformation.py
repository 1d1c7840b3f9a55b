"""Clients for the external image transformation service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import httpx
import tinify

from app.core.config import Settings, settings
from app.core.exceptions import TransformationFailure, TransformationUnreachable
from app.core.logging import get_logger

logger = get_logger(__name__)

# Statuses that mean the service itself is down or refusing us, not that one image is bad.
UNREACHABLE_STATUSES = {401, 403, 502, 503, 504}

ALLOWED_SOURCE_TYPES = {"image/jpeg", "image/png"}
_SIGNATURES = {b"\xff\xd8\xff": "image/jpeg", b"\x89PNG\r\n\x1a\n": "image/png"}


def detect_image_type(content_type: Optional[str], data: bytes) -> Optional[str]:
    """Resolve the upload format from its declared type, falling back to magic bytes."""

    declared = (content_type or "").split(";")[0].strip().lower()
    if declared == "image/jpg":
        declared = "image/jpeg"
    if declared in ALLOWED_SOURCE_TYPES:
        return declared
    if declared and declared != "application/octet-stream":
        return declared
    for signature, detected in _SIGNATURES.items():
        if data.startswith(signature):
            return detected
    return declared or None


class TransformationClient(ABC):
    """Turns a raw upload into a consumer-ready asset at a deterministic location."""

    @abstractmethod
    def transform(self, source_url: str, target_name: str) -> str:
        """Return the destination URL of the optimized asset."""


class HttpTransformationClient(TransformationClient):
    """Calls a JSON transformation endpoint: ``{source_url, target_name} -> {url}``."""

    def __init__(
        self,
        api_url: Optional[str],
        api_key: Optional[str] = None,
        client: httpx.Client | None = None,
        timeout: float = 60.0,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._client = client or httpx.Client(timeout=timeout)

    def transform(self, source_url: str, target_name: str) -> str:
        if not self._api_url:
            raise TransformationUnreachable("Transformation service URL is not configured.")

        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        try:
            response = self._client.post(
                self._api_url,
                json={"source_url": source_url, "target_name": target_name},
                headers=headers,
            )
        except httpx.TransportError as exc:
            raise TransformationUnreachable(f"Transformation service unreachable: {exc}") from exc

        if response.status_code in UNREACHABLE_STATUSES:
            raise TransformationUnreachable(
                f"Transformation service rejected the request: {response.status_code}",
                {"status_code": response.status_code},
            )
        if response.is_error:
            raise TransformationFailure(
                f"Transformation failed: {response.status_code} {response.text[:200]}",
                {"status_code": response.status_code, "source_url": source_url},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransformationFailure("Transformation response was not valid JSON") from exc
        url = payload.get("url") if isinstance(payload, dict) else None
        if not url:
            raise TransformationFailure("Transformation response missing url field")
        return url


class TinifyTransformationClient(TransformationClient):
    """Compresses with TinyPNG (Tinify) and stores the result in S3."""

    def __init__(self, config: Settings, client: httpx.Client | None = None) -> None:
        self._settings = config
        self._client = client or httpx.Client(timeout=config.transformation_timeout_seconds)
        self._tinify_configured = False

    def transform(self, source_url: str, target_name: str) -> str:
        self._ensure_tinify_configured()
        source_bytes = self._fetch_source(source_url)

        try:
            result = tinify.from_buffer(source_bytes).store(
                service="s3",
                aws_access_key_id=self._settings.aws_access_key_id,
                aws_secret_access_key=self._settings.aws_secret_access_key,
                region=self._settings.aws_region,
                path=f"{self._settings.image_storage_bucket}/{target_name}",
            )
        except (tinify.AccountError, tinify.ConnectionError) as exc:
            logger.error("tinify_unavailable", target=target_name, error=str(exc))
            raise TransformationUnreachable(f"TinyPNG unavailable: {exc}") from exc
        except tinify.Error as exc:
            logger.error("tinify_conversion_failed", target=target_name, error=str(exc))
            raise TransformationFailure(f"TinyPNG conversion failed: {exc}") from exc

        if self._settings.storage_public_base_url:
            return f"{self._settings.storage_public_base_url.rstrip('/')}/{target_name}"
        return result.location

    def _fetch_source(self, url: str) -> bytes:
        """Download the raw upload into memory."""

        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransformationFailure(f"Image download failed: {exc}", {"source_url": url}) from exc

        data = response.content
        image_type = detect_image_type(response.headers.get("content-type"), data)
        if image_type not in ALLOWED_SOURCE_TYPES:
            raise TransformationFailure(
                "Invalid image format. Only JPG and PNG formats are accepted.",
                {"source_url": url, "content_type": image_type},
            )
        max_bytes = self._settings.source_image_max_bytes
        if len(data) > max_bytes:
            raise TransformationFailure(
                f"Image size exceeds the maximum limit of {max_bytes} bytes.",
                {"source_url": url, "size": len(data)},
            )
        return data

    def _ensure_tinify_configured(self) -> None:
        api_key = self._settings.tinypng_api_key
        if not api_key:
            raise TransformationUnreachable("TinyPNG API key is not configured in settings.")
        if not self._settings.image_storage_bucket:
            raise TransformationUnreachable("Image storage bucket is not configured in settings.")

        if not self._tinify_configured or tinify.key != api_key:
            tinify.key = api_key
            self._tinify_configured = True


def build_transformation_client(config: Settings = settings) -> TransformationClient:
    """Pick the backend named by ``transformation_backend``."""

    if config.transformation_backend == "tinify":
        return TinifyTransformationClient(config)
    return HttpTransformationClient(
        config.transformation_api_url,
        config.transformation_api_key,
        timeout=config.transformation_timeout_seconds,
    )
