"""Keep images under the asynchronous provider's payload ceiling.

The guard is best-effort: when the size cannot be established or compression
is unavailable it hands back the original URL and lets the provider reject
the image itself.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from .media_service import ObjectStorage

logger = logging.getLogger(__name__)


class JpegCompressor(Protocol):
    @property
    def is_configured(self) -> bool: ...

    async def compress_to_jpeg(self, image_bytes: bytes, *, quality: int = 85) -> bytes: ...


@dataclass(slots=True)
class SizeGuard:
    """Return a URL whose payload is below ``max_bytes``."""

    storage: ObjectStorage
    compressor: JpegCompressor | None
    max_bytes: int = 25 * 1024 * 1024
    quality: int = 85
    timeout_seconds: float = 30.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def ensure_under_limit(self, image_url: str, *, user_id: str) -> str:
        if await self._head_under_limit(image_url):
            return image_url

        try:
            original = await self._download(image_url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.log.warning(
                "size_guard.fetch_failed", extra={"image_url": image_url, "error": str(exc)}
            )
            return image_url
        if original is None:
            return image_url

        if len(original) < self.max_bytes:
            return image_url

        self.log.info(
            "size_guard.over_limit",
            extra={"image_url": image_url, "size_bytes": len(original), "max_bytes": self.max_bytes},
        )
        return await self._compress(image_url, original, user_id=user_id)

    async def _head_under_limit(self, image_url: str) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.head(image_url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.log.info("size_guard.head_failed", extra={"image_url": image_url, "error": str(exc)})
            return False
        try:
            content_length = int(response.headers.get("content-length") or 0)
        except ValueError:
            return False
        return 0 < content_length < self.max_bytes

    async def _download(self, image_url: str) -> bytes | None:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.get(image_url)
        if response.status_code != 200:
            self.log.warning(
                "size_guard.fetch_failed",
                extra={"image_url": image_url, "http_status": response.status_code},
            )
            return None
        return response.content

    async def _compress(self, image_url: str, original: bytes, *, user_id: str) -> str:
        if self.compressor is None or not self.compressor.is_configured:
            self.log.warning("size_guard.compressor_unavailable", extra={"image_url": image_url})
            return image_url

        try:
            compressed = await self.compressor.compress_to_jpeg(original, quality=self.quality)
            key = f"{user_id}/compressed_{uuid.uuid4().hex}.jpg"
            self.storage.put(key, compressed, "image/jpeg")
            compressed_url = self.storage.public_url(key)
        except Exception as exc:
            self.log.warning(
                "size_guard.compression_failed", extra={"image_url": image_url, "error": str(exc)}
            )
            return image_url

        self.log.info(
            "size_guard.compressed",
            extra={
                "image_url": image_url,
                "original_bytes": len(original),
                "compressed_bytes": len(compressed),
                "compressed_url": compressed_url,
            },
        )
        return compressed_url
