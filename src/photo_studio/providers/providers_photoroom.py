"""Photoroom provider driver (synchronous family)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import httpx

from ..studio.studio_models import Operation
from .providers_base import ProviderDriver, ProviderRequest, ProviderResult
from .providers_errors import (
    ProviderNotConfiguredError,
    ProviderProcessingError,
    ProviderTransportError,
    ProviderValidationError,
)

logger = logging.getLogger(__name__)

SEGMENT_PATH = "/v1/segment"
EDIT_PATH = "/v1/edit"

DEFAULT_SHADOW_MODE = "ai.soft"
DEFAULT_BG_PROMPT = "marble countertop with soft morning light"

_VALIDATION_STATUSES = {400, 413, 415, 422}

FormBuilder = Callable[[Mapping[str, str]], dict[str, str]]


def _segment_form(parameters: Mapping[str, str]) -> dict[str, str]:
    return {}


def _studio_shadow_form(parameters: Mapping[str, str]) -> dict[str, str]:
    return {
        "background.color": "#FFFFFF",
        "shadow.mode": parameters.get("shadow_mode") or DEFAULT_SHADOW_MODE,
        "lighting.mode": "ai.balanced",
        "padding": "0.1",
        "outputSize": "hd",
    }


def _ai_background_form(parameters: Mapping[str, str]) -> dict[str, str]:
    return {
        "background.prompt": parameters.get("bg_prompt") or DEFAULT_BG_PROMPT,
        "shadow.mode": "ai.soft",
        "lighting.mode": "ai.balanced",
        "padding": "0.05",
        "outputSize": "hd",
    }


# The basic segment endpoint only extracts the foreground; compositing,
# background synthesis and shadow/lighting control need the edit endpoint.
ENDPOINTS: Mapping[Operation, tuple[str, FormBuilder]] = MappingProxyType(
    {
        Operation.REMOVE_BG: (SEGMENT_PATH, _segment_form),
        Operation.SELL_READY: (SEGMENT_PATH, _segment_form),
        Operation.STUDIO_SHADOW: (EDIT_PATH, _studio_shadow_form),
        Operation.AI_BACKGROUND: (EDIT_PATH, _ai_background_form),
    }
)


@dataclass(slots=True)
class PhotoroomDriver(ProviderDriver):
    """Call Photoroom with a single multipart request per job."""

    api_key: str | None
    api_base: str = "https://sdk.photoroom.com"
    timeout_seconds: float = 60.0
    log: logging.Logger = field(default_factory=lambda: logger)

    provider_id = "photoroom"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def process(self, request: ProviderRequest) -> ProviderResult:
        try:
            path, build_form = ENDPOINTS[request.operation]
        except KeyError:
            raise ProviderValidationError(
                f"Photoroom does not support operation '{request.operation}'"
            ) from None

        image_bytes = await self.fetch_image(request.image_url)
        form = build_form(request.parameters or {})
        self.log.info(
            "photoroom.request.start",
            extra={
                "job_id": request.job_id,
                "operation": request.operation.value,
                "endpoint": path,
                "payload_bytes": len(image_bytes),
            },
        )
        result = await self._submit(path, image_bytes, form, operation=request.operation.value)
        self.log.info(
            "photoroom.request.success",
            extra={"job_id": request.job_id, "content_type": result.content_type},
        )
        return result

    async def compress_to_jpeg(self, image_bytes: bytes, *, quality: int = 85) -> bytes:
        """Re-encode an image as JPEG through the segment endpoint."""
        form = {"format": "jpg", "quality": str(quality)}
        result = await self._submit(
            SEGMENT_PATH, image_bytes, form, operation="compress", filename="image.png"
        )
        return result.payload

    async def fetch_image(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            raise ProviderTransportError(f"Failed to fetch image: {exc}") from exc
        if response.status_code != 200:
            raise ProviderTransportError(f"Failed to fetch image: {response.status_code}")
        return response.content

    async def _submit(
        self,
        path: str,
        image_bytes: bytes,
        form: dict[str, Any],
        *,
        operation: str,
        filename: str = "image.jpg",
    ) -> ProviderResult:
        if not self.api_key:
            raise ProviderNotConfiguredError("PHOTOROOM_API_KEY is not set")

        url = self.api_base.rstrip("/") + path
        files = {"image_file": (filename, image_bytes, "application/octet-stream")}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    url,
                    headers={"x-api-key": self.api_key},
                    data=form,
                    files=files,
                )
        except httpx.HTTPError as exc:
            raise ProviderTransportError(f"Photoroom HTTP error: {exc}") from exc

        if response.status_code != 200:
            detail = response.text[:500] or "Unknown error"
            self.log.error(
                "photoroom.response.error status=%s detail=%s",
                response.status_code,
                detail,
                extra={"operation": operation, "http_status": response.status_code},
            )
            message = f"Photoroom {operation} failed (status={response.status_code}): {detail}"
            if response.status_code in _VALIDATION_STATUSES:
                raise ProviderValidationError(message)
            if response.status_code >= 500:
                raise ProviderProcessingError(message)
            raise ProviderTransportError(message)

        content_type = response.headers.get("content-type", "image/png")
        return ProviderResult(payload=response.content, content_type=content_type)
