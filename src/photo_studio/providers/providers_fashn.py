"""Fashn provider driver (asynchronous submit-then-poll family)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from time import monotonic
from types import MappingProxyType
from typing import Any, Mapping

import httpx

from ..studio.studio_models import Operation
from .providers_base import ProviderDriver, ProviderRequest, ProviderResult
from .providers_errors import (
    ProviderNotConfiguredError,
    ProviderProcessingError,
    ProviderTimeoutError,
    ProviderTransportError,
    ProviderValidationError,
)

logger = logging.getLogger(__name__)

PROMPT_SUFFIX = "professional studio background, fashion photography, high quality"

_VALIDATION_STATUSES = {400, 422}


def build_appearance_prompt(parameters: Mapping[str, str]) -> str:
    """Describe the generated model from gender, ethnicity and pose choices."""
    gender = parameters.get("gender") or "female"
    ethnicity = parameters.get("ethnicity") or ""
    pose = parameters.get("pose") or ""

    parts = [f"{gender} model"]
    if ethnicity and ethnicity != "default":
        parts.append(ethnicity)
    if pose and pose != "default":
        parts.append(f"{pose} pose")
    parts.append(PROMPT_SUFFIX)
    return ", ".join(parts)


def _product_to_model(request: ProviderRequest) -> dict[str, Any]:
    # No model_image: Fashn generates a new person from the prompt.
    return {
        "model_name": "product-to-model",
        "inputs": {
            "product_image": request.image_url,
            "prompt": build_appearance_prompt(request.parameters),
            "aspect_ratio": "3:4",
            "output_format": "png",
        },
    }


def _virtual_tryon(request: ProviderRequest) -> dict[str, Any]:
    if not request.selfie_url:
        raise ProviderValidationError("selfie_url is required for virtual try-on")
    return {
        "model_name": "tryon-v1.6",
        "inputs": {
            "model_image": request.selfie_url,
            "garment_image": request.image_url,
            "category": "auto",
            "mode": "quality",
        },
    }


def _model_swap(request: ProviderRequest) -> dict[str, Any]:
    return {
        "model_name": "model-swap",
        "inputs": {
            "model_image": request.image_url,
            "prompt": build_appearance_prompt(request.parameters),
        },
    }


PAYLOAD_BUILDERS: Mapping[Operation, Callable[[ProviderRequest], dict[str, Any]]] = MappingProxyType(
    {
        Operation.PUT_ON_MODEL: _product_to_model,
        Operation.VIRTUAL_TRYON: _virtual_tryon,
        Operation.SWAP_MODEL: _model_swap,
    }
)


@dataclass(slots=True)
class FashnDriver(ProviderDriver):
    """Submit a Fashn run and poll its status until a terminal state."""

    api_key: str | None
    api_base: str = "https://api.fashn.ai"
    timeout_seconds: float = 60.0
    max_polls: int = 30
    poll_interval_seconds: float = 2.0
    poll_budget_seconds: float = 60.0
    log: logging.Logger = field(default_factory=lambda: logger)

    provider_id = "fashn"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def process(self, request: ProviderRequest) -> ProviderResult:
        if not self.api_key:
            raise ProviderNotConfiguredError("FASHN_API_KEY is not set")
        try:
            build_payload = PAYLOAD_BUILDERS[request.operation]
        except KeyError:
            raise ProviderValidationError(
                f"Fashn does not support operation '{request.operation}'"
            ) from None

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        body = build_payload(request)
        run_id = await self._submit(headers=headers, body=body, operation=request.operation.value)
        self.log.info(
            "fashn.run.submitted",
            extra={"job_id": request.job_id, "run_id": run_id, "operation": request.operation.value},
        )

        deadline = monotonic() + self.poll_budget_seconds
        for attempt in range(1, self.max_polls + 1):
            remaining = deadline - monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.poll_interval_seconds, remaining))
            remaining = deadline - monotonic()
            if remaining <= 0:
                break
            status_data = await self._poll(
                headers=headers, run_id=run_id, timeout=min(self.timeout_seconds, remaining)
            )
            if status_data is None:
                continue

            status = status_data.get("status")
            self.log.info(
                "fashn.poll attempt=%s/%s status=%s",
                attempt,
                self.max_polls,
                status,
                extra={"job_id": request.job_id, "run_id": run_id},
            )

            if status == "completed":
                outputs = status_data.get("output") or []
                if not outputs:
                    raise ProviderProcessingError("Fashn completed but returned no output URL")
                return await self._download(outputs[0])

            if status == "failed":
                raise ProviderProcessingError(
                    f"Fashn processing failed: {_error_message(status_data.get('error'))}"
                )

        self.log.warning(
            "fashn.poll.exhausted",
            extra={
                "job_id": request.job_id,
                "run_id": run_id,
                "max_polls": self.max_polls,
                "poll_budget_seconds": self.poll_budget_seconds,
            },
        )
        raise ProviderTimeoutError(
            f"Fashn run {run_id} did not finish within {self.max_polls} polls"
            f" or {self.poll_budget_seconds:g}s"
        )

    async def _submit(self, *, headers: dict[str, str], body: dict[str, Any], operation: str) -> str:
        url = f"{self.api_base.rstrip('/')}/v1/run"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(url, headers=headers, json=body)
        except httpx.HTTPError as exc:
            raise ProviderTransportError(f"Fashn HTTP error: {exc}") from exc

        if response.status_code != 200:
            detail = response.text[:500] or "Unknown error"
            self.log.error(
                "fashn.submit.error status=%s detail=%s",
                response.status_code,
                detail,
                extra={"operation": operation, "http_status": response.status_code},
            )
            message = f"Fashn {operation} submission failed: {detail}"
            if response.status_code in _VALIDATION_STATUSES:
                raise ProviderValidationError(message)
            raise ProviderTransportError(message)

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderProcessingError("Fashn submit response is not valid JSON") from exc
        if not isinstance(data, dict):
            raise ProviderProcessingError("Fashn submit response is not a JSON object")
        if data.get("error"):
            raise ProviderValidationError(
                f"Fashn {operation} submission rejected: {_error_message(data['error'])}"
            )
        run_id = data.get("id")
        if not run_id:
            raise ProviderProcessingError("Fashn did not return a job ID")
        return str(run_id)

    async def _poll(
        self, *, headers: dict[str, str], run_id: str, timeout: float
    ) -> dict[str, Any] | None:
        """Return status payload, or ``None`` when this poll should be skipped."""
        url = f"{self.api_base.rstrip('/')}/v1/status/{run_id}"
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            self.log.warning("fashn.poll.transport_error", extra={"run_id": run_id, "error": str(exc)})
            return None
        if response.status_code != 200:
            self.log.warning(
                "fashn.poll.failed", extra={"run_id": run_id, "http_status": response.status_code}
            )
            return None
        try:
            data = response.json()
        except ValueError:
            self.log.warning("fashn.poll.invalid_json", extra={"run_id": run_id})
            return None
        if not isinstance(data, dict):
            raise ProviderProcessingError("Fashn status response is not a JSON object")
        return data

    async def _download(self, url: str) -> ProviderResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            raise ProviderProcessingError(f"Failed to download Fashn result image: {exc}") from exc
        if response.status_code != 200:
            raise ProviderProcessingError(
                f"Failed to download Fashn result image (status={response.status_code})"
            )
        content_type = response.headers.get("content-type", "image/png")
        return ProviderResult(payload=response.content, content_type=content_type)


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error.get("name") or "Processing failed")
    if error:
        return str(error)
    return "Processing failed"
