"""Orchestrates admission, provider calls, storage and settlement for a job."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..admission.admission_models import Denial
from ..admission.admission_service import AdmissionController
from ..media.media_service import ObjectStorage, StorageError, extension_for
from ..media.size_guard import SizeGuard
from ..providers.providers_base import ProviderDriver, ProviderRequest, ProviderResult
from ..providers.providers_errors import ProviderError, ProviderTimeoutError
from ..repositories.account_repository import AccountProfile
from ..repositories.credit_repository import CreditSnapshot
from ..repositories.job_repository import JobRecord, JobRepository
from ..repositories.settlement_repository import InsufficientCreditsError, SettlementRepository
from .studio_errors import (
    NOT_CHARGED,
    AdmissionDeniedError,
    InvalidRequestError,
    JobFailedError,
    ServiceNotConfiguredError,
)
from .studio_models import (
    FailureReason,
    OperationSpec,
    ProviderFamily,
    StudioRequest,
    StudioResult,
    resolve_operation,
)

logger = logging.getLogger(__name__)

FAILURE_MESSAGES: Mapping[FailureReason, str] = {
    FailureReason.PROVIDER_TIMEOUT: f"Processing took too long. Please try again. {NOT_CHARGED}",
    FailureReason.PROVIDER_ERROR: f"Image processing failed. {NOT_CHARGED}",
    FailureReason.STORAGE_ERROR: f"Failed to save result image. {NOT_CHARGED}",
    FailureReason.INSUFFICIENT_CREDITS: (
        f"Your credit limit was reached before this job finished. {NOT_CHARGED}"
    ),
    FailureReason.INTERNAL_ERROR: f"Unexpected processing error. {NOT_CHARGED}",
}


@dataclass(slots=True)
class CreditSummary:
    profile: AccountProfile
    snapshot: CreditSnapshot


@dataclass(slots=True)
class StudioService:
    """Run one studio request end to end.

    The order within a job is fixed: admission, job creation, size guard
    (asynchronous family only), provider call, storage, then completion and
    charge in a single settlement. Every failure after the job exists is
    recorded on it and nothing is charged.
    """

    admission: AdmissionController
    job_repo: JobRepository
    settlements: SettlementRepository
    storage: ObjectStorage
    size_guard: SizeGuard
    drivers: Mapping[ProviderFamily, ProviderDriver]
    log: logging.Logger = field(default_factory=lambda: logger)

    def validate(self, request: StudioRequest) -> OperationSpec:
        """Check request shape and return the resolved operation."""
        if not isinstance(request.image_url, str) or not request.image_url.strip():
            raise InvalidRequestError("image_url and operation are required")
        if not request.operation:
            raise InvalidRequestError("image_url and operation are required")

        spec = resolve_operation(request.operation)
        if spec is None:
            raise InvalidRequestError(f"Invalid operation: {request.operation}")
        if spec.requires_selfie and not request.selfie_url:
            raise InvalidRequestError("selfie_url is required for virtual try-on")
        request.parameters = _normalise_parameters(request.parameters)
        return spec

    async def process(self, user_id: str, request: StudioRequest) -> StudioResult:
        spec = self.validate(request)
        driver = self.drivers[spec.provider_family]
        if not driver.is_configured:
            raise ServiceNotConfiguredError(
                f"{spec.provider_family.value.capitalize()} service not configured"
            )

        decision = self.admission.authorize(
            user_id, spec, first_item_context=request.first_item_context
        )
        if isinstance(decision, Denial):
            raise AdmissionDeniedError(decision)

        job_id = self.job_repo.create(
            user_id=user_id,
            operation=spec.operation.value,
            image_url=request.image_url,
            selfie_url=request.selfie_url,
            parameters=request.parameters,
            uses_first_item_pass=decision.use_first_item_pass,
        )
        self.log.info(
            "studio.job.created",
            extra={
                "job_id": job_id,
                "user_id": user_id,
                "operation": spec.operation.value,
                "provider": driver.provider_id,
                "first_item_pass": decision.use_first_item_pass,
            },
        )
        started_at = datetime.utcnow()

        try:
            result = await self._invoke_provider(job_id, user_id, spec, request, driver)
        except ProviderTimeoutError as exc:
            raise self._fail(job_id, FailureReason.PROVIDER_TIMEOUT, exc, started_at) from exc
        except ProviderError as exc:
            raise self._fail(job_id, FailureReason.PROVIDER_ERROR, exc, started_at) from exc
        except Exception as exc:
            raise self._fail(job_id, FailureReason.INTERNAL_ERROR, exc, started_at) from exc

        try:
            storage_key = f"{user_id}/{job_id}.{extension_for(result.content_type)}"
            self.storage.put(storage_key, result.payload, result.content_type)
            result_url = self.storage.public_url(storage_key)
        except StorageError as exc:
            raise self._fail(job_id, FailureReason.STORAGE_ERROR, exc, started_at) from exc

        try:
            settlement = self.settlements.settle_completed(
                job_id=job_id,
                user_id=user_id,
                result_url=result_url,
                credit_cost=spec.credit_cost,
                use_first_item_pass=decision.use_first_item_pass,
            )
        except InsufficientCreditsError as exc:
            raise self._fail(job_id, FailureReason.INSUFFICIENT_CREDITS, exc, started_at) from exc
        except Exception as exc:
            raise self._fail(job_id, FailureReason.INTERNAL_ERROR, exc, started_at) from exc

        self.log.info(
            "studio.job.completed",
            extra={
                "job_id": job_id,
                "user_id": user_id,
                "operation": spec.operation.value,
                "credits_deducted": settlement.credits_deducted,
                "first_item_pass": settlement.used_first_item_pass,
                "duration_seconds": (datetime.utcnow() - started_at).total_seconds(),
            },
        )
        return StudioResult(
            job_id=job_id,
            result_url=result_url,
            operation=spec.operation,
            credits_deducted=settlement.credits_deducted,
        )

    def get_job(self, user_id: str, job_id: str) -> JobRecord:
        return self.job_repo.get(job_id, user_id=user_id)

    def list_jobs(self, user_id: str, *, limit: int = 20) -> Sequence[JobRecord]:
        return self.job_repo.list_for_user(user_id, limit=limit)

    def credit_summary(self, user_id: str) -> CreditSummary:
        profile = self.admission.accounts.get_profile(user_id)
        snapshot = self.admission.credits.get_snapshot(user_id)
        return CreditSummary(profile=profile, snapshot=snapshot)

    async def _invoke_provider(
        self,
        job_id: str,
        user_id: str,
        spec: OperationSpec,
        request: StudioRequest,
        driver: ProviderDriver,
    ) -> ProviderResult:
        image_url = request.image_url
        selfie_url = request.selfie_url
        if spec.provider_family is ProviderFamily.ASYNC:
            image_url = await self.size_guard.ensure_under_limit(image_url, user_id=user_id)
            if selfie_url:
                selfie_url = await self.size_guard.ensure_under_limit(selfie_url, user_id=user_id)

        result = await driver.process(
            ProviderRequest(
                operation=spec.operation,
                image_url=image_url,
                selfie_url=selfie_url,
                parameters=request.parameters,
                job_id=job_id,
            )
        )
        if not isinstance(result, ProviderResult) or not result.payload:
            raise ProviderError(f"Provider '{driver.provider_id}' returned an empty result")
        return result

    def _fail(
        self,
        job_id: str,
        reason: FailureReason,
        exc: BaseException,
        started_at: datetime,
    ) -> JobFailedError:
        """Record the failure on the job and build the caller-facing error."""
        detail = str(exc) or exc.__class__.__name__
        self.log.error(
            "studio.job.failed",
            extra={
                "job_id": job_id,
                "reason": reason.value,
                "error": detail,
                "duration_seconds": (datetime.utcnow() - started_at).total_seconds(),
            },
        )
        self.job_repo.mark_failed(job_id, reason.value, detail)
        return JobFailedError(job_id, reason, FAILURE_MESSAGES[reason])


def _normalise_parameters(parameters: Any) -> dict[str, str]:
    if parameters is None:
        return {}
    if not isinstance(parameters, Mapping):
        raise InvalidRequestError("parameters must be an object of string values")
    normalised: dict[str, str] = {}
    for key, value in parameters.items():
        if not isinstance(key, str):
            raise InvalidRequestError("parameters must be an object of string values")
        if value is None:
            continue
        normalised[key] = value if isinstance(value, str) else str(value)
    return normalised
