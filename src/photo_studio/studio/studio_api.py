"""HTTP routes for photo studio operations."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ..auth.auth_dependencies import require_user_id
from ..exceptions import NotFoundError
from ..repositories.job_repository import JobRecord
from .studio_errors import (
    AdmissionDeniedError,
    InvalidRequestError,
    JobFailedError,
    ServiceNotConfiguredError,
)
from .studio_models import FailureReason, StudioRequest
from .studio_schemas import (
    CreditSummaryModel,
    JobResponseModel,
    StudioErrorSchema,
    StudioRequestModel,
    StudioResponseModel,
)
from .studio_service import StudioService

router = APIRouter(prefix="/api/photo-studio", tags=["photo-studio"])
logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    code: {"model": StudioErrorSchema}
    for code in (
        status.HTTP_400_BAD_REQUEST,
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        status.HTTP_504_GATEWAY_TIMEOUT,
    )
}


def get_studio_service(request: Request) -> StudioService:
    """Fetch studio service from application state."""
    try:
        return request.app.state.studio_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - app wiring error
        raise RuntimeError("StudioService is not configured") from exc


@router.post("", response_model=StudioResponseModel, responses=_ERROR_RESPONSES)
async def run_operation(
    payload: StudioRequestModel,
    user_id: str = Depends(require_user_id),
    service: StudioService = Depends(get_studio_service),
) -> StudioResponseModel:
    """Transform a product photo; credits are only charged on success."""
    request = StudioRequest(
        image_url=payload.image_url or "",
        operation=payload.operation or "",
        parameters=payload.parameters or {},
        selfie_url=payload.selfie_url,
        first_item_context=payload.sell_wizard or payload.first_item_context,
    )

    try:
        result = await service.process(user_id, request)
    except InvalidRequestError as exc:
        logger.warning("studio.invalid_request", extra={"user_id": user_id, "error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "status": "error",
                "failure_reason": FailureReason.INVALID_REQUEST.value,
                "message": str(exc),
            },
        ) from exc
    except ServiceNotConfiguredError as exc:
        logger.error("studio.service_not_configured", extra={"user_id": user_id, "error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "status": "error",
                "failure_reason": FailureReason.SERVICE_NOT_CONFIGURED.value,
                "message": str(exc),
            },
        ) from exc
    except AdmissionDeniedError as exc:
        denial = exc.denial
        detail: dict[str, object] = {
            "status": "error",
            "failure_reason": denial.kind.value,
            "message": denial.reason,
            "upgrade_required": denial.upgrade_required,
        }
        if denial.remaining_credits is not None:
            detail["remaining_credits"] = denial.remaining_credits
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail) from exc
    except JobFailedError as exc:
        raise HTTPException(
            status_code=(
                status.HTTP_504_GATEWAY_TIMEOUT if exc.is_timeout else status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
            detail={
                "status": "timeout" if exc.is_timeout else "error",
                "failure_reason": exc.failure_reason.value,
                "message": str(exc),
                "job_id": exc.job_id,
            },
        ) from exc

    return StudioResponseModel(
        job_id=result.job_id,
        processed_url=result.result_url,
        operation=result.operation.value,
        credits_deducted=result.credits_deducted,
    )


@router.get("/jobs", response_model=list[JobResponseModel])
def list_jobs(
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(require_user_id),
    service: StudioService = Depends(get_studio_service),
) -> list[JobResponseModel]:
    return [_job_response(job) for job in service.list_jobs(user_id, limit=limit)]


@router.get("/jobs/{job_id}", response_model=JobResponseModel)
def read_job(
    job_id: str,
    user_id: str = Depends(require_user_id),
    service: StudioService = Depends(get_studio_service),
) -> JobResponseModel:
    try:
        job = service.get_job(user_id, job_id)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"status": "error", "failure_reason": "job_not_found"},
        ) from exc
    return _job_response(job)


@router.get("/credits", response_model=CreditSummaryModel)
def read_credits(
    user_id: str = Depends(require_user_id),
    service: StudioService = Depends(get_studio_service),
) -> CreditSummaryModel:
    summary = service.credit_summary(user_id)
    snapshot = summary.snapshot
    return CreditSummaryModel(
        tier=summary.profile.tier.label,
        used=snapshot.total_used,
        limit=snapshot.credits_limit,
        remaining=None if snapshot.is_unlimited else snapshot.remaining,
        unlimited=snapshot.is_unlimited,
        first_item_pass_available=summary.profile.first_item_pass_available,
    )


def _job_response(job: JobRecord) -> JobResponseModel:
    return JobResponseModel(
        job_id=job.job_id,
        operation=job.operation,
        status=job.status.value,
        original_url=job.image_url,
        selfie_url=job.selfie_url,
        processed_url=job.result_url,
        parameters=job.parameters,
        credits_deducted=job.credits_deducted,
        failure_reason=job.failure_reason,
        error_message=job.error_message,
        created_at=job.created_at,
        completed_at=job.completed_at,
    )
