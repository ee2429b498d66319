"""Persistence layer for processing jobs."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import Update, select, update
from sqlalchemy.orm import Session

from ..db.db_models import ProcessingJobModel
from ..exceptions import NotFoundError, handle_sqlalchemy_errors
from ..studio.studio_models import JobStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class JobRecord:
    """Snapshot of a processing job."""

    job_id: str
    user_id: str
    operation: str
    status: JobStatus
    image_url: str
    selfie_url: str | None
    parameters: dict[str, str] = field(default_factory=dict)
    uses_first_item_pass: bool = False
    credits_deducted: int = 0
    result_url: str | None = None
    failure_reason: str | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not JobStatus.PROCESSING


def complete_statement(job_id: str, *, result_url: str, credits_deducted: int) -> Update:
    """UPDATE moving a job from processing to completed; matches nothing once terminal."""
    return (
        update(ProcessingJobModel)
        .where(
            ProcessingJobModel.id == job_id,
            ProcessingJobModel.status == JobStatus.PROCESSING.value,
        )
        .values(
            status=JobStatus.COMPLETED.value,
            result_url=result_url,
            credits_deducted=credits_deducted,
            completed_at=datetime.utcnow(),
        )
    )


class JobRepository:
    """Manage processing_job records; terminal rows are never rewritten."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create(
        self,
        *,
        user_id: str,
        operation: str,
        image_url: str,
        selfie_url: str | None = None,
        parameters: dict[str, str] | None = None,
        uses_first_item_pass: bool = False,
    ) -> str:
        job_id = uuid.uuid4().hex
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="job"):
            session.add(
                ProcessingJobModel(
                    id=job_id,
                    user_id=user_id,
                    operation=operation,
                    status=JobStatus.PROCESSING.value,
                    image_url=image_url,
                    selfie_url=selfie_url,
                    parameters=dict(parameters or {}),
                    uses_first_item_pass=uses_first_item_pass,
                    credits_deducted=0,
                    created_at=datetime.utcnow(),
                )
            )
            session.commit()
        return job_id

    def mark_completed(self, job_id: str, result_url: str, *, credits_deducted: int = 0) -> bool:
        """Return ``False`` (and leave the row untouched) if the job is already terminal."""
        statement = complete_statement(
            job_id, result_url=result_url, credits_deducted=credits_deducted
        )
        return self._transition(job_id, statement, target=JobStatus.COMPLETED)

    def mark_failed(self, job_id: str, failure_reason: str, error_message: str | None = None) -> bool:
        statement = (
            update(ProcessingJobModel)
            .where(
                ProcessingJobModel.id == job_id,
                ProcessingJobModel.status == JobStatus.PROCESSING.value,
            )
            .values(
                status=JobStatus.FAILED.value,
                failure_reason=failure_reason,
                error_message=error_message,
                completed_at=datetime.utcnow(),
            )
        )
        return self._transition(job_id, statement, target=JobStatus.FAILED)

    def get(self, job_id: str, *, user_id: str | None = None) -> JobRecord:
        """Return a job; with ``user_id`` set, jobs of other users are not found."""
        with self._session_factory() as session:
            model = session.get(ProcessingJobModel, job_id)
            if model is None or (user_id is not None and model.user_id != user_id):
                raise NotFoundError(f"Job '{job_id}' not found")
            return _to_record(model)

    def list_for_user(self, user_id: str, *, limit: int = 20) -> Sequence[JobRecord]:
        with self._session_factory() as session:
            rows = session.scalars(
                select(ProcessingJobModel)
                .where(ProcessingJobModel.user_id == user_id)
                .order_by(ProcessingJobModel.created_at.desc())
                .limit(limit)
            ).all()
            return [_to_record(row) for row in rows]

    def _transition(self, job_id: str, statement: Update, *, target: JobStatus) -> bool:
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="job"):
            result = session.execute(statement)
            session.commit()
            if result.rowcount:
                return True
            existing = session.get(ProcessingJobModel, job_id)
        if existing is None:
            raise NotFoundError(f"Job '{job_id}' not found")
        logger.warning(
            "job.transition.ignored",
            extra={"job_id": job_id, "status": existing.status, "requested": target.value},
        )
        return False


def _to_record(model: ProcessingJobModel) -> JobRecord:
    return JobRecord(
        job_id=model.id,
        user_id=model.user_id,
        operation=model.operation,
        status=JobStatus(model.status),
        image_url=model.image_url,
        selfie_url=model.selfie_url,
        parameters=dict(model.parameters or {}),
        uses_first_item_pass=model.uses_first_item_pass,
        credits_deducted=model.credits_deducted,
        result_url=model.result_url,
        failure_reason=model.failure_reason,
        error_message=model.error_message,
        created_at=model.created_at,
        completed_at=model.completed_at,
    )
