"""Domain-specific exceptions for the studio pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .studio_models import FailureReason

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from ..admission.admission_models import Denial


NOT_CHARGED = "Your credits were not charged."


class StudioError(Exception):
    """Base class for studio pipeline errors."""


class InvalidRequestError(StudioError):
    """Raised when the request shape is rejected before admission."""


class ServiceNotConfiguredError(StudioError):
    """Raised when the provider for an operation has no API key."""


class AdmissionDeniedError(StudioError):
    """Raised when tier or credit admission fails."""

    def __init__(self, denial: "Denial") -> None:
        super().__init__(denial.reason)
        self.denial = denial


class JobFailedError(StudioError):
    """Raised when a created job ends in ``failed``; the user was not charged."""

    def __init__(self, job_id: str, failure_reason: FailureReason, message: str) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.failure_reason = failure_reason

    @property
    def is_timeout(self) -> bool:
        return self.failure_reason is FailureReason.PROVIDER_TIMEOUT
