"""Data structures for the photo studio pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from types import MappingProxyType
from typing import Mapping


class Operation(StrEnum):
    """Image transformations offered by the studio."""

    REMOVE_BG = "remove_bg"
    SELL_READY = "sell_ready"
    STUDIO_SHADOW = "studio_shadow"
    AI_BACKGROUND = "ai_background"
    PUT_ON_MODEL = "put_on_model"
    VIRTUAL_TRYON = "virtual_tryon"
    SWAP_MODEL = "swap_model"


class ProviderFamily(StrEnum):
    """Integration style of the provider that serves an operation."""

    SYNC = "photoroom"
    ASYNC = "fashn"


class Tier(IntEnum):
    """Subscription tiers ordered from lowest to highest."""

    FREE = 0
    STARTER = 1
    PRO = 2
    BUSINESS = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: str | None) -> "Tier":
        """Unknown or missing tiers fall back to ``free``."""
        if not value:
            return cls.FREE
        try:
            return cls[value.strip().upper()]
        except KeyError:
            return cls.FREE


class JobStatus(StrEnum):
    """Lifecycle statuses for processing_job records."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureReason(StrEnum):
    """Failure reasons recorded on jobs and returned to callers."""

    INVALID_REQUEST = "invalid_request"
    TIER_REQUIRED = "tier_required"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    SERVICE_NOT_CONFIGURED = "service_not_configured"
    PROVIDER_TIMEOUT = "provider_timeout"
    PROVIDER_ERROR = "provider_error"
    STORAGE_ERROR = "storage_error"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True, slots=True)
class OperationSpec:
    """Fixed pricing and routing attributes of an operation."""

    operation: Operation
    credit_cost: int
    provider_family: ProviderFamily
    minimum_tier: Tier
    requires_selfie: bool = False


OPERATIONS: Mapping[Operation, OperationSpec] = MappingProxyType(
    {
        Operation.REMOVE_BG: OperationSpec(Operation.REMOVE_BG, 1, ProviderFamily.SYNC, Tier.FREE),
        Operation.SELL_READY: OperationSpec(Operation.SELL_READY, 1, ProviderFamily.SYNC, Tier.FREE),
        Operation.STUDIO_SHADOW: OperationSpec(
            Operation.STUDIO_SHADOW, 2, ProviderFamily.SYNC, Tier.STARTER
        ),
        Operation.AI_BACKGROUND: OperationSpec(
            Operation.AI_BACKGROUND, 2, ProviderFamily.SYNC, Tier.STARTER
        ),
        Operation.PUT_ON_MODEL: OperationSpec(
            Operation.PUT_ON_MODEL, 3, ProviderFamily.ASYNC, Tier.STARTER
        ),
        Operation.VIRTUAL_TRYON: OperationSpec(
            Operation.VIRTUAL_TRYON, 3, ProviderFamily.ASYNC, Tier.STARTER, requires_selfie=True
        ),
        Operation.SWAP_MODEL: OperationSpec(Operation.SWAP_MODEL, 3, ProviderFamily.ASYNC, Tier.STARTER),
    }
)


def resolve_operation(value: str) -> OperationSpec | None:
    try:
        return OPERATIONS[Operation(value)]
    except ValueError:
        return None


@dataclass(slots=True)
class StudioRequest:
    """Caller request to transform one product photo."""

    image_url: str
    operation: str
    parameters: dict[str, str] = field(default_factory=dict)
    selfie_url: str | None = None
    first_item_context: bool = False


@dataclass(slots=True)
class StudioResult:
    """Outcome of a completed job."""

    job_id: str
    result_url: str
    operation: Operation
    credits_deducted: int
