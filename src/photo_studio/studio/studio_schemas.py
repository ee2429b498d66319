"""Pydantic schemas for the photo studio API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StudioRequestModel(BaseModel):
    """Fields are loose on purpose; the service answers 400 for bad shapes."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: Any = None
    operation: Any = None
    parameters: Any = None
    selfie_url: str | None = None
    sell_wizard: bool = False
    first_item_context: bool = False


class StudioResponseModel(BaseModel):
    job_id: str
    processed_url: str
    operation: str
    credits_deducted: int


class StudioErrorSchema(BaseModel):
    status: str
    failure_reason: str
    message: str | None = None
    upgrade_required: bool | None = None
    remaining_credits: int | None = None
    job_id: str | None = None


class JobResponseModel(BaseModel):
    job_id: str
    operation: str
    status: str
    original_url: str
    selfie_url: str | None = None
    processed_url: str | None = None
    parameters: dict[str, str] = Field(default_factory=dict)
    credits_deducted: int = 0
    failure_reason: str | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None


class CreditSummaryModel(BaseModel):
    tier: str
    used: int
    limit: int
    remaining: int | None
    unlimited: bool
    first_item_pass_available: bool
