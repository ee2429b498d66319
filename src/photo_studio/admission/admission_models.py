"""Outcomes of an admission decision."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ..studio.studio_models import OperationSpec, Tier


class DenialKind(StrEnum):
    TIER = "tier_required"
    CREDITS = "insufficient_credits"


@dataclass(frozen=True, slots=True)
class Grant:
    """Permission to run ``spec``; decides the accounting path up front."""

    user_id: str
    spec: OperationSpec
    tier: Tier
    use_first_item_pass: bool = False


@dataclass(frozen=True, slots=True)
class Denial:
    user_id: str
    spec: OperationSpec
    kind: DenialKind
    reason: str
    remaining_credits: int | None = None
    upgrade_required: bool = True
