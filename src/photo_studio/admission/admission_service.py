"""Tier, credit and first-item admission checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..repositories.account_repository import AccountRepository
from ..repositories.credit_repository import CreditRepository
from ..studio.studio_models import OperationSpec
from .admission_models import Denial, DenialKind, Grant

logger = logging.getLogger(__name__)


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


@dataclass(slots=True)
class AdmissionController:
    """Decide whether a user may start an operation. Never mutates state."""

    accounts: AccountRepository
    credits: CreditRepository
    log: logging.Logger = field(default_factory=lambda: logger)

    def authorize(
        self,
        user_id: str,
        spec: OperationSpec,
        *,
        first_item_context: bool = False,
    ) -> Grant | Denial:
        profile = self.accounts.get_profile(user_id)

        # Tier runs before credits so the caller sees the upgrade reason first.
        if profile.tier < spec.minimum_tier:
            self.log.info(
                "admission.denied.tier",
                extra={
                    "user_id": user_id,
                    "operation": spec.operation.value,
                    "tier": profile.tier.label,
                    "required": spec.minimum_tier.label,
                },
            )
            return Denial(
                user_id=user_id,
                spec=spec,
                kind=DenialKind.TIER,
                reason=(
                    f"{spec.operation.value} requires the {spec.minimum_tier.label} plan "
                    f"or above. You're on {profile.tier.label}."
                ),
            )

        if first_item_context and profile.first_item_pass_available:
            self.log.info(
                "admission.granted.first_item_pass",
                extra={"user_id": user_id, "operation": spec.operation.value},
            )
            return Grant(user_id=user_id, spec=spec, tier=profile.tier, use_first_item_pass=True)

        snapshot = self.credits.get_snapshot(user_id)
        if not snapshot.is_unlimited and snapshot.total_used + spec.credit_cost > snapshot.credits_limit:
            cost = spec.credit_cost
            remaining = snapshot.remaining
            self.log.info(
                "admission.denied.credits",
                extra={
                    "user_id": user_id,
                    "operation": spec.operation.value,
                    "cost": cost,
                    "remaining": remaining,
                },
            )
            return Denial(
                user_id=user_id,
                spec=spec,
                kind=DenialKind.CREDITS,
                reason=(
                    f"This operation costs {cost} credit{_plural(cost)}. "
                    f"You have {remaining} remaining. Upgrade your plan or buy a top-up pack."
                ),
                remaining_credits=remaining,
            )

        return Grant(user_id=user_id, spec=spec, tier=profile.tier)
