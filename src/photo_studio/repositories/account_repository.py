"""Subscription tier and first-item allowance per user."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..db.db_models import ProfileModel
from ..studio.studio_models import Tier


@dataclass(slots=True)
class AccountProfile:
    user_id: str
    tier: Tier
    first_item_pass_available: bool


class AccountRepository:
    """Read profile data; the allowance flag is flipped with a conditional UPDATE."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get_profile(self, user_id: str) -> AccountProfile:
        with self._session_factory() as session:
            row = session.get(ProfileModel, user_id)
            if row is None:
                return AccountProfile(user_id=user_id, tier=Tier.FREE, first_item_pass_available=False)
            return AccountProfile(
                user_id=user_id,
                tier=Tier.parse(row.subscription_tier),
                first_item_pass_available=not row.first_item_pass_used,
            )

    @staticmethod
    def apply_first_item_pass(session: Session, user_id: str) -> bool:
        """Flip the allowance to consumed; ``False`` if it was already used."""
        result = session.execute(
            update(ProfileModel)
            .where(
                ProfileModel.user_id == user_id,
                ProfileModel.first_item_pass_used.is_(False),
            )
            .values(first_item_pass_used=True)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)
