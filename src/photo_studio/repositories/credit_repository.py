"""Credit ledger access: usage counters and monthly limit per user."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.db_models import UsageCreditsModel

logger = logging.getLogger(__name__)

UNLIMITED_CREDITS = 999_999


@dataclass(slots=True)
class CreditSnapshot:
    """Point-in-time view of a user's credit usage."""

    price_checks_used: int
    optimizations_used: int
    vintography_used: int
    credits_limit: int

    @property
    def total_used(self) -> int:
        return self.price_checks_used + self.optimizations_used + self.vintography_used

    @property
    def is_unlimited(self) -> bool:
        return self.credits_limit >= UNLIMITED_CREDITS

    @property
    def remaining(self) -> int:
        return max(0, self.credits_limit - self.total_used)


class CreditRepository:
    """Read usage counters and apply conditional debits."""

    def __init__(self, session_factory: Callable[[], Session], *, default_limit: int = 5) -> None:
        self._session_factory = session_factory
        self.default_limit = default_limit

    def get_snapshot(self, user_id: str) -> CreditSnapshot:
        with self._session_factory() as session:
            row = session.get(UsageCreditsModel, user_id)
            if row is None:
                return CreditSnapshot(0, 0, 0, self.default_limit)
            return CreditSnapshot(
                price_checks_used=row.price_checks_used,
                optimizations_used=row.optimizations_used,
                vintography_used=row.vintography_used,
                credits_limit=row.credits_limit,
            )

    def apply_debit(self, session: Session, user_id: str, amount: int) -> bool:
        """Increment ``vintography_used`` unless it would push usage past the limit.

        The limit check and the increment are one UPDATE statement, so two
        concurrent debits cannot both pass on a stale balance.
        """
        if session.get(UsageCreditsModel, user_id) is None:
            self._create_usage_row(session, user_id)

        total_used = (
            UsageCreditsModel.price_checks_used
            + UsageCreditsModel.optimizations_used
            + UsageCreditsModel.vintography_used
        )
        result = session.execute(
            update(UsageCreditsModel)
            .where(
                UsageCreditsModel.user_id == user_id,
                or_(
                    UsageCreditsModel.credits_limit >= UNLIMITED_CREDITS,
                    total_used + amount <= UsageCreditsModel.credits_limit,
                ),
            )
            .values(
                vintography_used=UsageCreditsModel.vintography_used + amount,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    def _create_usage_row(self, session: Session, user_id: str) -> None:
        """Insert a default usage row inside a savepoint.

        A row inserted by a concurrent first debit makes the savepoint roll
        back; the conditional UPDATE then runs against that row.
        """
        try:
            with session.begin_nested():
                session.add(UsageCreditsModel(user_id=user_id, credits_limit=self.default_limit))
                session.flush()
        except IntegrityError:
            logger.info("credits.usage_row.exists", extra={"user_id": user_id})
