"""Atomic job completion plus credit/allowance accounting."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..db.db_models import ProcessingJobModel
from ..exceptions import RepositoryError, handle_sqlalchemy_errors
from .account_repository import AccountRepository
from .credit_repository import CreditRepository
from .job_repository import complete_statement

logger = logging.getLogger(__name__)


class InsufficientCreditsError(RepositoryError):
    """Raised when the conditional debit finds the limit already reached."""


class JobAlreadyTerminalError(RepositoryError):
    """Raised when settlement targets a job that is no longer processing."""


@dataclass(slots=True)
class Settlement:
    credits_deducted: int
    used_first_item_pass: bool


class SettlementRepository:
    """Complete a job and charge for it in one transaction.

    Either both the ``completed`` transition and the charge are committed, or
    neither is.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        credits: CreditRepository,
        accounts: AccountRepository,
    ) -> None:
        self._session_factory = session_factory
        self._credits = credits
        self._accounts = accounts

    def settle_completed(
        self,
        *,
        job_id: str,
        user_id: str,
        result_url: str,
        credit_cost: int,
        use_first_item_pass: bool,
    ) -> Settlement:
        with self._session_factory() as session, handle_sqlalchemy_errors(entity="settlement"):
            # Completion is written first; credits_deducted is filled in once
            # the charge is known, still inside the same transaction.
            result = session.execute(
                complete_statement(job_id, result_url=result_url, credits_deducted=0)
            )
            if not result.rowcount:
                session.rollback()
                raise JobAlreadyTerminalError(f"Job '{job_id}' is not processing")

            settlement = self._charge(
                session,
                job_id=job_id,
                user_id=user_id,
                credit_cost=credit_cost,
                use_first_item_pass=use_first_item_pass,
            )
            if settlement is None:
                session.rollback()
                raise InsufficientCreditsError(
                    f"Credit limit reached before job '{job_id}' could be charged"
                )
            if settlement.credits_deducted:
                session.execute(
                    update(ProcessingJobModel)
                    .where(ProcessingJobModel.id == job_id)
                    .values(credits_deducted=settlement.credits_deducted)
                    .execution_options(synchronize_session=False)
                )
            session.commit()
        return settlement

    def _charge(
        self,
        session: Session,
        *,
        job_id: str,
        user_id: str,
        credit_cost: int,
        use_first_item_pass: bool,
    ) -> Settlement | None:
        if use_first_item_pass:
            if self._accounts.apply_first_item_pass(session, user_id):
                return Settlement(credits_deducted=0, used_first_item_pass=True)
            logger.warning(
                "settlement.first_item_pass.already_used",
                extra={"job_id": job_id, "user_id": user_id},
            )

        if self._credits.apply_debit(session, user_id, credit_cost):
            return Settlement(credits_deducted=credit_cost, used_first_item_pass=False)
        return None
