from __future__ import annotations

import os
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("JWT_SIGNING_KEY", "test-signing-key")

from src.photo_studio.config import MediaPaths  # noqa: E402
from src.photo_studio.db.db_init import init_db  # noqa: E402
from src.photo_studio.db.db_models import ProfileModel, UsageCreditsModel  # noqa: E402
from src.photo_studio.media.media_service import ObjectStorage  # noqa: E402
from src.photo_studio.repositories.account_repository import AccountRepository  # noqa: E402
from src.photo_studio.repositories.credit_repository import CreditRepository  # noqa: E402
from src.photo_studio.repositories.job_repository import JobRepository  # noqa: E402
from src.photo_studio.repositories.settlement_repository import SettlementRepository  # noqa: E402

PUBLIC_BASE = "https://studio.local"


@pytest.fixture()
def session_factory(tmp_path: Path) -> sessionmaker:
    engine = create_engine(
        f"sqlite:///{(tmp_path / 'studio-test.db').as_posix()}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    Session = sessionmaker(bind=engine, expire_on_commit=False)
    init_db(engine)
    return Session


@pytest.fixture()
def storage(tmp_path: Path) -> ObjectStorage:
    root = tmp_path / "media"
    paths = MediaPaths(root=root, bucket=root / "studio")
    paths.bucket.mkdir(parents=True, exist_ok=True)
    return ObjectStorage(paths=paths, public_base_url=PUBLIC_BASE)


@pytest.fixture()
def accounts(session_factory) -> AccountRepository:
    return AccountRepository(session_factory)


@pytest.fixture()
def credits(session_factory) -> CreditRepository:
    return CreditRepository(session_factory, default_limit=5)


@pytest.fixture()
def job_repo(session_factory) -> JobRepository:
    return JobRepository(session_factory)


@pytest.fixture()
def settlements(session_factory, credits, accounts) -> SettlementRepository:
    return SettlementRepository(session_factory, credits=credits, accounts=accounts)


@pytest.fixture()
def seed_user(session_factory):
    """Insert profile and usage rows for a user."""

    def _seed(
        user_id: str,
        *,
        tier: str = "free",
        first_item_pass_used: bool = True,
        used: int = 0,
        limit: int = 5,
        with_usage: bool = True,
    ) -> None:
        with session_factory() as session:
            session.add(
                ProfileModel(
                    user_id=user_id,
                    subscription_tier=tier,
                    first_item_pass_used=first_item_pass_used,
                )
            )
            if with_usage:
                session.add(
                    UsageCreditsModel(
                        user_id=user_id,
                        price_checks_used=0,
                        optimizations_used=0,
                        vintography_used=used,
                        credits_limit=limit,
                    )
                )
            session.commit()

    return _seed
