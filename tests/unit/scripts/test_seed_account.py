import importlib.util
import sys
from pathlib import Path

from src.photo_studio.auth.auth_service import IdentityService
from src.photo_studio.repositories.account_repository import AccountRepository
from src.photo_studio.repositories.credit_repository import CreditRepository
from src.photo_studio.studio.studio_models import Tier

PROJECT_ROOT = Path(__file__).resolve().parents[3]
MODULE_PATH = PROJECT_ROOT / "scripts" / "seed_account.py"
SPEC = importlib.util.spec_from_file_location("seed_account_module", MODULE_PATH)
seed_account = importlib.util.module_from_spec(SPEC)
assert SPEC and SPEC.loader
sys.modules["seed_account_module"] = seed_account
SPEC.loader.exec_module(seed_account)


class DummyConfig:
    def __init__(self, session_factory):
        self.session_factory = session_factory
        self.jwt_signing_key = "seed-key"


def test_seed_creates_profile_and_limit(monkeypatch, session_factory):
    monkeypatch.setattr(seed_account, "load_config", lambda: DummyConfig(session_factory))

    summary = seed_account.seed_account(
        "seller-1", tier="Pro", credits_limit=50, first_item_pass=True, token_hours=1
    )

    assert summary.tier == "pro"
    profile = AccountRepository(session_factory).get_profile("seller-1")
    assert profile.tier is Tier.PRO
    assert profile.first_item_pass_available is True
    assert CreditRepository(session_factory).get_snapshot("seller-1").credits_limit == 50
    assert IdentityService(signing_key="seed-key").resolve_user_id(summary.token) == "seller-1"


def test_reseeding_keeps_usage_counters(monkeypatch, session_factory, seed_user):
    seed_user("seller-1", tier="free", used=3, limit=5)
    monkeypatch.setattr(seed_account, "load_config", lambda: DummyConfig(session_factory))

    seed_account.seed_account(
        "seller-1", tier="business", credits_limit=999_999, first_item_pass=False, token_hours=1
    )

    snapshot = CreditRepository(session_factory).get_snapshot("seller-1")
    assert snapshot.vintography_used == 3
    assert snapshot.is_unlimited
    assert AccountRepository(session_factory).get_profile("seller-1").tier is Tier.BUSINESS


def test_main_reports_failure(monkeypatch, capsys):
    def broken_config():
        raise RuntimeError("JWT_SIGNING_KEY is not configured")

    monkeypatch.setattr(seed_account, "load_config", broken_config)

    assert seed_account.main(["seller-1"]) == 2
    assert "seed failed" in capsys.readouterr().err
