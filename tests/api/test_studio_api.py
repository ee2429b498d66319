from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.photo_studio.auth.auth_service import IdentityService
from src.photo_studio.config import AppConfig, FashnSettings, MediaPaths, PhotoroomSettings
from src.photo_studio.db.db_init import init_db
from src.photo_studio.db.db_models import ProfileModel, UsageCreditsModel
from src.photo_studio.main import create_app
from tests.helpers.http_stubs import DummyAsyncClient, DummyHTTPResponse, install

SIGNING_KEY = "api-test-key"
BASE_URL = "https://studio.local"

pytestmark = pytest.mark.integration


@pytest.fixture()
def config(tmp_path: Path) -> AppConfig:
    database_url = f"sqlite:///{(tmp_path / 'api.db').as_posix()}"
    engine = create_engine(database_url, future=True, connect_args={"check_same_thread": False})
    init_db(engine)
    root = tmp_path / "media"
    paths = MediaPaths(root=root, bucket=root / "studio")
    paths.bucket.mkdir(parents=True)
    return AppConfig(
        media_paths=paths,
        public_media_base_url=BASE_URL,
        database_url=database_url,
        engine=engine,
        session_factory=sessionmaker(bind=engine, expire_on_commit=False),
        jwt_signing_key=SIGNING_KEY,
        photoroom=PhotoroomSettings(
            api_key="pr-key", api_base="https://photoroom.test", timeout_seconds=5
        ),
        fashn=FashnSettings(
            api_key="fashn-key",
            api_base="https://fashn.test",
            timeout_seconds=5,
            max_polls=2,
            poll_interval_seconds=0,
            max_bytes=25 * 1024 * 1024,
        ),
        compression_quality=85,
        default_credits_limit=5,
    )


@pytest.fixture()
def client(config: AppConfig) -> TestClient:
    return TestClient(create_app(config))


@pytest.fixture()
def seed(config: AppConfig):
    def _seed(user_id: str, *, tier: str = "free", used: int = 0, limit: int = 5) -> None:
        with config.session_factory() as session:
            session.add(ProfileModel(user_id=user_id, subscription_tier=tier, first_item_pass_used=True))
            session.add(UsageCreditsModel(user_id=user_id, vintography_used=used, credits_limit=limit))
            session.commit()

    return _seed


def auth_headers(user_id: str = "user-1", *, ttl: timedelta = timedelta(hours=1)) -> dict[str, str]:
    token = IdentityService(signing_key=SIGNING_KEY).issue_token(user_id, ttl=ttl)
    return {"Authorization": f"Bearer {token}"}


def test_missing_token_is_rejected(client: TestClient) -> None:
    response = client.post("/api/photo-studio", json={"image_url": "x", "operation": "remove_bg"})

    assert response.status_code == 401
    assert response.json()["detail"]["failure_reason"] == "missing_token"


def test_expired_and_forged_tokens_are_rejected(client: TestClient) -> None:
    expired = client.get("/api/photo-studio/credits", headers=auth_headers(ttl=timedelta(seconds=-5)))
    forged_token = IdentityService(signing_key="other-key").issue_token("user-1")
    forged = client.get(
        "/api/photo-studio/credits", headers={"Authorization": f"Bearer {forged_token}"}
    )

    assert expired.status_code == 401
    assert expired.json()["detail"]["failure_reason"] == "token_expired"
    assert forged.status_code == 401
    assert forged.json()["detail"]["failure_reason"] == "invalid_token"


def test_unknown_operation_is_bad_request(client: TestClient) -> None:
    response = client.post(
        "/api/photo-studio",
        json={"image_url": "https://cdn.test/a.jpg", "operation": "cartoonify"},
        headers=auth_headers(),
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["failure_reason"] == "invalid_request"
    assert detail["message"] == "Invalid operation: cartoonify"


def test_tier_denial_is_forbidden_with_upgrade_flag(client: TestClient, seed) -> None:
    seed("user-1", tier="free")

    response = client.post(
        "/api/photo-studio",
        json={"image_url": "https://cdn.test/a.jpg", "operation": "ai_background"},
        headers=auth_headers(),
    )

    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["failure_reason"] == "tier_required"
    assert detail["upgrade_required"] is True
    assert "remaining_credits" not in detail


def test_credit_denial_reports_remaining(client: TestClient, seed) -> None:
    seed("user-1", tier="free", used=5)

    response = client.post(
        "/api/photo-studio",
        json={"image_url": "https://cdn.test/a.jpg", "operation": "remove_bg"},
        headers=auth_headers(),
    )

    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["failure_reason"] == "insufficient_credits"
    assert detail["remaining_credits"] == 0


def test_successful_operation_returns_result_and_serves_media(
    client: TestClient, seed, monkeypatch
) -> None:
    seed("user-1", tier="free", used=4)
    install(
        monkeypatch,
        DummyAsyncClient(
            get_queue=[DummyHTTPResponse(200, content=b"source")],
            post_queue=[
                DummyHTTPResponse(200, content=b"png-result", headers={"content-type": "image/png"})
            ],
        ),
    )

    response = client.post(
        "/api/photo-studio",
        json={"image_url": "https://cdn.test/a.jpg", "operation": "remove_bg"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["operation"] == "remove_bg"
    assert body["credits_deducted"] == 1
    assert body["processed_url"] == (
        f"{BASE_URL}/public/studio-media/user-1/{body['job_id']}.png"
    )

    media = client.get(f"/public/studio-media/user-1/{body['job_id']}.png")
    assert media.status_code == 200
    assert media.content == b"png-result"
    assert media.headers["content-type"] == "image/png"

    credits = client.get("/api/photo-studio/credits", headers=auth_headers()).json()
    assert credits == {
        "tier": "free",
        "used": 5,
        "limit": 5,
        "remaining": 0,
        "unlimited": False,
        "first_item_pass_available": False,
    }


def test_async_timeout_maps_to_gateway_timeout(client: TestClient, seed, monkeypatch) -> None:
    seed("user-1", tier="starter", used=0, limit=10)
    install(
        monkeypatch,
        DummyAsyncClient(
            head_queue=[DummyHTTPResponse(200, headers={"content-length": "1024"})],
            post_queue=[DummyHTTPResponse(200, json_data={"id": "run-9"})],
            get_queue=[
                DummyHTTPResponse(200, json_data={"status": "processing"}),
                DummyHTTPResponse(200, json_data={"status": "processing"}),
            ],
        ),
    )

    response = client.post(
        "/api/photo-studio",
        json={"image_url": "https://cdn.test/dress.jpg", "operation": "put_on_model"},
        headers=auth_headers(),
    )

    assert response.status_code == 504
    detail = response.json()["detail"]
    assert detail["status"] == "timeout"
    assert detail["failure_reason"] == "provider_timeout"
    assert "not charged" in detail["message"]

    job = client.get(f"/api/photo-studio/jobs/{detail['job_id']}", headers=auth_headers())
    assert job.status_code == 200
    assert job.json()["status"] == "failed"
    assert job.json()["credits_deducted"] == 0


def test_provider_error_maps_to_server_error(client: TestClient, seed, monkeypatch) -> None:
    seed("user-1", tier="free")
    install(
        monkeypatch,
        DummyAsyncClient(
            get_queue=[DummyHTTPResponse(200, content=b"source")],
            post_queue=[DummyHTTPResponse(500, text="upstream exploded")],
        ),
    )

    response = client.post(
        "/api/photo-studio",
        json={"image_url": "https://cdn.test/a.jpg", "operation": "sell_ready"},
        headers=auth_headers(),
    )

    assert response.status_code == 500
    assert response.json()["detail"]["failure_reason"] == "provider_error"


def test_jobs_are_listed_per_user(client: TestClient) -> None:
    job_repo = client.app.state.job_repo
    mine = job_repo.create(user_id="user-1", operation="remove_bg", image_url="https://cdn.test/a.jpg")
    theirs = job_repo.create(user_id="user-2", operation="remove_bg", image_url="https://cdn.test/b.jpg")

    listed = client.get("/api/photo-studio/jobs", headers=auth_headers())
    foreign = client.get(f"/api/photo-studio/jobs/{theirs}", headers=auth_headers())

    assert listed.status_code == 200
    assert [job["job_id"] for job in listed.json()] == [mine]
    assert listed.json()[0]["status"] == "processing"
    assert foreign.status_code == 404
    assert foreign.json()["detail"]["failure_reason"] == "job_not_found"


def test_unknown_media_is_not_found(client: TestClient) -> None:
    assert client.get("/public/studio-media/nobody/missing.png").status_code == 404


def test_non_object_parameters_are_bad_request(client: TestClient) -> None:
    response = client.post(
        "/api/photo-studio",
        json={"image_url": "https://cdn.test/a.jpg", "operation": "remove_bg", "parameters": "loud"},
        headers=auth_headers(),
    )

    assert response.status_code == 400
    assert response.json()["detail"]["failure_reason"] == "invalid_request"
