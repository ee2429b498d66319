"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db


@dataclass(slots=True)
class MediaPaths:
    root: Path
    bucket: Path


@dataclass(slots=True)
class PhotoroomSettings:
    api_key: str | None
    api_base: str
    timeout_seconds: float


@dataclass(slots=True)
class FashnSettings:
    api_key: str | None
    api_base: str
    timeout_seconds: float
    max_polls: int
    poll_interval_seconds: float
    max_bytes: int
    poll_budget_seconds: float = 60.0


@dataclass(slots=True)
class AppConfig:
    media_paths: MediaPaths
    public_media_base_url: str
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    jwt_signing_key: str
    photoroom: PhotoroomSettings
    fashn: FashnSettings
    compression_quality: int
    default_credits_limit: int


def _ensure_media_paths(paths: MediaPaths) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.bucket.mkdir(parents=True, exist_ok=True)


def load_photoroom_settings() -> PhotoroomSettings:
    return PhotoroomSettings(
        api_key=os.getenv("PHOTOROOM_API_KEY") or None,
        api_base=os.getenv("PHOTOROOM_API_BASE", "https://sdk.photoroom.com"),
        timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", 60)),
    )


def load_fashn_settings() -> FashnSettings:
    """Polling stops after 30 polls spaced 2 seconds apart or 60 seconds, whichever comes first."""
    return FashnSettings(
        api_key=os.getenv("FASHN_API_KEY") or None,
        api_base=os.getenv("FASHN_API_BASE", "https://api.fashn.ai"),
        timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", 60)),
        max_polls=int(os.getenv("FASHN_MAX_POLLS", 30)),
        poll_interval_seconds=float(os.getenv("FASHN_POLL_INTERVAL_SECONDS", 2.0)),
        max_bytes=int(os.getenv("FASHN_MAX_BYTES", 25 * 1024 * 1024)),
        poll_budget_seconds=float(os.getenv("FASHN_POLL_BUDGET_SECONDS", 60)),
    )


def load_config() -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    root = Path(os.getenv("MEDIA_ROOT", "media"))
    media_paths = MediaPaths(root=root, bucket=root / "studio")
    _ensure_media_paths(media_paths)

    jwt_signing_key = os.getenv("JWT_SIGNING_KEY", "")
    if not jwt_signing_key:
        raise RuntimeError("JWT_SIGNING_KEY is not configured")

    database_url = os.getenv("DATABASE_URL", "sqlite:///photo_studio.db")
    engine = create_engine(database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)

    init_db(engine)

    return AppConfig(
        media_paths=media_paths,
        public_media_base_url=os.getenv("PUBLIC_MEDIA_BASE_URL", "http://localhost:8000"),
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        jwt_signing_key=jwt_signing_key,
        photoroom=load_photoroom_settings(),
        fashn=load_fashn_settings(),
        compression_quality=int(os.getenv("COMPRESSION_JPEG_QUALITY", 85)),
        default_credits_limit=int(os.getenv("DEFAULT_CREDITS_LIMIT", 5)),
    )
