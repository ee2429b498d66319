"""Dependency wiring helpers."""

from fastapi import FastAPI

from .admission.admission_service import AdmissionController
from .auth.auth_service import IdentityService
from .config import AppConfig
from .media.media_service import ObjectStorage
from .media.size_guard import SizeGuard
from .providers.providers_factory import (
    build_driver_table,
    create_fashn_driver,
    create_photoroom_driver,
)
from .public.public_media_router import build_public_media_router
from .repositories.account_repository import AccountRepository
from .repositories.credit_repository import CreditRepository
from .repositories.job_repository import JobRepository
from .repositories.settlement_repository import SettlementRepository
from .studio.studio_api import router as studio_router
from .studio.studio_service import StudioService


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount module routers and attach services."""
    accounts = AccountRepository(config.session_factory)
    credits = CreditRepository(config.session_factory, default_limit=config.default_credits_limit)
    job_repo = JobRepository(config.session_factory)
    settlements = SettlementRepository(config.session_factory, credits=credits, accounts=accounts)
    storage = ObjectStorage(paths=config.media_paths, public_base_url=config.public_media_base_url)

    photoroom = create_photoroom_driver(config.photoroom)
    fashn = create_fashn_driver(config.fashn)
    size_guard = SizeGuard(
        storage=storage,
        compressor=photoroom,
        max_bytes=config.fashn.max_bytes,
        quality=config.compression_quality,
    )

    studio_service = StudioService(
        admission=AdmissionController(accounts=accounts, credits=credits),
        job_repo=job_repo,
        settlements=settlements,
        storage=storage,
        size_guard=size_guard,
        drivers=build_driver_table(photoroom, fashn),
    )

    app.state.config = config
    app.state.identity_service = IdentityService(signing_key=config.jwt_signing_key)
    app.state.studio_service = studio_service
    app.state.object_storage = storage
    app.state.job_repo = job_repo

    app.include_router(studio_router)
    app.include_router(build_public_media_router(storage))
