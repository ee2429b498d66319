"""Factory for provider drivers."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from ..config import FashnSettings, PhotoroomSettings
from ..studio.studio_models import ProviderFamily
from .providers_base import ProviderDriver
from .providers_fashn import FashnDriver
from .providers_photoroom import PhotoroomDriver


def create_photoroom_driver(settings: PhotoroomSettings) -> PhotoroomDriver:
    return PhotoroomDriver(
        api_key=settings.api_key,
        api_base=settings.api_base,
        timeout_seconds=settings.timeout_seconds,
    )


def create_fashn_driver(settings: FashnSettings) -> FashnDriver:
    return FashnDriver(
        api_key=settings.api_key,
        api_base=settings.api_base,
        timeout_seconds=settings.timeout_seconds,
        max_polls=settings.max_polls,
        poll_interval_seconds=settings.poll_interval_seconds,
        poll_budget_seconds=settings.poll_budget_seconds,
    )


def build_driver_table(
    photoroom: ProviderDriver, fashn: ProviderDriver
) -> Mapping[ProviderFamily, ProviderDriver]:
    """Resolve the family -> driver dispatch table once at startup."""
    return MappingProxyType({ProviderFamily.SYNC: photoroom, ProviderFamily.ASYNC: fashn})
