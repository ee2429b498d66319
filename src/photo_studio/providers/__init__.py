"""Drivers for the external image-processing providers."""

from .providers_base import ProviderDriver, ProviderRequest, ProviderResult
from .providers_fashn import FashnDriver
from .providers_photoroom import PhotoroomDriver

__all__ = [
    "ProviderDriver",
    "ProviderRequest",
    "ProviderResult",
    "FashnDriver",
    "PhotoroomDriver",
]
