"""Abstract provider driver definition."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..studio.studio_models import Operation


@dataclass(slots=True)
class ProviderRequest:
    """Inputs handed to a provider driver for one job."""

    operation: Operation
    image_url: str
    selfie_url: str | None = None
    parameters: dict[str, str] = field(default_factory=dict)
    job_id: str | None = None


@dataclass(slots=True)
class ProviderResult:
    """Standard response from provider drivers."""

    payload: bytes
    content_type: str


class ProviderDriver(ABC):
    """Base interface for provider drivers."""

    provider_id: str

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for the provider are available."""

    @abstractmethod
    async def process(self, request: ProviderRequest) -> ProviderResult:
        """Process the request and return payload with its content type."""
