"""Classified failures raised by provider drivers."""


class ProviderError(Exception):
    """Base class for provider failures; none of them result in a charge."""


class ProviderNotConfiguredError(ProviderError):
    """Raised when the provider API key is missing."""


class ProviderTransportError(ProviderError):
    """Raised on network failures or unexpected HTTP statuses."""


class ProviderValidationError(ProviderError):
    """Raised when the provider rejects the supplied input."""


class ProviderProcessingError(ProviderError):
    """Raised when the provider fails after accepting the input."""


class ProviderTimeoutError(ProviderError):
    """Raised when polling exhausts its budget without a terminal status."""
