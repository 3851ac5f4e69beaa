"""
Error types for the HSM signing layer.

Configuration problems are raised before any network call is made and are
never retried. Signing failures from a backend (KMS client errors, bad key
material, malformed digests) are not wrapped and propagate unchanged.
"""


class HsmError(Exception):
    """Base class for all HSM signing errors."""


class ProviderConfigError(HsmError, ValueError):
    """Provider configuration is missing or malformed."""


class MissingDependencyError(ProviderConfigError):
    """A client library required by a provider is not installed."""

    def __init__(self, package: str, provider_type: str):
        self.package = package
        self.provider_type = provider_type
        super().__init__(
            f"{provider_type} provider requires the '{package}' package. "
            f"Install with: pip install {package}"
        )


class UnsupportedProviderError(ProviderConfigError):
    """No provider class is registered for the requested type."""

    def __init__(self, provider_type: str, supported=()):
        self.provider_type = provider_type
        message = f"HSM provider type '{provider_type}' is not supported"
        if supported:
            message += f". Supported types: {', '.join(sorted(supported))}"
        super().__init__(message)


class ProviderNotFoundError(HsmError, LookupError):
    """No provider is configured under the requested id."""


class HsmDisabledError(HsmError, RuntimeError):
    """HSM signing is switched off in configuration."""


class ProviderStateError(HsmError, RuntimeError):
    """Operation is not valid in the provider's current lifecycle state."""
