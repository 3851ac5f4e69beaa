"""
HSM Signing Providers Package

Provides pluggable signing provider implementations behind one interface.

Available Providers:
- MockProvider: Deterministic mock signer (mock, mock-hsm)
- LocalKeyProvider: In-process PEM private key (local, local-key)
- AwsKmsProvider: AWS Key Management Service (aws-kms, aws)
"""

from .base import (
    BaseProvider,
    ConnectionStatus,
    ProviderMetadata,
    ProviderState,
    SigningProvider,
    SigningResult,
)
from .factory import (
    ProviderFactory,
    create_provider_factory,
    get_default_factory,
    PROVIDER_REGISTRY,
)
from .mock import MockProvider, MOCK_SIGNATURE_PREFIX
from .local import LocalKeyProvider
from .aws_kms import AwsKmsProvider

__all__ = [
    # Protocol and base
    "SigningProvider",
    "BaseProvider",
    # Data types
    "ProviderMetadata",
    "ProviderState",
    "SigningResult",
    "ConnectionStatus",
    # Factory
    "ProviderFactory",
    "create_provider_factory",
    "get_default_factory",
    "PROVIDER_REGISTRY",
    # Providers
    "MockProvider",
    "MOCK_SIGNATURE_PREFIX",
    "LocalKeyProvider",
    "AwsKmsProvider",
]
