"""
HSM signing layer for batch attestations.

Lets the attestation layer request a signature over a data hash from one
of several interchangeable backends (mock, local key, AWS KMS) without
knowing which one is active.
"""

from .config import HsmConfig, ProviderSettings, config_from_env, create_default_config, load_config
from .errors import (
    HsmDisabledError,
    HsmError,
    MissingDependencyError,
    ProviderConfigError,
    ProviderNotFoundError,
    ProviderStateError,
    UnsupportedProviderError,
)
from .providers import (
    ProviderFactory,
    SigningProvider,
    SigningResult,
    create_provider_factory,
    get_default_factory,
)
from .service import HsmService

__version__ = "1.0.0"

__all__ = [
    "HsmService",
    "HsmConfig",
    "ProviderSettings",
    "load_config",
    "config_from_env",
    "create_default_config",
    "ProviderFactory",
    "SigningProvider",
    "SigningResult",
    "create_provider_factory",
    "get_default_factory",
    "HsmError",
    "ProviderConfigError",
    "MissingDependencyError",
    "UnsupportedProviderError",
    "ProviderNotFoundError",
    "HsmDisabledError",
    "ProviderStateError",
]
