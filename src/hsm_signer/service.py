"""
HSM Service

Caller-facing façade used by the batch attestation layer. Looks up the
configured provider, delegates to the provider factory and turns
failures into result dictionaries the caller can record as
"attestation pending" or "attestation failed".
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .config import HsmConfig, redact
from .errors import HsmDisabledError, ProviderNotFoundError
from .providers import ProviderFactory, SigningProvider, get_default_factory

logger = logging.getLogger(__name__)

DISABLED_MESSAGE = "HSM signing is not enabled"


class HsmService:
    """Signs data hashes through the configured HSM provider."""

    def __init__(self, config: HsmConfig, factory: Optional[ProviderFactory] = None):
        self.config = config
        self.factory = factory or get_default_factory()

    def is_enabled(self) -> bool:
        return bool(self.config.enabled)

    async def get_provider(self, provider_id: Optional[str] = None) -> SigningProvider:
        """
        Get the initialized provider for a configured id.

        Args:
            provider_id: Configured provider key, or None for the default

        Raises:
            HsmDisabledError: If HSM signing is disabled
            ProviderNotFoundError: If no provider is configured under the id
        """
        if not self.is_enabled():
            raise HsmDisabledError(DISABLED_MESSAGE)

        key = provider_id or self.config.default_provider
        settings = self.config.providers.get(key)
        if settings is None:
            raise ProviderNotFoundError(f"No HSM provider configured with id: {key}")

        return await self.factory.get_provider(settings.to_provider_config(key))

    async def sign(
        self,
        data_hash: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Sign a data hash with the selected provider.

        Options:
            provider: str - configured provider id (default: default_provider)
            key_id: str - key override passed to the provider
            algorithm: str - algorithm override passed to the provider

        Returns:
            The provider's signing result, or a failure dict with
            used_hsm=False when signing could not be done through an HSM
        """
        if not self.is_enabled():
            return {
                "success": False,
                "used_hsm": False,
                "message": DISABLED_MESSAGE,
            }

        options = dict(options or {})
        provider_id = options.pop("provider", None)

        try:
            provider = await self.get_provider(provider_id)
            result = await provider.sign(data_hash, options)
        except Exception as e:
            logger.warning(f"HSM signing failed ({provider_id or self.config.default_provider}): {e}")
            return {
                "success": False,
                "used_hsm": False,
                "error": str(e),
            }

        return result.to_dict()

    async def test_connection(self, provider_id: Optional[str] = None) -> Dict[str, Any]:
        """Run the provider's liveness check and report the outcome."""
        if not self.is_enabled():
            return {
                "success": False,
                "message": DISABLED_MESSAGE,
            }

        try:
            provider = await self.get_provider(provider_id)
            status = await provider.test_connection()
        except Exception as e:
            logger.warning(f"HSM connection test failed: {e}")
            return {
                "success": False,
                "message": str(e),
            }

        return status.to_dict()

    def list_providers(self) -> List[Dict[str, Any]]:
        """List configured providers with secrets masked."""
        return [
            {"id": key, **redact(settings.to_provider_config(key))}
            for key, settings in self.config.providers.items()
        ]

    async def close(self) -> None:
        """Destroy all providers held by the factory."""
        await self.factory.close()
