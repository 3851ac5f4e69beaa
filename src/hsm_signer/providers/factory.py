"""
Provider Factory

Resolves a provider configuration descriptor to an initialized, cached
provider instance, keyed by the descriptor's id.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ..errors import ProviderConfigError, ProviderStateError, UnsupportedProviderError
from .aws_kms import AwsKmsProvider
from .base import SigningProvider
from .local import LocalKeyProvider
from .mock import MockProvider

logger = logging.getLogger(__name__)

# Registry of available provider classes, including synonyms
PROVIDER_REGISTRY: Mapping[str, type] = MappingProxyType({
    "mock": MockProvider,
    "mock-hsm": MockProvider,
    "local": LocalKeyProvider,
    "local-key": LocalKeyProvider,
    "aws-kms": AwsKmsProvider,
    "aws": AwsKmsProvider,
})


class ProviderFactory:
    """
    Factory for creating and caching signing providers.

    At most one live provider exists per configuration id. A cache hit
    returns the existing instance and ignores the newly supplied config;
    pass ``force_reinit=True`` to replace it.
    """

    def __init__(self, registry: Optional[Mapping[str, type]] = None):
        """
        Args:
            registry: Type string to provider class map (default: PROVIDER_REGISTRY)
        """
        self.registry: Mapping[str, type] = MappingProxyType(
            dict(PROVIDER_REGISTRY if registry is None else registry)
        )
        self._providers: Dict[str, SigningProvider] = {}
        self._pending: Dict[str, asyncio.Task] = {}

    def resolve(self, provider_type: str) -> type:
        """
        Get the provider class registered for a type string.

        Raises:
            UnsupportedProviderError: If no class is registered for the type
        """
        try:
            return self.registry[provider_type]
        except KeyError:
            raise UnsupportedProviderError(provider_type, self.registry.keys()) from None

    async def get_provider(
        self,
        config: Optional[Mapping[str, Any]],
        force_reinit: bool = False
    ) -> SigningProvider:
        """
        Get an initialized provider for a configuration descriptor.

        Args:
            config: Provider configuration; must contain "type"
            force_reinit: Build a fresh provider for this id; the cached one
                is replaced and destroyed only once the new one initializes

        Returns:
            SigningProvider instance

        Raises:
            ProviderConfigError: If config or its type is missing, or the
                provider rejects its configuration
            UnsupportedProviderError: If the type is not registered
        """
        if not config:
            raise ProviderConfigError("HSM provider config is required")

        provider_type = config.get("type")
        if not provider_type:
            raise ProviderConfigError("HSM provider config is missing required field: type")

        key = config.get("id") or provider_type

        if not force_reinit:
            provider = self._providers.get(key)
            if provider is not None:
                logger.debug(f"Using cached provider: {key}")
                return provider
            task = self._pending.get(key)
        else:
            task = None

        if task is None:
            provider_class = self.resolve(provider_type)
            # Replaces any in-flight init for this key; the replaced one
            # notices in _create and defers to this task
            task = asyncio.ensure_future(self._create(key, provider_class, dict(config)))
            self._pending[key] = task
            task.add_done_callback(lambda done, key=key: self._clear_pending(key, done))

        # Shielded so one cancelled caller does not abort the shared init
        return await asyncio.shield(task)

    async def _create(
        self,
        key: str,
        provider_class: type,
        config: Dict[str, Any]
    ) -> SigningProvider:
        provider = provider_class(config)
        await provider.initialize()

        if self._pending.get(key) is not asyncio.current_task():
            # Superseded by force_reinit, evict or close while initializing
            await provider.destroy()
            successor = self._pending.get(key)
            if successor is not None:
                return await asyncio.shield(successor)
            raise ProviderStateError(
                f"Initialization of provider '{key}' was abandoned"
            )

        previous = self._providers.get(key)
        self._providers[key] = provider
        logger.info(f"Initialized provider: {key} ({config['type']})")

        if previous is not None:
            await previous.destroy()
            logger.info(f"Replaced provider: {key}")
        return provider

    def _clear_pending(self, key: str, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

    async def _abandon_pending(self, keys: List[str]) -> None:
        """Detach in-flight initializations and wait for them to clean up."""
        tasks = [self._pending.pop(key) for key in keys if key in self._pending]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def evict(self, key: str) -> bool:
        """
        Destroy and forget the provider for an id, including one still
        initializing.

        Returns:
            True if a cached provider was evicted
        """
        provider = self._providers.pop(key, None)
        await self._abandon_pending([key])
        if provider is None:
            return False

        await provider.destroy()
        logger.info(f"Evicted provider: {key}")
        return True

    async def close(self) -> None:
        """Destroy all cached providers and any still initializing."""
        providers = list(self._providers.items())
        self._providers.clear()
        await self._abandon_pending(list(self._pending))

        for key, provider in providers:
            try:
                await provider.destroy()
                logger.info(f"Closed provider: {key}")
            except Exception as e:
                logger.error(f"Error closing provider {key}: {e}")

    def get_cached(self, key: str) -> Optional[SigningProvider]:
        """Get a cached provider without creating one."""
        return self._providers.get(key)

    @property
    def providers(self) -> Dict[str, SigningProvider]:
        """Get all cached providers."""
        return dict(self._providers)

    @property
    def provider_ids(self) -> List[str]:
        """Get ids of all cached providers."""
        return list(self._providers.keys())


def create_provider_factory(registry: Optional[Mapping[str, type]] = None) -> ProviderFactory:
    """
    Create an isolated provider factory.

    Args:
        registry: Optional custom type to class map

    Returns:
        ProviderFactory instance with its own cache
    """
    return ProviderFactory(registry)


_default_factory: Optional[ProviderFactory] = None


def get_default_factory() -> ProviderFactory:
    """Get the process-wide factory shared by all callers."""
    global _default_factory
    if _default_factory is None:
        _default_factory = ProviderFactory()
    return _default_factory
