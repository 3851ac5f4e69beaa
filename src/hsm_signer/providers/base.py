"""
HSM Provider Abstraction Layer

Defines the protocol and base types for pluggable signing providers.
Callers request a signature over a data hash without knowing which
backend (mock, local key, cloud KMS) is active.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from ..errors import ProviderConfigError, ProviderStateError


class ProviderState(Enum):
    """Lifecycle states of a provider instance."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    DESTROYED = "destroyed"


@dataclass(frozen=True)
class ProviderMetadata:
    """Identity of the backend that produced a result."""

    id: Optional[str]
    name: Optional[str]
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "type": self.type}


@dataclass
class SigningResult:
    """
    Result from a signing operation.

    Every provider returns exactly this shape, whatever the backend.
    """

    success: bool
    signature: str
    key_id: str
    algorithm: str
    used_hsm: bool
    provider: ProviderMetadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary for the attestation layer."""
        return {
            "success": self.success,
            "signature": self.signature,
            "key_id": self.key_id,
            "algorithm": self.algorithm,
            "used_hsm": self.used_hsm,
            "provider": self.provider.to_dict(),
            "metadata": dict(self.metadata),
        }


@dataclass
class ConnectionStatus:
    """Result from a provider liveness check."""

    success: bool
    message: str
    provider: ProviderMetadata
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": self.success,
            "message": self.message,
            "provider": self.provider.to_dict(),
        }
        if self.details:
            result["details"] = dict(self.details)
        return result


@runtime_checkable
class SigningProvider(Protocol):
    """
    Protocol for signing providers.

    All providers must implement this interface to be usable through
    the provider factory.
    """

    async def initialize(self) -> None:
        """Validate configuration and acquire keys or clients."""
        ...

    async def sign(
        self,
        data_hash: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> SigningResult:
        """
        Sign a hex-encoded data hash.

        Args:
            data_hash: Hex digest of the data to attest
            options: Optional overrides (key_id, algorithm)

        Returns:
            SigningResult with signature and metadata
        """
        ...

    async def destroy(self) -> None:
        """Release keys and clients held by the provider."""
        ...

    async def test_connection(self) -> ConnectionStatus:
        """Check that the backend is usable."""
        ...

    def get_metadata(self) -> ProviderMetadata:
        """Get id, name and type of this provider."""
        ...


class BaseProvider(ABC):
    """
    Abstract base class for signing providers.

    Handles the lifecycle state machine. Subclasses implement ``sign`` and
    override ``_load``/``_unload`` to acquire and release their resources.
    """

    def __init__(self, config: Optional[Mapping[str, Any]] = None):
        """
        Initialize provider with configuration.

        Args:
            config: Provider configuration descriptor
        """
        self.config: Dict[str, Any] = dict(config or {})
        self._state = ProviderState.UNINITIALIZED

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def initialized(self) -> bool:
        return self._state is ProviderState.READY

    def get_metadata(self) -> ProviderMetadata:
        """Project the configuration onto id, name and type."""
        return ProviderMetadata(
            id=self.config.get("id"),
            name=self.config.get("name"),
            type=self.config.get("type") or "custom",
        )

    async def initialize(self) -> None:
        """Initialize provider. Calling it on a ready provider is a no-op."""
        if self._state is ProviderState.READY:
            return
        if self._state is ProviderState.DESTROYED:
            raise ProviderStateError(
                f"Provider '{self.get_metadata().id}' has been destroyed"
            )

        self._state = ProviderState.INITIALIZING
        try:
            await self._load()
        except BaseException:
            self._state = ProviderState.UNINITIALIZED
            raise
        self._state = ProviderState.READY

    async def destroy(self) -> None:
        """Release resources and mark the provider destroyed."""
        await self._unload()
        self._state = ProviderState.DESTROYED

    async def test_connection(self) -> ConnectionStatus:
        """Liveness check - override in subclasses for a real round-trip."""
        return ConnectionStatus(
            success=True,
            message="Provider is ready",
            provider=self.get_metadata(),
        )

    @abstractmethod
    async def sign(
        self,
        data_hash: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> SigningResult:
        """Sign a data hash - must be implemented by subclasses."""
        raise NotImplementedError(
            f"sign() is not implemented for {type(self).__name__}"
        )

    async def _load(self) -> None:
        """Acquire keys or clients - override in subclasses."""

    async def _unload(self) -> None:
        """Release keys or clients - override in subclasses."""

    async def _ensure_ready(self) -> None:
        """Lazily initialize on first use."""
        if self._state is not ProviderState.READY:
            await self.initialize()

    def _require(self, *fields: str) -> None:
        """Fail fast when required configuration fields are empty."""
        missing = [name for name in fields if not self.config.get(name)]
        if missing:
            provider_type = self.config.get("type") or type(self).__name__
            raise ProviderConfigError(
                f"{provider_type} provider config is missing required "
                f"field(s): {', '.join(missing)}"
            )

    def _result(
        self,
        signature: str,
        key_id: str,
        algorithm: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> SigningResult:
        return SigningResult(
            success=True,
            signature=signature,
            key_id=key_id,
            algorithm=algorithm,
            used_hsm=True,
            provider=self.get_metadata(),
            metadata=metadata or {},
        )
