"""
Mock HSM Provider

Deterministic, dependency-free signer for tests and development
environments without real key material.

Mock signatures are labelled with MOCK_SIGNATURE_PREFIX and cannot be
verified against any public key. They are never attestation-grade.
"""

import hashlib
import logging
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from .base import BaseProvider, SigningResult

logger = logging.getLogger(__name__)

MOCK_SIGNATURE_PREFIX = "MOCK_HSM_SIG_"
MOCK_ALGORITHM = "MOCK-SHA256"
DEFAULT_MOCK_KEY_ID = "MOCK_KEY"


class MockProvider(BaseProvider):
    """
    Mock HSM provider.

    Config expected:
    {
        "id": "mock",
        "type": "mock",
        "default_key_id": "MOCK_KEY_ID"  // optional
    }
    """

    # Seconds since the epoch; replaced in tests to pin the timestamp
    clock = staticmethod(time.time)

    def __init__(self, config: Optional[Mapping[str, Any]] = None):
        super().__init__(config)
        self.default_key_id = DEFAULT_MOCK_KEY_ID

    async def _load(self) -> None:
        self.default_key_id = self.config.get("default_key_id") or DEFAULT_MOCK_KEY_ID
        logger.info(f"Mock HSM provider ready (default key: {self.default_key_id})")

    async def sign(
        self,
        data_hash: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> SigningResult:
        """Produce a marked, non-verifiable signature."""
        await self._ensure_ready()
        options = options or {}

        key_id = options.get("key_id") or self.default_key_id
        timestamp_ms = int(self.clock() * 1000)
        digest = hashlib.sha256(
            f"{data_hash}:{key_id}:{timestamp_ms}".encode("utf-8")
        ).hexdigest()

        signed_at = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
        return self._result(
            signature=f"{MOCK_SIGNATURE_PREFIX}{digest}",
            key_id=key_id,
            algorithm=MOCK_ALGORITHM,
            metadata={
                "signed_at": signed_at.isoformat(),
                "mock": True,
            },
        )
