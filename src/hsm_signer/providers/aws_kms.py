"""
AWS KMS Provider

Delegates signing to AWS Key Management Service so private key material
never enters the application process.

The key id and algorithm in the result are the ones KMS reports back,
not the ones that were requested.
"""

import asyncio
import base64
import logging
from functools import partial
from typing import Any, Dict, Mapping, Optional

from ..errors import MissingDependencyError, ProviderConfigError
from .base import BaseProvider, ConnectionStatus, SigningResult

logger = logging.getLogger(__name__)

# boto3 imports - optional dependency
try:
    import boto3
    from botocore.config import Config as BotocoreConfig
    from botocore.exceptions import BotoCoreError, ClientError
    BOTO3_AVAILABLE = True
    _CLIENT_ERRORS = (BotoCoreError, ClientError)
except ImportError:
    BOTO3_AVAILABLE = False
    _CLIENT_ERRORS = ()
    logger.warning("boto3 not installed - AWS KMS provider will be unavailable")

DEFAULT_SIGNING_ALGORITHM = "RSASSA_PKCS1_V1_5_SHA_256"


class AwsKmsProvider(BaseProvider):
    """
    AWS KMS signing provider.

    Config expected:
    {
        "id": "aws",
        "type": "aws-kms",
        "region": "ap-southeast-1",
        "access_key_id": "...",
        "secret_access_key": "...",
        "key_id": "arn:aws:kms:...",
        "session_token": null,          // optional
        "endpoint_url": null,           // optional, e.g. LocalStack
        "signing_algorithm": null,      // optional default
        "connect_timeout": 60,          // optional, seconds
        "read_timeout": 60,             // optional, seconds
        "max_attempts": 3               // optional, botocore retries
    }
    """

    REQUIRED_FIELDS = ("region", "access_key_id", "secret_access_key", "key_id")

    def __init__(self, config: Optional[Mapping[str, Any]] = None, client: Optional[Any] = None):
        """
        Args:
            config: Provider configuration descriptor
            client: Pre-built KMS client; skips boto3 client construction
        """
        super().__init__(config)
        self.key_id: Optional[str] = self.config.get("key_id")
        self.signing_algorithm = self.config.get("signing_algorithm") or DEFAULT_SIGNING_ALGORITHM

        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> Optional[Any]:
        """The KMS client, available once initialized."""
        return self._client

    async def _load(self) -> None:
        """Validate credentials and create the KMS client."""
        self._require(*self.REQUIRED_FIELDS)

        if self._client is None:
            if not BOTO3_AVAILABLE:
                raise MissingDependencyError("boto3", self.config.get("type") or "aws-kms")
            self._client = self._create_client()

        logger.info(
            f"AWS KMS provider initialized (region {self.config['region']}, "
            f"key {self.key_id})"
        )

    async def _unload(self) -> None:
        if self._owns_client and self._client is not None:
            close = getattr(self._client, "close", None)
            if close is not None:
                close()
            self._client = None

    def _create_client(self) -> Any:
        client_config = BotocoreConfig(
            connect_timeout=self.config.get("connect_timeout", 60),
            read_timeout=self.config.get("read_timeout", 60),
            retries={"max_attempts": self.config.get("max_attempts", 3)},
        )
        return boto3.client(
            "kms",
            region_name=self.config["region"],
            aws_access_key_id=self.config["access_key_id"],
            aws_secret_access_key=self.config["secret_access_key"],
            aws_session_token=self.config.get("session_token"),
            endpoint_url=self.config.get("endpoint_url"),
            config=client_config,
        )

    async def _call(self, operation: str, **params: Any) -> Dict[str, Any]:
        # boto3 clients are blocking
        method = getattr(self._client, operation)
        return await asyncio.to_thread(partial(method, **params))

    async def sign(
        self,
        data_hash: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> SigningResult:
        """
        Sign a digest with KMS.

        The digest is sent as-is (MessageType=DIGEST), not re-hashed.

        Options:
            key_id: str - KMS key id or ARN (default: configured key_id)
            algorithm: str - KMS SigningAlgorithm (default: RSASSA_PKCS1_V1_5_SHA_256)
        """
        await self._ensure_ready()
        options = options or {}

        response = await self._call(
            "sign",
            KeyId=options.get("key_id") or self.key_id,
            Message=bytes.fromhex(data_hash),
            MessageType="DIGEST",
            SigningAlgorithm=options.get("algorithm") or self.signing_algorithm,
        )

        key_id = response["KeyId"]
        algorithm = response["SigningAlgorithm"]
        return self._result(
            signature=base64.b64encode(response["Signature"]).decode("ascii"),
            key_id=key_id,
            algorithm=algorithm,
            metadata={
                "key_id": key_id,
                "signing_algorithm": algorithm,
            },
        )

    async def test_connection(self) -> ConnectionStatus:
        """Describe the configured key to confirm credentials and key state."""
        try:
            await self._ensure_ready()
        except ProviderConfigError as e:
            return ConnectionStatus(success=False, message=str(e), provider=self.get_metadata())

        try:
            response = await self._call("describe_key", KeyId=self.key_id)
        except _CLIENT_ERRORS as e:
            return ConnectionStatus(
                success=False,
                message=f"AWS KMS describe_key failed: {e}",
                provider=self.get_metadata(),
            )

        key_metadata = response.get("KeyMetadata", {})
        key_state = key_metadata.get("KeyState", "Unknown")
        return ConnectionStatus(
            success=key_state == "Enabled",
            message=f"AWS KMS key is {key_state}",
            provider=self.get_metadata(),
            details={
                "key_id": key_metadata.get("KeyId"),
                "key_usage": key_metadata.get("KeyUsage"),
                "signing_algorithms": key_metadata.get("SigningAlgorithms", []),
            },
        )
