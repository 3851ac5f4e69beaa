"""Pytest configuration and fixtures."""

import hashlib

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa


def _to_pem(private_key) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode("utf-8")


@pytest.fixture(scope="session")
def rsa_private_key():
    """A 2048-bit RSA key shared across the session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_private_pem(rsa_private_key):
    return _to_pem(rsa_private_key)


@pytest.fixture(scope="session")
def ec_private_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ec_private_pem(ec_private_key):
    return _to_pem(ec_private_key)


@pytest.fixture(scope="session")
def ed25519_private_pem():
    return _to_pem(ed25519.Ed25519PrivateKey.generate())


@pytest.fixture
def batch_hash():
    """Hex digest of a sample drug batch record."""
    return hashlib.sha256(b'{"batch":"LOT-2024-001","drug":"Paracetamol 500mg"}').hexdigest()


@pytest.fixture
def mock_config():
    return {"id": "batch-signer-1", "type": "mock", "name": "Mock HSM Provider"}


@pytest.fixture
def local_config(rsa_private_pem):
    return {
        "id": "local",
        "type": "local-key",
        "name": "Local Private Key Provider",
        "private_key": rsa_private_pem,
    }


@pytest.fixture
def aws_config():
    return {
        "id": "aws",
        "type": "aws-kms",
        "name": "AWS KMS",
        "region": "ap-southeast-1",
        "access_key_id": "AKIAEXAMPLE",
        "secret_access_key": "secret-example",
        "key_id": "alias/batch-signing",
    }


class FakeKmsClient:
    """Stands in for a boto3 KMS client; records every call."""

    def __init__(
        self,
        returned_key_id="arn:aws:kms:ap-southeast-1:111122223333:key/real-key",
        returned_algorithm="RSASSA_PKCS1_V1_5_SHA_256",
        signature=b"\x30\x45signature-bytes",
        key_state="Enabled",
    ):
        self.returned_key_id = returned_key_id
        self.returned_algorithm = returned_algorithm
        self.signature = signature
        self.key_state = key_state
        self.calls = []

    def sign(self, **params):
        self.calls.append(("sign", params))
        return {
            "KeyId": self.returned_key_id,
            "Signature": self.signature,
            "SigningAlgorithm": self.returned_algorithm,
        }

    def describe_key(self, **params):
        self.calls.append(("describe_key", params))
        return {
            "KeyMetadata": {
                "KeyId": self.returned_key_id,
                "KeyState": self.key_state,
                "KeyUsage": "SIGN_VERIFY",
                "SigningAlgorithms": [self.returned_algorithm],
            }
        }


@pytest.fixture
def fake_kms_client():
    return FakeKmsClient()


@pytest.fixture
def make_kms_client():
    """Build a FakeKmsClient with custom responses."""
    return FakeKmsClient
