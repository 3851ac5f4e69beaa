"""
Configuration management for the HSM signing layer.

Handles loading and validation of provider configuration from YAML/JSON
files or from the process environment.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

# Fields never echoed back by list_providers
SECRET_FIELDS = frozenset({"private_key", "key_password", "secret_access_key", "session_token"})

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ProviderSettings(BaseModel):
    """Settings for one configured provider. Extra fields are provider-specific."""

    model_config = ConfigDict(extra="allow")

    type: str
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if not v.strip():
            raise ValueError("provider type must not be empty")
        return v

    def to_provider_config(self, key: str) -> Dict[str, Any]:
        """Build the descriptor handed to the provider factory."""
        config = self.model_dump(exclude_none=True)
        config["id"] = self.id or key
        return config


def _default_providers() -> Dict[str, ProviderSettings]:
    return {
        "mock": ProviderSettings(
            id="mock",
            type="mock",
            name="Mock HSM Provider",
            description="Simulated HSM for development",
            default_key_id="MOCK_KEY_ID",
        )
    }


class HsmConfig(BaseModel):
    """Main configuration class."""

    enabled: bool = False
    default_provider: str = "mock"
    providers: Dict[str, ProviderSettings] = Field(default_factory=_default_providers)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def validate_default_provider(self):
        """Default provider must be one of the configured providers."""
        if self.default_provider not in self.providers:
            raise ValueError(
                f"Default provider {self.default_provider} not found in providers"
            )
        return self


def substitute_environment_variables(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively substitute environment variables in configuration.

    Variables in the format ${VAR_NAME} will be replaced with their environment values.
    """
    def substitute_value(value):
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                env_var = value[2:-1]
                env_value = os.environ.get(env_var)
                if env_value is None:
                    raise ValueError(f"Environment variable {env_var} not set")
                return env_value
            return value
        elif isinstance(value, dict):
            return {k: substitute_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [substitute_value(item) for item in value]
        else:
            return value

    return substitute_value(config_data)


def load_config(config_path: Union[str, Path]) -> HsmConfig:
    """
    Load configuration from file with environment variable substitution.

    Args:
        config_path: Path to configuration file (JSON or YAML)

    Returns:
        Validated configuration object

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        ValueError: If configuration is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        try:
            if config_path.suffix.lower() in [".yaml", ".yml"]:
                config_data = yaml.safe_load(f) or {}
            else:
                config_data = json.load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

    if not isinstance(config_data, dict):
        raise ValueError(f"Invalid configuration: expected a mapping in {config_path}")

    config_data = substitute_environment_variables(config_data)

    try:
        return HsmConfig(**config_data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> HsmConfig:
    """
    Build configuration from HSM_* environment variables.

    Providers with missing values are still listed; they fail when first
    requested from the factory.
    """
    env = os.environ if environ is None else environ

    providers = _default_providers()
    providers["local"] = ProviderSettings(
        id="local",
        type="local",
        name="Local Private Key Provider",
        description="Private key held by the server (demo use only)",
        private_key=env.get("HSM_LOCAL_PRIVATE_KEY") or env.get("PRIVATE_KEY") or "",
        algorithm=env.get("HSM_LOCAL_ALGORITHM") or "RSA-SHA256",
    )
    providers["aws"] = ProviderSettings(
        id="aws",
        type="aws-kms",
        name="AWS KMS",
        description="Amazon Web Services Key Management Service",
        region=env.get("HSM_AWS_REGION"),
        access_key_id=env.get("HSM_AWS_ACCESS_KEY_ID"),
        secret_access_key=env.get("HSM_AWS_SECRET_ACCESS_KEY"),
        key_id=env.get("HSM_AWS_KEY_ID"),
    )

    return HsmConfig(
        enabled=env.get("HSM_ENABLED") == "true",
        default_provider=env.get("HSM_PROVIDER") or "mock",
        providers=providers,
        log_level=env.get("HSM_LOG_LEVEL") or "INFO",
    )


def create_default_config() -> HsmConfig:
    """Create a default configuration for testing/development."""
    return HsmConfig(enabled=True, default_provider="mock")


def redact(settings: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy provider settings with secret values masked."""
    return {
        k: ("***" if k in SECRET_FIELDS and v else v)
        for k, v in settings.items()
    }
