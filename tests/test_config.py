"""Tests for configuration loading."""

import json

import pytest
import yaml

from hsm_signer.config import (
    HsmConfig,
    ProviderSettings,
    config_from_env,
    create_default_config,
    load_config,
    redact,
    substitute_environment_variables,
)


class TestHsmConfig:
    """Test configuration models."""

    def test_defaults(self):
        config = HsmConfig()

        assert config.enabled is False
        assert config.default_provider == "mock"
        assert config.providers["mock"].type == "mock"

    def test_default_provider_must_exist(self):
        with pytest.raises(ValueError, match="aws"):
            HsmConfig(default_provider="aws")

    def test_provider_type_required(self):
        with pytest.raises(ValueError):
            ProviderSettings(id="x")

    def test_extra_fields_reach_provider_config(self):
        settings = ProviderSettings(type="local-key", private_key="pem", algorithm="RSA-SHA512")

        config = settings.to_provider_config("local")

        assert config == {
            "type": "local-key",
            "id": "local",
            "private_key": "pem",
            "algorithm": "RSA-SHA512",
        }

    def test_explicit_id_wins(self):
        settings = ProviderSettings(id="batch-signer-1", type="mock")
        assert settings.to_provider_config("mock")["id"] == "batch-signer-1"

    def test_create_default_config(self):
        config = create_default_config()
        assert config.enabled

    def test_log_level_is_normalized(self):
        assert HsmConfig(log_level="debug").log_level == "DEBUG"

    def test_redact(self):
        assert redact({"private_key": "pem", "region": "eu-west-1", "secret_access_key": None}) == {
            "private_key": "***",
            "region": "eu-west-1",
            "secret_access_key": None,
        }


class TestConfigFromEnv:
    """Test the HSM_* environment contract."""

    def test_empty_environment(self):
        config = config_from_env({})

        assert config.enabled is False
        assert config.default_provider == "mock"
        assert set(config.providers) == {"mock", "local", "aws"}
        assert config.providers["local"].to_provider_config("local")["algorithm"] == "RSA-SHA256"

    def test_full_environment(self):
        config = config_from_env({
            "HSM_ENABLED": "true",
            "HSM_PROVIDER": "aws",
            "HSM_LOCAL_PRIVATE_KEY": "local-pem",
            "HSM_LOCAL_ALGORITHM": "RSA-SHA512",
            "HSM_AWS_REGION": "ap-southeast-1",
            "HSM_AWS_ACCESS_KEY_ID": "AKIA",
            "HSM_AWS_SECRET_ACCESS_KEY": "secret",
            "HSM_AWS_KEY_ID": "alias/batch",
        })

        assert config.enabled is True
        assert config.default_provider == "aws"
        local = config.providers["local"].to_provider_config("local")
        assert local["private_key"] == "local-pem"
        assert local["algorithm"] == "RSA-SHA512"
        aws = config.providers["aws"].to_provider_config("aws")
        assert aws["type"] == "aws-kms"
        assert aws["key_id"] == "alias/batch"

    def test_private_key_fallback(self):
        config = config_from_env({"PRIVATE_KEY": "fallback-pem"})
        assert config.providers["local"].to_provider_config("local")["private_key"] == "fallback-pem"

    def test_enabled_only_for_literal_true(self):
        assert config_from_env({"HSM_ENABLED": "1"}).enabled is False

    def test_unknown_default_provider(self):
        with pytest.raises(ValueError):
            config_from_env({"HSM_PROVIDER": "vault"})

    def test_unset_aws_fields_are_dropped(self):
        aws = config_from_env({}).providers["aws"].to_provider_config("aws")
        assert "region" not in aws


class TestLoadConfig:
    """Test loading configuration files."""

    def test_yaml_with_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BATCH_SIGNER_KEY", "pem-from-env")
        path = tmp_path / "hsm.yaml"
        path.write_text(yaml.safe_dump({
            "enabled": True,
            "default_provider": "local",
            "providers": {
                "local": {"type": "local-key", "private_key": "${BATCH_SIGNER_KEY}"},
            },
        }))

        config = load_config(path)

        assert config.enabled
        assert config.providers["local"].to_provider_config("local")["private_key"] == "pem-from-env"

    def test_json(self, tmp_path):
        path = tmp_path / "hsm.json"
        path.write_text(json.dumps({"enabled": True}))

        assert load_config(path).enabled

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "hsm.yaml"
        path.write_text(yaml.safe_dump({"default_provider": "aws"}))

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "hsm.yaml"
        path.write_text("enabled: [true\nproviders: {")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "hsm.yaml"
        path.write_text("- mock\n- local\n")

        with pytest.raises(ValueError, match="expected a mapping"):
            load_config(path)

    def test_unknown_log_level(self, tmp_path):
        path = tmp_path / "hsm.yaml"
        path.write_text(yaml.safe_dump({"log_level": "LOUD"}))

        with pytest.raises(ValueError, match="log_level"):
            load_config(path)

    def test_missing_environment_variable(self, monkeypatch):
        monkeypatch.delenv("HSM_SIGNER_UNSET_VAR", raising=False)

        with pytest.raises(ValueError, match="HSM_SIGNER_UNSET_VAR"):
            substitute_environment_variables({"providers": [{"key": "${HSM_SIGNER_UNSET_VAR}"}]})
