"""Tests for configuration classes and environment validation."""

import pytest

from config import (
    Config,
    DevConfig,
    ProdConfig,
    TestConfig,
    config,
    validate_required_env_vars,
)


class TestValidateRequiredEnvVars:
    """Tests for validate_required_env_vars."""

    def test_passes_when_set(self, monkeypatch):
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "abc")
        monkeypatch.setenv("SECRET_KEY", "s3cret")
        validate_required_env_vars()

    def test_lists_missing(self, monkeypatch):
        monkeypatch.delenv("SPOTIFY_CLIENT_ID", raising=False)
        monkeypatch.setenv("SECRET_KEY", "s3cret")
        with pytest.raises(ValueError, match="SPOTIFY_CLIENT_ID"):
            validate_required_env_vars()

    def test_secret_key_is_required(self, monkeypatch):
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "abc")
        monkeypatch.delenv("SECRET_KEY", raising=False)
        with pytest.raises(ValueError, match="SECRET_KEY"):
            validate_required_env_vars()

    def test_empty_secret_key_counts_as_missing(self, monkeypatch):
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "abc")
        monkeypatch.setenv("SECRET_KEY", "")
        with pytest.raises(ValueError, match="SECRET_KEY"):
            validate_required_env_vars()


class TestConfigClasses:
    """Tests for the config hierarchy."""

    def test_mapping(self):
        assert config["development"] is DevConfig
        assert config["production"] is ProdConfig
        assert config["testing"] is TestConfig
        assert config["default"] is DevConfig

    def test_production_not_debug(self):
        assert ProdConfig.DEBUG is False
        assert ProdConfig.TESTING is False

    def test_testing_values(self):
        assert TestConfig.TESTING is True
        assert TestConfig.SPOTIFY_CLIENT_ID == "test_client_id"
        assert TestConfig.REDIS_URL is None

    def test_defaults(self):
        assert Config.AUTHORIZER in ("browser", "console")
        assert Config.GENRE_VERIFY_BATCH_SIZE > 0
        assert Config.CREDENTIAL_STORE_PATH.endswith("credentials.json")
