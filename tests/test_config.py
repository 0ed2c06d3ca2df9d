"""Unit tests for config module."""

import os
from unittest.mock import patch

import pytest

from custodia.core.config import Config
from custodia.core.exceptions import ConfigurationError
from tests.conftest import OWNER


class TestConfig:
    """Tests for Config class."""

    def test_create_config_directly(self) -> None:
        config = Config(owner=OWNER)

        assert config.owner == OWNER
        assert config.storage_backend == "memory"
        assert config.webhook_url is None
        assert config.lock_ttl == 30

    def test_owner_is_normalized(self) -> None:
        config = Config(owner="  0xABCDEF  ")
        assert config.owner == "0xabcdef"

    def test_config_is_immutable(self) -> None:
        config = Config(owner=OWNER)

        with pytest.raises(AttributeError):
            config.owner = "0xother"  # type: ignore

    @pytest.mark.parametrize("owner", ["", "0x0000000000000000000000000000000000000000"])
    def test_null_owner_raises(self, owner) -> None:
        with pytest.raises(ConfigurationError, match="owner is required"):
            Config(owner=owner)

    def test_invalid_lock_ttl(self) -> None:
        with pytest.raises(ConfigurationError, match="lock_ttl"):
            Config(owner=OWNER, lock_ttl=0)

    def test_invalid_webhook_timeout(self) -> None:
        with pytest.raises(ConfigurationError, match="webhook_timeout"):
            Config(owner=OWNER, webhook_timeout=-1.0)

    def test_from_env(self) -> None:
        env = {
            "CUSTODIA_OWNER": OWNER,
            "CUSTODIA_STORAGE_BACKEND": "redis",
            "CUSTODIA_REDIS_URL": "redis://cache:6379/2",
            "CUSTODIA_LOG_LEVEL": "DEBUG",
            "CUSTODIA_WEBHOOK_URL": "https://audit.example.com/hook",
            "CUSTODIA_ENV": "production",
        }
        with patch.dict(os.environ, env, clear=True):
            config = Config.from_env()

        assert config.owner == OWNER
        assert config.storage_backend == "redis"
        assert config.redis_url == "redis://cache:6379/2"
        assert config.log_level == "DEBUG"
        assert config.log_json is False
        assert config.webhook_url == "https://audit.example.com/hook"
        assert config.env == "production"

    def test_log_json_from_env(self) -> None:
        env = {"CUSTODIA_OWNER": OWNER, "CUSTODIA_LOG_JSON": "true"}
        with patch.dict(os.environ, env, clear=True):
            assert Config.from_env().log_json is True

    def test_from_env_missing_owner(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError, match="CUSTODIA_OWNER"):
                Config.from_env()

    def test_overrides_take_precedence(self) -> None:
        with patch.dict(os.environ, {"CUSTODIA_OWNER": "0xenv"}, clear=True):
            config = Config.from_env(owner=OWNER, lock_retry_count=0)

        assert config.owner == OWNER
        assert config.lock_retry_count == 0

    def test_with_updates(self) -> None:
        config = Config(owner=OWNER)
        updated = config.with_updates(log_level="WARNING")

        assert updated.log_level == "WARNING"
        assert updated.owner == OWNER
        assert config.log_level == "INFO"

    def test_masked_signing_key(self) -> None:
        assert Config(owner=OWNER).masked_signing_key() is None
        config = Config(owner=OWNER, webhook_signing_key="a" * 64)
        assert config.masked_signing_key() == "aaaa...aaaa"
