"""
Configuration management for Custodia.

Handles loading configuration from environment variables and validation.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any

from custodia.core.exceptions import ConfigurationError
from custodia.core.types import is_null_address, normalize_address


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable {name} is not set")
    return value


@dataclass(frozen=True)
class Config:
    """Custody configuration."""

    owner: str
    storage_backend: str = "memory"
    redis_url: str | None = None
    log_level: str = "INFO"
    log_json: bool = False

    # Notification delivery
    webhook_url: str | None = None
    webhook_signing_key: str | None = None  # hex-encoded Ed25519 private seed
    webhook_timeout: float = 10.0

    # Custody lock
    lock_ttl: int = 30
    lock_retry_count: int = 3
    lock_retry_delay: float = 0.1

    env: str = "development"

    def __post_init__(self) -> None:
        if is_null_address(self.owner):
            raise ConfigurationError("owner is required")
        object.__setattr__(self, "owner", normalize_address(self.owner))
        if self.webhook_timeout <= 0:
            raise ConfigurationError("webhook_timeout must be positive")
        if self.lock_ttl <= 0:
            raise ConfigurationError("lock_ttl must be positive")
        if self.lock_retry_count < 0:
            raise ConfigurationError("lock_retry_count must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> Config:
        """Load configuration from environment variables."""
        owner = overrides.get("owner") or _get_env_var("CUSTODIA_OWNER", required=True)

        storage_backend = overrides.get("storage_backend") or _get_env_var(
            "CUSTODIA_STORAGE_BACKEND", default="memory"
        )
        redis_url = overrides.get("redis_url") or _get_env_var("CUSTODIA_REDIS_URL")

        log_level = overrides.get("log_level") or _get_env_var(
            "CUSTODIA_LOG_LEVEL", default="INFO"
        )
        log_json = overrides.get("log_json")
        if log_json is None:
            log_json = _get_env_var("CUSTODIA_LOG_JSON", default="").lower() in (
                "1",
                "true",
                "yes",
            )

        webhook_url = overrides.get("webhook_url") or _get_env_var("CUSTODIA_WEBHOOK_URL")
        webhook_signing_key = overrides.get("webhook_signing_key") or _get_env_var(
            "CUSTODIA_WEBHOOK_SIGNING_KEY"
        )

        env = overrides.get("env") or _get_env_var("CUSTODIA_ENV", default="development")

        return cls(
            owner=owner,  # type: ignore
            storage_backend=storage_backend,  # type: ignore
            redis_url=redis_url,
            log_level=log_level,  # type: ignore
            log_json=log_json,
            webhook_url=webhook_url,
            webhook_signing_key=webhook_signing_key,
            webhook_timeout=overrides.get("webhook_timeout", cls.webhook_timeout),
            lock_ttl=overrides.get("lock_ttl", cls.lock_ttl),
            lock_retry_count=overrides.get("lock_retry_count", cls.lock_retry_count),
            lock_retry_delay=overrides.get("lock_retry_delay", cls.lock_retry_delay),
            env=env,  # type: ignore
        )

    def with_updates(self, **updates: Any) -> Config:
        """Create a new Config with updated values."""
        current = asdict(self)
        current.update(updates)
        return Config(**current)

    def masked_signing_key(self) -> str | None:
        """Return the signing key with most characters masked for safe logging."""
        if not self.webhook_signing_key:
            return None
        if len(self.webhook_signing_key) <= 8:
            return "****"
        return self.webhook_signing_key[:4] + "..." + self.webhook_signing_key[-4:]
