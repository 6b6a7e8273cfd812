"""Omnisearch budget router — application configuration."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from omnisearch.shared.providers.quota import DEFAULT_PROVIDER_LIMITS
from omnisearch.shared.providers.types import QuotaPolicy


class Environment(str, enum.Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Centralised, validated configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    app_name: str = "omnisearch-budget"
    app_env: Environment = Environment.DEVELOPMENT
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    # ── Usage storage ────────────────────────────────────────
    # Empty redis_url selects the local JSON file backend
    redis_url: str = ""
    redis_key_prefix: str = "omnisearch:"
    usage_file_path: Path = Field(
        default_factory=lambda: Path.home() / ".omnisearch" / "usage.json"
    )

    # ── Search provider credentials ──────────────────────────
    brave_api_key: str = ""
    tavily_api_key: str = ""
    exa_api_key: str = ""
    jina_api_key: str = ""
    serper_api_key: str = ""
    youcom_api_key: str = ""

    brave_base_url: str = "https://api.search.brave.com/res/v1"
    tavily_base_url: str = "https://api.tavily.com"
    exa_base_url: str = "https://api.exa.ai"
    jina_base_url: str = "https://s.jina.ai"
    serper_base_url: str = "https://google.serper.dev"
    youcom_base_url: str = "https://api.ydc-index.io"

    # ── Routing ──────────────────────────────────────────────
    provider_timeout_seconds: float = 30.0
    provider_timeouts: dict[str, float] = Field(default_factory=dict)
    provider_limits: dict[str, QuotaPolicy] = Field(
        default_factory=lambda: dict(DEFAULT_PROVIDER_LIMITS)
    )

    # Circuit breaker
    circuit_breaker_failure_threshold: int = 3
    circuit_breaker_cooldown_seconds: float = 300.0

    # ── Derived helpers ──────────────────────────────────────
    @property
    def is_production(self) -> bool:
        return self.app_env == Environment.PRODUCTION

    @property
    def uses_redis(self) -> bool:
        return bool(self.redis_url.strip())

    def timeout_for(self, provider: str) -> float:
        return self.provider_timeouts.get(provider, self.provider_timeout_seconds)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("redis_url")
    @classmethod
    def _validate_redis_url(cls, v: str) -> str:
        v = v.strip()
        if v and not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("redis_url must start with 'redis://', 'rediss://' or 'unix://'")
        return v

    @field_validator("provider_limits")
    @classmethod
    def _merge_default_limits(cls, v: dict[str, QuotaPolicy]) -> dict[str, QuotaPolicy]:
        """Overrides replace individual providers; unspecified ones keep defaults."""
        return {**DEFAULT_PROVIDER_LIMITS, **v}


def get_settings(**overrides: Any) -> Settings:
    """Factory that allows test-time overrides."""
    return Settings(**overrides)
