"""Tests for settings validation and derived helpers."""

from __future__ import annotations

from omnisearch.config import Environment, get_settings
from omnisearch.shared.providers.types import QuotaPolicy, ResetType


class TestSettings:
    def test_limit_overrides_merge_with_defaults(self):
        settings = get_settings(
            provider_limits={"brave": {"limit": 50, "reset_type": "monthly"}},
        )
        assert settings.provider_limits["brave"] == QuotaPolicy(limit=50, reset_type=ResetType.MONTHLY)
        assert settings.provider_limits["serper"].limit == 2500

    def test_per_provider_timeout(self):
        settings = get_settings(provider_timeout_seconds=12, provider_timeouts={"exa": 4})
        assert settings.timeout_for("exa") == 4
        assert settings.timeout_for("brave") == 12

    def test_log_level_uppercased(self):
        assert get_settings(log_level="debug").log_level == "DEBUG"

    def test_backend_selection_flag(self):
        assert get_settings(redis_url="").uses_redis is False
        assert get_settings(redis_url="redis://cache:6379/0").uses_redis is True

    def test_production_flag(self):
        assert get_settings(app_env=Environment.PRODUCTION).is_production is True
