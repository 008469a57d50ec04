"""
Unit tests for input sanitization and runtime settings.

Tests cover:
- Plot and direction sanitization
- Numeric clamping
- Style and intensity validation
- Settings loaded from environment variables
"""

import pytest

from roundtable.config import RoundtableSettings, create_default_config_from_env, settings_from_env
from roundtable.config.llm_providers import LLMProvider
from roundtable.services.security import (
    MAX_DIRECTION_LENGTH,
    MAX_PLOT_LENGTH,
    sanitize_direction,
    sanitize_plot_text,
    validate_intensity,
    validate_numeric_input,
    validate_style,
)


class TestSanitization:
    """Tests for text sanitization helpers."""

    def test_control_characters_removed(self):
        assert sanitize_plot_text("A\x00B\x07C") == "ABC"

    def test_newlines_and_tabs_kept(self):
        assert sanitize_plot_text("line one\n\tline two") == "line one\n\tline two"

    def test_empty_plot_is_none(self):
        assert sanitize_plot_text(None) is None
        assert sanitize_plot_text("  \x01 ") is None

    def test_plot_is_truncated(self):
        assert len(sanitize_plot_text("x" * (MAX_PLOT_LENGTH + 50))) == MAX_PLOT_LENGTH

    def test_direction(self):
        assert sanitize_direction(None) == ""
        assert sanitize_direction("  north  ") == "north"
        assert len(sanitize_direction("y" * 1000)) == MAX_DIRECTION_LENGTH


class TestValidation:
    """Tests for numeric and enum validation."""

    @pytest.mark.parametrize("value,expected", [(5, 5), ("7", 7), (0, 1), (99, 50), (None, 3), ("abc", 3)])
    def test_numeric(self, value, expected):
        assert validate_numeric_input(value, 1, 50, 3) == expected

    def test_style_and_intensity(self):
        assert validate_style("romantic") == "romantic"
        assert validate_style("gothic") == "natural"
        assert validate_intensity("strong") == "strong"
        assert validate_intensity(None) == "moderate"


class TestSettingsFromEnv:
    """Tests for environment-driven configuration."""

    def test_defaults(self):
        settings = RoundtableSettings()

        assert settings.lifecycle.auto_commit_ms == 5000
        assert settings.lifecycle.history_limit == 5
        assert settings.generation.timeout_seconds == 45.0
        assert settings.readiness.stable_checks_required == 3
        assert settings.injection.frequency == 3

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ROUNDTABLE_AUTO_COMMIT_MS", "8000")
        monkeypatch.setenv("ROUNDTABLE_HISTORY_LIMIT", "10")
        monkeypatch.setenv("ROUNDTABLE_INJECTION_ENABLED", "false")
        monkeypatch.setenv("ROUNDTABLE_CACHE_DIR", "")
        monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service-key")
        monkeypatch.setenv("ROUNDTABLE_PORT", "9001")

        settings = settings_from_env()

        assert settings.lifecycle.auto_commit_ms == 8000
        assert settings.lifecycle.history_limit == 10
        assert settings.injection.enabled is False
        assert settings.persistence.cache_dir is None
        assert settings.persistence.supabase_key.get_secret_value() == "service-key"
        assert settings.port == 9001

    def test_llm_config_from_env(self, monkeypatch):
        for name in ("OPENAI_API_KEY", "OPENROUTER_API_KEY", "GEMINI_API_KEY", "DEEPSEEK_API_KEY", "VENICE_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        monkeypatch.setenv("ROUNDTABLE_PLOT_PROVIDER", "Claude")
        monkeypatch.setenv("ROUNDTABLE_PLOT_MODEL", "claude-custom")

        config = create_default_config_from_env()

        assert config.get_enabled_providers() == [LLMProvider.CLAUDE]
        assert config.resolve_plot_provider() == LLMProvider.CLAUDE
        assert config.resolve_plot_model(LLMProvider.CLAUDE) == "claude-custom"
