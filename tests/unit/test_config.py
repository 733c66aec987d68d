"""Tests for settings and challenge configuration loading."""

import pydantic
import pytest

from challenger.core.config import (
    ChallengeConfig,
    IntensityConfig,
    Settings,
    load_challenge_config,
)


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("COMPLETION_MODE", "LLM_PROVIDER", "PORT", "VOICE_ENABLED"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings(_env_file=None)

        assert settings.completion_mode == "llm"
        assert settings.llm_provider == "openai"
        assert settings.llm_temperature == 0.8
        assert settings.port == 5001
        assert settings.voice_enabled is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("COMPLETION_MODE", "scripted")
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        monkeypatch.setenv("PORT", "8080")

        settings = Settings(_env_file=None)

        assert settings.completion_mode == "scripted"
        assert settings.llm_provider == "anthropic"
        assert settings.port == 8080

    def test_log_level_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert Settings(_env_file=None).log_level == "DEBUG"

    def test_rejects_unknown_completion_mode(self):
        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, completion_mode="telepathy")


class TestChallengeConfig:
    def test_project_config_matches_defaults(self):
        """config/challenge_config.yaml ships the documented values."""
        config = load_challenge_config()

        assert config.phases.provocation.turn_threshold == 4
        assert config.phases.deep_dive.turn_threshold == 4
        assert config.phases.synthesis.turn_threshold == 4
        assert config.intensity.initial == 0.7
        assert config.intensity.minimum == 0.3
        assert config.intensity.maximum == 1.0
        assert config.intensity.escalation_suffix == "Try again."
        assert config.session.context_turn_limit == 6
        assert config.session.idle_timeout_seconds == 1800
        assert config.insights.max_challenged_assumptions == 5

    def test_load_custom_file(self, tmp_path):
        path = tmp_path / "challenge_config.yaml"
        path.write_text(
            "phases:\n"
            "  provocation:\n"
            "    turn_threshold: 2\n"
            "session:\n"
            "  context_turn_limit: 10\n"
            "  idle_timeout_seconds: null\n"
        )

        config = load_challenge_config(path)

        assert config.phases.provocation.turn_threshold == 2
        assert config.phases.deep_dive.turn_threshold == 4
        assert config.session.context_turn_limit == 10
        assert config.session.idle_timeout_seconds is None

    def test_missing_file_returns_defaults(self, tmp_path):
        config = load_challenge_config(tmp_path / "nope.yaml")
        assert config == ChallengeConfig()

    def test_empty_file_returns_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_challenge_config(path) == ChallengeConfig()

    def test_invalid_threshold_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("phases:\n  provocation:\n    turn_threshold: 0\n")
        with pytest.raises(pydantic.ValidationError):
            load_challenge_config(path)


class TestIntensityConfig:
    def test_initial_clamped_to_bounds(self):
        assert IntensityConfig(initial=0.1, minimum=0.3).initial == 0.3
        assert IntensityConfig(initial=0.95, maximum=0.9).initial == 0.9

    def test_initial_within_bounds_unchanged(self):
        assert IntensityConfig(initial=0.5).initial == 0.5
