"""Tests for engine settings and environment overrides."""

from __future__ import annotations

import pydantic
import pytest

from privacygrade import config


class TestDefaults:
    """Tests for default settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PRIVACYGRADE_MERGE_STRATEGY", raising=False)
        settings = config.EngineSettings()
        assert settings.repaint_debounce_seconds == 5.0
        assert settings.long_term_cookie_days == 30
        assert settings.canvas_min_dimension == 16
        assert settings.merge_strategy == "larger"
        assert settings.on_demand_penalties == config.ON_DEMAND_PENALTIES
        assert settings.background_penalties == config.BACKGROUND_PENALTIES
        assert "chrome-extension" in settings.internal_schemes


class TestEnvironment:
    """Tests for PRIVACYGRADE_-prefixed environment overrides."""

    def test_scalar_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRIVACYGRADE_REPAINT_DEBOUNCE_SECONDS", "2.5")
        monkeypatch.setenv("PRIVACYGRADE_MERGE_STRATEGY", "union")
        settings = config.EngineSettings()
        assert settings.repaint_debounce_seconds == 2.5
        assert settings.merge_strategy == "union"

    def test_table_override_is_sorted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRIVACYGRADE_BACKGROUND_PENALTIES", "[[30, 5], [40, 10]]")
        assert config.EngineSettings().background_penalties == ((40, 10), (30, 5))

    def test_unknown_strategy_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRIVACYGRADE_MERGE_STRATEGY", "newest")
        with pytest.raises(pydantic.ValidationError):
            config.EngineSettings()


class TestValidation:
    """Tests for field validation."""

    def test_negative_penalty_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            config.EngineSettings(on_demand_penalties=((10, -5),))

    def test_ratio_bounds(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            config.EngineSettings(recommendation_ratio=0)
