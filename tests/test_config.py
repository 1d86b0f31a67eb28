"""Tests for configuration module."""

import pytest
from pydantic import ValidationError

from domscribe.config import DiffMode, Settings, get_settings


class TestSettings:
    """Tests for Settings class."""

    def test_settings_default_values(self):
        """Test default values are set correctly."""
        settings = Settings(_env_file=None)

        assert settings.batch_window_ms == 50
        assert settings.input_debounce_ms == 100
        assert settings.scroll_throttle_ms == 200
        assert settings.capture_scroll_events is False
        assert settings.buffer_flush_interval_ms == 500
        assert settings.max_events_in_memory == 500
        assert settings.max_events_per_session == 50000
        assert settings.session_auto_stop_hours == 2.0
        assert settings.max_initial_html_size == 100 * 1024
        assert settings.diff_mode == DiffMode.LINE

    def test_settings_loads_from_env(self, monkeypatch):
        """Test that settings loads prefixed environment variables."""
        monkeypatch.setenv("DOMSCRIBE_INPUT_DEBOUNCE_MS", "250")
        monkeypatch.setenv("DOMSCRIBE_CAPTURE_SCROLL_EVENTS", "true")
        monkeypatch.setenv("DOMSCRIBE_DIFF_MODE", "element")

        settings = Settings(_env_file=None)

        assert settings.input_debounce_ms == 250
        assert settings.capture_scroll_events is True
        assert settings.diff_mode == DiffMode.ELEMENT

    def test_unprefixed_env_ignored(self, monkeypatch):
        """Test variables without the prefix are ignored."""
        monkeypatch.setenv("INPUT_DEBOUNCE_MS", "999")

        assert Settings(_env_file=None).input_debounce_ms == 100

    def test_invalid_diff_mode(self, monkeypatch):
        """Test invalid enum values are rejected."""
        monkeypatch.setenv("DOMSCRIBE_DIFF_MODE", "word")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings(self, monkeypatch):
        """Test get_settings returns a Settings instance."""
        monkeypatch.setenv("DOMSCRIBE_LOG_LEVEL", "DEBUG")

        settings = get_settings()

        assert isinstance(settings, Settings)
        assert settings.log_level == "DEBUG"
