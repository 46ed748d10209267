"""Tests for settings loading and logging configuration."""

import pytest

from dynaform.logging import configure_logging, get_logger
from dynaform.settings import Settings, SettingsError, get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Test Settings defaults and environment overrides."""

    def test_defaults(self):
        settings = Settings()
        assert settings.log_level == "INFO"
        assert settings.textarea_rows == 3
        assert settings.select_placeholder == "Select an option"
        assert settings.required_marker == "*"
        assert settings.submit_failure_notice == "Error submitting form. Please try again."
        assert settings.event_log_size == 500

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("DYNAFORM_TEXTAREA_ROWS", "5")
        monkeypatch.setenv("DYNAFORM_REQUIRED_MARKER", "(required)")
        settings = get_settings()
        assert settings.textarea_rows == 5
        assert settings.required_marker == "(required)"

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_invalid_value(self, monkeypatch):
        """Should wrap validation failures in SettingsError."""
        monkeypatch.setenv("DYNAFORM_TEXTAREA_ROWS", "0")
        with pytest.raises(SettingsError):
            get_settings()


@pytest.fixture
def restore_logging():
    yield
    configure_logging(settings=Settings(), force=True)


@pytest.mark.usefixtures("restore_logging")
class TestLogging:
    """Test structlog configuration."""

    def test_console_logging(self, capsys):
        configure_logging(settings=Settings(log_json=False), force=True)
        get_logger("dynaform.test").info("hello", form_id="form_1")
        captured = capsys.readouterr()
        assert "hello" in captured.err

    def test_json_logging_uses_message_key(self, capsys):
        configure_logging(settings=Settings(log_json=True), force=True)
        get_logger("dynaform.test").warning("json hello")
        captured = capsys.readouterr()
        assert '"message": "json hello"' in captured.err
