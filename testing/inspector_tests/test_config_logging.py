"""
Tests for settings loading and logging configuration.
"""

import io
import logging

import pytest

from inspector.config import InspectorSettings, load_settings
from inspector.logging_config import configure_logging, get_level_from_string


class TestInspectorSettings:

    def test_defaults(self, monkeypatch):
        for name in ("KV_INSPECTOR_PORT", "KV_INSPECTOR_DEFAULT_PREFIX"):
            monkeypatch.delenv(name, raising=False)

        settings = InspectorSettings(_env_file=None)

        assert settings.port == 8089
        assert settings.endpoint == "/inspect"
        assert settings.resume_path == "/resume"
        assert settings.default_prefix == "analysis:"
        assert settings.key_separator == ":"
        assert settings.tracing_enabled is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("KV_INSPECTOR_PORT", "9123")
        monkeypatch.setenv("KV_INSPECTOR_DEFAULT_PREFIX", "chat:")

        settings = load_settings(env_file=None)

        assert settings.port == 9123
        assert settings.default_prefix == "chat:"

    def test_env_file(self, tmp_path, monkeypatch):
        # setenv + delenv makes teardown remove whatever load_dotenv exports
        monkeypatch.setenv("KV_INSPECTOR_ENDPOINT", "unset")
        monkeypatch.delenv("KV_INSPECTOR_ENDPOINT")
        env_file = tmp_path / ".env"
        env_file.write_text("KV_INSPECTOR_ENDPOINT=/kv\n")

        settings = load_settings(env_file=str(env_file))

        assert settings.endpoint == "/kv"


class TestLogging:

    @pytest.mark.parametrize("name,expected", [
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        (" error ", logging.ERROR),
        ("bogus", logging.INFO),
        ("", logging.INFO),
        (None, logging.INFO),
    ])
    def test_get_level_from_string(self, name, expected):
        assert get_level_from_string(name) == expected

    def test_configure_logging_to_stream(self, restore_root_logging):
        stream = io.StringIO()

        configure_logging(log_level="WARNING", stream=stream)
        logging.getLogger("inspector.test").info("hidden")
        logging.getLogger("inspector.test").warning("shown")

        output = stream.getvalue()
        assert "shown" in output
        assert "hidden" not in output
        assert "inspector.test - WARNING" in output

    def test_configure_logging_to_file(self, tmp_path, restore_root_logging):
        log_path = tmp_path / "logs" / "inspector.log"

        configure_logging(log_level="INFO", log_to_file=True, log_file_path=str(log_path), stream=io.StringIO())
        logging.getLogger("inspector.test").info("to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "to file" in log_path.read_text()
