"""
Tests for validation/settings.py - QueueSettings loading.

Tests env var precedence, YAML file loading, conversion to QueueConfig
and the cached get_settings() error path.
"""

import pytest
from pydantic import ValidationError

from validation.config import QueueConfig
from validation.settings import QueueSettings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove DURABLE_QUEUE_ variables and reset the settings cache."""
    for name in ("CURRENT_PATH", "STAGING_PATH", "FSYNC", "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(f"DURABLE_QUEUE_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestQueueSettings:
    """Tests for QueueSettings sources."""

    def test_init_values_used_without_env(self):
        settings = QueueSettings(current_path="/data/queue.txt")

        assert settings.current_path == "/data/queue.txt"
        assert settings.staging_path is None
        assert settings.fsync is False
        assert settings.log_level == "info"
        assert settings.log_json is False

    def test_env_vars_read_with_prefix(self, monkeypatch):
        monkeypatch.setenv("DURABLE_QUEUE_CURRENT_PATH", "/env/queue.txt")
        monkeypatch.setenv("DURABLE_QUEUE_FSYNC", "true")
        monkeypatch.setenv("DURABLE_QUEUE_LOG_LEVEL", "debug")

        settings = QueueSettings()

        assert settings.current_path == "/env/queue.txt"
        assert settings.fsync is True
        assert settings.log_level == "debug"

    def test_env_overrides_init(self, monkeypatch):
        monkeypatch.setenv("DURABLE_QUEUE_CURRENT_PATH", "/env/queue.txt")

        settings = QueueSettings(current_path="/init/queue.txt")

        assert settings.current_path == "/env/queue.txt"

    def test_yaml_file_loaded(self, tmp_path, monkeypatch):
        config_file = tmp_path / "durable_queue.yml"
        config_file.write_text(
            "current_path: /yaml/queue.txt\n"
            "staging_path: /yaml/queue.staging\n"
            "fsync: true\n",
            encoding="utf-8",
        )
        monkeypatch.setitem(QueueSettings.model_config, "yaml_file", str(config_file))

        settings = QueueSettings()

        assert settings.current_path == "/yaml/queue.txt"
        assert settings.staging_path == "/yaml/queue.staging"
        assert settings.fsync is True

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        config_file = tmp_path / "durable_queue.yml"
        config_file.write_text("current_path: /yaml/queue.txt\n", encoding="utf-8")
        monkeypatch.setitem(QueueSettings.model_config, "yaml_file", str(config_file))
        monkeypatch.setenv("DURABLE_QUEUE_CURRENT_PATH", "/env/queue.txt")

        settings = QueueSettings()

        assert settings.current_path == "/env/queue.txt"

    def test_missing_current_path_raises(self, tmp_path, monkeypatch):
        monkeypatch.setitem(QueueSettings.model_config, "yaml_file", str(tmp_path / "absent.yml"))

        with pytest.raises(ValidationError):
            QueueSettings()


class TestToConfig:
    """Tests for QueueSettings.to_config."""

    def test_builds_queue_config(self):
        settings = QueueSettings(current_path="/data/queue.txt", fsync=True)

        config = settings.to_config()

        assert isinstance(config, QueueConfig)
        assert config.current_path == "/data/queue.txt"
        assert config.staging_path == "/data/queue.txt.old"
        assert config.fsync is True

    def test_keeps_explicit_staging_path(self):
        settings = QueueSettings(current_path="/data/queue.txt", staging_path="/data/q.tmp")

        assert settings.to_config().staging_path == "/data/q.tmp"


class TestGetSettings:
    """Tests for the cached get_settings()."""

    def test_cached(self, monkeypatch):
        monkeypatch.setenv("DURABLE_QUEUE_CURRENT_PATH", "/env/queue.txt")

        assert get_settings() is get_settings()

    def test_logs_missing_variable_and_reraises(self, tmp_path, monkeypatch, caplog):
        monkeypatch.setitem(QueueSettings.model_config, "yaml_file", str(tmp_path / "absent.yml"))

        with caplog.at_level("ERROR", logger="durable_queue"):
            with pytest.raises(ValidationError):
                get_settings()

        assert "DURABLE_QUEUE_CURRENT_PATH" in caplog.text


class TestApplyLogging:
    """Tests for QueueSettings.apply_logging."""

    def test_sets_root_level(self, restore_root_logging):
        settings = QueueSettings(current_path="/data/queue.txt", log_level="debug")

        settings.apply_logging()

        assert restore_root_logging.level == 10
