"""
Tests for runtime configuration: mode defaults and environment overrides.
"""

import pytest

from textforensics.config.runtime import (
    RuntimeMode,
    apply_runtime_config,
    get_runtime_config,
    get_runtime_mode,
    print_runtime_config,
)

_ENV_KEYS = [
    "TEXTFORENSICS_RUNTIME_MODE",
    "HOST",
    "PORT",
    "TEXTFORENSICS_WORKERS",
    "TEXTFORENSICS_RELOAD",
    "TEXTFORENSICS_SERVER_LOG_LEVEL",
    "TEXTFORENSICS_TIMEOUT_KEEP_ALIVE",
    "TEXTFORENSICS_CORS_ORIGINS",
    "TEXTFORENSICS_MAX_BODY_BYTES",
    "TEXTFORENSICS_LOG_LEVEL",
    "TEXTFORENSICS_JSON_LOGGING",
    "TEXTFORENSICS_ENABLE_METRICS",
    "TEXTFORENSICS_CONFIG_PATH",
    "TEXTFORENSICS_DEBUG",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestRuntimeMode:
    def test_default_is_dev(self):
        assert get_runtime_mode() is RuntimeMode.DEV

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TEXTFORENSICS_RUNTIME_MODE", "CLOUD-PROD")
        assert get_runtime_mode() is RuntimeMode.CLOUD_PROD

    def test_invalid_falls_back_to_dev(self, monkeypatch):
        monkeypatch.setenv("TEXTFORENSICS_RUNTIME_MODE", "staging")
        assert get_runtime_mode() is RuntimeMode.DEV


class TestModeDefaults:
    """Each mode has its own defaults."""

    def test_dev(self):
        config = get_runtime_config(RuntimeMode.DEV)

        assert config.server.reload is True
        assert config.observability.log_level == "DEBUG"
        assert config.observability.json_logging is False
        assert config.debug is True

    def test_local_prod(self):
        config = get_runtime_config(RuntimeMode.LOCAL_PROD)

        assert config.server.workers == 2
        assert config.observability.json_logging is True
        assert config.debug is False

    def test_cloud_prod(self):
        config = get_runtime_config(RuntimeMode.CLOUD_PROD)

        assert config.server.workers == 4
        assert config.server.timeout_keep_alive == 60
        assert config.observability.json_logging is True

    def test_shared_defaults(self):
        config = get_runtime_config(RuntimeMode.LOCAL_PROD)

        assert config.server.port == 8000
        assert config.security.cors_origins == ["*"]
        assert config.security.max_body_bytes == 5 * 1024 * 1024
        assert config.observability.metrics_enabled is True
        assert config.analyzer.config_path == "config/default_config.yaml"


class TestEnvironmentOverrides:
    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "9001")
        monkeypatch.setenv("TEXTFORENSICS_CORS_ORIGINS", "https://a.example, https://b.example,")
        monkeypatch.setenv("TEXTFORENSICS_MAX_BODY_BYTES", "1024")
        monkeypatch.setenv("TEXTFORENSICS_ENABLE_METRICS", "off")
        monkeypatch.setenv("TEXTFORENSICS_CONFIG_PATH", "/etc/tf.yaml")

        config = get_runtime_config(RuntimeMode.DEV)

        assert config.server.port == 9001
        assert config.security.cors_origins == ["https://a.example", "https://b.example"]
        assert config.security.max_body_bytes == 1024
        assert config.observability.metrics_enabled is False
        assert config.analyzer.config_path == "/etc/tf.yaml"

    def test_bad_integer_keeps_default(self, monkeypatch):
        monkeypatch.setenv("PORT", "eighty")
        assert get_runtime_config(RuntimeMode.DEV).server.port == 8000

    def test_env_dict_round_trip(self, monkeypatch):
        monkeypatch.setenv("TEXTFORENSICS_MAX_BODY_BYTES", "2048")
        original = get_runtime_config(RuntimeMode.CLOUD_PROD)

        for key in _ENV_KEYS:
            monkeypatch.delenv(key, raising=False)
        for key, value in original.to_env_dict().items():
            monkeypatch.setenv(key, value)

        assert get_runtime_config() == original

    def test_apply_runtime_config(self, monkeypatch):
        config = get_runtime_config(RuntimeMode.LOCAL_PROD)
        for key in config.to_env_dict():
            monkeypatch.setenv(key, "placeholder")

        apply_runtime_config(config)

        assert get_runtime_config() == config

    def test_print_runtime_config(self, capsys):
        print_runtime_config(get_runtime_config(RuntimeMode.DEV))
        out = capsys.readouterr().out

        assert "Runtime Configuration (dev)" in out
        assert "Max Body Bytes: 5242880" in out


pytestmark = pytest.mark.unit
