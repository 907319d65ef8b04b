"""
Runtime Configuration for textforensics.

Provides centralized runtime configuration for different deployment modes:
- dev: Local development mode
- local-prod: Local production mode
- cloud-prod: Cloud production mode (Docker/k8s)

Configuration priority (highest to lowest):
1. Environment variables (TEXTFORENSICS_* prefix, plus HOST/PORT)
2. Mode-specific defaults
3. Base defaults

Usage:
    from textforensics.config.runtime import get_runtime_config, RuntimeMode

    config = get_runtime_config(mode=RuntimeMode.DEV)
    config = get_runtime_config()  # mode from TEXTFORENSICS_RUNTIME_MODE
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

_DEFAULT_CONFIG_PATH = "config/default_config.yaml"
_DEFAULT_MAX_BODY_BYTES = 5 * 1024 * 1024


class RuntimeMode(str, Enum):
    """Supported runtime modes."""

    DEV = "dev"
    LOCAL_PROD = "local-prod"
    CLOUD_PROD = "cloud-prod"


@dataclass
class ServerConfig:
    """Server configuration for HTTP API."""

    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1
    reload: bool = False
    log_level: str = "info"
    timeout_keep_alive: int = 30


@dataclass
class SecurityConfig:
    """Request framing limits and CORS."""

    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    max_body_bytes: int = _DEFAULT_MAX_BODY_BYTES


@dataclass
class ObservabilityConfig:
    log_level: str = "INFO"
    json_logging: bool = False
    metrics_enabled: bool = True


@dataclass
class AnalyzerConfig:
    """Where the analysis limits are loaded from."""

    config_path: str = _DEFAULT_CONFIG_PATH


@dataclass
class RuntimeConfig:
    """Complete runtime configuration."""

    mode: RuntimeMode
    server: ServerConfig
    security: SecurityConfig
    observability: ObservabilityConfig
    analyzer: AnalyzerConfig
    debug: bool = False

    def to_env_dict(self) -> dict[str, str]:
        """Convert configuration to environment variable dictionary."""
        return {
            "TEXTFORENSICS_RUNTIME_MODE": self.mode.value,
            "HOST": self.server.host,
            "PORT": str(self.server.port),
            "TEXTFORENSICS_WORKERS": str(self.server.workers),
            "TEXTFORENSICS_RELOAD": "1" if self.server.reload else "0",
            "TEXTFORENSICS_SERVER_LOG_LEVEL": self.server.log_level,
            "TEXTFORENSICS_TIMEOUT_KEEP_ALIVE": str(self.server.timeout_keep_alive),
            "TEXTFORENSICS_CORS_ORIGINS": ",".join(self.security.cors_origins),
            "TEXTFORENSICS_MAX_BODY_BYTES": str(self.security.max_body_bytes),
            "TEXTFORENSICS_LOG_LEVEL": self.observability.log_level,
            "TEXTFORENSICS_JSON_LOGGING": "true" if self.observability.json_logging else "false",
            "TEXTFORENSICS_ENABLE_METRICS": "true"
            if self.observability.metrics_enabled
            else "false",
            "TEXTFORENSICS_CONFIG_PATH": self.analyzer.config_path,
            "TEXTFORENSICS_DEBUG": "1" if self.debug else "0",
        }


def _get_env_str(key: str, default: str) -> str:
    """Get string from environment."""
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    """Get integer from environment."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get boolean from environment."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _get_env_list(key: str, default: list[str]) -> list[str]:
    """Get comma-separated list from environment."""
    val = os.environ.get(key)
    if val is None:
        return list(default)
    return [item.strip() for item in val.split(",") if item.strip()]


def _get_mode_defaults(mode: RuntimeMode) -> dict[str, Any]:
    """Get default configuration values for a specific mode.

    Args:
        mode: Runtime mode.

    Returns:
        Dictionary of default values for the mode.
    """
    base: dict[str, Any] = {
        "server": {
            "host": "0.0.0.0",
            "port": 8000,
            "workers": 1,
            "reload": False,
            "log_level": "info",
            "timeout_keep_alive": 30,
        },
        "security": {
            "cors_origins": ["*"],
            "max_body_bytes": _DEFAULT_MAX_BODY_BYTES,
        },
        "observability": {
            "log_level": "INFO",
            "json_logging": False,
            "metrics_enabled": True,
        },
        "analyzer": {
            "config_path": _DEFAULT_CONFIG_PATH,
        },
        "debug": False,
    }

    if mode == RuntimeMode.DEV:
        base["server"]["reload"] = True
        base["server"]["log_level"] = "debug"
        base["observability"]["log_level"] = "DEBUG"
        base["debug"] = True

    elif mode == RuntimeMode.LOCAL_PROD:
        base["server"]["workers"] = 2
        base["observability"]["json_logging"] = True

    elif mode == RuntimeMode.CLOUD_PROD:
        base["server"]["workers"] = 4
        base["server"]["timeout_keep_alive"] = 60
        base["observability"]["json_logging"] = True

    return base


def get_runtime_mode() -> RuntimeMode:
    """Get the current runtime mode from TEXTFORENSICS_RUNTIME_MODE.

    Defaults to DEV if not set or invalid.
    """
    mode_str = os.environ.get("TEXTFORENSICS_RUNTIME_MODE", "dev").lower()
    try:
        return RuntimeMode(mode_str)
    except ValueError:
        return RuntimeMode.DEV


def get_runtime_config(mode: RuntimeMode | None = None) -> RuntimeConfig:
    """Get runtime configuration for the specified mode.

    Args:
        mode: Runtime mode. If None, auto-detected from the environment.

    Returns:
        RuntimeConfig instance with merged defaults and environment overrides.
    """
    if mode is None:
        mode = get_runtime_mode()

    defaults = _get_mode_defaults(mode)

    server = ServerConfig(
        host=_get_env_str("HOST", defaults["server"]["host"]),
        port=_get_env_int("PORT", defaults["server"]["port"]),
        workers=_get_env_int("TEXTFORENSICS_WORKERS", defaults["server"]["workers"]),
        reload=_get_env_bool("TEXTFORENSICS_RELOAD", defaults["server"]["reload"]),
        log_level=_get_env_str(
            "TEXTFORENSICS_SERVER_LOG_LEVEL", defaults["server"]["log_level"]
        ),
        timeout_keep_alive=_get_env_int(
            "TEXTFORENSICS_TIMEOUT_KEEP_ALIVE", defaults["server"]["timeout_keep_alive"]
        ),
    )

    security = SecurityConfig(
        cors_origins=_get_env_list(
            "TEXTFORENSICS_CORS_ORIGINS", defaults["security"]["cors_origins"]
        ),
        max_body_bytes=_get_env_int(
            "TEXTFORENSICS_MAX_BODY_BYTES", defaults["security"]["max_body_bytes"]
        ),
    )

    observability = ObservabilityConfig(
        log_level=_get_env_str("TEXTFORENSICS_LOG_LEVEL", defaults["observability"]["log_level"]),
        json_logging=_get_env_bool(
            "TEXTFORENSICS_JSON_LOGGING", defaults["observability"]["json_logging"]
        ),
        metrics_enabled=_get_env_bool(
            "TEXTFORENSICS_ENABLE_METRICS", defaults["observability"]["metrics_enabled"]
        ),
    )

    analyzer = AnalyzerConfig(
        config_path=_get_env_str("TEXTFORENSICS_CONFIG_PATH", defaults["analyzer"]["config_path"]),
    )

    return RuntimeConfig(
        mode=mode,
        server=server,
        security=security,
        observability=observability,
        analyzer=analyzer,
        debug=_get_env_bool("TEXTFORENSICS_DEBUG", defaults["debug"]),
    )


def apply_runtime_config(config: RuntimeConfig) -> None:
    """Export configuration to the process environment."""
    for key, value in config.to_env_dict().items():
        os.environ[key] = value


def print_runtime_config(config: RuntimeConfig) -> None:
    """Print runtime configuration in a human-readable format."""
    print("=" * 60)
    print(f"textforensics Runtime Configuration ({config.mode.value})")
    print("=" * 60)
    print()
    print("Server:")
    print(f"  Host: {config.server.host}")
    print(f"  Port: {config.server.port}")
    print(f"  Workers: {config.server.workers}")
    print(f"  Reload: {config.server.reload}")
    print()
    print("Security:")
    print(f"  CORS Origins: {', '.join(config.security.cors_origins) or '<none>'}")
    print(f"  Max Body Bytes: {config.security.max_body_bytes}")
    print()
    print("Observability:")
    print(f"  Log Level: {config.observability.log_level}")
    print(f"  JSON Logging: {config.observability.json_logging}")
    print(f"  Metrics Enabled: {config.observability.metrics_enabled}")
    print()
    print("Analyzer:")
    print(f"  Config Path: {config.analyzer.config_path}")
    print("=" * 60)
