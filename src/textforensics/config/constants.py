"""Shared configuration constants."""

from __future__ import annotations

from textforensics.config.runtime import RuntimeMode

DEFAULT_CONFIG_PATH = "config/default_config.yaml"
DEFAULT_MAX_BODY_BYTES = 5 * 1024 * 1024

# Runtime modes that must fail-fast when config files are missing
STRICT_CONFIG_MODES: set[RuntimeMode] = {RuntimeMode.CLOUD_PROD}

__all__ = ["DEFAULT_CONFIG_PATH", "DEFAULT_MAX_BODY_BYTES", "STRICT_CONFIG_MODES"]
