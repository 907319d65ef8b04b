"""textforensics configuration layer.

- runtime: deployment modes and process settings from the environment
- constants: shared paths and limits
"""

from .constants import DEFAULT_CONFIG_PATH, DEFAULT_MAX_BODY_BYTES, STRICT_CONFIG_MODES
from .runtime import (
    AnalyzerConfig,
    ObservabilityConfig,
    RuntimeConfig,
    RuntimeMode,
    SecurityConfig,
    ServerConfig,
    get_runtime_config,
    get_runtime_mode,
)

__all__ = [
    "AnalyzerConfig",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_MAX_BODY_BYTES",
    "ObservabilityConfig",
    "RuntimeConfig",
    "RuntimeMode",
    "STRICT_CONFIG_MODES",
    "SecurityConfig",
    "ServerConfig",
    "get_runtime_config",
    "get_runtime_mode",
]
