"""Configuration loading with validation for textforensics.

Loads ``config/*.yaml`` with PyYAML, applies ``TEXTFORENSICS_LIMIT_*``
environment overrides and validates the result against
``AnalyzerFileConfig``. Every failure surfaces as ``ConfigurationError``
carrying the offending path.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from textforensics.config.constants import DEFAULT_CONFIG_PATH, STRICT_CONFIG_MODES
from textforensics.config.runtime import RuntimeMode, get_runtime_mode
from textforensics.observability.logger import EventType
from textforensics.utils.config_schema import AnalyzerFileConfig, validate_config_dict
from textforensics.utils.errors import ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)

_LIMIT_ENV_PREFIX = "TEXTFORENSICS_LIMIT_"


class ConfigLoader:
    """Load and validate analyzer configuration files."""

    @staticmethod
    def load_config(path: str, validate: bool = True, env_override: bool = True) -> dict[str, Any]:
        """Load configuration from a YAML file.

        Args:
            path: Path to the configuration file (.yaml or .yml).
            validate: If True, validate against the schema.
            env_override: If True, apply ``TEXTFORENSICS_LIMIT_*`` overrides.

        Returns:
            Configuration dictionary.

        Raises:
            ConfigurationError: Missing file, unsupported format, bad YAML or
                failed validation.
        """
        if not isinstance(path, str) or not path:
            raise ConfigurationError("Configuration path must be a non-empty string", path=str(path))

        if not Path(path).is_file():
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                path=path,
                code=ErrorCode.E802_MISSING_REQUIRED_CONFIG,
            )

        if not path.endswith((".yaml", ".yml")):
            raise ConfigurationError(
                "Unsupported configuration file format. Only YAML (.yaml, .yml) is supported.",
                path=path,
                code=ErrorCode.E801_INVALID_CONFIG_FILE,
            )

        config = ConfigLoader._load_yaml(path)

        if env_override:
            config = ConfigLoader._apply_env_overrides(config)

        if validate:
            try:
                config = validate_config_dict(config).model_dump()
            except ValueError as e:
                raise ConfigurationError(
                    f"Configuration validation failed for '{path}':\n{e}",
                    path=path,
                    code=ErrorCode.E803_CONFIG_VALIDATION_FAILED,
                ) from e

        return config

    @staticmethod
    def _load_yaml(path: str) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML syntax in '{path}': {e}",
                path=path,
                code=ErrorCode.E801_INVALID_CONFIG_FILE,
            ) from e
        except OSError as e:
            raise ConfigurationError(f"Error reading YAML file '{path}': {e}", path=path) from e

        if not isinstance(config, dict):
            raise ConfigurationError(
                f"Configuration root in '{path}' must be a mapping, got {type(config).__name__}",
                path=path,
                code=ErrorCode.E801_INVALID_CONFIG_FILE,
            )
        return config

    @staticmethod
    def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
        """Apply limit overrides from the environment.

        ``TEXTFORENSICS_LIMIT_MAX_PAYLOAD_FINDINGS=50`` sets
        ``limits.max_payload_findings``.
        """
        limits = config.get("limits")
        if limits is None:
            limits = {}
        elif not isinstance(limits, dict):
            # Leave it to validation to report the bad type
            return config

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(_LIMIT_ENV_PREFIX):
                continue
            name = env_key[len(_LIMIT_ENV_PREFIX) :].lower()
            if name:
                limits[name] = ConfigLoader._parse_env_value(env_value)

        if limits:
            config = {**config, "limits": limits}
        return config

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """Parse environment variable value to the narrowest type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    @staticmethod
    def load_validated_config(path: str) -> AnalyzerFileConfig:
        """Load and return the configuration as a validated model."""
        config = AnalyzerFileConfig.model_validate(ConfigLoader.load_config(path, validate=True))
        logger.info(
            "Loaded configuration from %s",
            path,
            extra={
                "event_type": EventType.CONFIG_LOADED.value,
                "metrics": {"default_checks": list(config.default_checks), "mask_urls": config.mask_urls},
            },
        )
        return config


def load_config_for_runtime(
    config_path: str | None = None,
    runtime_mode: RuntimeMode | None = None,
) -> AnalyzerFileConfig:
    """Load analyzer configuration honoring the runtime mode policy.

    A missing file is fatal in strict modes (``cloud-prod``). Elsewhere it
    logs a warning and falls back to the bundled default file, or to
    built-in defaults when that file is missing too.

    Raises:
        ConfigurationError: Invalid file, or missing file in a strict mode.
    """
    mode = runtime_mode or get_runtime_mode()
    path = config_path or DEFAULT_CONFIG_PATH

    if Path(path).is_file():
        return ConfigLoader.load_validated_config(path)

    if mode in STRICT_CONFIG_MODES:
        raise ConfigurationError(
            f"Configuration file not found: {path} (mode={mode.value})",
            path=path,
            code=ErrorCode.E802_MISSING_REQUIRED_CONFIG,
        )

    if path != DEFAULT_CONFIG_PATH and Path(DEFAULT_CONFIG_PATH).is_file():
        logger.warning(
            "Configuration file not found at %s; falling back to %s for mode %s",
            path,
            DEFAULT_CONFIG_PATH,
            mode.value,
        )
        return ConfigLoader.load_validated_config(DEFAULT_CONFIG_PATH)

    logger.warning(
        "Configuration file not found at %s; using built-in defaults for mode %s",
        path,
        mode.value,
    )
    try:
        return validate_config_dict(ConfigLoader._apply_env_overrides({}))
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid limit override in environment:\n{e}",
            code=ErrorCode.E803_CONFIG_VALIDATION_FAILED,
        ) from e


__all__ = ["ConfigLoader", "load_config_for_runtime"]
