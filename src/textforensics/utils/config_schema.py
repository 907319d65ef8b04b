"""Configuration schema for textforensics.

The YAML file holds analyzer settings only; process-level settings (host,
port, logging) come from the runtime configuration.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from textforensics.core.limits import AnalysisLimits
from textforensics.core.pipeline import KNOWN_CHECKS

DEFAULT_CHECKS: tuple[str, ...] = (
    "unicode_specials",
    "unicode_bidi",
    "unicode_homoglyph",
    "unicode_norm",
    "payload_base64",
)


class AnalyzerFileConfig(BaseModel):
    """Root of ``config/*.yaml``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    limits: AnalysisLimits = Field(default_factory=AnalysisLimits)
    default_checks: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CHECKS),
        description="Checks run by the CLI when none are given on the command line.",
    )
    mask_urls: bool = Field(default=True, description="Default for settings.mask_urls")

    @field_validator("default_checks")
    @classmethod
    def _known_checks(cls, value: list[str]) -> list[str]:
        unknown = sorted(set(value) - KNOWN_CHECKS)
        if unknown:
            raise ValueError(f"unknown check names: {unknown}. Allowed: {sorted(KNOWN_CHECKS)}")
        return value


def validate_config_dict(config_dict: dict[str, Any]) -> AnalyzerFileConfig:
    """Validate a configuration dictionary against the schema.

    Raises:
        ValueError: If configuration is invalid. Unknown keys are reported
            together with the allowed ones.
    """
    try:
        return AnalyzerFileConfig.model_validate(config_dict)
    except ValidationError as e:
        err_str = str(e)
        if "extra_forbidden" in err_str or "Extra inputs are not permitted" in err_str:
            allowed = set(AnalyzerFileConfig.model_fields.keys())
            unknown = set(config_dict.keys()) - allowed
            if unknown:
                raise ValueError(
                    f"unknown top-level keys: {sorted(unknown)}. Allowed keys: {sorted(allowed)}.\n"
                    f"Original error: {err_str}"
                ) from e
        raise ValueError(err_str) from e


def get_default_config() -> AnalyzerFileConfig:
    return AnalyzerFileConfig()


__all__ = ["AnalyzerFileConfig", "DEFAULT_CHECKS", "get_default_config", "validate_config_dict"]
