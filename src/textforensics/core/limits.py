"""Hard resource bounds for one analysis.

All bounds are counts, not time: a request either completes within them or
the caller enforces its own timeout.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AnalysisLimits(BaseModel):
    """Caps and thresholds applied by the detection core."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_unicode_findings: int = Field(default=400, ge=0)
    max_payload_findings: int = Field(default=120, ge=0)
    max_tokens_considered: int = Field(default=2000, ge=0)
    max_tokens_scanned: int = Field(default=500, ge=0)
    max_suspicious_tokens: int = Field(default=200, ge=0)
    min_token_length: int = Field(default=3, ge=1)
    min_base64_length: int = Field(default=32, ge=4)
    min_base64url_length: int = Field(default=43, ge=4)
    min_printable_ratio: float = Field(default=0.90, ge=0.0, le=1.0)
    payload_preview_chars: int = Field(default=220, ge=0)
    normalization_preview_chars: int = Field(default=240, ge=0)
    max_decompressed_bytes: int = Field(default=1024 * 1024, ge=1)


DEFAULT_LIMITS = AnalysisLimits()

__all__ = ["AnalysisLimits", "DEFAULT_LIMITS"]
