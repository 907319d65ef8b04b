"""
Finding models for the detection pipeline.

Every check reports its evidence as one of the Finding variants below. The
``kind`` field is the discriminator; positional fields say where the evidence
sits in the analyzed text and ``tier``/``score`` say how directly it can be
verified without further interpretation.

CONTRACT STABILITY:
Field names are serialized verbatim into the ``server`` block of the
analysis response. Do not rename them without a major version bump.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EvidenceTier(str, Enum):
    """How directly a finding is verifiable."""

    PROOF = "PROOF"
    STRONG = "STRONG"
    MEDIUM = "MEDIUM"
    HINT = "HINT"


# Inclusive score bands per tier. Bands do not overlap and are ordered,
# so sorting by score never contradicts sorting by tier.
TIER_SCORE_BANDS: dict[EvidenceTier, tuple[int, int]] = {
    EvidenceTier.PROOF: (95, 100),
    EvidenceTier.STRONG: (80, 94),
    EvidenceTier.MEDIUM: (50, 79),
    EvidenceTier.HINT: (0, 49),
}


def _check_band(tier: EvidenceTier | str | None, score: int | None) -> None:
    if tier is None or score is None:
        return
    low, high = TIER_SCORE_BANDS[EvidenceTier(tier)]
    if not low <= score <= high:
        raise ValueError(f"Score {score} is outside the {EvidenceTier(tier).value} band {low}-{high}")


class _FindingBase(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    tier: EvidenceTier
    score: int = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _score_within_tier(self) -> _FindingBase:
        _check_band(self.tier, self.score)
        return self


class UnicodeFinding(_FindingBase):
    """A single suspicious codepoint reported by the classifier scan."""

    kind: Literal["unicode"] = "unicode"
    char_index: int = Field(ge=0, description="Codepoint index in the original text")
    line: int = Field(ge=1)
    column: int = Field(ge=1)
    codepoint: int = Field(ge=0, le=0x10FFFF)
    hex: str
    name: str
    category: str = Field(description="Classifier category (bidi_control, tag_char, ...)")
    general_category: str | None = Field(
        default=None, description="Unicode General Category when the database is available"
    )


class BidiPairingFinding(_FindingBase):
    """A structural imbalance of bidi embedding/override/isolate controls."""

    kind: Literal["bidi_pairing"] = "bidi_pairing"
    line: int = Field(ge=1)
    char_index: int = Field(ge=0)
    issue: Literal["unmatched_close", "mismatched_close", "unclosed_open"]
    hex: str
    name: str


class ConfusableFinding(_FindingBase):
    """A token judged suspicious by the confusable engine."""

    kind: Literal["confusable"] = "confusable"
    token: str
    char_index: int = Field(ge=0, description="Index of the token's first occurrence")
    line: int = Field(ge=1)
    reason: str = "confusable_suspicious"
    flags: int = Field(ge=0, description="Engine check bitmask")
    checks: list[str] = Field(default_factory=list)
    skeleton: str | None = None


class PayloadFinding(_FindingBase):
    """A decoded payload that passed verification."""

    kind: Literal["payload"] = "payload"
    index: int = Field(ge=0, description="UTF-8 byte offset of the candidate")
    char_index: int = Field(ge=0)
    line: int = Field(ge=1)
    length: int = Field(ge=1)
    candidate: str
    alphabet: Literal["base64", "base64url"]
    decode_kind: str = Field(description="Applied decode chain, e.g. 'base64->gzip'")
    magic: bool
    magic_format: str | None = None
    decoded_bytes: int = Field(ge=0)
    utf8_ratio: float | None = None
    preview: str | None = None


class NormalizationResult(BaseModel):
    """NFKC drift report. Not a list: the whole text either drifts or not."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    kind: Literal["normalization"] = "normalization"
    available: bool
    differs: bool
    nfkc_preview: str | None = None
    tier: EvidenceTier | None = None
    score: int | None = None

    @model_validator(mode="after")
    def _score_within_tier(self) -> NormalizationResult:
        _check_band(self.tier, self.score)
        return self


Finding = Annotated[
    UnicodeFinding | BidiPairingFinding | ConfusableFinding | PayloadFinding,
    Field(discriminator="kind"),
]


class BidiPairingReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    issues: list[BidiPairingFinding] = Field(default_factory=list)


class SpoofTokenReport(BaseModel):
    """Confusable scan summary."""

    model_config = ConfigDict(frozen=True)

    available: bool
    scanned_count: int = 0
    suspicious_count: int = 0
    suspicious: list[ConfusableFinding] = Field(default_factory=list)


__all__ = [
    "BidiPairingFinding",
    "BidiPairingReport",
    "ConfusableFinding",
    "EvidenceTier",
    "Finding",
    "NormalizationResult",
    "PayloadFinding",
    "SpoofTokenReport",
    "TIER_SCORE_BANDS",
    "UnicodeFinding",
]
