"""
Pipeline orchestrator.

Maps requested check names to detectors, runs them over the original text
and assembles the response envelope. Stateless: every call builds and
discards its own data, so one ``Capabilities`` value and one
``AnalysisLimits`` value can be shared across concurrent requests.

Request check names -> result keys:

    unicode_specials / unicode_bidi / unicode_homoglyph -> unicode_scan
    unicode_bidi                                        -> bidi_pairing
    unicode_homoglyph                                   -> spoof_tokens
    unicode_norm                                        -> normalization
    payload_base64                                      -> base64

CONTRACT STABILITY:
Check names and result keys are part of the wire contract.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from textforensics.contracts.findings import (
    BidiPairingReport,
    Finding,
    NormalizationResult,
    SpoofTokenReport,
)
from textforensics.core import bidi, confusables, normalization, payload
from textforensics.core.capabilities import Capabilities, detect_capabilities
from textforensics.core.classifier import scan_unicode
from textforensics.core.limits import DEFAULT_LIMITS, AnalysisLimits
from textforensics.observability.logger import EventType

logger = logging.getLogger(__name__)

# Requested check names
CHECK_UNICODE_SPECIALS = "unicode_specials"
CHECK_UNICODE_INVISIBLE = "unicode_invisible"  # older client name for unicode_specials
CHECK_UNICODE_BIDI = "unicode_bidi"
CHECK_UNICODE_HOMOGLYPH = "unicode_homoglyph"
CHECK_UNICODE_NORM = "unicode_norm"
CHECK_PAYLOAD_BASE64 = "payload_base64"

KNOWN_CHECKS = frozenset(
    {
        CHECK_UNICODE_SPECIALS,
        CHECK_UNICODE_INVISIBLE,
        CHECK_UNICODE_BIDI,
        CHECK_UNICODE_HOMOGLYPH,
        CHECK_UNICODE_NORM,
        CHECK_PAYLOAD_BASE64,
    }
)

# Result keys under "server"
RESULT_UNICODE_SCAN = "unicode_scan"
RESULT_BIDI_PAIRING = "bidi_pairing"
RESULT_SPOOF_TOKENS = "spoof_tokens"
RESULT_NORMALIZATION = "normalization"
RESULT_BASE64 = "base64"

_UNICODE_SCAN_TRIGGERS = frozenset(
    {CHECK_UNICODE_SPECIALS, CHECK_UNICODE_INVISIBLE, CHECK_UNICODE_BIDI, CHECK_UNICODE_HOMOGLYPH}
)

ServerResult = list[Finding] | BidiPairingReport | SpoofTokenReport | NormalizationResult


def _coerce_flag(value: Any, default: bool) -> bool:
    """Loose truthiness for JSON settings values (``"0"`` and ``""`` are false)."""
    if value is None:
        return default
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)


class AnalysisSettings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mask_urls: bool = Field(default=True, alias="maskUrls")

    @model_validator(mode="before")
    @classmethod
    def _lenient(cls, data: Any) -> dict[str, bool]:
        if isinstance(data, AnalysisSettings):
            return {"mask_urls": data.mask_urls}
        if not isinstance(data, dict):
            return {"mask_urls": True}
        raw = data.get("mask_urls", data.get("maskUrls"))
        return {"mask_urls": _coerce_flag(raw, True)}


class AnalysisRequest(BaseModel):
    """One analysis request.

    Construction never fails on malformed JSON bodies: a non-string ``text``
    becomes empty, a non-list ``selected`` selects nothing and non-object
    ``settings`` fall back to defaults.

    Contract Fields (stable):
        - text: Text to analyze
        - selected: Requested check names (unknown names are ignored)
        - settings.mask_urls: Blank URLs before payload scanning
    """

    model_config = ConfigDict(frozen=True)

    text: str = ""
    selected: frozenset[str] = frozenset()
    settings: AnalysisSettings = Field(default_factory=AnalysisSettings)

    @model_validator(mode="before")
    @classmethod
    def _lenient(cls, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            return {}
        text = data.get("text")
        selected = data.get("selected")
        if isinstance(selected, (list, tuple, set, frozenset)):
            names = frozenset(str(name) for name in selected if isinstance(name, (str, int, float)))
        else:
            names = frozenset()
        return {
            "text": text if isinstance(text, str) else "",
            "selected": names,
            "settings": data.get("settings") or {},
        }

    @property
    def mask_urls(self) -> bool:
        return self.settings.mask_urls

    def wants(self, *checks: str) -> bool:
        return not self.selected.isdisjoint(checks)


class AnalysisResponse(BaseModel):
    """Response envelope.

    Contract Fields (stable):
        - ok: Always true on the success path
        - meta: Capability availability flags
        - server: Result per requested check; absent checks are omitted
    """

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    meta: dict[str, bool | str | None]
    server: dict[str, ServerResult] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict in wire shape."""
        return self.model_dump(mode="json", exclude_none=False)


def count_findings(result: ServerResult) -> int:
    if isinstance(result, list):
        return len(result)
    if isinstance(result, BidiPairingReport):
        return len(result.issues)
    if isinstance(result, SpoofTokenReport):
        return result.suspicious_count
    return int(result.differs)


def analyze(
    request: AnalysisRequest,
    caps: Capabilities | None = None,
    limits: AnalysisLimits | None = None,
) -> AnalysisResponse:
    """Run the requested checks.

    Args:
        request: Text, check names and settings.
        caps: External capabilities; detected once per process when omitted.
        limits: Caps and thresholds; defaults when omitted.

    Returns:
        The assembled response. Missing capabilities degrade the affected
        check to an empty or ``available: false`` result.
    """
    caps = caps if caps is not None else detect_capabilities()
    limits = limits or DEFAULT_LIMITS
    text = request.text
    started = time.perf_counter()

    server: dict[str, ServerResult] = {}

    if request.wants(*_UNICODE_SCAN_TRIGGERS):
        server[RESULT_UNICODE_SCAN] = list(
            scan_unicode(text, caps.unicode_db, limits.max_unicode_findings)
        )

    if request.wants(CHECK_UNICODE_BIDI):
        server[RESULT_BIDI_PAIRING] = BidiPairingReport(issues=bidi.validate(text))

    if request.wants(CHECK_UNICODE_HOMOGLYPH):
        server[RESULT_SPOOF_TOKENS] = confusables.scan_tokens(
            text, caps.confusable_engine, caps.unicode_db, limits
        )

    if request.wants(CHECK_UNICODE_NORM):
        server[RESULT_NORMALIZATION] = normalization.check(
            text, caps.normalizer, limits.normalization_preview_chars
        )

    if request.wants(CHECK_PAYLOAD_BASE64):
        server[RESULT_BASE64] = list(payload.scan(text, request.mask_urls, limits))

    elapsed_ms = (time.perf_counter() - started) * 1000.0
    logger.info(
        "Analysis completed",
        extra={
            "event_type": EventType.ANALYSIS_COMPLETED.value,
            "metrics": {
                "text_chars": len(text),
                "checks": sorted(request.selected & KNOWN_CHECKS),
                "findings": {key: count_findings(result) for key, result in server.items()},
                "elapsed_ms": round(elapsed_ms, 3),
            },
        },
    )

    return AnalysisResponse(meta=caps.meta(), server=server)


__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "AnalysisSettings",
    "CHECK_PAYLOAD_BASE64",
    "CHECK_UNICODE_BIDI",
    "CHECK_UNICODE_HOMOGLYPH",
    "CHECK_UNICODE_INVISIBLE",
    "CHECK_UNICODE_NORM",
    "CHECK_UNICODE_SPECIALS",
    "KNOWN_CHECKS",
    "RESULT_BASE64",
    "RESULT_BIDI_PAIRING",
    "RESULT_NORMALIZATION",
    "RESULT_SPOOF_TOKENS",
    "RESULT_UNICODE_SCAN",
    "analyze",
    "count_findings",
]
