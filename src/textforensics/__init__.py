"""
textforensics: forensic scanner for hidden signals in text.

Detects Unicode steganography channels, Trojan-Source style bidi reordering,
script-confusable identifiers, encoded or compressed payloads disguised as
plain text, and NFKC normalization drift. Every finding carries an evidence
tier (PROOF, STRONG, MEDIUM, HINT).

Quick Start:
-----------
>>> from textforensics import AnalysisRequest, analyze
>>> request = AnalysisRequest.model_validate(
...     {"text": "admin\\u202e", "selected": ["unicode_bidi"]}
... )
>>> analyze(request).server["bidi_pairing"].issues[0].issue
'unclosed_open'
"""

from __future__ import annotations

from .core import (
    DEFAULT_LIMITS,
    AnalysisLimits,
    AnalysisRequest,
    AnalysisResponse,
    Capabilities,
    analyze,
    detect_capabilities,
)

__version__ = "1.0.0"

__all__ = [
    "AnalysisLimits",
    "AnalysisRequest",
    "AnalysisResponse",
    "Capabilities",
    "DEFAULT_LIMITS",
    "__version__",
    "analyze",
    "detect_capabilities",
]
