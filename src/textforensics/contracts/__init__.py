"""
textforensics contracts.

Stable models shared by the detection core and its outer surfaces:
- findings: evidence tiers and the Finding variants each check reports
- errors: ApiError used by the HTTP glue

CONTRACT STABILITY:
All models in this module are part of the stable API contract.
Do not modify field names or types without a major version bump.
"""

from textforensics.contracts.errors import ApiError
from textforensics.contracts.findings import (
    BidiPairingFinding,
    BidiPairingReport,
    ConfusableFinding,
    EvidenceTier,
    Finding,
    NormalizationResult,
    PayloadFinding,
    SpoofTokenReport,
    UnicodeFinding,
)

__all__ = [
    "ApiError",
    "BidiPairingFinding",
    "BidiPairingReport",
    "ConfusableFinding",
    "EvidenceTier",
    "Finding",
    "NormalizationResult",
    "PayloadFinding",
    "SpoofTokenReport",
    "UnicodeFinding",
]
