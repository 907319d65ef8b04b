"""NFKC drift detection."""

from __future__ import annotations

from textforensics.contracts.findings import EvidenceTier, NormalizationResult
from textforensics.core.capabilities import Normalizer


def check(text: str, normalizer: Normalizer | None, preview_chars: int = 240) -> NormalizationResult:
    """Compare ``text`` with its NFKC form.

    Args:
        text: Original text.
        normalizer: ``normalizer(form, text)``; None reports the check unavailable.
        preview_chars: Maximum length of the normalized preview.

    Returns:
        ``differs`` plus a bounded preview of the normalized text when it drifts.
    """
    if normalizer is None:
        return NormalizationResult(available=False, differs=False)

    normalized = normalizer("NFKC", text)
    if normalized == text:
        return NormalizationResult(available=True, differs=False)

    return NormalizationResult(
        available=True,
        differs=True,
        nfkc_preview=normalized[:preview_chars],
        tier=EvidenceTier.HINT,
        score=20,
    )


__all__ = ["check"]
