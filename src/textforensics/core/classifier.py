"""
Codepoint classification.

Every codepoint falls in exactly one ``Category``; the first matching rule
wins, in this order:

1. bidi control (LRE, RLE, PDF, LRO, RLO, LRI, RLI, FSI, PDI, LRM, RLM)
2. invisible or special space (ZWSP, ZWNJ, ZWJ, WJ, BOM, NBSP, ...)
3. variation selector (U+FE00..U+FE0F, U+E0100..U+E01EF)
4. tag character (U+E0000..U+E007F)
5. General Category Cc or Cf, when a Unicode database is available
6. other

Bidi controls are format characters as well; rule 1 must run before rule 5
so they keep their dedicated label for pairing analysis.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from textforensics.contracts.findings import EvidenceTier, UnicodeFinding
from textforensics.core.capabilities import UnicodeDatabase


class Category(str, Enum):
    """Classifier categories."""

    BIDI_CONTROL = "bidi_control"
    INVISIBLE_SPACE = "invisible_space"
    VARIATION_SELECTOR = "variation_selector"
    TAG_CHAR = "tag_char"
    CONTROL_OR_FORMAT = "control_or_format"
    OTHER = "other"


# Bidi controls by short name. Read-only for the life of the process.
BIDI_CONTROLS: MappingProxyType[int, str] = MappingProxyType(
    {
        0x202A: "LRE",
        0x202B: "RLE",
        0x202C: "PDF",
        0x202D: "LRO",
        0x202E: "RLO",
        0x2066: "LRI",
        0x2067: "RLI",
        0x2068: "FSI",
        0x2069: "PDI",
        0x200E: "LRM",
        0x200F: "RLM",
    }
)

PDF = 0x202C
PDI = 0x2069
# Opener -> the only closer that pairs with it
EMBEDDING_OPENERS = frozenset({0x202A, 0x202B, 0x202D, 0x202E})
ISOLATE_OPENERS = frozenset({0x2066, 0x2067, 0x2068})
CLOSERS = frozenset({PDF, PDI})

# Zero-width members carry no visible glyph at all
ZERO_WIDTH_CHARS = frozenset({0x200B, 0x200C, 0x200D, 0x2060, 0xFEFF, 0x034F})
# Space-like members render as (odd) whitespace
SPECIAL_SPACES = frozenset({0x00A0, 0x202F, 0x2007, 0x2009, 0x200A, 0x3000})
INVISIBLE_CHARS = ZERO_WIDTH_CHARS | SPECIAL_SPACES

_VS_RANGES = ((0xFE00, 0xFE0F), (0xE0100, 0xE01EF))
_TAG_RANGE = (0xE0000, 0xE007F)


def bidi_name(cp: int) -> str:
    """Short name of a bidi control (``RLO``), ``UNKNOWN`` otherwise."""
    return BIDI_CONTROLS.get(cp, "UNKNOWN")


def to_hex(cp: int) -> str:
    """Format a codepoint as ``U+XXXX`` (at least four hex digits)."""
    return f"U+{cp:04X}"


def classify(cp: int, unicode_db: UnicodeDatabase | None = unicodedata) -> Category:
    """Classify a codepoint.

    Args:
        cp: Unicode scalar value (0..0x10FFFF).
        unicode_db: Database used for the General Category fallback, or None.

    Returns:
        The first matching Category.
    """
    if cp in BIDI_CONTROLS:
        return Category.BIDI_CONTROL
    if cp in INVISIBLE_CHARS:
        return Category.INVISIBLE_SPACE
    for low, high in _VS_RANGES:
        if low <= cp <= high:
            return Category.VARIATION_SELECTOR
    if _TAG_RANGE[0] <= cp <= _TAG_RANGE[1]:
        return Category.TAG_CHAR
    if unicode_db is not None and unicode_db.category(chr(cp)) in ("Cc", "Cf"):
        return Category.CONTROL_OR_FORMAT
    return Category.OTHER


@dataclass(frozen=True)
class CodepointInfo:
    """Immutable description of one codepoint."""

    codepoint: int
    category: Category
    name: str
    general_category: str | None

    @property
    def hex(self) -> str:
        return to_hex(self.codepoint)


def describe(cp: int, unicode_db: UnicodeDatabase | None = unicodedata) -> CodepointInfo:
    """Classify ``cp`` and resolve its display name.

    Names fall back to ``UNKNOWN`` when the database is absent or has no
    name for the codepoint (controls, unassigned).
    """
    ch = chr(cp)
    name = unicode_db.name(ch, "") if unicode_db is not None else ""
    return CodepointInfo(
        codepoint=cp,
        category=classify(cp, unicode_db),
        name=name or "UNKNOWN",
        general_category=unicode_db.category(ch) if unicode_db is not None else None,
    )


def _evidence(cp: int, category: Category) -> tuple[EvidenceTier, int]:
    if category in (Category.BIDI_CONTROL, Category.TAG_CHAR):
        return EvidenceTier.PROOF, 95
    if category is Category.INVISIBLE_SPACE:
        if cp in ZERO_WIDTH_CHARS:
            return EvidenceTier.STRONG, 85
        return EvidenceTier.HINT, 30
    if category is Category.VARIATION_SELECTOR:
        return EvidenceTier.MEDIUM, 55
    return EvidenceTier.MEDIUM, 60


def scan_unicode(
    text: str,
    unicode_db: UnicodeDatabase | None = unicodedata,
    max_findings: int = 400,
) -> list[UnicodeFinding]:
    """Report every codepoint whose category is not ``other``.

    Indices refer to the original, unmasked text.

    Args:
        text: Text to scan.
        unicode_db: Database for names and the Cc/Cf fallback rule.
        max_findings: Hard cap on the number of findings.

    Returns:
        Findings in text order, at most ``max_findings``.
    """
    findings: list[UnicodeFinding] = []
    if max_findings <= 0:
        return findings

    line = 1
    column = 1
    for index, ch in enumerate(text):
        cp = ord(ch)
        category = classify(cp, unicode_db)
        # Line terminators are Cc but expected in any text
        if category is not Category.OTHER and ch not in "\n\r\t":
            info = describe(cp, unicode_db)
            tier, score = _evidence(cp, category)
            findings.append(
                UnicodeFinding(
                    char_index=index,
                    line=line,
                    column=column,
                    codepoint=cp,
                    hex=info.hex,
                    name=info.name,
                    category=category.value,
                    general_category=info.general_category,
                    tier=tier,
                    score=score,
                )
            )
            if len(findings) >= max_findings:
                break

        if ch == "\n":
            line += 1
            column = 1
        else:
            column += 1

    return findings


__all__ = [
    "BIDI_CONTROLS",
    "CLOSERS",
    "Category",
    "CodepointInfo",
    "EMBEDDING_OPENERS",
    "INVISIBLE_CHARS",
    "ISOLATE_OPENERS",
    "PDF",
    "PDI",
    "SPECIAL_SPACES",
    "ZERO_WIDTH_CHARS",
    "bidi_name",
    "classify",
    "describe",
    "scan_unicode",
    "to_hex",
]
