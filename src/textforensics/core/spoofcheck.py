"""
Confusable/spoof judgment for individual tokens.

``ConfusableEngine`` adapts the ``confusable_homoglyphs`` data (built from
the Unicode Consortium's confusables.txt and Scripts.txt) to three checks,
numbered like ICU's Spoofchecker flags:

- SINGLE_SCRIPT_CONFUSABLE: the token is written in one non-Latin script and
  every letter has a Latin look-alike (e.g. "app" spelled with Cyrillic U+0430 and U+0440).
- MIXED_SCRIPT_CONFUSABLE: the token mixes scripts and contains a character
  confusable with Latin (e.g. "google" with Cyrillic U+043E for the o).
- INVISIBLE: the token carries a zero-width, bidi or other format codepoint.

Anything implementing ``ConfusableChecker`` can stand in for the engine.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import IntFlag
from types import ModuleType
from typing import Any, Protocol

from textforensics.core.classifier import ZERO_WIDTH_CHARS, Category, classify

# Script aliases that never make a token "mixed"
_NEUTRAL_ALIASES = frozenset({"COMMON", "INHERITED", "UNKNOWN"})
_PROTOTYPE_ALIASES = frozenset({"LATIN", "COMMON"})
_INVISIBLE_CATEGORIES = frozenset(
    {Category.BIDI_CONTROL, Category.TAG_CHAR, Category.CONTROL_OR_FORMAT}
)


class SpoofCheck(IntFlag):
    SINGLE_SCRIPT_CONFUSABLE = 1
    MIXED_SCRIPT_CONFUSABLE = 2
    INVISIBLE = 32


DEFAULT_CHECKS = (
    SpoofCheck.SINGLE_SCRIPT_CONFUSABLE
    | SpoofCheck.MIXED_SCRIPT_CONFUSABLE
    | SpoofCheck.INVISIBLE
)


@dataclass(frozen=True)
class SpoofVerdict:
    """Outcome of one token check."""

    suspicious: bool
    flags: SpoofCheck = SpoofCheck(0)

    @property
    def check_names(self) -> list[str]:
        return [check.name.lower() for check in SpoofCheck if check in self.flags and check.name]


class ConfusableChecker(Protocol):
    """Capability interface for confusable judgment."""

    def check(self, token: str) -> SpoofVerdict: ...

    def skeleton(self, token: str) -> str | None:
        """Canonical look-alike form, or None when it cannot be computed."""
        ...

    def script(self, ch: str) -> str | None:
        """Script alias of one character (``LATIN``, ``CYRILLIC``), or None if unknown."""
        ...


def is_invisible_codepoint(ch: str) -> bool:
    """Zero-width, bidi, tag or other format/control codepoint."""
    cp = ord(ch)
    return cp in ZERO_WIDTH_CHARS or classify(cp) in _INVISIBLE_CATEGORIES


class ConfusableEngine:
    """Spoof checks backed by ``confusable_homoglyphs``.

    Args:
        confusables_module: ``confusable_homoglyphs.confusables``.
        categories_module: ``confusable_homoglyphs.categories``.
        checks: Enabled checks (all by default).
    """

    def __init__(
        self,
        confusables_module: ModuleType | Any,
        categories_module: ModuleType | Any,
        checks: SpoofCheck = DEFAULT_CHECKS,
    ) -> None:
        self._confusables = confusables_module
        self._categories = categories_module
        self.checks = checks

    def _scripts(self, token: str) -> set[str]:
        aliases = {str(a).upper() for a in self._categories.unique_aliases(token)}
        return aliases - _NEUTRAL_ALIASES

    def _alias(self, ch: str) -> str:
        return str(self._categories.alias(ch)).upper()

    def script(self, ch: str) -> str | None:
        return self._alias(ch)

    def _all_letters_confusable(self, token: str) -> bool:
        letters = {ch for ch in token if ch.isalpha()}
        if not letters:
            return False
        found = self._confusables.is_confusable(token, greedy=True, preferred_aliases=["latin"])
        confusable_chars = {entry["character"] for entry in found or ()}
        return letters <= confusable_chars

    def check(self, token: str) -> SpoofVerdict:
        flags = SpoofCheck(0)

        if SpoofCheck.INVISIBLE in self.checks and any(is_invisible_codepoint(ch) for ch in token):
            flags |= SpoofCheck.INVISIBLE

        scripts = self._scripts(token)
        if len(scripts) > 1:
            if SpoofCheck.MIXED_SCRIPT_CONFUSABLE in self.checks and self._confusables.is_confusable(
                token, preferred_aliases=["latin"]
            ):
                flags |= SpoofCheck.MIXED_SCRIPT_CONFUSABLE
        elif scripts and scripts != {"LATIN"}:
            if SpoofCheck.SINGLE_SCRIPT_CONFUSABLE in self.checks and self._all_letters_confusable(
                token
            ):
                flags |= SpoofCheck.SINGLE_SCRIPT_CONFUSABLE

        return SpoofVerdict(suspicious=bool(flags), flags=flags)

    def _prototype(self, ch: str) -> str | None:
        found = self._confusables.is_confusable(ch, preferred_aliases=["latin", "common"])
        for entry in found or ():
            for glyph in entry.get("homoglyphs", ()):
                candidate = glyph.get("c", "")
                if candidate and all(self._alias(g) in _PROTOTYPE_ALIASES for g in candidate):
                    return candidate
        return None

    def skeleton(self, token: str) -> str | None:
        """NFD, map non-Latin characters to Latin prototypes, drop invisibles, lowercase."""
        out: list[str] = []
        for ch in unicodedata.normalize("NFD", token):
            if is_invisible_codepoint(ch):
                continue
            if self._alias(ch) in _PROTOTYPE_ALIASES or not ch.isalpha():
                out.append(ch)
                continue
            out.append(self._prototype(ch) or ch)
        skeleton = "".join(out).lower()
        return skeleton or None


__all__ = [
    "ConfusableChecker",
    "ConfusableEngine",
    "DEFAULT_CHECKS",
    "SpoofCheck",
    "SpoofVerdict",
    "is_invisible_codepoint",
]
