"""
Token selection and confusable scanning.

Token extraction is cheap and runs over the whole text; the confusable engine
is expensive and only sees tokens that pass a conservative gate: the token
must contain a letter from a non-Latin script or a hidden codepoint (bidi,
invisible or format). Latin letters with diacritics (``Müller``, ``Straße``)
never pass the gate on their own.
"""

from __future__ import annotations

import logging
import unicodedata
from collections.abc import Callable
from dataclasses import dataclass

from textforensics.contracts.findings import ConfusableFinding, EvidenceTier, SpoofTokenReport
from textforensics.core.capabilities import UnicodeDatabase
from textforensics.core.classifier import BIDI_CONTROLS, ZERO_WIDTH_CHARS, Category, classify
from textforensics.core.limits import DEFAULT_LIMITS, AnalysisLimits
from textforensics.core.spoofcheck import ConfusableChecker, SpoofCheck, SpoofVerdict

logger = logging.getLogger(__name__)

_TOKEN_PUNCT = frozenset("_.:-")
# Scripts that never make a letter non-Latin
_LATIN_COMPATIBLE_SCRIPTS = frozenset({"LATIN", "COMMON", "INHERITED", "UNKNOWN"})
_TOKEN_MARK_CATEGORIES = frozenset({"Mn", "Mc", "Me", "Cf"})
_HIDDEN_CATEGORIES = frozenset(
    {
        Category.BIDI_CONTROL,
        Category.INVISIBLE_SPACE,
        Category.TAG_CHAR,
        Category.CONTROL_OR_FORMAT,
    }
)


@dataclass(frozen=True)
class Token:
    """A distinct token and where it first occurs."""

    text: str
    char_index: int
    line: int


def is_token_char(ch: str, unicode_db: UnicodeDatabase | None = unicodedata) -> bool:
    """Identifier/domain-ish character class, widened to marks and format chars."""
    if ch.isalnum() or ch in _TOKEN_PUNCT:
        return True
    if unicode_db is None:
        cp = ord(ch)
        return cp in ZERO_WIDTH_CHARS or cp in BIDI_CONTROLS
    return unicode_db.category(ch) in _TOKEN_MARK_CATEGORIES


def extract_tokens(
    text: str,
    unicode_db: UnicodeDatabase | None = unicodedata,
    min_length: int = 3,
    max_tokens: int = 2000,
) -> list[Token]:
    """Collect distinct maximal token runs in first-occurrence order.

    Args:
        text: Original text.
        unicode_db: Database for the mark/format part of the token class.
        min_length: Shorter runs are skipped.
        max_tokens: Stop after this many distinct tokens.

    Returns:
        At most ``max_tokens`` tokens.
    """
    tokens: dict[str, Token] = {}
    if max_tokens <= 0:
        return []

    line = 1
    start = -1
    start_line = 1
    # Sentinel newline closes a run at end of text
    for index, ch in enumerate(text + "\n"):
        if is_token_char(ch, unicode_db):
            if start < 0:
                start, start_line = index, line
            continue
        if start >= 0:
            run = text[start:index]
            if len(run) >= min_length and run not in tokens:
                tokens[run] = Token(run, start, start_line)
                if len(tokens) >= max_tokens:
                    break
            start = -1
        if ch == "\n":
            line += 1

    return list(tokens.values())


def letter_script(ch: str, unicode_db: UnicodeDatabase | None = unicodedata) -> str | None:
    """Script of a letter guessed from its Unicode name (``CYRILLIC``).

    Names that mention ``LATIN`` anywhere (``FULLWIDTH LATIN SMALL LETTER A``)
    are Latin; otherwise the first word of the name is taken. Returns None
    when the script cannot be determined. ASCII letters are always ``LATIN``.
    """
    if ch.isascii():
        return "LATIN" if ch.isalpha() else None
    if unicode_db is None:
        return None
    name = unicode_db.name(ch, "")
    if not name:
        return None
    words = name.split(" ")
    return "LATIN" if "LATIN" in words else words[0]


def has_non_latin_letter(
    token: str,
    unicode_db: UnicodeDatabase | None = unicodedata,
    script_of: Callable[[str], str | None] | None = None,
) -> bool:
    """True when a letter of ``token`` belongs to a script other than Latin.

    Args:
        token: Candidate token.
        unicode_db: Database for the name-based guess.
        script_of: Script lookup backed by real script data (the confusable
            engine's); the name-based guess is used when it is absent or
            has no answer.
    """
    for ch in token:
        if not ch.isalpha():
            continue
        script = script_of(ch) if script_of is not None else None
        if script is None:
            script = letter_script(ch, unicode_db)
        if script is not None and script.upper() not in _LATIN_COMPATIBLE_SCRIPTS:
            return True
    return False


def has_hidden_codepoint(token: str, unicode_db: UnicodeDatabase | None = unicodedata) -> bool:
    return any(classify(ord(ch), unicode_db) in _HIDDEN_CATEGORIES for ch in token)


def is_spoof_worthy(
    token: str,
    unicode_db: UnicodeDatabase | None = unicodedata,
    min_length: int = 3,
    script_of: Callable[[str], str | None] | None = None,
) -> bool:
    """Selection gate run before the confusable engine is consulted."""
    if len(token) < min_length:
        return False
    if not any(ch.isalnum() or ch in _TOKEN_PUNCT for ch in token):
        return False
    return has_non_latin_letter(token, unicode_db, script_of) or has_hidden_codepoint(
        token, unicode_db
    )


def _evidence(flags: SpoofCheck) -> tuple[EvidenceTier, int]:
    if SpoofCheck.INVISIBLE in flags:
        return EvidenceTier.STRONG, 82
    if SpoofCheck.MIXED_SCRIPT_CONFUSABLE in flags:
        return EvidenceTier.MEDIUM, 65
    return EvidenceTier.HINT, 40


def _skeleton_or_none(engine: ConfusableChecker, token: str) -> str | None:
    """Skeleton of ``token``; a failing engine yields None instead of an error."""
    try:
        return engine.skeleton(token)
    except Exception:
        logger.debug("Skeleton computation failed; omitting it", exc_info=True)
        return None


def _to_finding(token: Token, verdict: SpoofVerdict, skeleton: str | None) -> ConfusableFinding:
    tier, score = _evidence(verdict.flags)
    return ConfusableFinding(
        token=token.text,
        char_index=token.char_index,
        line=token.line,
        flags=int(verdict.flags),
        checks=verdict.check_names,
        skeleton=skeleton or None,
        tier=tier,
        score=score,
    )


def scan_tokens(
    text: str,
    engine: ConfusableChecker | None,
    unicode_db: UnicodeDatabase | None = unicodedata,
    limits: AnalysisLimits = DEFAULT_LIMITS,
) -> SpoofTokenReport:
    """Run the confusable engine over spoof-worthy tokens.

    Args:
        text: Original text.
        engine: Confusable capability, or None when absent.
        unicode_db: Database used by token extraction and the gate.
        limits: Token caps.

    Returns:
        ``available=False`` without an engine; otherwise the scan summary,
        with at most ``limits.max_tokens_scanned`` tokens scanned and
        ``limits.max_suspicious_tokens`` reported.
    """
    if engine is None:
        return SpoofTokenReport(available=False)

    scanned = 0
    suspicious: list[ConfusableFinding] = []
    tokens = extract_tokens(text, unicode_db, limits.min_token_length, limits.max_tokens_considered)
    # Without a database no non-ASCII letter is gated in
    script_of = engine.script if unicode_db is not None else None

    for token in tokens:
        if scanned >= limits.max_tokens_scanned or len(suspicious) >= limits.max_suspicious_tokens:
            break
        if not is_spoof_worthy(token.text, unicode_db, limits.min_token_length, script_of):
            continue
        scanned += 1
        verdict = engine.check(token.text)
        if verdict.suspicious:
            suspicious.append(_to_finding(token, verdict, _skeleton_or_none(engine, token.text)))

    return SpoofTokenReport(
        available=True,
        scanned_count=scanned,
        suspicious_count=len(suspicious),
        suspicious=suspicious,
    )


__all__ = [
    "Token",
    "extract_tokens",
    "has_hidden_codepoint",
    "has_non_latin_letter",
    "is_spoof_worthy",
    "is_token_char",
    "letter_script",
    "scan_tokens",
]
