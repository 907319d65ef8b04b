"""
BiDi pairing validation.

A strict bracket-matching automaton over explicit bidi controls, run per
physical line. Embedding/override openers (LRE, RLE, LRO, RLO) close only
with PDF; isolate openers (LRI, RLI, FSI) close only with PDI; LRM/RLM do
not touch the stack. This checks structural balance, not the full Unicode
Bidirectional Algorithm, which is enough to expose Trojan-Source reordering.
"""

from __future__ import annotations

import re

from textforensics.contracts.findings import BidiPairingFinding, EvidenceTier
from textforensics.core.classifier import (
    CLOSERS,
    EMBEDDING_OPENERS,
    ISOLATE_OPENERS,
    PDF,
    PDI,
    bidi_name,
    to_hex,
)

_LINE_BREAK = re.compile(r"\r?\n")

_ISSUE_EVIDENCE: dict[str, tuple[EvidenceTier, int]] = {
    "unclosed_open": (EvidenceTier.PROOF, 97),
    "mismatched_close": (EvidenceTier.STRONG, 90),
    "unmatched_close": (EvidenceTier.STRONG, 85),
}


def _issue(issue: str, line: int, char_index: int, cp: int) -> BidiPairingFinding:
    tier, score = _ISSUE_EVIDENCE[issue]
    return BidiPairingFinding(
        line=line,
        char_index=char_index,
        issue=issue,  # type: ignore[arg-type]
        hex=to_hex(cp),
        name=bidi_name(cp),
        tier=tier,
        score=score,
    )


def validate(text: str) -> list[BidiPairingFinding]:
    """Validate bidi control pairing line by line.

    For each line, openers push their expected closer. A closer on an empty
    stack is ``unmatched_close``; a closer that differs from the popped
    expectation is ``mismatched_close`` (the popped entry stays consumed).
    Entries left at end of line are reported as ``unclosed_open`` in LIFO
    order.

    Args:
        text: Original (unmasked) text.

    Returns:
        Issues in line order. ``char_index`` refers to the whole text.
    """
    issues: list[BidiPairingFinding] = []
    line_start = 0
    line_no = 0

    for line_no, line in enumerate(_LINE_BREAK.split(text), start=1):
        # (opener codepoint, expected closer, absolute index)
        stack: list[tuple[int, int, int]] = []

        for offset, ch in enumerate(line):
            cp = ord(ch)
            index = line_start + offset
            if cp in EMBEDDING_OPENERS:
                stack.append((cp, PDF, index))
            elif cp in ISOLATE_OPENERS:
                stack.append((cp, PDI, index))
            elif cp in CLOSERS:
                if not stack:
                    issues.append(_issue("unmatched_close", line_no, index, cp))
                    continue
                _, expected, _ = stack.pop()
                if expected != cp:
                    issues.append(_issue("mismatched_close", line_no, index, cp))

        while stack:
            opener, _, index = stack.pop()
            issues.append(_issue("unclosed_open", line_no, index, opener))

        line_start += len(line)
        # Step over the terminator that ended this line, if any
        if text.startswith("\r\n", line_start):
            line_start += 2
        elif text.startswith("\n", line_start):
            line_start += 1

    return issues


__all__ = ["validate"]
