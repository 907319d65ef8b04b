"""
Strict payload decoding.

Finds base64/base64url runs disguised as plain text and reports only those
whose decoded bytes can be verified. The chain per candidate is:

    extraction -> alphabet normalization -> strict decode -> verification

Verification accepts a candidate when the decoded bytes
  a. start with a known magic signature (gzip, zlib, zip, PDF), or
  b. are valid UTF-8 whose printable share exceeds the configured ratio, or
  c. inflate (gzip, raw deflate, raw deflate after 2 bytes) into output
     that satisfies a or b.

Everything else is dropped silently. A random alphanumeric run of the right
length is never reported just for its shape.

Offsets are UTF-8 byte offsets; masking and extraction both run on the
encoded buffer, and the alphabets are ASCII, so no candidate can start or
end inside a multi-byte sequence.
"""

from __future__ import annotations

import base64
import binascii
import logging
import zlib
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from textforensics.contracts.findings import EvidenceTier, PayloadFinding
from textforensics.core.limits import DEFAULT_LIMITS, AnalysisLimits
from textforensics.core.urls import decode_bytes, encode_text, locate, mask

logger = logging.getLogger(__name__)

_ALNUM = b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
_PAD = ord("=")
_URLSAFE_TABLE = bytes.maketrans(b"-_", b"+/")


class Alphabet(str, Enum):
    """Candidate alphabet variant."""

    BASE64 = "base64"
    BASE64URL = "base64url"

    @property
    def chars(self) -> frozenset[int]:
        return _ALPHABET_CHARS[self]


_ALPHABET_CHARS: dict[Alphabet, frozenset[int]] = {
    Alphabet.BASE64: frozenset(_ALNUM + b"+/"),
    Alphabet.BASE64URL: frozenset(_ALNUM + b"-_"),
}


class DecompressionStage(str, Enum):
    GZIP = "gzip"
    DEFLATE = "deflate"
    DEFLATE_SKIP2 = "deflate_skip2"


# stage -> (zlib wbits, leading bytes to skip)
_STAGE_PARAMS: dict[DecompressionStage, tuple[int, int]] = {
    DecompressionStage.GZIP: (zlib.MAX_WBITS | 16, 0),
    DecompressionStage.DEFLATE: (-zlib.MAX_WBITS, 0),
    DecompressionStage.DEFLATE_SKIP2: (-zlib.MAX_WBITS, 2),
}

_MAX_TRAILING_BYTES = 4

_MAGIC_INFLATE_STAGE: dict[str, DecompressionStage] = {
    "gzip": DecompressionStage.GZIP,
    # zlib = 2-byte header + raw deflate stream (+ adler32 trailer)
    "zlib": DecompressionStage.DEFLATE_SKIP2,
}


@dataclass(frozen=True)
class PayloadCandidate:
    """A contiguous run matching one alphabet's shape."""

    text: str
    offset: int  # byte offset in the (masked) buffer
    length: int
    alphabet: Alphabet


@dataclass(frozen=True)
class PrintableCheck:
    ok: bool
    ratio: float | None = None
    text: str | None = None


@dataclass(frozen=True)
class DecodeResult:
    """Bytes produced by base64 decoding plus at most one decompression stage."""

    raw: bytes
    alphabet: Alphabet
    stage: DecompressionStage | None = None
    output: bytes | None = None

    @property
    def final(self) -> bytes:
        return self.output if self.output is not None else self.raw

    @property
    def kind(self) -> str:
        if self.stage is None:
            return self.alphabet.value
        return f"{self.alphabet.value}->{self.stage.value}"


@dataclass(frozen=True)
class Verification:
    result: DecodeResult
    tier: EvidenceTier
    score: int
    magic_format: str | None
    printable: PrintableCheck


# ---------------------------------------------------------------------------
# Stage 1: candidate extraction
# ---------------------------------------------------------------------------


def extract_candidates(
    data: bytes, alphabet: Alphabet, min_length: int
) -> Iterator[PayloadCandidate]:
    """Yield maximal alphabet runs of at least ``min_length`` characters.

    A run may be followed by up to two ``=``. It is discarded when another
    alphabet character or a third ``=`` follows; the whole blob is then
    skipped so it is never split into shorter candidates.
    """
    chars = alphabet.chars
    n = len(data)
    i = 0
    while i < n:
        if data[i] not in chars:
            i += 1
            continue

        start = i
        while i < n and data[i] in chars:
            i += 1
        run_length = i - start

        pad = 0
        while i < n and data[i] == _PAD and pad < 2:
            i += 1
            pad += 1
        end = i

        if i < n and (data[i] in chars or data[i] == _PAD):
            while i < n and (data[i] in chars or data[i] == _PAD):
                i += 1
            continue

        if run_length >= min_length:
            yield PayloadCandidate(
                text=data[start:end].decode("ascii"),
                offset=start,
                length=end - start,
                alphabet=alphabet,
            )


# ---------------------------------------------------------------------------
# Stages 2 and 3: normalization and strict decode
# ---------------------------------------------------------------------------


def normalize_candidate(text: str, alphabet: Alphabet) -> str | None:
    """Map to the standard alphabet and fix up padding.

    Returns None when the length cannot be a base64 encoding (``len % 4 == 1``).
    """
    if alphabet is Alphabet.BASE64URL:
        text = text.encode("ascii").translate(_URLSAFE_TABLE).decode("ascii")
    mod = len(text) % 4
    if mod == 1:
        return None
    if mod == 2:
        return text + "=="
    if mod == 3:
        return text + "="
    return text


def strict_decode(text: str) -> bytes | None:
    """Decode standard base64, rejecting anything outside the alphabet."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return None


# ---------------------------------------------------------------------------
# Stage 4: verification
# ---------------------------------------------------------------------------


def detect_magic(data: bytes) -> str | None:
    """Return the format name for a known magic prefix."""
    if len(data) < 2:
        return None
    if data[0] == 0x1F and data[1] == 0x8B:
        return "gzip"
    if data[0] == 0x78 and data[1] in (0x01, 0x5E, 0x9C, 0xDA):
        return "zlib"
    if data.startswith(b"PK\x03\x04"):
        return "zip"
    if data.startswith(b"%PDF"):
        return "pdf"
    return None


def _is_printable(cp: int) -> bool:
    return cp in (0x0A, 0x0D, 0x09) or 32 <= cp <= 126 or cp >= 160


def check_printable(data: bytes, min_ratio: float = 0.90) -> PrintableCheck:
    """Strict UTF-8 decode and printable share.

    Printable: newline, CR, tab, ASCII 32-126, or any codepoint >= 160.
    ``ok`` requires the ratio to be strictly above ``min_ratio``.
    """
    try:
        decoded = data.decode("utf-8")
    except UnicodeDecodeError:
        return PrintableCheck(ok=False)
    if not decoded:
        return PrintableCheck(ok=False)
    printable = sum(1 for ch in decoded if _is_printable(ord(ch)))
    ratio = printable / len(decoded)
    return PrintableCheck(ok=ratio > min_ratio, ratio=ratio, text=decoded)


def inflate(data: bytes, stage: DecompressionStage, limit: int) -> bytes | None:
    """Run one decompression stage with an output cap.

    Succeeds when the cap is hit, or when the stream ends having consumed
    the input up to at most a 4-byte trailer (the zlib adler32). Random
    bytes occasionally form a tiny valid raw deflate block; requiring the
    input to be consumed rejects those.
    """
    wbits, skip = _STAGE_PARAMS[stage]
    payload = data[skip:]
    if not payload:
        return None
    decompressor = zlib.decompressobj(wbits)
    try:
        out = decompressor.decompress(payload, limit)
    except zlib.error:
        return None
    if not out:
        return None
    if len(out) >= limit:
        return out
    if decompressor.eof and len(decompressor.unused_data) <= _MAX_TRAILING_BYTES:
        return out
    return None


def verify(raw: bytes, alphabet: Alphabet, limits: AnalysisLimits = DEFAULT_LIMITS) -> Verification | None:
    """Decide whether decoded bytes are a reportable payload.

    Args:
        raw: Output of :func:`strict_decode`.
        alphabet: Alphabet the candidate was extracted with.
        limits: Thresholds (printable ratio, decompression cap).

    Returns:
        The verification with tier and score, or None to drop the candidate.
    """
    magic = detect_magic(raw)
    printable = check_printable(raw, limits.min_printable_ratio)

    if magic is not None:
        stage = _MAGIC_INFLATE_STAGE.get(magic)
        if stage is not None:
            out = inflate(raw, stage, limits.max_decompressed_bytes)
            if out is not None:
                result = DecodeResult(raw=raw, alphabet=alphabet, stage=stage, output=out)
                return Verification(
                    result=result,
                    tier=EvidenceTier.PROOF,
                    score=98,
                    magic_format=magic,
                    printable=check_printable(out, limits.min_printable_ratio),
                )
        return Verification(
            result=DecodeResult(raw=raw, alphabet=alphabet),
            tier=EvidenceTier.STRONG,
            score=90,
            magic_format=magic,
            printable=printable,
        )

    if printable.ok:
        return Verification(
            result=DecodeResult(raw=raw, alphabet=alphabet),
            tier=EvidenceTier.STRONG,
            score=85,
            magic_format=None,
            printable=printable,
        )

    for stage in DecompressionStage:
        out = inflate(raw, stage, limits.max_decompressed_bytes)
        if out is None:
            continue
        inner_magic = detect_magic(out)
        inner_printable = check_printable(out, limits.min_printable_ratio)
        if inner_magic is not None or inner_printable.ok:
            return Verification(
                result=DecodeResult(raw=raw, alphabet=alphabet, stage=stage, output=out),
                tier=EvidenceTier.STRONG,
                score=94,
                magic_format=inner_magic,
                printable=inner_printable,
            )
    return None


def decode_candidate(
    candidate: PayloadCandidate, limits: AnalysisLimits = DEFAULT_LIMITS
) -> Verification | None:
    """Normalize, strictly decode and verify one candidate."""
    normalized = normalize_candidate(candidate.text, candidate.alphabet)
    if normalized is None:
        return None
    raw = strict_decode(normalized)
    if not raw:
        return None
    return verify(raw, candidate.alphabet, limits)


# ---------------------------------------------------------------------------
# Scan
# ---------------------------------------------------------------------------


def _to_finding(
    candidate: PayloadCandidate,
    verification: Verification,
    original: bytes,
    limits: AnalysisLimits,
) -> PayloadFinding:
    prefix = original[: candidate.offset]
    printable = verification.printable
    preview = None
    if printable.ok and printable.text is not None:
        preview = printable.text[: limits.payload_preview_chars]
    return PayloadFinding(
        index=candidate.offset,
        char_index=len(decode_bytes(prefix)),
        line=prefix.count(b"\n") + 1,
        length=candidate.length,
        candidate=candidate.text,
        alphabet=candidate.alphabet.value,
        decode_kind=verification.result.kind,
        magic=verification.magic_format is not None,
        magic_format=verification.magic_format,
        decoded_bytes=len(verification.result.final),
        utf8_ratio=printable.ratio,
        preview=preview,
        tier=verification.tier,
        score=verification.score,
    )


def scan(
    text: str,
    mask_urls: bool = True,
    limits: AnalysisLimits = DEFAULT_LIMITS,
) -> list[PayloadFinding]:
    """Find verified base64/base64url payloads.

    Candidates are evaluated in extraction order (standard alphabet first,
    then URL-safe) until ``limits.max_payload_findings`` are reported. A
    URL-safe candidate covering exactly the same bytes as an already
    evaluated standard candidate is skipped.

    Args:
        text: Original text.
        mask_urls: Blank ``http(s)://`` URLs before extraction.
        limits: Caps and thresholds.

    Returns:
        Payload findings, at most ``limits.max_payload_findings``.
    """
    findings: list[PayloadFinding] = []
    if limits.max_payload_findings <= 0 or not text:
        return findings

    original = encode_text(text)
    data = mask(original, locate(original)) if mask_urls else original

    passes = (
        (Alphabet.BASE64, limits.min_base64_length),
        (Alphabet.BASE64URL, limits.min_base64url_length),
    )
    evaluated: set[tuple[int, int]] = set()
    for alphabet, min_length in passes:
        for candidate in extract_candidates(data, alphabet, min_length):
            span = (candidate.offset, candidate.length)
            if span in evaluated:
                continue
            evaluated.add(span)

            verification = decode_candidate(candidate, limits)
            if verification is None:
                continue
            findings.append(_to_finding(candidate, verification, original, limits))
            if len(findings) >= limits.max_payload_findings:
                logger.debug("Payload finding cap reached (%d)", limits.max_payload_findings)
                return findings

    return findings


__all__ = [
    "Alphabet",
    "DecodeResult",
    "DecompressionStage",
    "PayloadCandidate",
    "PrintableCheck",
    "Verification",
    "check_printable",
    "decode_candidate",
    "detect_magic",
    "extract_candidates",
    "inflate",
    "normalize_candidate",
    "scan",
    "strict_decode",
    "verify",
]
