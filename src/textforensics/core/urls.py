"""
URL locating and masking.

URLs are legitimate carriers of long base64-looking runs (tokens, signed
query strings), so the payload scanner can blank them first. Both functions
work on UTF-8 byte offsets: masking is a same-length byte replacement and the
payload scanner reports byte offsets into the masked buffer, which therefore
line up with the original encoded text.
"""

from __future__ import annotations

import re
from typing import NamedTuple

# Scheme-anchored; stops at whitespace, angle/round brackets and quotes.
# Non-ASCII bytes are part of the URL, so a match never ends inside a
# multi-byte sequence.
_URL_RE = re.compile(rb"""https?://[^\s<>()"']+""")


def encode_text(text: str) -> bytes:
    """UTF-8 encode ``text``; lone surrogates (from JSON escapes) pass through."""
    return text.encode("utf-8", "surrogatepass")


def decode_bytes(data: bytes) -> str:
    """Inverse of :func:`encode_text`."""
    return data.decode("utf-8", "surrogatepass")


class UrlSpan(NamedTuple):
    url: str
    offset: int  # UTF-8 byte offset in the original text
    length: int  # UTF-8 byte length


def locate(text: str | bytes) -> list[UrlSpan]:
    """Find ``http(s)://`` URLs.

    Args:
        text: Text or its UTF-8 encoding.

    Returns:
        URL spans in ascending offset order, with byte offsets and lengths.
    """
    data = encode_text(text) if isinstance(text, str) else text
    return [
        UrlSpan(m.group(0).decode("utf-8", "replace"), m.start(), m.end() - m.start())
        for m in _URL_RE.finditer(data)
    ]


def mask(data: bytes, urls: list[UrlSpan]) -> bytes:
    """Blank each URL span with ASCII spaces of the same byte length.

    Spans are replaced from the highest offset down so that offsets computed
    once against the original buffer stay valid. Applying the same span list
    again to an already masked buffer leaves the blanked regions unchanged.

    Args:
        data: UTF-8 encoded text.
        urls: Spans returned by :func:`locate` for the same buffer.

    Returns:
        Masked buffer, same length as ``data``.
    """
    if not urls:
        return data
    buf = bytearray(data)
    for span in sorted(urls, key=lambda s: s.offset, reverse=True):
        end = min(span.offset + span.length, len(buf))
        buf[span.offset : end] = b" " * (end - span.offset)
    return bytes(buf)


def mask_text(text: str) -> bytes:
    """Locate and mask URLs in one step, returning the masked UTF-8 buffer."""
    data = encode_text(text)
    return mask(data, locate(data))


__all__ = ["UrlSpan", "decode_bytes", "encode_text", "locate", "mask", "mask_text"]
