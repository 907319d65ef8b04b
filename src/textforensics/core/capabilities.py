"""
External capabilities consumed by the detection core.

The core depends on three optional collaborators: a Unicode character
database (names and general categories), a normalizer (NFKC) and a
confusable/spoof engine. ``Capabilities`` bundles whichever of them are
present so the pipeline never looks for libraries on its own; a check whose
capability is ``None`` returns an empty or ``available: false`` result.

Usage:
    caps = detect_capabilities()
    response = analyze(request, caps)

    # Simulate an environment without a confusable engine
    caps = Capabilities(unicode_db=unicodedata, normalizer=unicodedata.normalize)
"""

from __future__ import annotations

import logging
import unicodedata
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Protocol

from textforensics.observability.logger import EventType

if TYPE_CHECKING:
    from textforensics.core.spoofcheck import ConfusableChecker

logger = logging.getLogger(__name__)


class UnicodeDatabase(Protocol):
    """The subset of ``unicodedata`` the core relies on."""

    unidata_version: str

    def name(self, chr: str, default: str = ..., /) -> str: ...

    def category(self, chr: str, /) -> str: ...


Normalizer = Callable[[str, str], str]


@dataclass(frozen=True)
class Capabilities:
    """Explicit set of external capabilities available to one analysis.

    Attributes:
        unicode_db: Codepoint name/category lookups, or None when absent.
        normalizer: ``normalizer(form, text)`` returning the normalized text.
        confusable_engine: Spoof/confusable judge for selected tokens.
    """

    unicode_db: UnicodeDatabase | None = None
    normalizer: Normalizer | None = None
    confusable_engine: ConfusableChecker | None = None

    @property
    def unicode_db_available(self) -> bool:
        return self.unicode_db is not None

    @property
    def normalizer_available(self) -> bool:
        return self.normalizer is not None

    @property
    def confusable_engine_available(self) -> bool:
        return self.confusable_engine is not None

    def meta(self) -> dict[str, bool | str | None]:
        """Availability flags surfaced verbatim in the response ``meta`` block."""
        return {
            "unicode_db_available": self.unicode_db_available,
            "confusable_engine_available": self.confusable_engine_available,
            "normalizer_available": self.normalizer_available,
            "unicode_version": self.unicode_db.unidata_version if self.unicode_db else None,
        }


def _load_confusable_engine() -> ConfusableChecker | None:
    try:
        from confusable_homoglyphs import categories, confusables
    except ImportError:
        logger.info("confusable-homoglyphs not installed; confusable scan will report unavailable")
        return None

    from textforensics.core.spoofcheck import ConfusableEngine

    return ConfusableEngine(confusables_module=confusables, categories_module=categories)


@lru_cache(maxsize=1)
def detect_capabilities() -> Capabilities:
    """Inspect the environment once and return the process-wide capability set.

    The result is immutable and shared read-only across requests.
    """
    caps = Capabilities(
        unicode_db=unicodedata,
        normalizer=unicodedata.normalize,
        confusable_engine=_load_confusable_engine(),
    )
    logger.info(
        "Detected capabilities",
        extra={"event_type": EventType.CAPABILITIES_DETECTED.value, "metrics": caps.meta()},
    )
    return caps


__all__ = ["Capabilities", "Normalizer", "UnicodeDatabase", "detect_capabilities"]
