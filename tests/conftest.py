"""
Shared pytest fixtures and configuration for textforensics tests.

Provides capability sets (full, none, fake confusable engine), lowered
payload limits for short samples, and a clean package logger per test.
"""

from __future__ import annotations

import logging
import unicodedata
from typing import Any

import pytest

from textforensics.core.capabilities import Capabilities
from textforensics.core.limits import AnalysisLimits
from textforensics.core.spoofcheck import SpoofCheck, SpoofVerdict
from textforensics.observability.logger import PACKAGE_LOGGER

# ============================================================
# Pytest Hooks and Configuration
# ============================================================


def pytest_configure(config: Any) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks property-based tests")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "security: marks false-positive and hostile-input tests")


# ============================================================
# Logging
# ============================================================


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() between tests so caplog keeps working."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    saved = (list(package_logger.handlers), package_logger.level, package_logger.propagate)
    yield
    package_logger.handlers[:] = saved[0]
    package_logger.setLevel(saved[1])
    package_logger.propagate = saved[2]


# ============================================================
# Capabilities
# ============================================================


class FakeConfusableEngine:
    """Confusable engine double that records what it was asked.

    Flags every token containing a Cyrillic letter as mixed-script and
    every token containing U+200B as invisible; the skeleton maps Cyrillic
    o/a/p/e to their Latin look-alikes. It has no script data of its own,
    so the token gate falls back to the name-based guess.
    """

    _PROTOTYPES = str.maketrans({"\u043e": "o", "\u0430": "a", "\u0440": "p", "\u0435": "e"})

    def __init__(self, skeleton_result: str | None = "") -> None:
        self.checked: list[str] = []
        self.skeleton_calls: list[str] = []
        self._skeleton_result = skeleton_result

    def check(self, token: str) -> SpoofVerdict:
        self.checked.append(token)
        flags = SpoofCheck(0)
        if any("CYRILLIC" in unicodedata.name(ch, "") for ch in token):
            flags |= SpoofCheck.MIXED_SCRIPT_CONFUSABLE
        if "\u200b" in token:
            flags |= SpoofCheck.INVISIBLE
        return SpoofVerdict(suspicious=bool(flags), flags=flags)

    def skeleton(self, token: str) -> str | None:
        self.skeleton_calls.append(token)
        if self._skeleton_result is None:
            return None
        return token.translate(self._PROTOTYPES).replace("\u200b", "").lower()

    def script(self, ch: str) -> str | None:
        return None


@pytest.fixture
def fake_engine() -> FakeConfusableEngine:
    return FakeConfusableEngine()


@pytest.fixture
def full_caps(fake_engine: FakeConfusableEngine) -> Capabilities:
    """Unicode database, normalizer and the fake confusable engine."""
    return Capabilities(
        unicode_db=unicodedata,
        normalizer=unicodedata.normalize,
        confusable_engine=fake_engine,
    )


@pytest.fixture
def no_caps() -> Capabilities:
    """No external capability at all."""
    return Capabilities()


@pytest.fixture
def short_payload_limits() -> AnalysisLimits:
    """Limits that accept short base64 samples such as 'SGVsbG8sIFVsaSE='."""
    return AnalysisLimits(min_base64_length=12, min_base64url_length=12)


@pytest.fixture
def no_skeleton_engine() -> FakeConfusableEngine:
    """Engine double whose skeleton is never available."""
    return FakeConfusableEngine(skeleton_result=None)
