"""
Tests for codepoint classification and the Unicode scan.

Tests cover:
- Rule priority (bidi before format, invisible before format)
- Variation selector and tag ranges
- Behavior without a Unicode database
- Finding positions, tiers and the findings cap
"""

import unicodedata

import pytest

from textforensics.core.classifier import (
    BIDI_CONTROLS,
    Category,
    classify,
    describe,
    scan_unicode,
    to_hex,
)


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize("cp", sorted(BIDI_CONTROLS))
    def test_bidi_controls_win_over_format(self, cp):
        """Bidi controls are Cf but keep their dedicated category."""
        assert unicodedata.category(chr(cp)) == "Cf"
        assert classify(cp) is Category.BIDI_CONTROL

    @pytest.mark.parametrize(
        "cp",
        [0x200B, 0x200C, 0x200D, 0x2060, 0xFEFF, 0x00A0, 0x202F, 0x2007, 0x2009, 0x200A, 0x3000, 0x034F],
    )
    def test_invisible_and_special_spaces(self, cp):
        assert classify(cp) is Category.INVISIBLE_SPACE

    @pytest.mark.parametrize("cp", [0xFE00, 0xFE0F, 0xE0100, 0xE01EF])
    def test_variation_selector_bounds(self, cp):
        assert classify(cp) is Category.VARIATION_SELECTOR

    @pytest.mark.parametrize("cp", [0xE0000, 0xE0041, 0xE007F])
    def test_tag_range(self, cp):
        assert classify(cp) is Category.TAG_CHAR

    def test_generic_control_and_format(self):
        assert classify(0x0007) is Category.CONTROL_OR_FORMAT  # BEL, Cc
        assert classify(0x00AD) is Category.CONTROL_OR_FORMAT  # soft hyphen, Cf

    def test_ordinary_characters_are_other(self):
        for ch in "aZ9 \u00fc\u6f22\u0436-":
            assert classify(ord(ch)) is Category.OTHER

    def test_without_database_rule_five_is_skipped(self):
        """Cc/Cf need the database; the fixed sets do not."""
        assert classify(0x0007, unicode_db=None) is Category.OTHER
        assert classify(0x202E, unicode_db=None) is Category.BIDI_CONTROL
        assert classify(0xE0041, unicode_db=None) is Category.TAG_CHAR


class TestDescribe:
    """Tests for describe() and hex formatting."""

    def test_hex_is_zero_padded_upper(self):
        assert to_hex(0xA0) == "U+00A0"
        assert to_hex(0xE0100) == "U+E0100"

    def test_name_from_database(self):
        info = describe(0x202E)
        assert info.name == "RIGHT-TO-LEFT OVERRIDE"
        assert info.hex == "U+202E"
        assert info.general_category == "Cf"

    def test_unnamed_codepoint_falls_back_to_unknown(self):
        assert describe(0x0007).name == "UNKNOWN"

    def test_without_database_name_is_unknown(self):
        info = describe(0x202E, unicode_db=None)
        assert info.name == "UNKNOWN"
        assert info.general_category is None


class TestScanUnicode:
    """Tests for scan_unicode()."""

    def test_positions_refer_to_original_text(self):
        text = "ab\ncd\u200bef"
        findings = scan_unicode(text)

        assert len(findings) == 1
        finding = findings[0]
        assert finding.char_index == 5
        assert finding.line == 2
        assert finding.column == 3
        assert finding.hex == "U+200B"
        assert finding.category == "invisible_space"

    def test_line_breaks_and_tabs_are_not_reported(self):
        assert scan_unicode("a\tb\r\nc\n") == []

    def test_tiers_by_category(self):
        text = "\u202e\u200b\u00a0\ufe0f\u00ad\U000e0041"
        by_hex = {f.hex: (f.tier, f.score) for f in scan_unicode(text)}

        assert by_hex["U+202E"] == ("PROOF", 95)
        assert by_hex["U+E0041"] == ("PROOF", 95)
        assert by_hex["U+200B"] == ("STRONG", 85)
        assert by_hex["U+00A0"] == ("HINT", 30)
        assert by_hex["U+FE0F"] == ("MEDIUM", 55)
        assert by_hex["U+00AD"] == ("MEDIUM", 60)

    def test_findings_are_capped(self):
        findings = scan_unicode("\u200b" * 1000, max_findings=400)
        assert len(findings) == 400
        assert findings[-1].char_index == 399

    def test_zero_cap_returns_nothing(self):
        assert scan_unicode("\u202e", max_findings=0) == []

    def test_clean_text_has_no_findings(self):
        assert scan_unicode("Gr\u00fc\u00dfe aus M\u00fcnchen, \u6771\u4eac and \u041c\u043e\u0441\u043a\u0432\u0430!") == []


pytestmark = pytest.mark.unit
