"""
Tests for barcode normalization.
"""

import pytest

from utils.text_utils import norm_code, norm_variants, strip_bom


class TestNormCode:
    """Tests for norm_code."""

    def test_trims_and_removes_internal_whitespace(self):
        assert norm_code("  12 34\t56 ") == "123456"

    def test_strips_bom(self):
        assert norm_code("\ufeffABC-999") == "ABC-999"

    def test_drops_control_and_punctuation(self):
        assert norm_code("SKU#12/A\r\n") == "SKU12A"

    def test_keeps_underscore_and_hyphen(self):
        assert norm_code("a_b-c") == "a_b-c"

    def test_none_is_empty(self):
        assert norm_code(None) == ""

    def test_numbers(self):
        assert norm_code(12345) == "12345"
        assert norm_code(123.0) == "123"

    @pytest.mark.parametrize("value", [
        " 0001 234 ",
        "\ufeff ABC-999\r",
        "x!y@z#",
        "",
        "ÄÖÜ-12",
        12.5,
    ])
    def test_idempotent(self, value):
        once = norm_code(value)
        assert norm_code(once) == once


class TestNormVariants:
    """Tests for norm_variants."""

    def test_numeric_with_leading_zeros(self):
        assert norm_variants("00012345") == ["00012345", "12345"]

    def test_non_numeric(self):
        assert norm_variants("ABC-999") == ["ABC-999"]

    def test_numeric_without_leading_zeros(self):
        assert norm_variants("12345") == ["12345"]

    def test_all_zeros_has_single_variant(self):
        assert norm_variants("000") == ["000"]

    def test_empty(self):
        assert norm_variants("   ") == []

    def test_normalizes_first(self):
        assert norm_variants(" 00 12 ") == ["0012", "12"]


class TestStripBom:
    def test_only_leading(self):
        assert strip_bom("\ufeffa\ufeff") == "a\ufeff"

    def test_no_bom(self):
        assert strip_bom("abc") == "abc"
