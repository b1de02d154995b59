"""
Unit tests for line_parser.py.

Covers:
- Line splitting (bullets, checkboxes, numbering, comma/semicolon lists)
- Quantity and notes extraction
- Name normalization (OCR fixes, singularization)
- Quantity scaling

Usage:
    pytest tests/test_line_parser.py -v
"""

import pytest

from shoplist_ocr.line_parser import (
    parse_raw_lines,
    parse_quantity_and_notes,
    normalize_name,
    singularize,
    scale_quantity_string,
    format_quantity_number,
)


# =============================================================================
# Line Splitting Tests
# =============================================================================

class TestParseRawLines:
    """Test splitting raw text into candidate item strings."""

    def test_strips_bullets_checkboxes_and_numbering(self):
        assert parse_raw_lines("• milk\n[ ] eggs\n2) bread") == ["milk", "eggs", "bread"]

    def test_explodes_comma_and_semicolon_lists(self):
        assert parse_raw_lines("apples, bananas; pears") == ["apples", "bananas", "pears"]

    def test_list_expansion_keeps_position(self):
        """Exploded parts replace their line in place."""
        result = parse_raw_lines("milk\napples, pears\nbread")
        assert result == ["milk", "apples", "pears", "bread"]

    def test_drops_blank_and_punctuation_only_lines(self):
        text = "milk\n\n   \n---\n...\n!!\neggs"
        assert parse_raw_lines(text) == ["milk", "eggs"]

    def test_checked_checkbox_and_dash(self):
        assert parse_raw_lines("[x] butter\n- cheese\n* salsa") == ["butter", "cheese", "salsa"]

    def test_decimal_quantity_is_not_numbering(self):
        """"1.5 lb" must not lose its leading number."""
        assert parse_raw_lines("1.5 lb ground beef") == ["1.5 lb ground beef"]

    def test_windows_newlines(self):
        assert parse_raw_lines("milk\r\neggs\r\n") == ["milk", "eggs"]

    def test_empty_input(self):
        assert parse_raw_lines("") == []
        assert parse_raw_lines(None) == []


# =============================================================================
# Quantity / Notes Tests
# =============================================================================

class TestParseQuantityAndNotes:
    """Test {name, quantity, notes} extraction."""

    def test_leading_count(self):
        parsed = parse_quantity_and_notes("2 apples")
        assert (parsed.name, parsed.quantity, parsed.notes) == ("apples", "2", None)

    def test_unit_quantity_and_notes(self):
        parsed = parse_quantity_and_notes("chicken 2 lb (organic)")
        assert (parsed.name, parsed.quantity, parsed.notes) == ("chicken", "2 lb", "organic")

    def test_times_suffix(self):
        parsed = parse_quantity_and_notes("3x yogurt")
        assert parsed.name == "yogurt"
        assert parsed.quantity == "3"

    def test_fraction(self):
        parsed = parse_quantity_and_notes("1/2 watermelon")
        assert parsed.name == "watermelon"
        assert parsed.quantity == "1/2"

    def test_no_quantity(self):
        parsed = parse_quantity_and_notes("peanut butter")
        assert (parsed.name, parsed.quantity, parsed.notes) == ("peanut butter", None, None)

    def test_only_notes_gives_empty_name(self):
        parsed = parse_quantity_and_notes("(organic)")
        assert parsed.name == ""
        assert parsed.notes == "organic"

    def test_inner_whitespace_collapsed(self):
        parsed = parse_quantity_and_notes("  green    onions  ")
        assert parsed.name == "green onions"


# =============================================================================
# Normalization Tests
# =============================================================================

class TestNormalizeName:
    """Test canonical and normalized name derivation."""

    def test_canonical_keeps_casing_and_drops_trailing_punctuation(self):
        names = normalize_name("  Green   Onions. ")
        assert names.canonical_name == "Green Onions"
        assert names.normalized_name == "green onion"

    def test_ocr_fix_applied_per_token(self):
        assert normalize_name("miik").normalized_name == "milk"
        assert normalize_name("oat mi1k").normalized_name == "oat milk"

    def test_ies_becomes_y(self):
        assert normalize_name("Strawberries").normalized_name == "strawberry"

    def test_double_s_kept(self):
        assert normalize_name("glass").normalized_name == "glass"

    def test_short_words_kept(self):
        assert normalize_name("gas").normalized_name == "gas"

    @pytest.mark.parametrize("name", ["eggs", "chips", "greens", "beans"])
    def test_singular_exceptions(self, name):
        assert normalize_name(name).normalized_name == name

    def test_exceptions_only_cover_whole_names(self):
        assert normalize_name("black beans").normalized_name == "black bean"
        assert normalize_name("tortilla chips").normalized_name == "tortilla chip"

    def test_end_of_name_singularized(self):
        assert singularize("paper towels") == "paper towel"
        assert singularize("brussels sprouts") == "brussels sprout"

    def test_custom_fix_table(self):
        names = normalize_name("chese", ocr_fixes={"chese": "cheese"})
        assert names.normalized_name == "cheese"

    def test_empty(self):
        names = normalize_name("")
        assert names.canonical_name == ""
        assert names.normalized_name == ""


# =============================================================================
# Quantity Scaling Tests
# =============================================================================

class TestScaleQuantity:
    """Test scaling numbers inside free-text quantities."""

    def test_mixed_number(self):
        assert scale_quantity_string("1 1/2 cups", 2) == "3 cups"

    def test_decimal_multiplier(self):
        assert scale_quantity_string("2 lb", 1.5) == "3 lb"

    def test_every_number_scaled(self):
        assert scale_quantity_string("2 + 1", 3) == "6 + 3"

    def test_rounding(self):
        assert scale_quantity_string("1/3 cup", 1) == "0.33 cup"

    @pytest.mark.parametrize("quantity, multiplier", [
        (None, 2),
        ("", 2),
        ("a few", 2),
        ("2", 0),
        ("2", -1),
        ("2", float("inf")),
        ("2", float("nan")),
    ])
    def test_returned_unchanged(self, quantity, multiplier):
        assert scale_quantity_string(quantity, multiplier) == quantity

    def test_format_strips_trailing_zeros(self):
        assert format_quantity_number(1.50) == "1.5"
        assert format_quantity_number(2.0) == "2"
