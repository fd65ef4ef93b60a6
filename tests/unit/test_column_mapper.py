"""
Unit tests for header detection.
"""

import pytest

from parsers.column_mapper import map_columns, normalize_header


class TestNormalizeHeader:
    """Tests for normalize_header."""

    @pytest.mark.parametrize("header,expected", [
        ("On Hand", "onhand"),
        ("On Hand (not editable)", "onhandnoteditable"),
        ("Bar_Code", "barcode"),
        ("\ufeffSKU", "sku"),
        ("Product-Name", "productname"),
        ("Qty/Available", "qtyavailable"),
        ("  RESERVED  ", "reserved"),
    ])
    def test_normalizes(self, header, expected):
        assert normalize_header(header) == expected

    def test_none(self):
        assert normalize_header(None) == ""


class TestMapColumns:
    """Tests for map_columns."""

    def test_canonical_headers(self):
        mapping = map_columns(["Barcode", "Name", "On Hand", "Reserved"])

        assert mapping.barcode == "Barcode"
        assert mapping.name == "Name"
        assert mapping.on_hand == "On Hand"
        assert mapping.reserved == "Reserved"

    def test_alias_headers(self):
        mapping = map_columns(["bar code", "productname", "stock", "on hold"])

        assert mapping.barcode == "bar code"
        assert mapping.name == "productname"
        assert mapping.on_hand == "stock"
        assert mapping.reserved == "on hold"

    def test_ui_suffix(self):
        mapping = map_columns(["SKU", "Title", "On Hand (not editable)"])

        assert mapping.on_hand == "On Hand (not editable)"

    def test_reserved_optional(self):
        mapping = map_columns(["UPC", "Item Name", "Qty"])

        assert mapping is not None
        assert mapping.reserved is None

    def test_first_matching_header_wins(self):
        mapping = map_columns(["Code", "Barcode", "Name", "Stock", "Quantity"])

        assert mapping.barcode == "Code"
        assert mapping.on_hand == "Stock"

    def test_bom_on_first_header(self):
        mapping = map_columns(["\ufeffBarcode", "Name", "On Hand"])

        assert mapping.barcode == "\ufeffBarcode"

    @pytest.mark.parametrize("headers", [
        ["Name", "On Hand", "Reserved"],
        ["Barcode", "On Hand", "Reserved"],
        ["Barcode", "Name", "Reserved"],
        [],
    ])
    def test_missing_required_column(self, headers):
        assert map_columns(headers) is None

    def test_unrelated_headers(self):
        assert map_columns(["Foo", "Bar", "Baz"]) is None
