"""
Unit tests for labeled product detail extraction
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from matching.labels import ProductDetailParser, extract_first, extract_labeled_value, parse_product_details


def test_extract_labeled_value():
    """Label lookup is case-insensitive and trims the remainder"""
    assert extract_labeled_value("SKU: ABC-123", "SKU:") == "ABC-123"
    assert extract_labeled_value("sku:   abc-123  ", "SKU:") == "abc-123"
    assert extract_labeled_value("Qty: 2", "qty:") == "2"


def test_extract_labeled_value_missing_label():
    assert extract_labeled_value("Size: M", "SKU:") == ""
    assert extract_labeled_value("", "SKU:") == ""
    assert extract_labeled_value(None, "SKU:") == ""


def test_extract_labeled_value_blank_remainder():
    """A label with nothing after it yields the placeholder, not an empty string"""
    assert extract_labeled_value("Size:", "Size:") == "-"
    assert extract_labeled_value("Size:    ", "Size:") == "-"


def test_extract_labeled_value_strips_one_separator():
    # Label given without its colon
    assert extract_labeled_value("Category: Kurtas", "Category") == "Kurtas"


def test_extract_first_prefers_earlier_spelling():
    assert extract_first("SKU ID: KT-9", ("SKU ID:", "SKU:")) == "KT-9"
    assert extract_first("Quantity: 3", ("Qty:", "Quantity:")) == "3"
    assert extract_first("Nothing here", ("Qty:", "Quantity:")) == ""


def test_parser_collects_fields_across_cells():
    parser = ProductDetailParser()
    parser.feed("SKU: KT-RED-M")
    assert not parser.complete
    parser.feed("Category: Kurtas")
    parser.feed("Qty: 1")
    parser.feed("Size: M")
    assert parser.complete
    assert parser.result() == {'sku': 'KT-RED-M', 'category': 'Kurtas', 'qty': '1', 'size': 'M'}


def test_parser_keeps_first_found_value():
    parser = ProductDetailParser()
    parser.feed("Size: M")
    parser.feed("Size: XL")
    assert parser.result()['size'] == 'M'


def test_parse_product_details_defaults_missing_fields():
    result = parse_product_details(["SKU: A1", "", "Qty: 2"])
    assert result == {'sku': 'A1', 'category': '-', 'qty': '2', 'size': '-'}


def test_parse_product_details_stops_when_complete():
    consumed = []

    def cells():
        for text in ["SKU: A1", "Category: Tops", "Qty: 1", "Size: S", "SKU: LATE"]:
            consumed.append(text)
            yield text

    result = parse_product_details(cells())
    assert result['sku'] == 'A1'
    assert "SKU: LATE" not in consumed


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
