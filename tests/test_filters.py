"""
Unit tests for the pending shipment view and its filters
"""

import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from matching.filters import FilterSet, filter_options, pending_view
from models import ReturnType, ShipmentRecord, ShipmentStatus


@pytest.fixture
def records():
    return [
        ShipmentRecord(awb="AWB1", courier_partner="Delhivery", return_type=ReturnType.RTO,
                       delivered_on=date(2025, 9, 16), sku="KT-RED", return_reason="Wrong item",
                       suborder_id="SO-1"),
        ShipmentRecord(awb="AWB2", courier_partner="Xpressbees", return_type=ReturnType.CUSTOMER_RETURN,
                       delivered_on="-", sku="TP-BLUE", return_reason="Size issue", suborder_id="SO-2"),
        ShipmentRecord(awb="AWB3", courier_partner="", return_type=ReturnType.CUSTOMER_RETURN,
                       delivered_on=date(2025, 9, 17), sku="KT-GREEN", return_reason="Other",
                       suborder_id="SO-3"),
        ShipmentRecord(awb="AWB4", courier_partner="Delhivery", return_type=ReturnType.RTO,
                       delivered_on=date(2025, 9, 16), status=ShipmentStatus.DONE),
    ]


def test_pending_view_excludes_done(records):
    assert [r.awb for r in pending_view(records)] == ["AWB1", "AWB2", "AWB3"]


def test_filter_options_from_pending_only(records):
    assert filter_options(records, 'courier_partner') == ["Delhivery", "Unknown", "Xpressbees"]
    assert filter_options(records, 'return_type') == ["Customer Return", "RTO"]
    assert filter_options(records, 'delivered_on') == ["-", "2025-09-16", "2025-09-17"]


def test_filter_options_rejects_unknown_column(records):
    with pytest.raises(ValueError):
        filter_options(records, 'sku')


def test_discrete_filters(records):
    filters = FilterSet(courier_partner={"Delhivery", "Unknown"})
    assert [r.awb for r in pending_view(records, filters)] == ["AWB1", "AWB3"]

    filters = FilterSet(return_type={"RTO"}, delivered_on={"2025-09-16"})
    assert [r.awb for r in pending_view(records, filters)] == ["AWB1"]


def test_text_filters_are_case_insensitive_substrings(records):
    assert [r.awb for r in pending_view(records, FilterSet(product="kt-"))] == ["AWB1", "AWB3"]
    assert [r.awb for r in pending_view(records, FilterSet(reason="SIZE"))] == ["AWB2"]
    assert [r.awb for r in pending_view(records, FilterSet(awb="awb2"))] == ["AWB2"]
    assert [r.awb for r in pending_view(records, FilterSet(suborder_id="so-3"))] == ["AWB3"]


def test_filters_combine(records):
    filters = FilterSet(courier_partner={"Delhivery"}, product="green")
    assert pending_view(records, filters) == []


def test_empty_filter_set(records):
    assert FilterSet().is_empty
    assert not FilterSet(reason="x").is_empty


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
