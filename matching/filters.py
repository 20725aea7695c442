"""
Pending shipment view with column filters
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from config import UNKNOWN_COURIER
from models import ShipmentRecord, ShipmentStatus
from utils import format_delivered_on

# Columns that offer a discrete value picker
FILTER_FIELDS = ('courier_partner', 'return_type', 'delivered_on')


def field_text(record: ShipmentRecord, field_name: str) -> str:
    """Display text of a filterable field"""
    value = getattr(record, field_name)
    if field_name == 'delivered_on':
        return format_delivered_on(value)
    if field_name == 'return_type':
        return value.value
    return str(value) if value else ''


def option_text(record: ShipmentRecord, field_name: str) -> str:
    return field_text(record, field_name) or UNKNOWN_COURIER


@dataclass
class FilterSet:
    courier_partner: Set[str] = field(default_factory=set)
    return_type: Set[str] = field(default_factory=set)
    delivered_on: Set[str] = field(default_factory=set)
    awb: Optional[str] = None
    suborder_id: Optional[str] = None
    product: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any([self.courier_partner, self.return_type, self.delivered_on,
                        self.awb, self.suborder_id, self.product, self.reason])

    def accepts(self, record: ShipmentRecord) -> bool:
        for field_name in FILTER_FIELDS:
            allowed = getattr(self, field_name)
            if allowed and option_text(record, field_name) not in allowed:
                return False

        text_checks = (
            (self.awb, record.awb),
            (self.suborder_id, record.suborder_id),
            (self.product, record.product_summary),
            (self.reason, record.return_reason),
        )
        for needle, haystack in text_checks:
            if needle and needle.strip().lower() not in (haystack or '').lower():
                return False
        return True


def pending_view(records: Iterable[ShipmentRecord], filters: Optional[FilterSet] = None) -> List[ShipmentRecord]:
    """Records still Pending that pass every configured filter, in source order"""
    filters = filters or FilterSet()
    return [r for r in records if r.status == ShipmentStatus.PENDING and filters.accepts(r)]


def filter_options(records: Iterable[ShipmentRecord], field_name: str) -> List[str]:
    """Sorted distinct values of a filter column among Pending records"""
    if field_name not in FILTER_FIELDS:
        raise ValueError(f"Unsupported filter column: {field_name}")
    values = {option_text(r, field_name)
              for r in records if r.status == ShipmentStatus.PENDING}
    return sorted(values)
