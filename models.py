"""
Data models for return shipments, sheet grids and verification results
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, List, Optional, Union

from config import PLACEHOLDER, UNKNOWN_COURIER


class ReturnType(str, Enum):
    RTO = 'RTO'
    CUSTOMER_RETURN = 'Customer Return'


class ShipmentStatus(str, Enum):
    PENDING = 'Pending'
    DONE = 'Done'


class ResultKind(str, Enum):
    SUCCESS = 'success'
    INFO = 'info'
    ERROR = 'error'


@dataclass
class ShipmentRecord:
    """One physical return shipment as listed in the supplier export"""
    awb: str
    suborder_id: str = PLACEHOLDER
    sku: str = PLACEHOLDER
    category: str = PLACEHOLDER
    qty: str = PLACEHOLDER
    size: str = PLACEHOLDER
    return_reason: str = PLACEHOLDER
    return_shipping_fee: str = PLACEHOLDER
    delivered_on: Union[date, str] = PLACEHOLDER
    courier_partner: str = UNKNOWN_COURIER
    return_type: ReturnType = ReturnType.CUSTOMER_RETURN
    status: ShipmentStatus = ShipmentStatus.PENDING

    @property
    def normalized_awb(self) -> str:
        return self.awb.strip().lower()

    @property
    def is_done(self) -> bool:
        return self.status == ShipmentStatus.DONE

    def mark_done(self) -> bool:
        """Flip to Done. Returns False when the record was already Done."""
        if self.is_done:
            return False
        self.status = ShipmentStatus.DONE
        return True

    @property
    def product_summary(self) -> str:
        return f"SKU: {self.sku} | Cat: {self.category} | Qty: {self.qty} | Size: {self.size}"


@dataclass(frozen=True)
class MergeRange:
    """Merged cell range, 0-based and inclusive on both ends"""
    min_row: int
    min_col: int
    max_row: int
    max_col: int

    def covers(self, row: int, col: int) -> bool:
        return self.min_row <= row <= self.max_row and self.min_col <= col <= self.max_col

    @property
    def is_single_column(self) -> bool:
        return self.min_col == self.max_col


@dataclass
class SheetGrid:
    """Raw cell values of one worksheet plus its merge ranges"""
    rows: List[List[Any]]
    merges: List[MergeRange] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def cell(self, row: int, col: int) -> Any:
        if row < 0 or row >= len(self.rows):
            return None
        values = self.rows[row]
        if col < 0 or col >= len(values):
            return None
        return values[col]

    def merge_covering(self, row: int, col: int) -> Optional[MergeRange]:
        """Single-column merge on ``col`` that contains ``row``, if any"""
        for merge in self.merges:
            if merge.is_single_column and merge.min_col == col and merge.covers(row, col):
                return merge
        return None


@dataclass(frozen=True)
class ShipmentSpan:
    """Row range (inclusive) of one shipment inside the grid"""
    start_row: int
    end_row: int

    def rows(self) -> range:
        return range(self.start_row, self.end_row + 1)


@dataclass
class ExtractionResult:
    records: List[ShipmentRecord]
    warnings: List[Warning] = field(default_factory=list)
    header_row: int = 0


@dataclass
class Notification:
    """Payload handed to the toast sink"""
    title: str
    body: str
    duration_ms: int
    emphasized: bool = False


@dataclass
class VerificationResult:
    kind: ResultKind
    query: str
    message: str
    matched: List[int] = field(default_factory=list)
    flipped: int = 0
    total_matched: int = 0
    record: Optional[ShipmentRecord] = None
    highlight: bool = False
    matched_via_prefix: bool = False
