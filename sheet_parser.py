"""
Shipment record extraction from the supplier's return export

The export is a human formatted sheet: one shipment spans several rows merged
on the Suborder ID column, product details sit in column A as ``Label: value``
lines, and the courier name is printed in the AWB column on the row directly
below the tracking number.
"""
import io
import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Set
from zipfile import BadZipFile

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from config import (
    AWB_COLUMN,
    AWB_HEADER_MARKER,
    DELIVERED_ON_HEADER_MARKER,
    PLACEHOLDER,
    PRODUCT_DETAILS_COLUMN,
    RETURN_FEE_HEADER_MARKER,
    RETURN_REASON_HEADER_MARKER,
    SUBORDER_HEADER_MARKER,
    SUBORDER_ID_COLUMN,
    UNKNOWN_COURIER,
)
from exceptions import (
    ColumnResolutionWarning,
    EmptyResultError,
    StructuralParseError,
    WorkbookReadError,
)
from matching.labels import parse_product_details
from models import (
    ExtractionResult,
    MergeRange,
    ReturnType,
    SheetGrid,
    ShipmentRecord,
    ShipmentSpan,
)
from utils import cell_text, parse_date_safe

logger = logging.getLogger(__name__)

HAS_DIGIT = re.compile(r'\d')


def load_grid(data: bytes) -> SheetGrid:
    """
    Read the first worksheet into a grid of raw values plus merge ranges.

    Args:
        data: Raw ``.xlsx`` bytes

    Returns:
        SheetGrid with 0-based merge coordinates
    """
    try:
        workbook = load_workbook(io.BytesIO(data), data_only=True)
    except (BadZipFile, InvalidFileException, KeyError, OSError) as e:
        raise WorkbookReadError(f"Could not open the Excel file: {e}") from e
    except Exception as e:
        # Valid zip with broken sheet XML surfaces as a parser error
        raise WorkbookReadError(f"The Excel file is damaged and could not be read: {e}") from e

    try:
        worksheet = workbook.worksheets[0]
        rows = [list(row) for row in worksheet.iter_rows(values_only=True)]
        merges = [
            MergeRange(
                min_row=rng.min_row - 1,
                min_col=rng.min_col - 1,
                max_row=rng.max_row - 1,
                max_col=rng.max_col - 1,
            )
            for rng in worksheet.merged_cells.ranges
        ]
    finally:
        workbook.close()

    logger.debug("Loaded grid with %d rows and %d merge ranges", len(rows), len(merges))
    return SheetGrid(rows=rows, merges=merges)


class ShipmentRecordExtractor:
    """Turn a return export grid into a flat list of shipment records"""

    def __init__(self):
        self.awb_column = AWB_COLUMN
        self.suborder_column = SUBORDER_ID_COLUMN
        self.details_column = PRODUCT_DETAILS_COLUMN

        # Optional columns located by header text
        self.dynamic_columns = {
            'return_reason': RETURN_REASON_HEADER_MARKER,
            'return_shipping_fee': RETURN_FEE_HEADER_MARKER,
            'delivered_on': DELIVERED_ON_HEADER_MARKER,
        }

    def load_file(self, uploaded_file) -> ExtractionResult:
        """Extract records from a Streamlit upload or any binary file object"""
        data = uploaded_file.getvalue() if hasattr(uploaded_file, 'getvalue') else uploaded_file.read()
        return self.extract(load_grid(data))

    def extract(self, grid: SheetGrid) -> ExtractionResult:
        """
        Walk the grid once and build one record per tracking number cell.

        Raises:
            StructuralParseError: header row or AWB column missing
            EmptyResultError: layout valid but no tracking numbers found
        """
        warnings: List[ColumnResolutionWarning] = []
        header_row = self._locate_header(grid)
        header = [cell.strip().lower() if isinstance(cell, str) else '' for cell in grid.rows[header_row]]
        columns = self._resolve_columns(header, warnings)

        records: List[ShipmentRecord] = []
        processed: Set[int] = set()

        for r in range(header_row + 1, len(grid)):
            if r in processed:
                continue
            processed.add(r)

            awb = cell_text(grid.cell(r, self.awb_column))
            if not awb or not HAS_DIGIT.search(awb):
                if awb:
                    logger.debug("Row %d: skipping non tracking text %r", r, awb)
                continue

            courier = self._read_courier(grid, r, processed)
            span = self._shipment_span(grid, r, header_row)
            records.append(self._build_record(grid, awb, courier, span, columns))

        if not records:
            raise EmptyResultError(
                "No valid AWB entries found. Check format: AWB in Col F (must contain numbers), "
                "courier name below it."
            )

        logger.info("Extracted %d return shipments (header at row %d)", len(records), header_row + 1)
        return ExtractionResult(records=records, warnings=warnings, header_row=header_row)

    def _locate_header(self, grid: SheetGrid) -> int:
        for index, row in enumerate(grid.rows):
            if any(isinstance(cell, str) and AWB_HEADER_MARKER in cell.lower() for cell in row):
                return index
        raise StructuralParseError("Header row containing 'AWB Number' not found.")

    def _resolve_columns(self, header: List[str], warnings: List[ColumnResolutionWarning]) -> Dict[str, Optional[int]]:
        """Validate fixed columns and locate the optional ones"""
        if len(header) <= self.awb_column or AWB_HEADER_MARKER not in header[self.awb_column]:
            raise StructuralParseError(
                "Column F (index 5) does not seem to be the 'AWB Number' column based on the header."
            )

        if len(header) <= self.suborder_column or SUBORDER_HEADER_MARKER not in header[self.suborder_column]:
            self._warn(
                warnings,
                "Column B does not seem to be the 'Suborder ID' column. Shipment grouping might be incorrect.",
            )

        columns: Dict[str, Optional[int]] = {}
        for name, marker in self.dynamic_columns.items():
            index = next((i for i, text in enumerate(header) if marker in text), None)
            if index is None:
                self._warn(warnings, f"Column '{marker}' not found; values default to '{PLACEHOLDER}'.")
            columns[name] = index
        return columns

    def _read_courier(self, grid: SheetGrid, r: int, processed: Set[int]) -> str:
        """Courier name is printed in the AWB column one row below the tracking number"""
        courier = cell_text(grid.cell(r + 1, self.awb_column))
        if courier:
            processed.add(r + 1)
            return courier
        logger.warning("Row %d: courier partner missing below AWB; using '%s'", r + 1, UNKNOWN_COURIER)
        return UNKNOWN_COURIER

    def _shipment_span(self, grid: SheetGrid, r: int, header_row: int) -> ShipmentSpan:
        merge = grid.merge_covering(r, self.suborder_column)
        if merge is None:
            return ShipmentSpan(r, r)

        start, end = merge.min_row, merge.max_row
        if start <= header_row or end >= len(grid) or end < start:
            logger.warning("Merge rows %d-%d invalid for data row %d; using the single row", start, end, r)
            return ShipmentSpan(r, r)
        return ShipmentSpan(start, end)

    def _build_record(self, grid: SheetGrid, awb: str, courier: str, span: ShipmentSpan,
                      columns: Dict[str, Optional[int]]) -> ShipmentRecord:
        details = parse_product_details(
            cell_text(grid.cell(row, self.details_column)) for row in span.rows()
        )

        first = span.start_row
        fee = self._read_text(grid, first, columns['return_shipping_fee'])

        return ShipmentRecord(
            awb=awb,
            suborder_id=self._read_text(grid, first, self.suborder_column),
            sku=details['sku'],
            category=details['category'],
            qty=details['qty'],
            size=details['size'],
            return_reason=self._read_text(grid, first, columns['return_reason']),
            return_shipping_fee=fee,
            delivered_on=self._read_date(grid, first, columns['delivered_on']),
            courier_partner=courier,
            return_type=classify_return_type(grid.cell(first, columns['return_shipping_fee'])
                                             if columns['return_shipping_fee'] is not None else None),
        )

    def _read_text(self, grid: SheetGrid, row: int, col: Optional[int]) -> str:
        if col is None:
            return PLACEHOLDER
        return cell_text(grid.cell(row, col)) or PLACEHOLDER

    def _read_date(self, grid: SheetGrid, row: int, col: Optional[int]):
        if col is None:
            return PLACEHOLDER
        value = grid.cell(row, col)
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        text = cell_text(value)
        if not text:
            return PLACEHOLDER
        parsed = parse_date_safe(text)
        if pd.notna(parsed):
            return parsed.date()
        return text

    @staticmethod
    def _warn(warnings: List[ColumnResolutionWarning], message: str) -> None:
        logger.warning(message)
        warnings.append(ColumnResolutionWarning(message))


def classify_return_type(fee: Any) -> ReturnType:
    """A zero return shipping fee means the parcel came back undelivered (RTO)"""
    if fee is None or isinstance(fee, bool):
        return ReturnType.CUSTOMER_RETURN
    if isinstance(fee, (int, float)):
        return ReturnType.RTO if fee == 0 else ReturnType.CUSTOMER_RETURN

    text = str(fee).strip()
    if text == '0':
        return ReturnType.RTO
    cleaned = re.sub(r'[^0-9.\-]', '', text)
    if not cleaned:
        return ReturnType.CUSTOMER_RETURN
    amount = pd.to_numeric(cleaned, errors='coerce')
    if pd.notna(amount) and amount == 0:
        return ReturnType.RTO
    return ReturnType.CUSTOMER_RETURN
