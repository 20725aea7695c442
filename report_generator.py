import io
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence

import pandas as pd
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from config import (
    COLUMN_WIDTH_PADDING,
    PENDING_FILL_COLOR,
    PLACEHOLDER,
    REPORT_COLUMNS,
    REPORT_FILENAME_TEMPLATE,
    REPORT_SHEET_NAME,
    UNKNOWN_COURIER,
)
from exceptions import EmptyResultError, ReportGenerationError, StructuralParseError, WorkbookReadError
from models import ReturnType, ShipmentRecord, ShipmentStatus
from utils import cell_text, format_delivered_on

logger = logging.getLogger(__name__)

# Report header -> record attribute, used for reading a report back in
FIELD_BY_HEADER = {
    'awb number': 'awb',
    'courier partner': 'courier_partner',
    'sku': 'sku',
    'category': 'category',
    'qty': 'qty',
    'size': 'size',
    'return type': 'return_type',
    'suborder id': 'suborder_id',
    'return reason': 'return_reason',
    'return shipping fee': 'return_shipping_fee',
    'delivered on': 'delivered_on',
    'status': 'status',
}

REQUIRED_REPORT_HEADERS = ['awb number', 'status']


@dataclass
class ReportProjection:
    """Report rows plus the per-row highlight flags and column widths"""
    frame: pd.DataFrame
    highlight: List[bool]
    widths: List[int]


class ReportGenerator:
    """Build and read the return status workbook"""

    def __init__(self):
        self.columns = list(REPORT_COLUMNS)
        self.sheet_name = REPORT_SHEET_NAME
        self.pending_fill = PatternFill(fill_type='solid', fgColor=PENDING_FILL_COLOR, bgColor=PENDING_FILL_COLOR)
        self.header_font = Font(bold=True)

    def project_row(self, record: ShipmentRecord) -> Dict[str, str]:
        """Map one record to human readable report columns"""
        return {
            'AWB Number': record.awb,
            'Courier Partner': record.courier_partner or UNKNOWN_COURIER,
            'SKU': record.sku or PLACEHOLDER,
            'Category': record.category or PLACEHOLDER,
            'Qty': record.qty or PLACEHOLDER,
            'Size': record.size or PLACEHOLDER,
            'Return Type': record.return_type.value,
            'Suborder ID': record.suborder_id or PLACEHOLDER,
            'Return Reason': record.return_reason or PLACEHOLDER,
            'Return Shipping Fee': record.return_shipping_fee or PLACEHOLDER,
            'Delivered On': format_delivered_on(record.delivered_on),
            'Status': ShipmentStatus.DONE.value if record.is_done else ShipmentStatus.PENDING.value,
        }

    def project(self, records: Sequence[ShipmentRecord]) -> ReportProjection:
        rows = [self.project_row(record) for record in records]
        frame = pd.DataFrame(rows, columns=self.columns)
        highlight = [row['Status'] == ShipmentStatus.PENDING.value for row in rows]
        widths = [
            max([len(column)] + [len(str(row[column])) for row in rows]) + COLUMN_WIDTH_PADDING
            for column in self.columns
        ]
        return ReportProjection(frame=frame, highlight=highlight, widths=widths)

    def generate_report_workbook(self, records: Sequence[ShipmentRecord]) -> bytes:
        """
        Write every record to a single sheet workbook.

        Rows still Pending get a solid red fill across all columns.

        Raises:
            ReportGenerationError: nothing to export, or the workbook could not be written
        """
        if not records:
            raise ReportGenerationError("Upload a file first to generate a report.")

        try:
            projection = self.project(records)
            output = io.BytesIO()
            with pd.ExcelWriter(output, engine='openpyxl') as writer:
                projection.frame.to_excel(writer, index=False, sheet_name=self.sheet_name)
                worksheet = writer.sheets[self.sheet_name]

                for cell in worksheet[1]:
                    cell.font = self.header_font

                for offset, is_pending in enumerate(projection.highlight):
                    if not is_pending:
                        continue
                    excel_row = offset + 2
                    for col in range(1, len(self.columns) + 1):
                        worksheet.cell(row=excel_row, column=col).fill = self.pending_fill

                for col, width in enumerate(projection.widths, start=1):
                    worksheet.column_dimensions[get_column_letter(col)].width = width

            logger.info("Generated status report with %d rows (%d pending)",
                        len(records), sum(projection.highlight))
            return output.getvalue()
        except Exception as e:
            raise ReportGenerationError(f"Could not generate the Excel report: {e}") from e

    def report_filename(self, today: Optional[date] = None) -> str:
        today = today or date.today()
        return REPORT_FILENAME_TEMPLATE.format(date=today.isoformat())

    def load_report(self, data: bytes) -> List[ShipmentRecord]:
        """
        Rebuild records from a previously generated status report.

        Raises:
            StructuralParseError: the file is not a readable report
            EmptyResultError: the report holds no rows
        """
        try:
            frame = pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=object)
        except Exception as e:
            raise WorkbookReadError(f"Could not read the report file: {e}") from e

        headers = {str(column).strip().lower(): column for column in frame.columns}
        if not all(required in headers for required in REQUIRED_REPORT_HEADERS):
            raise StructuralParseError("Invalid report file. It must contain 'awb number' and 'status' columns.")

        records: List[ShipmentRecord] = []
        for _, row in frame.iterrows():
            values = {}
            for header, attribute in FIELD_BY_HEADER.items():
                column = headers.get(header)
                values[attribute] = cell_text(row[column]) if column is not None else ''

            if not values['awb']:
                continue

            records.append(ShipmentRecord(
                awb=values['awb'],
                courier_partner=values['courier_partner'] or UNKNOWN_COURIER,
                sku=values['sku'] or PLACEHOLDER,
                category=values['category'] or PLACEHOLDER,
                qty=values['qty'] or PLACEHOLDER,
                size=values['size'] or PLACEHOLDER,
                return_type=parse_return_type(values['return_type']),
                suborder_id=values['suborder_id'] or PLACEHOLDER,
                return_reason=values['return_reason'] or PLACEHOLDER,
                return_shipping_fee=values['return_shipping_fee'] or PLACEHOLDER,
                delivered_on=values['delivered_on'] or PLACEHOLDER,
                status=ShipmentStatus.DONE if values['status'].lower() == 'done' else ShipmentStatus.PENDING,
            ))

        if not records:
            raise EmptyResultError("The uploaded report seems to be empty.")

        logger.info("Loaded %d records from a status report", len(records))
        return records


def parse_return_type(text: str) -> ReturnType:
    if text.strip().upper() == ReturnType.RTO.value:
        return ReturnType.RTO
    return ReturnType.CUSTOMER_RETURN
