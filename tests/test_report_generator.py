"""
Unit tests for the return status report workbook
"""

import io
import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pandas as pd
import pytest
from openpyxl import Workbook, load_workbook

from config import REPORT_COLUMNS
from exceptions import EmptyResultError, ReportGenerationError, StructuralParseError
from models import ReturnType, ShipmentRecord, ShipmentStatus
from report_generator import ReportGenerator, parse_return_type


@pytest.fixture
def records():
    return [
        ShipmentRecord(awb="99988877701", suborder_id="SO-1", sku="KT-1", category="Kurtas", qty="2",
                       size="M", return_reason="Wrong item", return_shipping_fee="0",
                       delivered_on=date(2025, 9, 16), courier_partner="Delhivery",
                       return_type=ReturnType.RTO),
        ShipmentRecord(awb="XB99887766", suborder_id="SO-2", sku="TP-2", return_reason="Size issue",
                       return_shipping_fee="45", delivered_on="-", courier_partner="Xpressbees",
                       status=ShipmentStatus.DONE),
    ]


def test_project_row(records):
    row = ReportGenerator().project_row(records[0])
    assert list(row) == REPORT_COLUMNS
    assert row['Delivered On'] == "2025-09-16"
    assert row['Return Type'] == "RTO"
    assert row['Status'] == "Pending"


def test_workbook_layout(records):
    data = ReportGenerator().generate_report_workbook(records)
    ws = load_workbook(io.BytesIO(data)).active

    assert ws.title == "Return Status Report"
    assert [cell.value for cell in ws[1]] == REPORT_COLUMNS
    assert ws.cell(row=2, column=1).value == "99988877701"
    assert ws.cell(row=3, column=12).value == "Done"
    assert ws.max_row == 3


def test_pending_rows_are_filled_red(records):
    data = ReportGenerator().generate_report_workbook(records)
    ws = load_workbook(io.BytesIO(data)).active

    for col in range(1, len(REPORT_COLUMNS) + 1):
        assert ws.cell(row=2, column=col).fill.fgColor.rgb == "FFFF0000"
        assert ws.cell(row=3, column=col).fill.fill_type is None


def test_column_widths_fit_content(records):
    data = ReportGenerator().generate_report_workbook(records)
    ws = load_workbook(io.BytesIO(data)).active

    assert ws.column_dimensions['A'].width == len("99988877701") + 2
    # Longest value wins over the shorter header
    assert ws.column_dimensions["L"].width == len("Pending") + 2
    assert ws.column_dimensions["B"].width == len("Courier Partner") + 2


def test_empty_records_cannot_be_exported():
    with pytest.raises(ReportGenerationError):
        ReportGenerator().generate_report_workbook([])


def test_report_filename():
    assert ReportGenerator().report_filename(date(2025, 9, 20)) == "Return_Status_Report_2025-09-20.xlsx"


def test_load_report_restores_progress(records):
    generator = ReportGenerator()
    restored = generator.load_report(generator.generate_report_workbook(records))

    assert [r.awb for r in restored] == ["99988877701", "XB99887766"]
    assert restored[0].status == ShipmentStatus.PENDING
    assert restored[1].status == ShipmentStatus.DONE
    assert restored[0].return_type == ReturnType.RTO
    assert restored[1].return_type == ReturnType.CUSTOMER_RETURN
    assert restored[0].courier_partner == "Delhivery"
    assert restored[0].qty == "2"
    assert restored[0].delivered_on == "2025-09-16"
    assert restored[1].category == "-"


def test_load_report_requires_awb_and_status():
    frame = pd.DataFrame({'AWB Number': ["123"], 'Courier Partner': ["Delhivery"]})
    output = io.BytesIO()
    frame.to_excel(output, index=False)
    with pytest.raises(StructuralParseError):
        ReportGenerator().load_report(output.getvalue())


def test_load_report_skips_blank_awbs_and_rejects_empty():
    wb = Workbook()
    ws = wb.active
    ws.append(["AWB Number", "Status"])
    ws.append([None, "Done"])
    output = io.BytesIO()
    wb.save(output)
    with pytest.raises(EmptyResultError):
        ReportGenerator().load_report(output.getvalue())


def test_load_report_rejects_garbage():
    with pytest.raises(StructuralParseError):
        ReportGenerator().load_report(b"not an excel file")


def test_parse_return_type():
    assert parse_return_type("rto") == ReturnType.RTO
    assert parse_return_type("Customer Return") == ReturnType.CUSTOMER_RETURN
    assert parse_return_type("") == ReturnType.CUSTOMER_RETURN


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
