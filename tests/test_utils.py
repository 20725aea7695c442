"""
Unit tests for cell rendering, date helpers, settings and charts
"""

import sys
from datetime import date, datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pandas as pd
import pytest

from config import CUE_SUCCESS, Settings
from data_visualizer import VisualizationManager, records_frame
from models import ShipmentRecord, ShipmentStatus
from utils import cell_text, format_count, format_delivered_on, parse_date_safe


def test_cell_text():
    assert cell_text(None) == ""
    assert cell_text(float("nan")) == ""
    assert cell_text(99988877701.0) == "99988877701"
    assert cell_text(12.5) == "12.5"
    assert cell_text("  AWB1 ") == "AWB1"
    assert cell_text(datetime(2025, 9, 16, 10, 30)) == "2025-09-16"


def test_parse_date_safe():
    """Test date parsing with 1900-01-01 handling"""
    result = parse_date_safe("2025-09-16")
    assert pd.notna(result)
    assert result.year == 2025

    assert pd.isna(parse_date_safe("1900-01-01"))
    assert pd.isna(parse_date_safe("invalid"))
    assert pd.isna(parse_date_safe(None))


def test_format_delivered_on():
    assert format_delivered_on(date(2025, 9, 16)) == "2025-09-16"
    assert format_delivered_on("") == "-"
    assert format_delivered_on(None) == "-"
    assert format_delivered_on("16/09") == "16/09"


def test_format_count():
    assert format_count(3, 10) == "3 of 10 shipment(s) marked as received"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("RETURNAUDIT_DEBOUNCE_MS", "120")
    monkeypatch.setenv("RETURNAUDIT_SOUNDS_DIR", "/tmp/cues")
    monkeypatch.setenv("RETURNAUDIT_LOG_LEVEL", "debug")
    monkeypatch.delenv("RETURNAUDIT_AUTO_CLEAR_MS", raising=False)

    settings = Settings.from_env()
    assert settings.debounce_ms == 120
    assert settings.auto_clear_ms == 5000
    assert settings.log_level == "DEBUG"
    assert settings.sound_path(CUE_SUCCESS) == Path("/tmp/cues/verify-success.mp3")


def test_settings_rejects_non_integer(monkeypatch):
    monkeypatch.setenv("RETURNAUDIT_MIN_AWB_LENGTH", "five")
    with pytest.raises(ValueError):
        Settings.from_env()


def test_progress_charts():
    records = [
        ShipmentRecord(awb="A1", courier_partner="Delhivery"),
        ShipmentRecord(awb="A2", courier_partner="Delhivery", status=ShipmentStatus.DONE),
        ShipmentRecord(awb="A3", courier_partner="Xpressbees"),
    ]
    frame = records_frame(records)
    assert list(frame.columns) == ['Courier', 'Return Type', 'Status']

    viz = VisualizationManager()
    donut = viz.create_status_donut(records)
    assert list(donut.data[0].values) == [1, 2]

    bars = viz.create_courier_progress_chart(records)
    assert [trace.name for trace in bars.data] == ['Done', 'Pending']

    empty = viz.create_return_type_chart([])
    assert len(empty.data) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
