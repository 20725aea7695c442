"""
Utility functions for the ReturnAudit application
"""
import logging
from datetime import date, datetime
from typing import Any, Union

import pandas as pd

from config import PLACEHOLDER, REPORT_DATE_FORMAT


def configure_logging(level: str = 'INFO') -> None:
    """Install a basic handler unless the host (e.g. Streamlit) already did"""
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, level.upper(), logging.INFO),
            format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        )


def cell_text(value: Any) -> str:
    """
    Render a raw cell value as trimmed text.

    Integral floats lose their ``.0`` so numeric tracking numbers keep their
    printed form; dates render with the report date format.
    """
    if value is None:
        return ''
    if isinstance(value, float):
        if pd.isna(value):
            return ''
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (datetime, date)):
        return format_date(value)
    return str(value).strip()


def format_date(value: Union[date, datetime]) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime(REPORT_DATE_FORMAT)


def parse_date_safe(s) -> pd.Timestamp:
    """
    Safely parse a date string to pd.Timestamp.
    Treats 1900-01-01 placeholders as NaT.

    Args:
        s: Date string or value

    Returns:
        pd.Timestamp or pd.NaT
    """
    if s is None or (isinstance(s, float) and pd.isna(s)):
        return pd.NaT
    try:
        dt = pd.to_datetime(s, errors='coerce')
    except (TypeError, ValueError, OverflowError):
        return pd.NaT
    if pd.notna(dt) and dt.year == 1900:
        return pd.NaT
    return dt


def format_delivered_on(value: Union[date, str, None]) -> str:
    """Consistent text for a delivery date, raw strings pass through"""
    if value is None or value == '':
        return PLACEHOLDER
    if isinstance(value, (datetime, date)):
        return format_date(value)
    return str(value)


def format_count(done: int, total: int) -> str:
    return f"{done} of {total} shipment(s) marked as received"
