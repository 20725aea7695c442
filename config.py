"""
Configuration for the ReturnAudit application

Static markers and keyword tables live here as module constants. Timing and
asset settings can be overridden through environment variables.
"""
import os
from dataclasses import dataclass
from pathlib import Path

# Header markers (matched against lowercase header text)
AWB_HEADER_MARKER = 'awb number'
SUBORDER_HEADER_MARKER = 'suborder id'
RETURN_REASON_HEADER_MARKER = 'return reason'
RETURN_FEE_HEADER_MARKER = 'return shipping fee'
DELIVERED_ON_HEADER_MARKER = 'delivered on'

# Fixed column positions in the supplier export
PRODUCT_DETAILS_COLUMN = 0  # Column A
SUBORDER_ID_COLUMN = 1      # Column B
AWB_COLUMN = 5              # Column F

# Free-text product detail labels, evaluated in this order
PRODUCT_DETAIL_LABELS = (
    ('sku', ('SKU ID:', 'SKU:')),
    ('category', ('Category:',)),
    ('qty', ('Qty:', 'Quantity:')),
    ('size', ('Size:',)),
)

PLACEHOLDER = '-'
UNKNOWN_COURIER = 'Unknown'

# Courier whose scanners sometimes drop or alter the check digit
PREFIX_MATCH_COURIER_MARKER = 'delhivery'

# Return reasons that need a closer look at the packing table
HIGHLIGHT_REASON_KEYWORDS = [
    'wrong',
    'defective',
    'stain',
    'damage',
    'torn',
    'incomplete',
    'missing',
]

# Output report
REPORT_SHEET_NAME = 'Return Status Report'
REPORT_FILENAME_TEMPLATE = 'Return_Status_Report_{date}.xlsx'
REPORT_DATE_FORMAT = '%Y-%m-%d'
PENDING_FILL_COLOR = 'FFFF0000'
COLUMN_WIDTH_PADDING = 2

REPORT_COLUMNS = [
    'AWB Number',
    'Courier Partner',
    'SKU',
    'Category',
    'Qty',
    'Size',
    'Return Type',
    'Suborder ID',
    'Return Reason',
    'Return Shipping Fee',
    'Delivered On',
    'Status',
]

# Audio cue keys
CUE_SUCCESS = 'success'
CUE_SUCCESS_EMPHASIZED = 'success-emphasized'
CUE_ERROR_OR_INFO = 'error-or-info'

DEFAULT_SOUND_FILES = {
    CUE_SUCCESS: 'verify-success.mp3',
    CUE_SUCCESS_EMPHASIZED: 'verify-alert.mp3',
    CUE_ERROR_OR_INFO: 'verify-oops.mp3',
}


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """Runtime settings for verification timing, assets and logging"""
    debounce_ms: int = 50
    auto_clear_ms: int = 5000
    success_toast_ms: int = 15000
    min_awb_length: int = 5
    sounds_dir: Path = Path('assets/sounds')
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            debounce_ms=_int_env('RETURNAUDIT_DEBOUNCE_MS', 50),
            auto_clear_ms=_int_env('RETURNAUDIT_AUTO_CLEAR_MS', 5000),
            success_toast_ms=_int_env('RETURNAUDIT_SUCCESS_TOAST_MS', 15000),
            min_awb_length=_int_env('RETURNAUDIT_MIN_AWB_LENGTH', 5),
            sounds_dir=Path(os.getenv('RETURNAUDIT_SOUNDS_DIR', 'assets/sounds')),
            log_level=os.getenv('RETURNAUDIT_LOG_LEVEL', 'INFO').upper(),
        )

    def sound_path(self, cue: str) -> Path:
        return self.sounds_dir / DEFAULT_SOUND_FILES[cue]
