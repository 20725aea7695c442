"""Custom exceptions for return sheet parsing and report generation."""


class ReturnAuditError(RuntimeError):
    """Base error for the ReturnAudit application."""


class StructuralParseError(ReturnAuditError):
    """Raised when the uploaded sheet does not have the expected layout."""


class WorkbookReadError(StructuralParseError):
    """Raised when the uploaded bytes cannot be opened as a workbook."""


class EmptyResultError(ReturnAuditError):
    """Raised when the sheet layout is valid but holds no shipments."""


class ReportGenerationError(ReturnAuditError):
    """Raised when the status report workbook cannot be built."""


class ColumnResolutionWarning(UserWarning):
    """Optional column could not be located; values fall back to a placeholder."""
