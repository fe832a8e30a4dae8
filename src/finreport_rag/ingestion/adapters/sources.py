"""Report format resolution and the ReportSource tagged variant.

A drive file is exactly one of: a PDF, a spreadsheet (xlsx or csv), or a
pre-processed JSON report.  ``build_source`` wraps the raw bytes in the
matching variant so the pipeline can dispatch with ``match``.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath


class ReportFormat(str, Enum):
    """Source file formats the pipeline understands."""

    PDF = "pdf"
    XLSX = "xlsx"
    CSV = "csv"
    JSON = "json"


# Authority order when one project has several sources: JSON > spreadsheet > PDF
FORMAT_PRIORITY: dict[ReportFormat, int] = {
    ReportFormat.JSON: 0,
    ReportFormat.XLSX: 1,
    ReportFormat.CSV: 1,
    ReportFormat.PDF: 2,
}

MIME_FORMATS: dict[str, ReportFormat] = {
    "application/pdf": ReportFormat.PDF,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ReportFormat.XLSX,
    "text/csv": ReportFormat.CSV,
    "application/json": ReportFormat.JSON,
}

EXTENSION_FORMATS: dict[str, ReportFormat] = {
    ".pdf": ReportFormat.PDF,
    ".xlsx": ReportFormat.XLSX,
    ".xlsm": ReportFormat.XLSX,
    ".csv": ReportFormat.CSV,
    ".json": ReportFormat.JSON,
}


def resolve_format(declared: str | None = None, mime_type: str | None = None, file_name: str | None = None) -> ReportFormat | None:
    """Resolve a ReportFormat from a declared format, a MIME type or a file extension (in that order)."""
    if declared:
        key = declared.strip().lower().lstrip(".")
        for fmt in ReportFormat:
            if key == fmt.value:
                return fmt
        if key in MIME_FORMATS:
            return MIME_FORMATS[key]
    if mime_type and mime_type in MIME_FORMATS:
        return MIME_FORMATS[mime_type]
    if file_name:
        return EXTENSION_FORMATS.get(PurePath(file_name).suffix.lower())
    return None


@dataclass(frozen=True)
class PdfSource:
    """Raw bytes of a PDF report."""

    file_name: str
    data: bytes


@dataclass(frozen=True)
class SpreadsheetSource:
    """Raw bytes of a spreadsheet report (xlsx workbook or csv text)."""

    file_name: str
    data: bytes
    sheet_format: ReportFormat = ReportFormat.XLSX


@dataclass(frozen=True)
class StructuredSource:
    """Raw bytes of a pre-processed JSON report."""

    file_name: str
    data: bytes


ReportSource = PdfSource | SpreadsheetSource | StructuredSource


def build_source(file_bytes: bytes, file_format: ReportFormat | str, file_name: str) -> ReportSource:
    """Wrap *file_bytes* in the ReportSource variant for *file_format*.

    Raises ValueError for a format the pipeline does not support.
    """
    fmt = file_format if isinstance(file_format, ReportFormat) else resolve_format(file_format, file_name=file_name)
    if fmt is None:
        raise ValueError(f"Unsupported report format {file_format!r} for {file_name}")
    if fmt is ReportFormat.PDF:
        return PdfSource(file_name=file_name, data=file_bytes)
    if fmt in (ReportFormat.XLSX, ReportFormat.CSV):
        return SpreadsheetSource(file_name=file_name, data=file_bytes, sheet_format=fmt)
    return StructuredSource(file_name=file_name, data=file_bytes)


def error_annotation(file_format: ReportFormat, message: object) -> str:
    """Return the inline annotation that stands in for unreadable content."""
    return f"[Error reading {file_format.value.upper()}: {message}]"
