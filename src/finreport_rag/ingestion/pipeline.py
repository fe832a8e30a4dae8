"""Single entry point of the ingestion core.

raw file bytes + declared format -> ReportSource -> format adapter ->
(table candidates | structured report) -> figure extractor -> FinancialRecords.

The pipeline is stateless and fails soft: every call builds fresh values from
its own input, and unreadable or unsupported input degrades to an empty
result carrying an inline error annotation instead of raising.

Usage:
    python -m finreport_rag.ingestion.pipeline "reports/123 Tak Tak Financial Report.pdf"
"""

import argparse
import logging
from pathlib import Path

from finreport_rag.ingestion.adapters.pdf import extract_pdf
from finreport_rag.ingestion.adapters.sources import (
    PdfSource,
    ReportFormat,
    SpreadsheetSource,
    StructuredSource,
    build_source,
    resolve_format,
)
from finreport_rag.ingestion.adapters.spreadsheet import extract_spreadsheet
from finreport_rag.ingestion.adapters.structured import extract_structured
from finreport_rag.ingestion.figures.schema import ExtractionResult, FinancialRecord

logger = logging.getLogger(__name__)


def extract_report(file_bytes: bytes, file_format: ReportFormat | str, file_name: str) -> ExtractionResult:
    """Run the matching format adapter over *file_bytes* and return everything it produced."""
    try:
        source = build_source(file_bytes, file_format, file_name)
    except ValueError as exc:
        logger.warning("%s", exc)
        annotation = f"[Unsupported file {file_name}: {exc}]"
        return ExtractionResult(errors=[annotation], text=annotation)

    match source:
        case PdfSource():
            result = extract_pdf(source)
        case SpreadsheetSource():
            result = extract_spreadsheet(source)
        case StructuredSource():
            result = extract_structured(source)

    logger.info("%s: %d record(s), %d error(s)", file_name, len(result.records), len(result.errors))
    return result


def extract_financial_records(file_bytes: bytes, file_format: ReportFormat | str, file_name: str) -> list[FinancialRecord]:
    """Extract the normalised financial records from one report file.

    Returns an empty list when no section could be found or the file could not
    be read; never raises for malformed input.
    """
    return extract_report(file_bytes, file_format, file_name).records


if __name__ == "__main__":
    from finreport_rag.rag.context import format_context  # pylint: disable=import-outside-toplevel

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    parser = argparse.ArgumentParser(description="Extract financial figures from a report file")
    parser.add_argument("path", type=Path, help="PDF, xlsx, csv or JSON report")
    parser.add_argument("--format", dest="file_format", default=None, help="Override the format inferred from the extension")
    args = parser.parse_args()

    fmt = args.file_format or resolve_format(file_name=args.path.name) or args.path.suffix
    extracted = extract_report(args.path.read_bytes(), fmt, args.path.name)
    print(format_context(extracted.records, args.path.name, errors=extracted.errors))
