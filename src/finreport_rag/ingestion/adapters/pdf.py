"""PDF adapter: text and positioned words via pdfplumber.

Both views feed the table detectors; the raw text also feeds the figure
extractor's line pass, which is what rescues rows whose columns the layout
lost.
"""

import io
import logging
from dataclasses import dataclass, field

import pdfplumber

from finreport_rag.ingestion.adapters.sources import PdfSource, ReportFormat, error_annotation
from finreport_rag.ingestion.figures.extract import extract_figures
from finreport_rag.ingestion.figures.schema import ExtractionResult
from finreport_rag.ingestion.tables.detection import detect_tables, detect_tables_from_tokens
from finreport_rag.ingestion.tables.schema import PositionedToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PdfExtraction:
    """What the PDF reader recovered: page text, positioned words and page count."""

    text: str
    tokens: list[PositionedToken] = field(default_factory=list)
    page_count: int = 0
    error: str | None = None


def read_pdf(data: bytes) -> PdfExtraction:
    """Extract layout-preserving text and word positions from every page.

    Returns a PdfExtraction whose ``text`` is an error annotation (and
    ``error`` is set) if the bytes cannot be parsed as a PDF.
    """
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            page_texts: list[str] = []
            tokens: list[PositionedToken] = []
            for page_num, page in enumerate(pdf.pages):
                page_texts.append(page.extract_text(layout=True) or "")
                for word in page.extract_words():
                    tokens.append(PositionedToken(text=word["text"], x=float(word["x0"]), y=float(word["top"]), page=page_num))
            return PdfExtraction(text="\n".join(page_texts), tokens=tokens, page_count=len(pdf.pages))
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("PDF extraction failed: %s", exc)
        annotation = error_annotation(ReportFormat.PDF, exc)
        return PdfExtraction(text=annotation, error=annotation)


def extract_pdf(source: PdfSource) -> ExtractionResult:
    """Run table detection and figure extraction over a PDF source."""
    extraction = read_pdf(source.data)
    if extraction.error:
        return ExtractionResult(errors=[extraction.error], text=extraction.text)

    tables = detect_tables(extraction.text) + detect_tables_from_tokens(extraction.tokens)
    logger.info(
        "Read %d page(s), %d word(s), %d table candidate(s) from %s",
        extraction.page_count,
        len(extraction.tokens),
        len(tables),
        source.file_name,
    )
    records = extract_figures(tables, extraction.text)
    return ExtractionResult(records=records, text=extraction.text, tables=tables)
