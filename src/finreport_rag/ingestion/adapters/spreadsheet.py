"""Spreadsheet adapter: first-sheet grids from xlsx (openpyxl) or csv.

Rows in a spreadsheet are already discrete, so no row grouping is needed.
For each section label the adapter scans a small window of rows around the
label for the nearest row holding at least three figures, then hands those
figures to the same positional slot assignment as the PDF path.
"""

import csv
import io
import logging

from openpyxl import load_workbook

from finreport_rag.config import MIN_FIGURE_MAGNITUDE
from finreport_rag.ingestion.adapters.sources import ReportFormat, SpreadsheetSource, error_annotation
from finreport_rag.ingestion.figures.extract import build_positional_record, classify_label, keep_best, order_records
from finreport_rag.ingestion.figures.schema import ExtractionResult, FinancialRecord, SectionKey
from finreport_rag.ingestion.tables.classifiers import cell_text, parse_number, row_label

logger = logging.getLogger(__name__)

# Row offsets searched around a label row, nearest first, below before above
WINDOW_OFFSETS = (0, 1, -1, 2, -2, 3, -3)

# A data row needs at least this many figures
MIN_ROW_FIGURES = 3

Grid = list[list[object]]


# ─── Grid Readers ────────────────────────────────────────────────────────────


def read_xlsx_grid(data: bytes) -> Grid:
    """Return the first worksheet of an xlsx workbook as rows of cell values."""
    workbook = load_workbook(filename=io.BytesIO(data), data_only=True, read_only=True)
    try:
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def read_csv_grid(data: bytes) -> Grid:
    """Return csv bytes as rows of string cells."""
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = data.decode("latin-1")
    return [list(row) for row in csv.reader(io.StringIO(text))]


def read_grid(source: SpreadsheetSource) -> Grid:
    """Read the grid for a spreadsheet source in its declared sheet format."""
    if source.sheet_format is ReportFormat.CSV:
        return read_csv_grid(source.data)
    return read_xlsx_grid(source.data)


# ─── Figure Search ───────────────────────────────────────────────────────────


def format_figure(value: float) -> str:
    """Render a number with thousands separators ('12000' -> '12,000')."""
    if value.is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def row_figures(row: list[object], min_magnitude: float = MIN_FIGURE_MAGNITUDE) -> list[str]:
    """Return the row's numeric cells, left to right, formatted, dropping small noise."""
    figures: list[str] = []
    for cell in row:
        value = parse_number(cell)
        if value is not None and abs(value) >= min_magnitude:
            figures.append(format_figure(value))
    return figures


def nearest_figure_row(grid: Grid, label_idx: int) -> tuple[int, list[str]] | None:
    """Return (row index, figures) of the nearest qualifying data row around *label_idx*.

    Neighbouring rows that carry another section's label are skipped so a
    section never borrows the figures of the next one.
    """
    for offset in WINDOW_OFFSETS:
        j = label_idx + offset
        if j < 0 or j >= len(grid):
            continue
        if offset and classify_label(row_label(grid[j]), lenient=True) is not None:
            continue
        figures = row_figures(grid[j])
        if len(figures) >= MIN_ROW_FIGURES:
            return j, figures
    return None


def extract_from_grid(grid: Grid) -> list[FinancialRecord]:
    """Find each section's label row and attribute the nearest row's figures by position.

    When a label repeats, the occurrence that resolves the most slots wins.
    """
    found: dict[SectionKey, FinancialRecord] = {}
    for i, row in enumerate(grid):
        label = row_label(row)
        key = classify_label(label, lenient=True)
        if key is None:
            continue
        hit = nearest_figure_row(grid, i)
        if hit is None:
            logger.warning("Label '%s' at row %d has no figure row within the search window", label, i)
            keep_best(found, key, build_positional_record(key, label, []))
            continue
        data_idx, figures = hit
        logger.debug("Label '%s' at row %d -> figures from row %d", label, i, data_idx)
        keep_best(found, key, build_positional_record(key, label, figures))
    return order_records(found)


def grid_text(grid: Grid) -> str:
    """Render a grid as tab-separated lines, skipping empty rows."""
    lines = []
    for row in grid:
        cells = [cell_text(c) for c in row]
        if any(cells):
            lines.append("\t".join(cells).rstrip("\t"))
    return "\n".join(lines)


def extract_spreadsheet(source: SpreadsheetSource) -> ExtractionResult:
    """Read a spreadsheet source and extract its section records."""
    try:
        grid = read_grid(source)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Spreadsheet read failed for %s: %s", source.file_name, exc)
        annotation = error_annotation(source.sheet_format, exc)
        return ExtractionResult(errors=[annotation], text=annotation)

    logger.info("Read %d row(s) from %s", len(grid), source.file_name)
    return ExtractionResult(records=extract_from_grid(grid), text=grid_text(grid))
