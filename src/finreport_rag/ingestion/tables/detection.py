"""Table candidate detection over extracted PDF text and positioned words.

PDF text extraction destroys column geometry.  These detectors recover row
boundaries from delimiters (text-line mode) or from word coordinates
(positioned-token mode) and leave column assignment to the figure extractor.
Neither detector raises: malformed input simply yields no candidates.
"""

import logging
import statistics

from finreport_rag.ingestion.tables.classifiers import (
    has_digit,
    is_pipe_rule,
    is_separator_line,
    is_table_row,
    split_table_row,
)
from finreport_rag.ingestion.tables.patterns import (
    BASE_CONFIDENCE,
    CONSISTENT_COLUMNS_BONUS,
    GAP_VARIATION_LIMIT,
    HAS_DIGITS_BONUS,
    HEADER_ROW_BONUS,
    LONG_TABLE_BONUS,
    LONG_TABLE_ROWS,
    MIN_TEXT_TABLE_ROWS,
    MIN_TOKEN_TABLE_ROWS,
    ROW_Y_TOLERANCE,
)
from finreport_rag.ingestion.tables.schema import PositionedToken, TableCandidate

logger = logging.getLogger(__name__)


# ─── Confidence ──────────────────────────────────────────────────────────────


def table_confidence(rows: list[list[str]]) -> float:
    """Score how table-like a block of rows is, in [0, 1].

    Base 0.5, +0.2 when every row has the same cell count, +0.2 when any cell
    holds a digit, +0.1 for five or more rows.
    """
    if not rows:
        return 0.0
    confidence = BASE_CONFIDENCE
    if len({len(row) for row in rows}) == 1:
        confidence += CONSISTENT_COLUMNS_BONUS
    if any(has_digit(cell) for row in rows for cell in row):
        confidence += HAS_DIGITS_BONUS
    if len(rows) >= LONG_TABLE_ROWS:
        confidence += LONG_TABLE_BONUS
    return min(round(confidence, 4), 1.0)


# ─── Text-Line Mode ──────────────────────────────────────────────────────────


def _emit(tables: list[TableCandidate], rows: list[list[str]], min_rows: int, page: int = 0) -> None:
    """Append *rows* as a candidate if the block is long enough."""
    if len(rows) > min_rows:
        tables.append(TableCandidate(rows=rows, confidence=table_confidence(rows), page=page))


def detect_tables(text: str) -> list[TableCandidate]:
    """Group consecutive table-like lines of *text* into TableCandidates.

    A run of table rows ends at a blank line or a dashed separator line; lines
    that are neither table rows nor terminators are skipped without ending the
    run.  Runs of more than three rows are kept.
    """
    if not isinstance(text, str) or not text:
        return []

    tables: list[TableCandidate] = []
    current: list[list[str]] = []

    for line in text.splitlines():
        stripped = line.strip()

        # Blank line or dashed rule terminates the current run
        if not stripped or is_separator_line(stripped):
            _emit(tables, current, MIN_TEXT_TABLE_ROWS)
            current = []
            continue

        # Markdown header rules sit inside a table; skip them
        if is_pipe_rule(stripped):
            continue

        if is_table_row(stripped):
            cells = split_table_row(stripped)
            if len(cells) >= 2:
                current.append(cells)

    _emit(tables, current, MIN_TEXT_TABLE_ROWS)
    logger.debug("Text-line detector found %d table candidates", len(tables))
    return tables


# ─── Positioned-Token Mode ───────────────────────────────────────────────────


def group_rows(tokens: list[PositionedToken], tolerance: float = ROW_Y_TOLERANCE) -> list[list[PositionedToken]]:
    """Bucket tokens into rows by vertical position, top-to-bottom then left-to-right.

    Tokens whose ``y`` lies within *tolerance* of the row's first token share
    that row.  Pages are grouped independently.
    """
    rows: list[list[PositionedToken]] = []
    for page in sorted({t.page for t in tokens}):
        page_tokens = sorted((t for t in tokens if t.page == page), key=lambda t: (t.y, t.x))
        current: list[PositionedToken] = []
        anchor_y: float | None = None
        for token in page_tokens:
            if anchor_y is not None and abs(token.y - anchor_y) > tolerance:
                rows.append(sorted(current, key=lambda t: t.x))
                current = []
                anchor_y = None
            if anchor_y is None:
                anchor_y = token.y
            current.append(token)
        if current:
            rows.append(sorted(current, key=lambda t: t.x))
    return rows


def _has_regular_gaps(row: list[PositionedToken]) -> bool:
    """Return True if horizontal gaps between tokens vary little relative to their mean."""
    gaps = [b.x - a.x for a, b in zip(row, row[1:])]
    if len(gaps) < 2:
        return False
    mean = statistics.fmean(gaps)
    if mean <= 0:
        return False
    return statistics.pstdev(gaps) / mean < GAP_VARIATION_LIMIT


def _is_tabular_row(row: list[PositionedToken]) -> bool:
    """A positioned row is tabular if it has 2+ tokens and digits or regular spacing."""
    if len(row) < 2:
        return False
    return any(has_digit(t.text) for t in row) or _has_regular_gaps(row)


def _token_confidence(rows: list[list[str]]) -> float:
    """Text-mode confidence plus a bonus for a capitalised header cell."""
    confidence = table_confidence(rows)
    first_cell = rows[0][0] if rows and rows[0] else ""
    if first_cell[:1].isupper():
        confidence += HEADER_ROW_BONUS
    return min(round(confidence, 4), 1.0)


def detect_tables_from_tokens(tokens: list[PositionedToken]) -> list[TableCandidate]:
    """Group consecutive tabular rows of positioned words into TableCandidates.

    Regions of three or more qualifying rows are kept.  A page change or a
    non-tabular row ends the current region.
    """
    if not tokens:
        return []

    tables: list[TableCandidate] = []
    region: list[list[str]] = []
    region_page = 0

    def flush() -> None:
        if len(region) > MIN_TOKEN_TABLE_ROWS:
            tables.append(TableCandidate(rows=list(region), confidence=_token_confidence(region), page=region_page))
        region.clear()

    for row in group_rows(tokens):
        page = row[0].page
        if region and page != region_page:
            flush()
        if _is_tabular_row(row):
            if not region:
                region_page = page
            region.append([t.text for t in row])
        else:
            flush()
    flush()

    logger.debug("Positioned-token detector found %d table candidates from %d tokens", len(tables), len(tokens))
    return tables
