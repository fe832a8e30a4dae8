"""Line and cell classification helpers for table detection.

Each helper takes a line (or cell) of extracted text and answers a yes/no
question about it, or splits it into cells.  Kept free of state so the
detectors and the spreadsheet adapter can share them.
"""

import math

from finreport_rag.ingestion.tables.patterns import (
    CURRENCY_STRIP_RE,
    DIGIT_RE,
    MIN_ROW_CHARS,
    MIN_SPACED_GAPS,
    MIN_TABS,
    MULTI_SPACE_RE,
    PIPE_RULE_RE,
    SEPARATOR_LINE_RE,
)


def has_digit(text: str) -> bool:
    """Return True if the text contains at least one digit."""
    return bool(DIGIT_RE.search(text))


def has_pipe(line: str) -> bool:
    """Return True for pipe-delimited rows like '| Tender | 12,606 |'."""
    return "|" in line


def has_tabs(line: str) -> bool:
    """Return True if the line has enough tab characters to be tab-delimited."""
    return line.count("\t") >= MIN_TABS


def has_column_spacing(line: str) -> bool:
    """Return True if words are laid out in columns (two or more multi-space gaps)."""
    return len(MULTI_SPACE_RE.findall(line.strip())) >= MIN_SPACED_GAPS


def is_separator_line(line: str) -> bool:
    """Return True for dashed rules that end a table block."""
    return bool(SEPARATOR_LINE_RE.match(line))


def is_pipe_rule(line: str) -> bool:
    """Return True for markdown header rules such as '|---|---|'."""
    return "|" in line and "-" in line and bool(PIPE_RULE_RE.match(line))


def is_table_row(line: str) -> bool:
    """Return True if the line looks like a row of tabular data.

    A row is pipe-delimited, tab-delimited, or column-aligned with at least
    one digit somewhere in it.
    """
    stripped = line.strip()
    if len(stripped) < MIN_ROW_CHARS:
        return False
    if has_pipe(stripped) or has_tabs(stripped):
        return True
    return has_column_spacing(stripped) and has_digit(stripped)


def split_table_row(line: str) -> list[str]:
    """Split a row into trimmed, non-empty cells on the strongest delimiter present.

    Priority: pipe, then tab, then multi-space column gaps, then comma.  A line
    with none of these comes back as a single cell.
    """
    stripped = line.strip()
    if has_pipe(stripped):
        parts = stripped.split("|")
    elif has_tabs(stripped):
        parts = stripped.split("\t")
    elif has_column_spacing(stripped):
        parts = MULTI_SPACE_RE.split(stripped)
    elif stripped.count(",") >= 2:
        parts = stripped.split(",")
    else:
        parts = [stripped]
    return [cell.strip() for cell in parts if cell.strip()]


def parse_number(cell: object) -> float | None:
    """Parse a spreadsheet cell as a number, or return None.

    Accepts ints/floats directly and strings after stripping thousands
    separators and currency symbols; "(1,234)" is read as negative.
    """
    if isinstance(cell, bool) or cell is None:
        return None
    if isinstance(cell, (int, float)):
        return float(cell)
    text = CURRENCY_STRIP_RE.sub("", str(cell))
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    if not text or text in ("-", "."):
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return -value if negative else value


def is_numeric_cell(cell: object) -> bool:
    """Return True if the cell parses as a number."""
    return parse_number(cell) is not None


def cell_text(cell: object) -> str:
    """Return the cell as trimmed text ('' for empty cells)."""
    if cell is None:
        return ""
    return str(cell).strip()


def row_label(cells: list) -> str:
    """Join the non-numeric text cells of a row into one label string."""
    return " ".join(cell_text(c) for c in cells if isinstance(c, str) and cell_text(c) and not is_numeric_cell(c))
