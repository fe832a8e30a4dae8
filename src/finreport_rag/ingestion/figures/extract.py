"""Locate the key financial rows and attribute their figures to schema slots.

Works over table candidates first (where a header row can pin each figure to
its column) and over raw text lines second.  When no header cue exists the
figures are assigned left to right onto the phase's ColumnSchema: tender,
1st working, business plan, audit report (before reconciliation only),
projection, accrual, cash flow.  That fallback is a heuristic and the record's
confidence says so.

Nothing here raises on missing data: a matched section with too few figures
still yields a record with "N/A" in the unresolved slots, and an unmatched
section yields no record at all.
"""

import logging
import re

from finreport_rag.config import MIN_FIGURE_MAGNITUDE
from finreport_rag.ingestion.figures.columns import (
    FINANCIAL_STATUS_WIDTH,
    ColumnSchema,
    Slot,
    financial_status_index_map,
    match_header_cell,
)
from finreport_rag.ingestion.figures.schema import (
    CANONICAL_LABELS,
    NOT_AVAILABLE,
    SECTION_ORDER,
    FinancialRecord,
    MappingMethod,
    ReconciliationPhase,
    Section,
    SectionKey,
)
from finreport_rag.ingestion.tables.patterns import FIGURE_TOKEN_RE
from finreport_rag.ingestion.tables.schema import TableCandidate

logger = logging.getLogger(__name__)


# ─── Constants ───────────────────────────────────────────────────────────────

# Lines following a label row that may hold its figures
WIDEN_LINES = 2

# Fewer resolved figures than this marks the record as low confidence
MIN_RESOLVED_TOKENS = 4

# A header row must name at least this many distinct slots
MIN_HEADER_SLOTS = 3

# In raw text, longer lines are prose, not row labels
MAX_LABEL_LINE_CHARS = 200

POSITIONAL_FULL_CONFIDENCE = 0.6
POSITIONAL_PARTIAL_CONFIDENCE = 0.4
POSITIONAL_LOW_CONFIDENCE = 0.2

# "Item 3.0-4.3" is the after-reconciliation gross profit line
_AFTER_ITEM_RE = re.compile(r"item\s*3\.0\s*-\s*4\.3")
_BEFORE_ITEM_RE = re.compile(r"item\s*1\.0\s*-\s*2\.0")

_SIMPLE_SECTIONS: tuple[tuple[str, Section], ...] = (
    ("total income", Section.TOTAL_INCOME),
    ("total cost", Section.TOTAL_COST),
    ("net profit", Section.NET_PROFIT),
)


# ─── Section Matching ────────────────────────────────────────────────────────


def classify_label(text: str, lenient: bool = False) -> SectionKey | None:
    """Return the (section, phase) a row label belongs to, or None.

    Gross profit rows need a phase cue: "before" or the "Item 1.0-2.0" code
    or "financial" for the before-reconciliation row, "after",
    "reconciliation" or the "Item 3.0-4.3" code for the after row.  With
    *lenient* (discrete spreadsheet rows) a bare "Gross Profit" label counts as
    the before row.  Total income, total cost and net profit rows are always
    before-reconciliation rows.
    """
    low = " ".join(text.lower().split())
    if not lenient and len(low) > MAX_LABEL_LINE_CHARS:
        return None

    if "gross profit" in low:
        if "before" in low or _BEFORE_ITEM_RE.search(low):
            return Section.GROSS_PROFIT, ReconciliationPhase.BEFORE
        if "after" in low or "reconciliation" in low or _AFTER_ITEM_RE.search(low):
            return Section.GROSS_PROFIT, ReconciliationPhase.AFTER
        if "financial" in low or lenient:
            return Section.GROSS_PROFIT, ReconciliationPhase.BEFORE
        return None

    for needle, section in _SIMPLE_SECTIONS:
        if needle in low:
            return section, ReconciliationPhase.BEFORE
    return None


# ─── Numeric Tokens ──────────────────────────────────────────────────────────


def token_magnitude(token: str) -> float:
    """Return the absolute numeric value of a figure token such as '(12,606)'."""
    digits = token.strip("()").replace(",", "").lstrip("-")
    try:
        return abs(float(digits))
    except ValueError:
        return 0.0


def figure_tokens(text: str, min_magnitude: float = MIN_FIGURE_MAGNITUDE) -> list[str]:
    """Return the figure tokens in *text*, left to right, dropping small noise.

    Item codes ("1.0", "2.0"), page numbers and similar tokens under
    *min_magnitude* are discarded.
    """
    return [tok for tok in FIGURE_TOKEN_RE.findall(text) if token_magnitude(tok) >= min_magnitude]


def strip_figures(text: str, min_magnitude: float = MIN_FIGURE_MAGNITUDE) -> str:
    """Remove figure tokens from a row so only its label remains."""

    def _drop(match: re.Match) -> str:
        return "" if token_magnitude(match.group(1)) >= min_magnitude else match.group(0)

    label = FIGURE_TOKEN_RE.sub(_drop, text).replace("|", " ").replace("\t", " ")
    return " ".join(label.split()).strip(" :;-")


def _is_figure_cell(cell: str) -> bool:
    """Return True if the whole cell is one figure token (any magnitude)."""
    return bool(FIGURE_TOKEN_RE.fullmatch(cell.strip()))


# ─── Slot Assignment ─────────────────────────────────────────────────────────


def assign_slots(tokens: list[str], schema: ColumnSchema) -> dict[str, str]:
    """Assign *tokens* to *schema* slots left to right; unfilled slots get 'N/A'."""
    if len(tokens) > len(schema):
        logger.debug("Ignoring %d surplus figure(s) beyond %s", len(tokens) - len(schema), schema.name)
    values = {slot.value: NOT_AVAILABLE for slot in schema.slots}
    for slot, token in zip(schema.slots, tokens):
        values[slot.value] = token
    return values


def positional_confidence(n_tokens: int, schema: ColumnSchema) -> float:
    """Confidence of a left-to-right assignment given how many figures were found."""
    if n_tokens >= len(schema):
        return POSITIONAL_FULL_CONFIDENCE
    if n_tokens >= MIN_RESOLVED_TOKENS:
        return POSITIONAL_PARTIAL_CONFIDENCE
    return POSITIONAL_LOW_CONFIDENCE


def build_positional_record(key: SectionKey, label: str, tokens: list[str]) -> FinancialRecord:
    """Build a record from figures whose column is known only by order."""
    section, phase = key
    schema = phase.schema
    if len(tokens) < MIN_RESOLVED_TOKENS:
        logger.warning("Only %d figure(s) found for %s (%s); unresolved slots set to N/A", len(tokens), section.value, phase.value)
    return FinancialRecord(
        section=section,
        section_label=label or CANONICAL_LABELS[key],
        reconciliation_phase=phase,
        values=assign_slots(tokens, schema),
        mapping=MappingMethod.POSITIONAL,
        confidence=positional_confidence(len(tokens), schema),
    )


def _widened_tokens(lines: list[str], idx: int, schema: ColumnSchema) -> list[str]:
    """Collect figures from line *idx*, borrowing from up to two following lines.

    Real layouts often print a row's data visually offset from its label.
    A row that already carries MIN_RESOLVED_TOKENS figures is complete and is
    never widened.  Otherwise widening stops at another section's label, after
    WIDEN_LINES non-blank lines, or once a borrowed line has brought the count
    to MIN_RESOLVED_TOKENS.
    """
    tokens = figure_tokens(lines[idx])
    if len(tokens) >= MIN_RESOLVED_TOKENS:
        return tokens
    looked = 0
    j = idx + 1
    while len(tokens) < len(schema) and looked < WIDEN_LINES and j < len(lines):
        following = lines[j]
        j += 1
        if not following.strip():
            continue
        if classify_label(following) is not None:
            break
        looked += 1
        borrowed = figure_tokens(following)
        tokens.extend(borrowed)
        if borrowed and len(tokens) >= MIN_RESOLVED_TOKENS:
            break
    return tokens


# ─── Header-Aware Mapping ────────────────────────────────────────────────────


def find_header_row(rows: list[list[str]]) -> tuple[int, dict[int, Slot]] | None:
    """Return (row index, column index -> slot) for the first row naming enough columns."""
    for i, row in enumerate(rows):
        mapping: dict[int, Slot] = {}
        for j, cell in enumerate(row):
            slot = match_header_cell(cell)
            if slot is not None and slot not in mapping.values():
                mapping[j] = slot
        if len(mapping) >= MIN_HEADER_SLOTS:
            return i, mapping
    return None


def _header_record(key: SectionKey, label: str, row: list[str], columns: dict[int, Slot], confidence: float) -> FinancialRecord:
    """Build a record by reading each mapped column of an aligned row."""
    section, phase = key
    values = {slot.value: NOT_AVAILABLE for slot in phase.schema.slots}
    for idx in sorted(columns):
        slot = columns[idx]
        if phase is ReconciliationPhase.AFTER and slot is Slot.AUDIT_REPORT_WIP:
            continue
        cell = row[idx].strip() if idx < len(row) else ""
        values[slot.value] = cell if _is_figure_cell(cell) else NOT_AVAILABLE
    ordered = {s.value: values[s.value] for s in Slot if s.value in values}
    return FinancialRecord(
        section=section,
        section_label=label or CANONICAL_LABELS[key],
        reconciliation_phase=phase,
        values=ordered,
        mapping=MappingMethod.HEADER,
        confidence=confidence,
    )


# ─── Extraction Passes ───────────────────────────────────────────────────────


def keep_best(found: dict[SectionKey, FinancialRecord], key: SectionKey, record: FinancialRecord) -> None:
    """Store *record* unless an earlier match for *key* resolved as many slots.

    Reports repeat section labels (summary headings, cross references), so the
    first occurrence is often a bare label with no figures of its own.
    """
    current = found.get(key)
    if current is not None and current.resolved_count >= record.resolved_count:
        return
    if current is not None:
        logger.debug("Later '%s' row resolves %d slots (was %d); replacing", record.section_label, record.resolved_count, current.resolved_count)
    found[key] = record


def extract_from_tables(tables: list[TableCandidate]) -> dict[SectionKey, FinancialRecord]:
    """Find section rows inside table candidates.

    A row whose cell count matches a recognised header row (or the full
    Financial Status width) is read column by column.  Anything else falls back
    to positional assignment with widening over the following rows.
    """
    found: dict[SectionKey, FinancialRecord] = {}
    for table in tables:
        header = find_header_row(table.rows)
        lines = [" ".join(row) for row in table.rows]
        for i, row in enumerate(table.rows):
            key = classify_label(lines[i])
            if key is None:
                continue
            label = strip_figures(lines[i])

            if header is not None and i != header[0] and len(row) == len(table.rows[header[0]]):
                record = _header_record(key, label, row, header[1], table.confidence)
            elif header is None and len(row) == FINANCIAL_STATUS_WIDTH:
                record = _header_record(key, label, row, financial_status_index_map(), table.confidence)
            else:
                # Ambiguous columns: fall back to left-to-right assignment
                logger.debug("No aligned header for '%s'; using positional mapping", label)
                record = build_positional_record(key, label, _widened_tokens(lines, i, key[1].schema))
            keep_best(found, key, record)
    return found


def extract_from_text(text: str) -> dict[SectionKey, FinancialRecord]:
    """Find section label lines in raw text and assign their figures by position."""
    found: dict[SectionKey, FinancialRecord] = {}
    lines = text.splitlines()
    for i, line in enumerate(lines):
        key = classify_label(line)
        if key is None:
            continue
        keep_best(found, key, build_positional_record(key, strip_figures(line), _widened_tokens(lines, i, key[1].schema)))
    return found


def order_records(found: dict[SectionKey, FinancialRecord]) -> list[FinancialRecord]:
    """Return records in canonical section order."""
    return [found[key] for key in SECTION_ORDER if key in found]


def extract_figures(tables: list[TableCandidate], text: str) -> list[FinancialRecord]:
    """Extract one record per matched section, preferring table rows over raw text.

    A table-derived record is kept unless the raw-text pass resolved strictly
    more figures for the same section.
    """
    from_tables = extract_from_tables(tables)
    from_text = extract_from_text(text or "")

    found: dict[SectionKey, FinancialRecord] = dict(from_text)
    for key, record in from_tables.items():
        text_record = from_text.get(key)
        if text_record is None or record.resolved_count >= text_record.resolved_count:
            found[key] = record

    logger.info(
        "Extracted %d section record(s) (%d from tables, %d from text)",
        len(found),
        sum(1 for k in found if from_tables.get(k) is found[k]),
        sum(1 for k in found if from_text.get(k) is found[k]),
    )
    return order_records(found)
