"""Render extracted financial records into the LLM context block.

The output is part of the prompt, so it is fully deterministic: the same
records always produce byte-identical text.  The column legend is restated in
every block because the LLM has no other way to tell which position-encoded
figure means what.
"""

from finreport_rag.config import CURRENCY_UNIT
from finreport_rag.ingestion.figures.columns import SLOT_LABELS, Slot
from finreport_rag.ingestion.figures.schema import (
    NOT_AVAILABLE,
    SECTION_HEADINGS,
    SECTION_ORDER,
    FinancialRecord,
    SectionKey,
)

DATA_NOT_FOUND = "(data not found)"

NO_RECORDS_MESSAGE = "No financial figures could be extracted from this file: data not found."


def _legend() -> list[str]:
    """Column legend in canonical slot order."""
    lines = ["COLUMN MAPPING (ALL REPORTS):"]
    for slot in Slot:
        marker = "  <-- AUDIT REPORT (WIP) figure" if slot is Slot.AUDIT_REPORT_WIP else ""
        lines.append(f"  {SLOT_LABELS[slot]}{marker}")
    return lines


def format_value_line(slot: Slot, value: str, unit: str = CURRENCY_UNIT) -> str:
    """Render one slot; the audit figure is flagged because it is asked for most."""
    rendered = NOT_AVAILABLE if value == NOT_AVAILABLE else f"{value} {unit}"
    line = f"{SLOT_LABELS[slot]}: {rendered}"
    if slot is Slot.AUDIT_REPORT_WIP:
        return f"  *** {line} ***"
    return f"  {line}"


def format_record(record: FinancialRecord, unit: str = CURRENCY_UNIT) -> list[str]:
    """Render one record as labelled lines (without its section heading)."""
    lines = [f"Item: {record.section_label}"]
    for slot in Slot:
        if slot.value in record.values:
            lines.append(format_value_line(slot, record.values[slot.value], unit))
    lines.append(f"  [mapping: {record.mapping.value}, confidence: {record.confidence:.2f}]")
    return lines


def format_context(records: list[FinancialRecord], file_name: str, errors: list[str] | tuple[str, ...] = ()) -> str:
    """Render *records* from *file_name* as a labelled text block for the LLM prompt.

    Every canonical section gets a heading; sections without a record print
    "(data not found)".  Error annotations from the adapters are listed under
    NOTES so the LLM knows why figures may be missing.
    """
    by_key: dict[SectionKey, FinancialRecord] = {}
    for record in records:
        by_key.setdefault(record.key, record)

    lines: list[str] = [f"=== EXTRACTED DATA FROM {file_name} ===", f"Units: {CURRENCY_UNIT}", ""]
    lines.extend(_legend())
    lines.append("")

    if not by_key:
        lines.append(NO_RECORDS_MESSAGE)
        lines.append("")

    for key in SECTION_ORDER:
        lines.append(f"=== {SECTION_HEADINGS[key]} ===")
        record = by_key.get(key)
        if record is None:
            lines.append(f"  {DATA_NOT_FOUND}")
        else:
            lines.extend(format_record(record))
        lines.append("")

    if errors:
        lines.append("NOTES:")
        lines.extend(f"  {err}" for err in errors)
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
