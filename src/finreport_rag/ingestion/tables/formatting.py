"""Pipe-row rendering of detected tables for supporting LLM context.

The figure extractor works from the same candidates; this module only gives
the LLM a readable view of whatever else the detector recovered.
"""

from finreport_rag.ingestion.tables.schema import TableCandidate

NO_TABLES_MESSAGE = "No tables detected in document."


def _render_rows(rows: list[list[str]]) -> list[str]:
    """Render each row as '| a | b | c |'."""
    return ["| " + " | ".join(row) + " |" for row in rows]


def format_tables(tables: list[TableCandidate]) -> str:
    """Render table candidates as numbered pipe-row blocks with their confidence."""
    if not tables:
        return NO_TABLES_MESSAGE

    lines: list[str] = [f"=== TABLES DETECTED: {len(tables)} ===", ""]
    for idx, table in enumerate(tables, start=1):
        lines.append(f"--- Table {idx} (page {table.page + 1}, confidence: {table.confidence * 100:.0f}%) ---")
        lines.extend(_render_rows(table.rows))
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
