"""Unit tests for the LLM context formatter."""

# pylint: disable=missing-class-docstring,missing-function-docstring

from finreport_rag.ingestion.adapters.sources import StructuredSource
from finreport_rag.ingestion.adapters.structured import extract_structured
from finreport_rag.ingestion.figures.columns import Slot
from finreport_rag.ingestion.figures.extract import extract_figures
from finreport_rag.ingestion.figures.schema import FinancialRecord, MappingMethod, ReconciliationPhase, Section
from finreport_rag.rag.context import DATA_NOT_FOUND, NO_RECORDS_MESSAGE, format_context, format_value_line

GP_TEXT = "Gross Profit (Item 1.0-2.0) (Financial A/C) 12,606 13,307 16,385 16,385 16,385 22,083 25,755\n"


def gross_profit_record() -> FinancialRecord:
    return FinancialRecord(
        section=Section.GROSS_PROFIT,
        section_label="Gross Profit (Item 1.0-2.0) (Financial A/C)",
        reconciliation_phase=ReconciliationPhase.BEFORE,
        values={"tender": "12,606", "business_plan": "N/A", "audit_report_wip": "16,385"},
        mapping=MappingMethod.HEADER,
        confidence=0.9,
    )


class TestFormatValueLine:

    def test_plain_slot(self):
        assert format_value_line(Slot.TENDER, "12,606") == "  Tender (Budget): 12,606 HK$'000"

    def test_audit_is_flagged(self):
        assert format_value_line(Slot.AUDIT_REPORT_WIP, "16,385") == "  *** Audit Report (WIP): 16,385 HK$'000 ***"

    def test_na_has_no_unit(self):
        assert format_value_line(Slot.PROJECTION, "N/A") == "  Projection: N/A"


class TestFormatContext:

    def test_idempotent(self):
        records = extract_figures([], GP_TEXT)
        assert format_context(records, "report.pdf") == format_context(records, "report.pdf")

    def test_empty_records_render_data_not_found(self):
        result = format_context([], "notes.pdf")
        assert NO_RECORDS_MESSAGE in result
        assert result.count(DATA_NOT_FOUND) == 5
        assert result.startswith("=== EXTRACTED DATA FROM notes.pdf ===\n")

    def test_sections_in_canonical_order(self):
        result = format_context([gross_profit_record()], "report.pdf")
        headings = [line for line in result.splitlines() if line.startswith("=== ") and "EXTRACTED" not in line]
        assert headings == [
            "=== GROSS PROFIT (BEFORE RECONCILIATION) ===",
            "=== GROSS PROFIT (AFTER RECONCILIATION) ===",
            "=== TOTAL INCOME ===",
            "=== TOTAL COST ===",
            "=== ACCUMULATED NET PROFIT / (LOSS) ===",
        ]

    def test_record_lines(self):
        result = format_context([gross_profit_record()], "report.pdf")
        assert "Item: Gross Profit (Item 1.0-2.0) (Financial A/C)" in result
        assert "  Tender (Budget): 12,606 HK$'000" in result
        assert "  Business Plan: N/A" in result
        assert "  *** Audit Report (WIP): 16,385 HK$'000 ***" in result
        assert "  [mapping: header, confidence: 0.90]" in result
        assert NO_RECORDS_MESSAGE not in result
        assert result.count(DATA_NOT_FOUND) == 4

    def test_blank_json_figure_renders_as_na(self):
        source = StructuredSource(file_name="123 Tak Tak_data.json", data=b'{"gross_profit": {"before_reconciliation": {"tender": ""}}}')
        result = format_context(extract_structured(source).records, "123 Tak Tak_data.json")
        assert "  Tender (Budget): N/A" in result
        assert "Tender (Budget):  HK$'000" not in result

    def test_legend_lists_every_column(self):
        result = format_context([], "report.pdf")
        assert "COLUMN MAPPING (ALL REPORTS):" in result
        assert "  Audit Report (WIP)  <-- AUDIT REPORT (WIP) figure" in result
        assert "  Cash Flow" in result

    def test_errors_listed_as_notes(self):
        result = format_context([], "broken.pdf", errors=["[Error reading PDF: bad xref]"])
        assert "NOTES:\n  [Error reading PDF: bad xref]\n" in result

    def test_ends_with_single_newline(self):
        result = format_context([gross_profit_record()], "report.pdf")
        assert result.endswith("\n")
        assert not result.endswith("\n\n")
