"""Unit tests for section matching, slot assignment and figure extraction."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest
from pydantic import ValidationError

from finreport_rag.ingestion.figures.columns import (
    AFTER_RECONCILIATION,
    BEFORE_RECONCILIATION,
    FINANCIAL_STATUS_COLUMNS,
    FINANCIAL_STATUS_WIDTH,
    Slot,
    match_header_cell,
)
from finreport_rag.ingestion.figures.extract import (
    assign_slots,
    classify_label,
    extract_figures,
    extract_from_tables,
    figure_tokens,
    find_header_row,
    positional_confidence,
    strip_figures,
)
from finreport_rag.ingestion.figures.schema import (
    NOT_AVAILABLE,
    FinancialRecord,
    MappingMethod,
    ReconciliationPhase,
    Section,
)
from finreport_rag.ingestion.tables.detection import detect_tables
from finreport_rag.ingestion.tables.schema import TableCandidate

BEFORE = ReconciliationPhase.BEFORE
AFTER = ReconciliationPhase.AFTER

FULL_GP_LINE = "Gross Profit (Item 1.0-2.0) (Financial A/C) 12,606 13,307 16,385 16,385 16,385 22,083 25,755"


# ===========================================================================
# Column schema
# ===========================================================================


class TestColumnSchema:

    def test_before_reconciliation_order(self):
        assert BEFORE_RECONCILIATION.slots == (
            Slot.TENDER,
            Slot.FIRST_WORKING,
            Slot.BUSINESS_PLAN,
            Slot.AUDIT_REPORT_WIP,
            Slot.PROJECTION,
            Slot.ACCRUAL,
            Slot.CASH_FLOW,
        )

    def test_after_reconciliation_has_no_audit(self):
        assert Slot.AUDIT_REPORT_WIP not in AFTER_RECONCILIATION.slots
        assert len(AFTER_RECONCILIATION) == 6

    def test_financial_status_width(self):
        assert FINANCIAL_STATUS_WIDTH == 17
        assert FINANCIAL_STATUS_COLUMNS[7] == ("Audit Report (WIP)", Slot.AUDIT_REPORT_WIP)


class TestMatchHeaderCell:

    @pytest.mark.parametrize(
        "cell, slot",
        [
            ("Tender (Budget)", Slot.TENDER),
            ("1st Working", Slot.FIRST_WORKING),
            ("Adjustment Cost (Budget)", Slot.ADJ_COST),
            ("Adj Cost Variation", Slot.ADJ_COST_VARIATION),
            ("Audit Report (WIP)", Slot.AUDIT_REPORT_WIP),
            ("CASH FLOW", Slot.CASH_FLOW),
        ],
    )
    def test_known_headers(self, cell, slot):
        assert match_header_cell(cell) is slot

    @pytest.mark.parametrize("cell", ["G1=% (Accrual)", "F=Variance", "Description", ""])
    def test_not_figure_columns(self, cell):
        assert match_header_cell(cell) is None


# ===========================================================================
# Section matching
# ===========================================================================


class TestClassifyLabel:

    @pytest.mark.parametrize(
        "label, expected",
        [
            ("Gross Profit (Item 1.0-2.0) (Financial A/C)", (Section.GROSS_PROFIT, BEFORE)),
            ("GROSS PROFIT - FINANCIAL", (Section.GROSS_PROFIT, BEFORE)),
            ("Gross profit before reconciliation", (Section.GROSS_PROFIT, BEFORE)),
            ("Gross Profit (Item 3.0-4.3)", (Section.GROSS_PROFIT, AFTER)),
            ("Gross Profit after reconciliation", (Section.GROSS_PROFIT, AFTER)),
            ("Total Income", (Section.TOTAL_INCOME, BEFORE)),
            ("Total Cost", (Section.TOTAL_COST, BEFORE)),
            ("Acc. Net Profit/(Loss)", (Section.NET_PROFIT, BEFORE)),
        ],
    )
    def test_labels(self, label, expected):
        assert classify_label(label) == expected

    def test_bare_gross_profit_needs_a_phase_cue(self):
        assert classify_label("Gross Profit") is None

    def test_bare_gross_profit_lenient(self):
        assert classify_label("Gross Profit", lenient=True) == (Section.GROSS_PROFIT, BEFORE)

    def test_unrelated(self):
        assert classify_label("Retention money") is None

    def test_long_prose_line_is_not_a_label(self):
        assert classify_label("gross profit " + "x" * 300) is None


# ===========================================================================
# Numeric tokens
# ===========================================================================


class TestFigureTokens:

    def test_item_codes_dropped(self):
        assert figure_tokens(FULL_GP_LINE) == ["12,606", "13,307", "16,385", "16,385", "16,385", "22,083", "25,755"]

    def test_percentages_dropped(self):
        assert figure_tokens("Margin 4.5% 1,200 95%") == ["1,200"]

    def test_negative_in_parentheses(self):
        assert figure_tokens("Net Profit (3,400) 1,200") == ["(3,400)", "1,200"]

    def test_custom_threshold(self):
        assert figure_tokens("Row 50 150 1,500", min_magnitude=1000) == ["1,500"]

    def test_strip_figures_keeps_label(self):
        assert strip_figures(FULL_GP_LINE) == "Gross Profit (Item 1.0-2.0) (Financial A/C)"


class TestAssignSlots:

    def test_partial_tokens_fill_left_to_right(self):
        values = assign_slots(["1", "2"], BEFORE_RECONCILIATION)
        assert values["tender"] == "1"
        assert values["first_working"] == "2"
        assert values["business_plan"] == NOT_AVAILABLE
        assert list(values) == [s.value for s in BEFORE_RECONCILIATION.slots]

    def test_surplus_tokens_ignored(self):
        values = assign_slots([str(i) for i in range(10)], AFTER_RECONCILIATION)
        assert len(values) == 6
        assert values["cash_flow"] == "5"

    @pytest.mark.parametrize("n, expected", [(7, 0.6), (9, 0.6), (5, 0.4), (4, 0.4), (3, 0.2), (0, 0.2)])
    def test_positional_confidence(self, n, expected):
        assert positional_confidence(n, BEFORE_RECONCILIATION) == expected


# ===========================================================================
# Record model
# ===========================================================================


class TestFinancialRecord:

    def test_unknown_slot_rejected(self):
        with pytest.raises(ValidationError):
            FinancialRecord(section=Section.TOTAL_COST, section_label="Total Cost", reconciliation_phase=BEFORE, values={"bogus": "1"})

    def test_audit_after_reconciliation_rejected(self):
        with pytest.raises(ValidationError):
            FinancialRecord(
                section=Section.GROSS_PROFIT,
                section_label="Gross Profit (Item 3.0-4.3)",
                reconciliation_phase=AFTER,
                values={"audit_report_wip": "16,385"},
            )

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            FinancialRecord(section=Section.TOTAL_COST, section_label="Total Cost", reconciliation_phase=BEFORE, values={}, confidence=1.5)

    def test_value_defaults_to_na(self):
        record = FinancialRecord(section=Section.TOTAL_COST, section_label="Total Cost", reconciliation_phase=BEFORE, values={"tender": "1"})
        assert record.value(Slot.PROJECTION) == NOT_AVAILABLE
        assert record.resolved_count == 1

    def test_values_are_read_only(self):
        record = FinancialRecord(section=Section.TOTAL_COST, section_label="Total Cost", reconciliation_phase=BEFORE, values={"tender": "1"})
        with pytest.raises(TypeError):
            record.values["tender"] = "999"
        with pytest.raises(AttributeError):
            record.values.update({"projection": "2"})
        assert record.value(Slot.TENDER) == "1"

    def test_caller_dict_is_not_shared(self):
        values = {"tender": "1"}
        record = FinancialRecord(section=Section.TOTAL_COST, section_label="Total Cost", reconciliation_phase=BEFORE, values=values)
        values["tender"] = "999"
        assert record.value(Slot.TENDER) == "1"

    def test_dump_returns_plain_dict(self):
        record = FinancialRecord(section=Section.TOTAL_COST, section_label="Total Cost", reconciliation_phase=BEFORE, values={"tender": "1"})
        dumped = record.model_dump(mode="json")["values"]
        assert isinstance(dumped, dict)
        assert dumped == {"tender": "1"}
        assert record == FinancialRecord.model_validate(record.model_dump())


# ===========================================================================
# Text extraction
# ===========================================================================


class TestExtractFromText:

    def test_label_followed_by_five_tokens(self):
        text = "Gross Profit (Item 1.0-2.0) (Financial A/C)\n12,606 13,307 16,385 16,385 16,385\n"
        records = extract_figures([], text)
        assert len(records) == 1
        record = records[0]
        assert record.value(Slot.TENDER) == "12,606"
        assert record.value(Slot.FIRST_WORKING) == "13,307"
        assert record.value(Slot.BUSINESS_PLAN) == "16,385"
        assert record.value(Slot.AUDIT_REPORT_WIP) == "16,385"
        assert record.value(Slot.PROJECTION) == "16,385"
        assert record.value(Slot.ACCRUAL) == NOT_AVAILABLE
        assert record.confidence == 0.4

    def test_full_line_end_to_end(self):
        records = extract_figures([], f"Financial Status\n{FULL_GP_LINE}\n")
        record = records[0]
        assert record.value(Slot.ACCRUAL) == "22,083"
        assert record.value(Slot.CASH_FLOW) == "25,755"
        assert record.mapping is MappingMethod.POSITIONAL
        assert record.confidence == 0.6
        assert record.section_label == "Gross Profit (Item 1.0-2.0) (Financial A/C)"

    def test_no_gross_profit_returns_empty(self):
        assert not extract_figures([], "Monthly progress summary\nWork is 45% complete.\n")

    def test_few_tokens_yield_low_confidence_record(self):
        records = extract_figures([], "Total Cost 271,163 283,735\n")
        assert records[0].value(Slot.FIRST_WORKING) == "283,735"
        assert records[0].value(Slot.BUSINESS_PLAN) == NOT_AVAILABLE
        assert records[0].confidence == 0.2

    def test_widening_stops_at_next_label(self):
        text = "Gross Profit (Financial A/C)\nTotal Income 283,769 300,120 310,000 320,000\n"
        records = {r.section: r for r in extract_figures([], text)}
        assert records[Section.GROSS_PROFIT].resolved_count == 0
        assert records[Section.TOTAL_INCOME].value(Slot.TENDER) == "283,769"

    def test_widening_looks_two_lines_at_most(self):
        text = "Gross Profit (Financial A/C)\nnote one\nnote two\n12,606 13,307 16,385 16,385\n"
        records = extract_figures([], text)
        assert records[0].resolved_count == 0

    def test_blank_lines_do_not_count_as_widened_lines(self):
        text = "Gross Profit (Financial A/C)\n\n\n12,606 13,307 16,385 16,385\n"
        records = extract_figures([], text)
        assert records[0].value(Slot.AUDIT_REPORT_WIP) == "16,385"

    def test_after_reconciliation_skips_audit(self):
        text = "Gross Profit (Item 3.0-4.3) 13,307 13,307 15,900 16,100 21,000 24,500\n"
        record = extract_figures([], text)[0]
        assert record.reconciliation_phase is AFTER
        assert Slot.AUDIT_REPORT_WIP.value not in record.values
        assert record.value(Slot.PROJECTION) == "16,100"
        assert record.value(Slot.CASH_FLOW) == "24,500"

    def test_records_in_canonical_order(self):
        text = "Total Cost 1,000 2,000\nGross Profit (Item 3.0-4.3) 500 600\nGross Profit (Financial A/C) 700 800\n"
        keys = [r.key for r in extract_figures([], text)]
        assert keys == [(Section.GROSS_PROFIT, BEFORE), (Section.GROSS_PROFIT, AFTER), (Section.TOTAL_COST, BEFORE)]

    def test_first_occurrence_wins(self):
        text = "Total Income 1,000 2,000 3,000 4,000\nTotal Income 9,000\n"
        assert extract_figures([], text)[0].value(Slot.TENDER) == "1,000"

    def test_summary_heading_does_not_shadow_data_row(self):
        text = "TOTAL COST SUMMARY\n\nTotal Cost 271,163 283,735 290,000 291,000 292,000\n"
        records = extract_figures([], text)
        assert len(records) == 1
        assert records[0].value(Slot.TENDER) == "271,163"
        assert records[0].value(Slot.PROJECTION) == "292,000"
        assert records[0].resolved_count == 5

    def test_later_occurrence_needs_strictly_more_slots(self):
        text = "Total Income 1,000 2,000\nTotal Income 9,000 8,000\n"
        assert extract_figures([], text)[0].value(Slot.TENDER) == "1,000"

    def test_row_with_enough_figures_is_not_widened(self):
        text = "Gross Profit (Item 1.0-2.0) (Financial A/C) 12,606 13,307 16,385 16,385 16,385\nLess: Overheads 1,200 1,300\n"
        record = extract_figures([], text)[0]
        assert record.value(Slot.PROJECTION) == "16,385"
        assert record.value(Slot.ACCRUAL) == NOT_AVAILABLE
        assert record.value(Slot.CASH_FLOW) == NOT_AVAILABLE
        assert record.confidence == 0.4


# ===========================================================================
# Table extraction
# ===========================================================================


class TestExtractFromTables:

    def test_header_aligned_row(self):
        rows = [
            ["Description", "Tender", "Business Plan", "Audit Report (WIP)"],
            ["Gross Profit (Financial A/C)", "12,606", "16,385", "16,000"],
        ]
        found = extract_from_tables([TableCandidate(rows=rows, confidence=0.9)])
        record = found[(Section.GROSS_PROFIT, BEFORE)]
        assert record.mapping is MappingMethod.HEADER
        assert record.confidence == 0.9
        assert record.value(Slot.TENDER) == "12,606"
        assert record.value(Slot.BUSINESS_PLAN) == "16,385"
        assert record.value(Slot.AUDIT_REPORT_WIP) == "16,000"
        assert record.value(Slot.FIRST_WORKING) == NOT_AVAILABLE

    def test_header_mapping_ignores_column_order(self):
        rows = [
            ["Description", "Projection", "Audit Report (WIP)", "Tender"],
            ["Total Cost", "283,735", "280,000", "271,163"],
        ]
        record = extract_from_tables([TableCandidate(rows=rows, confidence=0.9)])[(Section.TOTAL_COST, BEFORE)]
        assert record.value(Slot.TENDER) == "271,163"
        assert record.value(Slot.PROJECTION) == "283,735"
        assert list(record.values)[:2] == ["tender", "first_working"]

    def test_header_after_row_drops_audit_column(self):
        rows = [
            ["Description", "Tender", "Business Plan", "Audit Report (WIP)"],
            ["Gross Profit (Item 3.0-4.3)", "13,307", "15,900", "15,000"],
        ]
        record = extract_from_tables([TableCandidate(rows=rows, confidence=0.9)])[(Section.GROSS_PROFIT, AFTER)]
        assert Slot.AUDIT_REPORT_WIP.value not in record.values
        assert record.value(Slot.BUSINESS_PLAN) == "15,900"

    def test_blank_header_cell_is_na(self):
        rows = [
            ["Description", "Tender", "Business Plan", "Projection"],
            ["Total Income", "283,769", "-", "300,120"],
        ]
        record = extract_from_tables([TableCandidate(rows=rows, confidence=0.8)])[(Section.TOTAL_INCOME, BEFORE)]
        assert record.value(Slot.BUSINESS_PLAN) == NOT_AVAILABLE

    def test_full_width_financial_status_row(self):
        row = ["2.0", "Gross Profit (Financial A/C)"] + [f"{n},000" for n in range(10, 25)]
        found = extract_from_tables([TableCandidate(rows=[row], confidence=0.7)])
        record = found[(Section.GROSS_PROFIT, BEFORE)]
        assert record.mapping is MappingMethod.HEADER
        assert record.value(Slot.TENDER) == "10,000"
        assert record.value(Slot.AUDIT_REPORT_WIP) == "15,000"
        assert record.value(Slot.ACCRUAL) == "21,000"
        assert record.value(Slot.CASH_FLOW) == "22,000"

    def test_misaligned_row_falls_back_to_positional(self):
        rows = [
            ["Description", "Tender", "Business Plan", "Projection"],
            ["Total Income", "283,769 300,120"],
        ]
        record = extract_from_tables([TableCandidate(rows=rows, confidence=0.6)])[(Section.TOTAL_INCOME, BEFORE)]
        assert record.mapping is MappingMethod.POSITIONAL
        assert record.value(Slot.FIRST_WORKING) == "300,120"

    def test_detected_pipe_table(self):
        text = (
            "| Description | Tender | 1st Working | Business Plan | Audit Report (WIP) |\n"
            "| Gross Profit (Financial A/C) | 12,606 | 13,307 | 16,385 | 16,000 |\n"
            "| Total Income | 283,769 | 290,000 | 300,120 | 299,000 |\n"
            "| Total Cost | 271,163 | 276,693 | 283,735 | 283,000 |\n"
        )
        records = extract_figures(detect_tables(text), text)
        by_section = {r.section: r for r in records}
        assert by_section[Section.GROSS_PROFIT].mapping is MappingMethod.HEADER
        assert by_section[Section.GROSS_PROFIT].value(Slot.AUDIT_REPORT_WIP) == "16,000"
        assert by_section[Section.TOTAL_COST].value(Slot.FIRST_WORKING) == "276,693"

    def test_repeated_label_keeps_best_row(self):
        table = TableCandidate(
            rows=[["Total Cost", "see below"], ["note", ""], ["Total Cost", "271,163", "283,735", "290,000", "291,000"], ["x", "y"]],
            confidence=0.7,
        )
        record = extract_from_tables([table])[(Section.TOTAL_COST, BEFORE)]
        assert record.value(Slot.TENDER) == "271,163"
        assert record.resolved_count == 4

    def test_text_pass_wins_when_it_resolves_more(self):
        table = TableCandidate(rows=[["Total Income", "283,769"], ["a", "1"], ["b", "2"], ["c", "3"]], confidence=0.9)
        text = "Total Income 283,769 290,000 300,120 299,000 310,000\n"
        record = extract_figures([table], text)[0]
        assert record.resolved_count == 5


class TestFindHeaderRow:

    def test_needs_three_slots(self):
        assert find_header_row([["Item", "Tender", "Projection"]]) is None

    def test_returns_column_map(self):
        idx, columns = find_header_row([["Project 123"], ["Item", "Tender", "1st Working", "Cash Flow"]])
        assert idx == 1
        assert columns == {1: Slot.TENDER, 2: Slot.FIRST_WORKING, 3: Slot.CASH_FLOW}
