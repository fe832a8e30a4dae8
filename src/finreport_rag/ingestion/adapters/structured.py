"""Structured-JSON adapter for pre-processed reports.

Upstream pre-processing already keyed every figure by column, so this path is
a direct field copy: no heuristics, values round-trip exactly, and missing
keys become "N/A".  It is the authoritative source whenever a project has one.

Expected shape::

    {
      "project": "...", "report_date": "...",
      "gross_profit": {
        "before_reconciliation": {"tender": "12,606", "first_working": "13,307", ...},
        "after_reconciliation": {"tender": "13,307", ...}
      },
      "total_income": {...}, "total_cost": {...}, "net_profit": {...},
      "items": [{"description": "Total Income", "tender": "283,769", ...}]
    }
"""

import logging

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from finreport_rag.ingestion.adapters.sources import ReportFormat, StructuredSource, error_annotation
from finreport_rag.ingestion.figures.columns import SLOT_ALIASES, Slot
from finreport_rag.ingestion.figures.extract import classify_label, order_records
from finreport_rag.ingestion.figures.schema import (
    CANONICAL_LABELS,
    NOT_AVAILABLE,
    ExtractionResult,
    FinancialRecord,
    MappingMethod,
    ReconciliationPhase,
    Section,
    SectionKey,
)

logger = logging.getLogger(__name__)


def _aliases(slot: Slot) -> AliasChoices:
    """Accept the snake_case slot name plus its camelCase spellings."""
    return AliasChoices(slot.value, *SLOT_ALIASES.get(slot, ()))


class SlotFigures(BaseModel):
    """Figures for one section, keyed by slot.  Numbers are kept as strings."""

    model_config = ConfigDict(extra="ignore")

    tender: str | None = Field(default=None, validation_alias=_aliases(Slot.TENDER))
    first_working: str | None = Field(default=None, validation_alias=_aliases(Slot.FIRST_WORKING))
    adj_cost: str | None = Field(default=None, validation_alias=_aliases(Slot.ADJ_COST))
    revision: str | None = Field(default=None, validation_alias=_aliases(Slot.REVISION))
    business_plan: str | None = Field(default=None, validation_alias=_aliases(Slot.BUSINESS_PLAN))
    audit_report_wip: str | None = Field(default=None, validation_alias=_aliases(Slot.AUDIT_REPORT_WIP))
    adj_cost_variation: str | None = Field(default=None, validation_alias=_aliases(Slot.ADJ_COST_VARIATION))
    projection: str | None = Field(default=None, validation_alias=_aliases(Slot.PROJECTION))
    committed_value: str | None = Field(default=None, validation_alias=_aliases(Slot.COMMITTED_VALUE))
    accrual: str | None = Field(default=None, validation_alias=_aliases(Slot.ACCRUAL))
    cash_flow: str | None = Field(default=None, validation_alias=_aliases(Slot.CASH_FLOW))

    @field_validator(*(slot.value for slot in Slot), mode="before")
    @classmethod
    def stringify(cls, value: object) -> object:
        """Render JSON numbers as their plain text; blank strings count as missing."""
        if isinstance(value, bool):
            raise ValueError("boolean is not a figure")
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def present(self) -> dict[Slot, str]:
        """Return the slots that carry a value, in canonical order."""
        return {slot: getattr(self, slot.value) for slot in Slot if getattr(self, slot.value) is not None}


class LabelledFigures(SlotFigures):
    """A free-form item row: a description plus slot figures."""

    description: str


class GrossProfitFigures(BaseModel):
    """Gross profit before and after reconciliation."""

    before_reconciliation: SlotFigures | None = Field(
        default=None, validation_alias=AliasChoices("before_reconciliation", "beforeReconciliation")
    )
    after_reconciliation: SlotFigures | None = Field(
        default=None, validation_alias=AliasChoices("after_reconciliation", "afterReconciliation")
    )


class StructuredReport(BaseModel):
    """A pre-processed report whose shape mirrors the column schema."""

    model_config = ConfigDict(extra="ignore")

    project: str | None = None
    report_date: str | None = Field(default=None, validation_alias=AliasChoices("report_date", "reportDate"))
    gross_profit: GrossProfitFigures | None = Field(default=None, validation_alias=AliasChoices("gross_profit", "grossProfit"))
    total_income: SlotFigures | None = Field(default=None, validation_alias=AliasChoices("total_income", "totalIncome"))
    total_cost: SlotFigures | None = Field(default=None, validation_alias=AliasChoices("total_cost", "totalCost"))
    net_profit: SlotFigures | None = Field(default=None, validation_alias=AliasChoices("net_profit", "netProfit"))
    items: list[LabelledFigures] = Field(default_factory=list)


# ─── Record Building ─────────────────────────────────────────────────────────


def record_from_figures(key: SectionKey, figures: SlotFigures, label: str | None = None) -> FinancialRecord:
    """Copy *figures* into a record: schema slots default to 'N/A', extra slots are kept."""
    section, phase = key
    present = figures.present()
    if phase is ReconciliationPhase.AFTER and Slot.AUDIT_REPORT_WIP in present:
        logger.debug("Dropping audit figure from after-reconciliation %s", section.value)
        del present[Slot.AUDIT_REPORT_WIP]

    slots = [s for s in Slot if s in phase.schema.slots or s in present]
    return FinancialRecord(
        section=section,
        section_label=label or CANONICAL_LABELS[key],
        reconciliation_phase=phase,
        values={s.value: present.get(s, NOT_AVAILABLE) for s in slots},
        mapping=MappingMethod.STRUCTURED,
        confidence=1.0,
    )


def records_from_report(report: StructuredReport) -> list[FinancialRecord]:
    """Build one record per section present in *report*, in canonical order."""
    found: dict[SectionKey, FinancialRecord] = {}
    before, after = ReconciliationPhase.BEFORE, ReconciliationPhase.AFTER

    if report.gross_profit is not None:
        if report.gross_profit.before_reconciliation is not None:
            found[(Section.GROSS_PROFIT, before)] = record_from_figures(
                (Section.GROSS_PROFIT, before), report.gross_profit.before_reconciliation
            )
        if report.gross_profit.after_reconciliation is not None:
            found[(Section.GROSS_PROFIT, after)] = record_from_figures((Section.GROSS_PROFIT, after), report.gross_profit.after_reconciliation)

    for section, figures in (
        (Section.TOTAL_INCOME, report.total_income),
        (Section.TOTAL_COST, report.total_cost),
        (Section.NET_PROFIT, report.net_profit),
    ):
        if figures is not None:
            found[(section, before)] = record_from_figures((section, before), figures)

    # Free-form items fill sections the keyed fields did not cover
    for item in report.items:
        key = classify_label(item.description, lenient=True)
        if key is None:
            logger.debug("Skipping unrecognised item '%s'", item.description)
            continue
        if key not in found:
            found[key] = record_from_figures(key, item, label=item.description)

    return order_records(found)


def report_text(report: StructuredReport) -> str:
    """Short text header for the report's project and date."""
    lines = []
    if report.project:
        lines.append(f"Project: {report.project}")
    if report.report_date:
        lines.append(f"Report date: {report.report_date}")
    return "\n".join(lines)


def extract_structured(source: StructuredSource) -> ExtractionResult:
    """Parse a pre-processed JSON source into records."""
    try:
        report = StructuredReport.model_validate_json(source.data)
    except ValidationError as exc:
        logger.error("Structured report %s failed validation: %d error(s)", source.file_name, exc.error_count())
        annotation = error_annotation(ReportFormat.JSON, exc.errors()[0]["msg"] if exc.errors() else exc)
        return ExtractionResult(errors=[annotation], text=annotation)

    records = records_from_report(report)
    logger.info("Loaded %d structured record(s) from %s", len(records), source.file_name)
    return ExtractionResult(records=records, text=report_text(report))
