"""Pydantic models for normalised financial figures.

A FinancialRecord is built fresh per request and never mutated or persisted.
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from finreport_rag.ingestion.figures.columns import AFTER_RECONCILIATION, BEFORE_RECONCILIATION, ColumnSchema, Slot
from finreport_rag.ingestion.tables.schema import TableCandidate

NOT_AVAILABLE = "N/A"


class ReconciliationPhase(str, Enum):
    """Whether a figure is stated before or after the reconciliation adjustment."""

    BEFORE = "before"
    AFTER = "after"

    @property
    def schema(self) -> ColumnSchema:
        """Return the column schema rows of this phase are assigned to."""
        return BEFORE_RECONCILIATION if self is ReconciliationPhase.BEFORE else AFTER_RECONCILIATION


class Section(str, Enum):
    """Report sections the extractor looks for."""

    GROSS_PROFIT = "gross_profit"
    TOTAL_INCOME = "total_income"
    TOTAL_COST = "total_cost"
    NET_PROFIT = "net_profit"


class MappingMethod(str, Enum):
    """How figures were attributed to slots."""

    HEADER = "header"
    POSITIONAL = "positional"
    STRUCTURED = "structured"


SectionKey = tuple[Section, ReconciliationPhase]

# Canonical output order of the sections
SECTION_ORDER: tuple[SectionKey, ...] = (
    (Section.GROSS_PROFIT, ReconciliationPhase.BEFORE),
    (Section.GROSS_PROFIT, ReconciliationPhase.AFTER),
    (Section.TOTAL_INCOME, ReconciliationPhase.BEFORE),
    (Section.TOTAL_COST, ReconciliationPhase.BEFORE),
    (Section.NET_PROFIT, ReconciliationPhase.BEFORE),
)

SECTION_HEADINGS: dict[SectionKey, str] = {
    (Section.GROSS_PROFIT, ReconciliationPhase.BEFORE): "GROSS PROFIT (BEFORE RECONCILIATION)",
    (Section.GROSS_PROFIT, ReconciliationPhase.AFTER): "GROSS PROFIT (AFTER RECONCILIATION)",
    (Section.TOTAL_INCOME, ReconciliationPhase.BEFORE): "TOTAL INCOME",
    (Section.TOTAL_COST, ReconciliationPhase.BEFORE): "TOTAL COST",
    (Section.NET_PROFIT, ReconciliationPhase.BEFORE): "ACCUMULATED NET PROFIT / (LOSS)",
}

# Item labels as they appear in the Financial Status sheet
CANONICAL_LABELS: dict[SectionKey, str] = {
    (Section.GROSS_PROFIT, ReconciliationPhase.BEFORE): "Gross Profit (Item 1.0-2.0) (Financial A/C)",
    (Section.GROSS_PROFIT, ReconciliationPhase.AFTER): "Gross Profit (Item 3.0-4.3)",
    (Section.TOTAL_INCOME, ReconciliationPhase.BEFORE): "Total Income",
    (Section.TOTAL_COST, ReconciliationPhase.BEFORE): "Total Cost",
    (Section.NET_PROFIT, ReconciliationPhase.BEFORE): "Acc. Net Profit/(Loss)",
}


class FinancialRecord(BaseModel):
    """Normalised, slot-labelled figures for one report section.

    ``values`` maps slot names (``Slot.value``) to the figure as it appeared in
    the source, or ``"N/A"`` when it could not be resolved.  ``confidence``
    reports how much the slot attribution can be trusted; positional mapping
    without header cues is a heuristic, not a guarantee.
    """

    model_config = ConfigDict(frozen=True)

    section: Section
    section_label: str
    reconciliation_phase: ReconciliationPhase
    values: Mapping[str, str]
    mapping: MappingMethod = MappingMethod.POSITIONAL
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("values", mode="after")
    @classmethod
    def freeze_values(cls, values: Mapping[str, str]) -> Mapping[str, str]:
        """Wrap the slot figures in a read-only view so the record stays immutable."""
        return MappingProxyType(dict(values))

    @field_serializer("values")
    def serialize_values(self, values: Mapping[str, str]) -> dict[str, str]:
        return dict(values)

    @model_validator(mode="after")
    def validate_slots(self) -> "FinancialRecord":
        """Reject unknown slot names and an audit figure after reconciliation."""
        known = {s.value for s in Slot}
        unknown = set(self.values) - known
        if unknown:
            raise ValueError(f"Unknown slot(s): {sorted(unknown)}")
        if self.reconciliation_phase is ReconciliationPhase.AFTER and Slot.AUDIT_REPORT_WIP.value in self.values:
            raise ValueError("After-reconciliation records carry no Audit Report (WIP) figure")
        return self

    @property
    def key(self) -> SectionKey:
        """Return the (section, phase) pair identifying this record."""
        return self.section, self.reconciliation_phase

    def value(self, slot: Slot) -> str:
        """Return the figure for *slot*, or 'N/A'."""
        return self.values.get(slot.value, NOT_AVAILABLE)

    @property
    def resolved_count(self) -> int:
        """Number of slots holding a figure."""
        return sum(1 for v in self.values.values() if v != NOT_AVAILABLE)


class ExtractionResult(BaseModel):
    """Everything one adapter run produced for a single file.

    ``errors`` holds inline annotations such as ``[Error reading PDF: ...]``;
    ``text`` is the document text (or the annotation in its place) and
    ``tables`` the detected candidates, both for supporting context.
    """

    records: list[FinancialRecord] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    text: str = ""
    tables: list[TableCandidate] = Field(default_factory=list)
