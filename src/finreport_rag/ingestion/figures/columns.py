"""The fixed column schema shared by every report in the Financial Status family.

Reports in this family all carry the same ordered columns (Tender, 1st
Working, ..., Accrual, Cash Flow).  A row's figures are assigned to these
slots either by a recognised header column or, when the layout carries no
headers, by position.
"""

from dataclasses import dataclass
from enum import Enum


class Slot(str, Enum):
    """Named financial column.  Declaration order is the canonical column order."""

    TENDER = "tender"
    FIRST_WORKING = "first_working"
    ADJ_COST = "adj_cost"
    REVISION = "revision"
    BUSINESS_PLAN = "business_plan"
    AUDIT_REPORT_WIP = "audit_report_wip"
    ADJ_COST_VARIATION = "adj_cost_variation"
    PROJECTION = "projection"
    COMMITTED_VALUE = "committed_value"
    ACCRUAL = "accrual"
    CASH_FLOW = "cash_flow"


SLOT_LABELS: dict[Slot, str] = {
    Slot.TENDER: "Tender (Budget)",
    Slot.FIRST_WORKING: "1st Working (Budget)",
    Slot.ADJ_COST: "Adjustment Cost (Budget)",
    Slot.REVISION: "Revision (Budget)",
    Slot.BUSINESS_PLAN: "Business Plan",
    Slot.AUDIT_REPORT_WIP: "Audit Report (WIP)",
    Slot.ADJ_COST_VARIATION: "Adj Cost Variation",
    Slot.PROJECTION: "Projection",
    Slot.COMMITTED_VALUE: "Committed Value",
    Slot.ACCRUAL: "Accrual",
    Slot.CASH_FLOW: "Cash Flow",
}

# camelCase spellings accepted from pre-processed JSON
SLOT_ALIASES: dict[Slot, tuple[str, ...]] = {
    Slot.FIRST_WORKING: ("firstWorking",),
    Slot.ADJ_COST: ("adjCost",),
    Slot.BUSINESS_PLAN: ("businessPlan",),
    Slot.AUDIT_REPORT_WIP: ("auditReportWip", "auditReport", "audit_report"),
    Slot.ADJ_COST_VARIATION: ("adjCostVariation",),
    Slot.COMMITTED_VALUE: ("committedValue",),
    Slot.CASH_FLOW: ("cashFlow",),
}


@dataclass(frozen=True)
class ColumnSchema:
    """An ordered sequence of slots.  Figures fill slots left to right."""

    name: str
    slots: tuple[Slot, ...]

    def __len__(self) -> int:
        return len(self.slots)


BEFORE_RECONCILIATION = ColumnSchema(
    name="before_reconciliation",
    slots=(
        Slot.TENDER,
        Slot.FIRST_WORKING,
        Slot.BUSINESS_PLAN,
        Slot.AUDIT_REPORT_WIP,
        Slot.PROJECTION,
        Slot.ACCRUAL,
        Slot.CASH_FLOW,
    ),
)

# Audit Report (WIP) does not apply after reconciliation
AFTER_RECONCILIATION = ColumnSchema(
    name="after_reconciliation",
    slots=tuple(s for s in BEFORE_RECONCILIATION.slots if s is not Slot.AUDIT_REPORT_WIP),
)

# Full Financial Status sheet, column by column (None = not a figure slot)
FINANCIAL_STATUS_COLUMNS: tuple[tuple[str, Slot | None], ...] = (
    ("Item Code", None),
    ("Description", None),
    ("Tender (Budget)", Slot.TENDER),
    ("1st Working (Budget)", Slot.FIRST_WORKING),
    ("Adjustment Cost (Budget)", Slot.ADJ_COST),
    ("Revision (Budget)", Slot.REVISION),
    ("Business Plan", Slot.BUSINESS_PLAN),
    ("Audit Report (WIP)", Slot.AUDIT_REPORT_WIP),
    ("Adj Cost Variation", Slot.ADJ_COST_VARIATION),
    ("Projection", Slot.PROJECTION),
    ("Committed Value", Slot.COMMITTED_VALUE),
    ("E1=% (Adj Cost)", None),
    ("F=Variance", None),
    ("Accrual", Slot.ACCRUAL),
    ("Cash Flow", Slot.CASH_FLOW),
    ("G1=% (Accrual)", None),
    ("H=Variance", None),
)

FINANCIAL_STATUS_WIDTH = len(FINANCIAL_STATUS_COLUMNS)


def financial_status_index_map() -> dict[int, Slot]:
    """Return column index -> slot for a full-width Financial Status row."""
    return {idx: slot for idx, (_, slot) in enumerate(FINANCIAL_STATUS_COLUMNS) if slot is not None}


# Header keywords, most specific first ("adj cost variation" before "adj cost")
_HEADER_KEYWORDS: tuple[tuple[tuple[str, ...], Slot], ...] = (
    (("audit",), Slot.AUDIT_REPORT_WIP),
    (("variation",), Slot.ADJ_COST_VARIATION),
    (("adjustment cost", "adj cost", "adj. cost"), Slot.ADJ_COST),
    (("1st working", "first working"), Slot.FIRST_WORKING),
    (("tender",), Slot.TENDER),
    (("revision",), Slot.REVISION),
    (("business plan",), Slot.BUSINESS_PLAN),
    (("projection",), Slot.PROJECTION),
    (("committed",), Slot.COMMITTED_VALUE),
    (("accrual",), Slot.ACCRUAL),
    (("cash flow", "cashflow"), Slot.CASH_FLOW),
)


def match_header_cell(text: str) -> Slot | None:
    """Return the slot a header cell names, or None.

    Percentage and variance columns ("G1=% (Accrual)", "F=Variance") are not
    figure slots even though they mention one.
    """
    low = " ".join(text.lower().split())
    if not low or "%" in low or "variance" in low:
        return None
    for keywords, slot in _HEADER_KEYWORDS:
        if any(k in low for k in keywords):
            return slot
    return None
