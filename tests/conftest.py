"""Shared test configuration and fixtures."""

import json
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env from project root for all tests
root = Path(__file__).parent.parent.resolve()
load_dotenv(root / ".env")


SAMPLE_REPORT = {
    "project": "123 Tak Tak",
    "report_date": "2024-05",
    "gross_profit": {
        "before_reconciliation": {
            "tender": "12,606",
            "first_working": "13,307",
            "business_plan": "16,385",
            "audit_report_wip": "16,385",
            "projection": "16,385",
            "accrual": "22,083",
            "cash_flow": "25,755",
        },
        "after_reconciliation": {
            "tender": "13,307",
            "first_working": "13,307",
            "business_plan": "15,900",
            "projection": "16,100",
            "accrual": "21,000",
            "cash_flow": "24,500",
        },
    },
    "total_income": {"tender": "283,769", "projection": "300,120"},
    "total_cost": {"tender": "271,163", "projection": "283,735"},
}


@pytest.fixture
def sample_report() -> dict:
    """A pre-processed report in the structured JSON shape."""
    return json.loads(json.dumps(SAMPLE_REPORT))


@pytest.fixture
def sample_report_bytes(sample_report) -> bytes:
    return json.dumps(sample_report).encode("utf-8")
