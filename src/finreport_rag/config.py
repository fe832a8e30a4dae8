"""Shared configuration for the financial report chat service.

Values come from the environment (optionally a ``.env`` file at the project
root).  Nothing here is required by the ingestion core itself; the core only
reads the extraction tuning constants.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent.parent.parent.resolve()
load_dotenv(ROOT / ".env")

# ─── Knowledge Base ───────────────────────────────────────────────────────────

# Google Drive folder that holds the report files
KNOWLEDGE_BASE_FOLDER_ID = os.getenv("KNOWLEDGE_BASE_FOLDER_ID", "")

# Local directory used instead of Drive when set (development, batch scripts)
LOCAL_REPORTS_DIR = os.getenv("LOCAL_REPORTS_DIR", "")

# OAuth bearer token for the Drive v3 REST API
GOOGLE_ACCESS_TOKEN = os.getenv("GOOGLE_ACCESS_TOKEN", "")

# ─── LLM ──────────────────────────────────────────────────────────────────────

LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.minimax.io/v1")
LLM_API_KEY = os.getenv("LLM_API_KEY", "")
LLM_MODEL = os.getenv("LLM_MODEL", "MiniMax-M2.1")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "1024"))

# ─── Extraction ───────────────────────────────────────────────────────────────

# Numeric tokens smaller than this are item codes, page numbers or percentages
MIN_FIGURE_MAGNITUDE = float(os.getenv("FINREPORT_MIN_FIGURE", "100"))

# Unit annotation appended to every rendered figure
CURRENCY_UNIT = os.getenv("FINREPORT_CURRENCY_UNIT", "HK$'000")


def llm_configured() -> bool:
    """Return True if an API key for the LLM endpoint is available."""
    return bool(LLM_API_KEY)
