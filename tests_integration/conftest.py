"""Integration test fixtures for the live LLM endpoint.

These tests call the configured OpenAI-compatible endpoint (MiniMax by
default) and are skipped when LLM_API_KEY is not set.

Run with:  pytest tests_integration/ -v
"""

import logging
import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.resolve()

load_dotenv(PROJECT_ROOT / ".env")


@pytest.fixture(scope="session", autouse=True)
def require_llm():
    """Skip the whole run when no API key is available."""
    if not os.getenv("LLM_API_KEY"):
        pytest.skip("LLM_API_KEY not set; skipping live LLM tests")
    logger.info("Running live LLM tests against %s", os.getenv("LLM_BASE_URL", "default endpoint"))
