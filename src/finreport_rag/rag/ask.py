"""Ask the LLM a question grounded on an extracted report context.

Talks to any OpenAI-compatible chat-completions endpoint (MiniMax by
default) through the ``openai`` SDK.  The client is created lazily on first
use.  Failures never raise to the caller: the user gets an explanatory
message in place of an answer.

Usage:
    python -m finreport_rag.rag.ask "reports/123_data.json" "What is the audit gross profit?"
"""

import argparse
import logging
import time
from pathlib import Path

from openai import OpenAI

from finreport_rag import config

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_TEMPLATE = """You are a helpful assistant that answers questions about financial reports based ONLY on the provided documents.

Rules:
1. Only use information from the documents provided in the context.
2. Figures are labelled by column (Tender, 1st Working, Business Plan, Audit Report (WIP), Projection, Accrual, Cash Flow).
   Use the label, never the position of a number, to decide what it means.
3. "Gross profit before reconciliation" and "after reconciliation" are different figures; say which one you quote.
4. If a figure is "N/A" or "(data not found)", say it is not available in the report. Do not guess.
5. If the answer is not in the documents, say "I don't have information about that in the available documents."
6. Be concise and direct in your answers.

Documents context:
{context}
"""

NOT_CONFIGURED_MESSAGE = "AI model is not configured. Please check the API key."
FAILURE_MESSAGE = "Failed to get response from AI model. Please try again."

# Module-level mutable state (lazy-initialised); not true constants.
_LLM_CLIENT: OpenAI | None = None


def _get_client() -> OpenAI | None:
    """Lazy-initialise the OpenAI-compatible client.  Returns None if no API key is set."""
    global _LLM_CLIENT  # pylint: disable=global-statement
    if _LLM_CLIENT is not None:
        return _LLM_CLIENT
    if not config.llm_configured():
        logger.warning("LLM_API_KEY not configured - chat answers are disabled")
        return None
    logger.info("Connecting to LLM endpoint %s (model=%s)", config.LLM_BASE_URL, config.LLM_MODEL)
    _LLM_CLIENT = OpenAI(base_url=config.LLM_BASE_URL, api_key=config.LLM_API_KEY)
    return _LLM_CLIENT


def build_messages(question: str, context: str) -> list[dict[str, str]]:
    """Return the chat messages for *question* grounded on *context*."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT_TEMPLATE.format(context=context)},
        {"role": "user", "content": question},
    ]


def ask(question: str, context: str, client: OpenAI | None = None) -> str:
    """Return the LLM's answer to *question* given *context*, or an explanatory message."""
    client = client or _get_client()
    if client is None:
        return NOT_CONFIGURED_MESSAGE

    t0 = time.time()
    try:
        completion = client.chat.completions.create(
            model=config.LLM_MODEL,
            messages=build_messages(question, context),
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.LLM_MAX_TOKENS,
        )
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("LLM call failed after %.1fs: %s", time.time() - t0, exc)
        return FAILURE_MESSAGE

    logger.debug("LLM responded in %.1fs", time.time() - t0)
    if not completion.choices or not completion.choices[0].message.content:
        logger.warning("LLM returned an empty answer")
        return FAILURE_MESSAGE
    return completion.choices[0].message.content


if __name__ == "__main__":
    from finreport_rag.ingestion.adapters.sources import resolve_format  # pylint: disable=import-outside-toplevel
    from finreport_rag.ingestion.pipeline import extract_report  # pylint: disable=import-outside-toplevel
    from finreport_rag.rag.context import format_context  # pylint: disable=import-outside-toplevel

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    parser = argparse.ArgumentParser(description="Ask a question about one report file")
    parser.add_argument("path", type=Path)
    parser.add_argument("question")
    args = parser.parse_args()

    fmt = resolve_format(file_name=args.path.name) or args.path.suffix
    result = extract_report(args.path.read_bytes(), fmt, args.path.name)
    print(ask(args.question, format_context(result.records, args.path.name, errors=result.errors)))
