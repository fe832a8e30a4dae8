"""Compiled regex patterns and constants for table and figure detection.

These patterns identify structural elements in text recovered from report
PDFs and spreadsheets: cell delimiters, separator rules, and the numeric
tokens that carry financial figures.  Used by classifiers.py, detection.py
and the figure extractor.
"""

import re

# ─── Delimiter Patterns ───────────────────────────────────────────────────────

# Runs of two or more spaces separate columns in layout-preserving text
MULTI_SPACE_RE = re.compile(r" {2,}")

# Horizontal rule such as "-----------" or "== == ==" between table blocks
SEPARATOR_LINE_RE = re.compile(r"^[\s\-=_]{10,}$")

# Markdown-style rule row such as "|---|:---:|"
PIPE_RULE_RE = re.compile(r"^[\s|:\-]+$")


# ─── Numeric Token Patterns ──────────────────────────────────────────────────

# A financial figure: comma-grouped ("12,606") or plain ("12606") digits,
# optionally negative or parenthesised, optionally with decimals.  Tokens glued
# to letters ("A1"), other digits, or a trailing "%" are not figures.
FIGURE_TOKEN_RE = re.compile(
    r"(?<![\w.,)])"
    r"(\(?-?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?\)?)"
    r"(?![\w%]|[.,]\d)"
)

# Any digit at all (used for "row carries numbers" classification)
DIGIT_RE = re.compile(r"\d")

# Characters stripped from spreadsheet cells before numeric parsing
CURRENCY_STRIP_RE = re.compile(r"HK\$|US\$|\$|,|\s")


# ─── Detection Constants ─────────────────────────────────────────────────────

# Lines shorter than this are never table rows
MIN_ROW_CHARS = 6

# Minimum number of tab characters for a tab-delimited row
MIN_TABS = 2

# Minimum number of multi-space gaps for a column-aligned row
MIN_SPACED_GAPS = 2

# Text-line candidates must have MORE rows than this
MIN_TEXT_TABLE_ROWS = 3

# Positioned-token candidates must have MORE rows than this
MIN_TOKEN_TABLE_ROWS = 2

# Vertical band (PDF units) within which words share a row
ROW_Y_TOLERANCE = 5.0

# Coefficient of variation below which inter-token gaps count as regular
GAP_VARIATION_LIMIT = 0.5

# Confidence scoring
BASE_CONFIDENCE = 0.5
CONSISTENT_COLUMNS_BONUS = 0.2
HAS_DIGITS_BONUS = 0.2
LONG_TABLE_BONUS = 0.1
LONG_TABLE_ROWS = 5
HEADER_ROW_BONUS = 0.1
