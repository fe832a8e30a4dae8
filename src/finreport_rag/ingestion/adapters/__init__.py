"""Format adapters feeding the figure extractor.

Submodules:
  sources      -- ReportFormat resolution and the ReportSource tagged variant
  pdf          -- pdfplumber text + positioned-word extraction
  spreadsheet  -- openpyxl / csv grids and the label-window figure search
  structured   -- pre-processed JSON reports (authoritative, no heuristics)

Every adapter takes a source and returns an ExtractionResult; none of them
raises on malformed input.
"""
