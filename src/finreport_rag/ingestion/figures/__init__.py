"""Financial-figure extraction from detected tables and raw report text.

Submodules:
  columns  -- Slot names, display labels, and the fixed ColumnSchema families
  schema   -- Section / phase enums, FinancialRecord and ExtractionResult models
  extract  -- section matching, numeric-token recovery and slot assignment
"""
