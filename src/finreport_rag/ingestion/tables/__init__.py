"""Table candidate detection over lossy PDF text and positioned words.

Submodules:
  patterns     -- compiled regex patterns and detection constants
  classifiers  -- line / cell classification helpers
  schema       -- TableCandidate and PositionedToken Pydantic models
  detection    -- text-line and positioned-token table detectors
  formatting   -- pipe-row rendering of detected tables for LLM context
"""
