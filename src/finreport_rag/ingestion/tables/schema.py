"""Pydantic models for detected tables and the words they are built from."""

from pydantic import BaseModel, ConfigDict, Field


class PositionedToken(BaseModel):
    """A single word recovered by a layout-aware PDF reader.

    ``x`` is the left edge and ``y`` the top edge in page units; ``page`` is
    the zero-based page index so rows never merge across pages.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float
    page: int = 0


class TableCandidate(BaseModel):
    """A provisional grouping of text into rows of cells, with a confidence score.

    Rows are recovered reliably; columns may still be ambiguous, so the figure
    extractor decides which cell means what.
    """

    model_config = ConfigDict(frozen=True)

    rows: list[list[str]]
    confidence: float = Field(ge=0.0, le=1.0)
    page: int = 0

    @property
    def width(self) -> int:
        """Return the widest row's cell count."""
        return max((len(row) for row in self.rows), default=0)
