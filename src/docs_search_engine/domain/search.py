"""Value objects returned by the query phase.

Results reference documents by anchor rather than embedding them, so they
stay small and serializable. Highlights are offsets into ``snippet`` only;
turning them into markup is left to whoever renders the result.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from docs_search_engine.domain.model import Category


class HighlightRange(BaseModel):
    """Half-open ``[start, end)`` character range inside a snippet."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "HighlightRange":
        if self.end <= self.start:
            raise ValueError(f"Highlight end ({self.end}) must be greater than start ({self.start})")
        return self


class SearchResult(BaseModel):
    """A single ranked hit, ready for display and jump-to-anchor navigation."""

    model_config = ConfigDict(frozen=True)

    location: str
    page: str
    title: str
    category: Category = Category.UNSPECIFIED
    snippet: str = ""
    highlight_ranges: tuple[HighlightRange, ...] = ()
    score: float


class SearchStats(BaseModel):
    """Timing and size information for one query execution."""

    model_config = ConfigDict(frozen=True)

    clauses: int
    candidates: int
    returned: int
    search_time_ms: float


class SearchResponse(BaseModel):
    """Results of one query ticket, tagged with its sequence number."""

    model_config = ConfigDict(frozen=True)

    query: str
    sequence: int
    results: list[SearchResult]
    stats: SearchStats | None = None
