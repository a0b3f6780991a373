"""Exception hierarchy for the documentation search engine.

Load-time failures are fatal to the corpus being built and propagate to the
caller. Query-time problems (bad quoting, empty input, no matches) are never
raised; they produce an empty result list instead.
"""

from __future__ import annotations


class SearchEngineError(Exception):
    """Base class for all engine errors."""


class CorpusLoadError(SearchEngineError, ValueError):
    """Raised when raw index records cannot become a corpus."""


class SchemaError(CorpusLoadError):
    """A record is missing a required field or has the wrong shape."""

    def __init__(self, record_index: int, field: str, reason: str) -> None:
        self.record_index = record_index
        self.field = field
        self.reason = reason
        super().__init__(f"Record {record_index}: field '{field}' {reason}")


class DuplicateAnchorError(CorpusLoadError):
    """Two records share the same ``location`` anchor."""

    def __init__(self, location: str, first_index: int, duplicate_index: int) -> None:
        self.location = location
        self.first_index = first_index
        self.duplicate_index = duplicate_index
        super().__init__(
            f"Duplicate location {location!r} at record {duplicate_index} (first seen at record {first_index})"
        )


class IndexFileError(SearchEngineError, ValueError):
    """Raised when an exported search index payload cannot be parsed."""


class QueryCancelledError(SearchEngineError):
    """Raised by a query ticket that was cancelled before it finished."""

    def __init__(self, sequence: int) -> None:
        self.sequence = sequence
        super().__init__(f"Query #{sequence} was cancelled")


class IndexInvariantError(SearchEngineError, RuntimeError):
    """Internal inconsistency between the index and the document table."""
