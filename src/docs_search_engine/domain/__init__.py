"""Domain layer: documents and search result value objects."""

from docs_search_engine.domain.model import Category, Document
from docs_search_engine.domain.search import HighlightRange, SearchResponse, SearchResult, SearchStats


__all__ = [
    "Category",
    "Document",
    "HighlightRange",
    "SearchResponse",
    "SearchResult",
    "SearchStats",
]
