"""In-memory full-text search over exported documentation search indexes."""

from docs_search_engine.config import Settings
from docs_search_engine.domain import Category, Document, HighlightRange, SearchResponse, SearchResult, SearchStats
from docs_search_engine.errors import (
    CorpusLoadError,
    DuplicateAnchorError,
    IndexFileError,
    IndexInvariantError,
    QueryCancelledError,
    SchemaError,
    SearchEngineError,
)
from docs_search_engine.search.corpus import Corpus, build_corpus, load_corpus, search
from docs_search_engine.search.index_file import parse_index_payload, read_index_file
from docs_search_engine.search.session import QueryTicket, SearchSession


__all__ = [
    "Category",
    "Corpus",
    "CorpusLoadError",
    "Document",
    "DuplicateAnchorError",
    "HighlightRange",
    "IndexFileError",
    "IndexInvariantError",
    "QueryCancelledError",
    "QueryTicket",
    "SchemaError",
    "SearchEngineError",
    "SearchResponse",
    "SearchResult",
    "SearchSession",
    "SearchStats",
    "Settings",
    "build_corpus",
    "load_corpus",
    "parse_index_payload",
    "read_index_file",
    "search",
]
