"""Turn scored documents into display-ready search results."""

from __future__ import annotations

from collections.abc import Iterable

from docs_search_engine.domain.model import Document
from docs_search_engine.domain.search import SearchResult
from docs_search_engine.search.analyzers import DocumentAnalyzer
from docs_search_engine.search.engine import ScoredDocument
from docs_search_engine.search.models import Field
from docs_search_engine.search.snippet import extract_snippet, leading_snippet


def term_occurrences(text: str, terms: Iterable[str], analyzer: DocumentAnalyzer) -> list[tuple[int, int]]:
    """Return ``(start_char, end_char)`` for every token of ``text`` in ``terms``."""
    wanted = frozenset(terms)
    if not wanted or not text:
        return []
    return [(token.start_char, token.end_char) for token in analyzer.tokens(text) if token.text in wanted]


def present(
    scored: ScoredDocument,
    document: Document,
    analyzer: DocumentAnalyzer,
    *,
    snippet_max_chars: int = 240,
    snippet_fallback_chars: int = 160,
) -> SearchResult:
    """Build the result for one scored document.

    The snippet is centered on the first matched term in ``text``. When the
    query only matched the title, the start of ``text`` is shown instead,
    without highlights.
    """
    occurrences = term_occurrences(document.text, scored.terms_in(Field.TEXT), analyzer)
    if occurrences:
        snippet, ranges = extract_snippet(document.text, occurrences, max_chars=snippet_max_chars)
    else:
        snippet, ranges = leading_snippet(document.text, snippet_fallback_chars), ()

    return SearchResult(
        location=document.location,
        page=document.page,
        title=document.title,
        category=document.category,
        snippet=snippet,
        highlight_ranges=ranges,
        score=scored.score,
    )
