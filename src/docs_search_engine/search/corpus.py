"""Corpus: one immutable snapshot of documents, index and query engine.

A corpus is built once by :func:`load_corpus` and never mutated, so any
number of threads can query it concurrently. Reloading means building a new
corpus and swapping the reference (see :mod:`docs_search_engine.search.session`).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import logging
import time
from typing import Any

from opentelemetry.trace import SpanKind

from docs_search_engine.config import Settings
from docs_search_engine.domain.model import Document
from docs_search_engine.domain.search import SearchResult, SearchStats
from docs_search_engine.errors import CorpusLoadError, IndexInvariantError, QueryCancelledError
from docs_search_engine.observability.context import bind_corpus
from docs_search_engine.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_DOC_COUNT,
    INDEX_TERM_COUNT,
    SEARCH_LATENCY,
    SEARCH_QUERIES,
    track_latency,
)
from docs_search_engine.observability.tracing import create_span
from docs_search_engine.search.analyzers import DocumentAnalyzer
from docs_search_engine.search.engine import Checkpoint, QueryEngine
from docs_search_engine.search.indexer import IndexBuilder
from docs_search_engine.search.loader import load_documents
from docs_search_engine.search.models import Field, InvertedIndex
from docs_search_engine.search.presenter import present
from docs_search_engine.search.query import ParsedQuery, parse_query


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Corpus:
    """Immutable documents plus the index and engine built over them."""

    documents: tuple[Document, ...]
    index: InvertedIndex
    analyzer: DocumentAnalyzer
    engine: QueryEngine
    settings: Settings

    def __len__(self) -> int:
        return len(self.documents)

    def get_document(self, doc_id: int) -> Document:
        if not 0 <= doc_id < len(self.documents):
            msg = f"Index references document {doc_id} but the corpus holds {len(self.documents)}"
            raise IndexInvariantError(msg)
        return self.documents[doc_id]

    def parse(self, query: str) -> ParsedQuery:
        return parse_query(query, self.analyzer)

    def query(
        self,
        query: str,
        *,
        limit: int | None = None,
        checkpoint: Checkpoint | None = None,
    ) -> tuple[list[SearchResult], SearchStats]:
        """Run ``query`` and return presented results with execution stats.

        ``checkpoint`` is called between units of work; whatever it raises
        (normally :class:`QueryCancelledError`) abandons the query.
        """
        start = time.perf_counter()
        outcome = "ok"
        with (
            bind_corpus(self.settings.corpus_name),
            create_span(
                "search.query",
                kind=SpanKind.INTERNAL,
                attributes={"search.query": query[:100], "search.limit": -1 if limit is None else limit},
            ) as span,
        ):
            try:
                parsed = self.parse(query)
                candidates = self.engine.candidates(parsed, checkpoint)
                scored = (
                    self.engine.execute(parsed, limit=limit, checkpoint=checkpoint, candidate_ids=candidates)
                    if candidates
                    else []
                )

                results: list[SearchResult] = []
                for entry in scored:
                    if checkpoint is not None:
                        checkpoint()
                    results.append(
                        present(
                            entry,
                            self.get_document(entry.doc_id),
                            self.analyzer,
                            snippet_max_chars=self.settings.snippet_max_chars,
                            snippet_fallback_chars=self.settings.snippet_fallback_chars,
                        )
                    )
                if not results:
                    outcome = "empty"
            except QueryCancelledError:
                outcome = "cancelled"
                raise
            finally:
                elapsed = time.perf_counter() - start
                SEARCH_LATENCY.labels(outcome=outcome).observe(elapsed)
                SEARCH_QUERIES.labels(outcome=outcome).inc()
                span.set_attribute("search.outcome", outcome)

            span.set_attribute("search.result_count", len(results))

        stats = SearchStats(
            clauses=len(parsed.clauses),
            candidates=len(candidates),
            returned=len(results),
            search_time_ms=round(elapsed * 1000, 3),
        )
        return results, stats


def build_corpus(documents: Sequence[Document], settings: Settings | None = None) -> Corpus:
    """Index an already validated document table."""
    settings = settings or Settings()
    analyzer = DocumentAnalyzer(stopwords=settings.get_stop_words())
    builder = IndexBuilder(
        analyzer,
        workers=settings.build_workers,
        parallel_threshold=settings.build_parallel_threshold,
    )
    parallel = settings.build_workers > 1 and len(documents) >= settings.build_parallel_threshold
    mode = "parallel" if parallel else "serial"

    with (
        create_span("index.build", attributes={"index.documents": len(documents), "index.mode": mode}) as span,
        track_latency(INDEX_BUILD_LATENCY, mode=mode),
    ):
        result = builder.build(documents)
        span.set_attribute("index.terms", result.index.term_count)
        span.set_attribute("index.partitions", result.partitions)

    engine = QueryEngine(
        result.index,
        field_weights={Field.TITLE: settings.title_weight, Field.TEXT: settings.text_weight},
        phrase_bonus=settings.phrase_bonus,
        tf_saturation=settings.tf_saturation,
    )
    INDEX_DOC_COUNT.labels(corpus=settings.corpus_name).set(result.documents_indexed)
    INDEX_TERM_COUNT.labels(corpus=settings.corpus_name).set(result.index.term_count)
    return Corpus(
        documents=tuple(documents),
        index=result.index,
        analyzer=analyzer,
        engine=engine,
        settings=settings,
    )


def load_corpus(records: Iterable[Any], settings: Settings | None = None) -> Corpus:
    """Validate raw index records and build a queryable corpus.

    Raises:
        SchemaError: A record is malformed.
        DuplicateAnchorError: Two records share a ``location``.
    """
    settings = settings or Settings()
    with (
        bind_corpus(settings.corpus_name),
        create_span("corpus.load", attributes={"corpus.name": settings.corpus_name}) as span,
    ):
        try:
            documents = load_documents(records)
        except CorpusLoadError as exc:
            logger.warning(
                "Rejected corpus %r: %s",
                settings.corpus_name,
                exc,
                extra={"corpus_name": settings.corpus_name, "error_type": type(exc).__name__},
            )
            raise
        corpus = build_corpus(documents, settings)
        span.set_attribute("corpus.documents", len(corpus))
        span.set_attribute("corpus.terms", corpus.index.term_count)
    return corpus


def search(corpus: Corpus, query: str, *, limit: int | None = None) -> list[SearchResult]:
    """Return ranked results for ``query``; never raises for malformed input."""
    results, _stats = corpus.query(query, limit=limit)
    return results
