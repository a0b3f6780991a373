"""Search session: the reloadable, cancellable front door to a corpus.

Interactive callers issue a query per keystroke. Each query is a
:class:`QueryTicket` tagged with a monotonically increasing sequence number;
:meth:`SearchSession.begin` cancels the older ones by default, and
:meth:`SearchSession.is_current` lets the caller drop any result that
arrives after a newer query was issued. :meth:`SearchSession.search` never
cancels anything, so independent callers can share one session.

Reloading builds the new corpus completely before publishing it, so a query
never sees a half-built index. Tickets keep the corpus they captured when
they were issued.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
import threading
from typing import Any

from docs_search_engine.config import Settings
from docs_search_engine.domain.search import SearchResponse, SearchResult
from docs_search_engine.errors import QueryCancelledError
from docs_search_engine.search.corpus import Corpus, load_corpus


logger = logging.getLogger(__name__)


class QueryTicket:
    """One cancellable query bound to a corpus snapshot."""

    def __init__(self, sequence: int, query: str, corpus: Corpus, limit: int | None = None) -> None:
        self.sequence = sequence
        self.query = query
        self.corpus = corpus
        self.limit = limit
        self._cancelled = threading.Event()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"QueryTicket(sequence={self.sequence}, query={self.query!r}, {state})"

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Request cancellation; a running query stops at its next checkpoint."""
        self._cancelled.set()

    def _checkpoint(self) -> None:
        if self._cancelled.is_set():
            raise QueryCancelledError(self.sequence)

    def run(self) -> SearchResponse:
        """Execute the query on the calling thread.

        Raises:
            QueryCancelledError: The ticket was cancelled before or while running.
        """
        self._checkpoint()
        results, stats = self.corpus.query(self.query, limit=self.limit, checkpoint=self._checkpoint)
        self._checkpoint()
        return SearchResponse(query=self.query, sequence=self.sequence, results=results, stats=stats)


class SearchSession:
    """Owns the current corpus and hands out query tickets against it."""

    def __init__(self, corpus: Corpus) -> None:
        self._corpus = corpus
        self._lock = threading.Lock()
        self._sequence = 0
        self._latest: QueryTicket | None = None

    @classmethod
    def from_records(cls, records: Iterable[Any], settings: Settings | None = None) -> SearchSession:
        return cls(load_corpus(records, settings))

    @property
    def corpus(self) -> Corpus:
        with self._lock:
            return self._corpus

    @property
    def latest_sequence(self) -> int:
        with self._lock:
            return self._sequence

    def begin(self, query: str, limit: int | None = None, *, cancel_superseded: bool = True) -> QueryTicket:
        """Allocate the next sequence number and bind a ticket to the current corpus."""
        with self._lock:
            self._sequence += 1
            ticket = QueryTicket(self._sequence, query, self._corpus, limit)
            previous, self._latest = self._latest, ticket

        if cancel_superseded and previous is not None:
            previous.cancel()
            logger.debug("Query #%d superseded by #%d", previous.sequence, ticket.sequence)
        return ticket

    def is_current(self, ticket: QueryTicket) -> bool:
        """True when no ticket was issued after ``ticket``."""
        with self._lock:
            return ticket.sequence == self._sequence

    def search(self, query: str, limit: int | None = None) -> list[SearchResult]:
        """Run ``query`` on its own ticket without cancelling other tickets."""
        return self.begin(query, limit, cancel_superseded=False).run().results

    def reload(self, records: Iterable[Any], settings: Settings | None = None) -> Corpus:
        """Build a new corpus from ``records`` and swap it in atomically.

        On failure the current corpus stays in place and the error propagates.
        ``settings`` defaults to those of the current corpus.
        """
        current = self.corpus
        corpus = load_corpus(records, settings or current.settings)
        with self._lock:
            self._corpus = corpus
        logger.info(
            "Reloaded corpus: %d documents",
            len(corpus),
            extra={"fingerprint": corpus.index.fingerprint, "previous_fingerprint": current.index.fingerprint},
        )
        return corpus
