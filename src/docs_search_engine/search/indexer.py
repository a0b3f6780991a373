"""Inverted index builder.

The builder is a pure, one-shot transform from the document table to an
immutable :class:`InvertedIndex`. Given the same documents and analyzer
configuration it always produces an equal index with the same fingerprint,
which keeps test fixtures reproducible.

Large corpora can be indexed on several worker threads: documents are split
into contiguous id ranges, each range is tokenized into a private partial
index, and the partials are concatenated in id order. Because ranges are
contiguous and ascending, concatenation preserves the ``(doc_id, field)``
ordering of every postings list without a sort.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import hashlib
import json
import logging
import time

from docs_search_engine.domain.model import Document
from docs_search_engine.errors import IndexInvariantError
from docs_search_engine.search.analyzers import DocumentAnalyzer
from docs_search_engine.search.models import Field, InvertedIndex, Posting


logger = logging.getLogger(__name__)

_INDEX_FORMAT_VERSION = "v1-title-text-positions"
INDEXED_FIELDS: tuple[Field, ...] = (Field.TITLE, Field.TEXT)


@dataclass(frozen=True)
class IndexBuildResult:
    """Outcome of an index build."""

    index: InvertedIndex
    documents_indexed: int
    partitions: int
    duration_s: float


@dataclass
class _PartialIndex:
    """Postings for one contiguous range of documents."""

    postings: dict[str, list[Posting]] = field(default_factory=lambda: defaultdict(list))


class IndexBuilder:
    """Builds inverted indexes from a document table."""

    def __init__(
        self,
        analyzer: DocumentAnalyzer,
        *,
        workers: int = 1,
        parallel_threshold: int = 2000,
    ) -> None:
        self.analyzer = analyzer
        self.workers = max(1, workers)
        self.parallel_threshold = max(1, parallel_threshold)

    def build(self, documents: Sequence[Document]) -> IndexBuildResult:
        start = time.perf_counter()
        _check_dense_ids(documents)

        partitions = self._partition(documents)
        if len(partitions) == 1:
            partials = [self._index_partition(partitions[0])]
        else:
            with ThreadPoolExecutor(max_workers=len(partitions), thread_name_prefix="index-build") as executor:
                partials = list(executor.map(self._index_partition, partitions))

        index = self._merge(partials, documents)
        _verify_postings(index, len(documents))
        duration = time.perf_counter() - start

        logger.info(
            "Built inverted index: %d documents, %d terms in %.1fms",
            len(documents),
            index.term_count,
            duration * 1000,
            extra={"partitions": len(partitions), "fingerprint": index.fingerprint},
        )
        return IndexBuildResult(
            index=index,
            documents_indexed=len(documents),
            partitions=len(partitions),
            duration_s=duration,
        )

    def _partition(self, documents: Sequence[Document]) -> list[Sequence[Document]]:
        if self.workers == 1 or len(documents) < self.parallel_threshold:
            return [documents]
        chunk_size = -(-len(documents) // self.workers)
        return [documents[i : i + chunk_size] for i in range(0, len(documents), chunk_size)]

    def _index_partition(self, documents: Sequence[Document]) -> _PartialIndex:
        partial = _PartialIndex()
        for document in documents:
            for field_name in INDEXED_FIELDS:
                positions_by_term: dict[str, list[int]] = {}
                for token in self.analyzer.tokens(getattr(document, field_name.value)):
                    positions_by_term.setdefault(token.text, []).append(token.position)
                for term, positions in positions_by_term.items():
                    partial.postings[term].append(
                        Posting(doc_id=document.id, field=field_name, positions=tuple(positions))
                    )
        return partial

    def _merge(self, partials: Sequence[_PartialIndex], documents: Sequence[Document]) -> InvertedIndex:
        merged: dict[str, list[Posting]] = defaultdict(list)
        for partial in partials:
            for term, postings in partial.postings.items():
                merged[term].extend(postings)

        fingerprinter = _IndexFingerprintBuilder(self.analyzer)
        for document in documents:
            fingerprinter.add_document(document)

        return InvertedIndex(
            postings={term: tuple(postings) for term, postings in sorted(merged.items())},
            doc_count=len(documents),
            fingerprint=fingerprinter.digest(),
        )


def build_index(
    documents: Sequence[Document],
    analyzer: DocumentAnalyzer,
    *,
    workers: int = 1,
    parallel_threshold: int = 2000,
) -> InvertedIndex:
    """Convenience wrapper returning only the built index."""

    builder = IndexBuilder(analyzer, workers=workers, parallel_threshold=parallel_threshold)
    return builder.build(documents).index


def _check_dense_ids(documents: Sequence[Document]) -> None:
    for expected, document in enumerate(documents):
        if document.id != expected:
            msg = f"Document table is not dense: position {expected} holds id {document.id}"
            raise IndexInvariantError(msg)


def _verify_postings(index: InvertedIndex, doc_count: int) -> None:
    for term, postings in index.postings.items():
        previous: tuple[int, int] | None = None
        for posting in postings:
            if not 0 <= posting.doc_id < doc_count:
                msg = f"Posting for {term!r} references unknown document {posting.doc_id}"
                raise IndexInvariantError(msg)
            key = (posting.doc_id, posting.field.order)
            if previous is not None and key <= previous:
                msg = f"Postings for {term!r} are not sorted by document id"
                raise IndexInvariantError(msg)
            previous = key


class _IndexFingerprintBuilder:
    """Deterministically hash documents + analyzer config for reproducible indexes."""

    def __init__(self, analyzer: DocumentAnalyzer) -> None:
        serialized_config = json.dumps(list(analyzer.config_key()), ensure_ascii=False).encode("utf-8")
        self._config_digest = hashlib.sha256(serialized_config).hexdigest()
        self._format_digest = hashlib.sha256(_INDEX_FORMAT_VERSION.encode("utf-8")).hexdigest()
        self._doc_digests: list[str] = []

    def add_document(self, document: Document) -> None:
        serialized = json.dumps(document.to_dict(), sort_keys=True, ensure_ascii=False, separators=(",", ":"))
        self._doc_digests.append(hashlib.sha256(serialized.encode("utf-8")).hexdigest())

    def digest(self) -> str:
        root = hashlib.sha256()
        root.update(self._format_digest.encode("ascii"))
        root.update(self._config_digest.encode("ascii"))
        for digest in self._doc_digests:
            root.update(digest.encode("ascii"))
        return root.hexdigest()
