"""Conjunctive matching and field-weighted scoring.

Scoring is intentionally simple and explainable:

* every clause contributes ``field_weight(field) * tf(term)`` for each field
  where its terms occur, with ``tf`` saturating towards ``k1 + 1`` so that
  one title hit always outweighs any number of body hits;
* a phrase clause additionally earns
  ``phrase_bonus * field_weight(field) * occurrences * len(terms)`` for each
  field where the phrase occurs contiguously;
* documents must satisfy every clause (AND semantics);
* ties are broken by ascending document id, i.e. original corpus order.

The engine is a pure function of the index and the parsed query. It never
touches document text and performs no I/O.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
import logging
from types import MappingProxyType

from docs_search_engine.search.models import Field, InvertedIndex, Posting
from docs_search_engine.search.phrase import find_phrase_starts
from docs_search_engine.search.query import Clause, ParsedQuery


logger = logging.getLogger(__name__)

Checkpoint = Callable[[], None]
_CHECKPOINT_INTERVAL = 256

DEFAULT_FIELD_WEIGHTS: Mapping[Field, float] = MappingProxyType({Field.TITLE: 5.0, Field.TEXT: 1.0})
DEFAULT_TF_SATURATION = 1.2


@dataclass(frozen=True)
class ScoredDocument:
    """Represents a scored document produced by the query engine."""

    doc_id: int
    score: float
    matched_terms: Mapping[Field, frozenset[str]]

    def terms_in(self, field_name: Field) -> frozenset[str]:
        return self.matched_terms.get(field_name, frozenset())


def intersect_sorted(left: Sequence[int], right: Sequence[int]) -> list[int]:
    """Linear merge of two ascending id lists."""
    result: list[int] = []
    i = j = 0
    while i < len(left) and j < len(right):
        a, b = left[i], right[j]
        if a == b:
            result.append(a)
            i += 1
            j += 1
        elif a < b:
            i += 1
        else:
            j += 1
    return result


def saturated_tf(frequency: int, k1: float = DEFAULT_TF_SATURATION) -> float:
    """Return the BM25 term-frequency component without length normalization.

    Equals 1.0 for a single occurrence and approaches ``k1 + 1`` as the
    frequency grows.
    """
    if frequency <= 0:
        return 0.0
    return (frequency * (k1 + 1)) / (frequency + k1)


class QueryEngine:
    """Match and rank documents of one index snapshot."""

    def __init__(
        self,
        index: InvertedIndex,
        *,
        field_weights: Mapping[Field, float] | None = None,
        phrase_bonus: float = 1.0,
        tf_saturation: float = DEFAULT_TF_SATURATION,
    ) -> None:
        weights = dict(DEFAULT_FIELD_WEIGHTS)
        if field_weights:
            weights.update(field_weights)
        if weights[Field.TITLE] <= weights[Field.TEXT] * (tf_saturation + 1):
            msg = (
                f"Title weight {weights[Field.TITLE]} must exceed text weight {weights[Field.TEXT]} "
                f"times the saturation ceiling {tf_saturation + 1}"
            )
            raise ValueError(msg)
        self.index = index
        self.field_weights = MappingProxyType(weights)
        self.phrase_bonus = phrase_bonus
        self.tf_saturation = tf_saturation

    def candidates(self, parsed: ParsedQuery, checkpoint: Checkpoint | None = None) -> list[int]:
        """Return doc ids containing every term of every clause.

        Phrase adjacency is not checked here; it is verified during scoring.
        """
        if parsed.is_empty():
            return []

        id_lists = [self.index.doc_ids(term) for term in parsed.terms]
        id_lists.sort(key=len)
        if not id_lists[0]:
            return []

        result: list[int] = list(id_lists[0])
        for ids in id_lists[1:]:
            if checkpoint is not None:
                checkpoint()
            result = intersect_sorted(result, ids)
            if not result:
                break
        return result

    def execute(
        self,
        parsed: ParsedQuery,
        *,
        limit: int | None = None,
        checkpoint: Checkpoint | None = None,
        candidate_ids: Sequence[int] | None = None,
    ) -> list[ScoredDocument]:
        """Return ranked documents for a parsed query.

        Args:
            parsed: Query produced by :func:`parse_query` with the index's analyzer.
            limit: Maximum number of results; ``None`` means unbounded.
            checkpoint: Called periodically; raising from it abandons the query.
            candidate_ids: Result of an earlier :meth:`candidates` call for the
                same query, to avoid intersecting the postings twice.
        """
        if parsed.is_empty() or (limit is not None and limit <= 0):
            return []

        if candidate_ids is None:
            candidate_ids = self.candidates(parsed, checkpoint)
        if not candidate_ids:
            return []

        candidate_set = frozenset(candidate_ids)
        postings_by_term = {term: self._postings_for(term, candidate_set) for term in parsed.terms}

        scored: list[ScoredDocument] = []
        for count, doc_id in enumerate(candidate_ids):
            if checkpoint is not None and count % _CHECKPOINT_INTERVAL == 0:
                checkpoint()
            result = self._score_document(doc_id, parsed.clauses, postings_by_term)
            if result is not None:
                scored.append(result)

        scored.sort(key=lambda entry: (-entry.score, entry.doc_id))
        if limit is not None:
            scored = scored[:limit]

        logger.debug(
            "Query matched %d of %d candidates",
            len(scored),
            len(candidate_ids),
            extra={"clauses": len(parsed.clauses)},
        )
        return scored

    def _weight(self, field_name: Field, posting: Posting) -> float:
        return self.field_weights[field_name] * saturated_tf(posting.frequency, self.tf_saturation)

    def _postings_for(self, term: str, candidates: frozenset[int]) -> dict[int, dict[Field, Posting]]:
        by_doc: dict[int, dict[Field, Posting]] = {}
        for posting in self.index.get_postings(term):
            if posting.doc_id in candidates:
                by_doc.setdefault(posting.doc_id, {})[posting.field] = posting
        return by_doc

    def _score_document(
        self,
        doc_id: int,
        clauses: Sequence[Clause],
        postings_by_term: Mapping[str, Mapping[int, Mapping[Field, Posting]]],
    ) -> ScoredDocument | None:
        total = 0.0
        matched: dict[Field, set[str]] = {}

        for clause in clauses:
            doc_postings = [postings_by_term[term][doc_id] for term in clause.terms]
            if clause.is_phrase:
                clause_score = self._score_phrase(clause, doc_postings, matched)
                if clause_score is None:
                    return None
                total += clause_score
                continue

            term = clause.terms[0]
            for field_name, posting in doc_postings[0].items():
                total += self._weight(field_name, posting)
                matched.setdefault(field_name, set()).add(term)

        return ScoredDocument(
            doc_id=doc_id,
            score=total,
            matched_terms=MappingProxyType({name: frozenset(terms) for name, terms in matched.items()}),
        )

    def _score_phrase(
        self,
        clause: Clause,
        doc_postings: Sequence[Mapping[Field, Posting]],
        matched: dict[Field, set[str]],
    ) -> float | None:
        """Score one phrase clause, or return None if it never occurs contiguously."""
        score = 0.0
        seen_terms: set[str] = set()
        for term, by_field in zip(clause.terms, doc_postings):
            if term in seen_terms:
                continue
            seen_terms.add(term)
            for field_name, posting in by_field.items():
                score += self._weight(field_name, posting)

        satisfied = False
        for field_name in Field:
            if not all(field_name in by_field for by_field in doc_postings):
                continue
            starts = find_phrase_starts([by_field[field_name].positions for by_field in doc_postings])
            if not starts:
                continue
            satisfied = True
            score += self.phrase_bonus * self.field_weights[field_name] * len(starts) * len(clause.terms)
            matched.setdefault(field_name, set()).update(clause.terms)

        return score if satisfied else None
