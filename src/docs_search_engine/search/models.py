"""Search data models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class Field(str, Enum):
    """Indexed document fields, in tie-break order."""

    TITLE = "title"
    TEXT = "text"

    @property
    def order(self) -> int:
        return 0 if self is Field.TITLE else 1


@dataclass(frozen=True, slots=True)
class Posting:
    """A posting represents a term occurrence in one field of a document.

    Frequency is derived from ``len(positions)`` so the two can never drift.
    """

    doc_id: int
    field: Field
    positions: tuple[int, ...]

    @property
    def frequency(self) -> int:
        return len(self.positions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "doc_id": self.doc_id,
            "field": self.field.value,
            "frequency": self.frequency,
            "positions": list(self.positions),
        }


@dataclass(frozen=True)
class InvertedIndex:
    """Immutable term -> postings mapping built once per corpus load.

    Postings for a term are sorted by ``(doc_id, field)`` so multi-term
    queries can intersect them with a linear merge.
    """

    postings: Mapping[str, tuple[Posting, ...]]
    doc_count: int
    fingerprint: str = ""
    term_doc_ids: Mapping[str, tuple[int, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.postings, MappingProxyType):
            object.__setattr__(self, "postings", MappingProxyType(dict(self.postings)))
        object.__setattr__(
            self,
            "term_doc_ids",
            MappingProxyType({term: _distinct_doc_ids(postings) for term, postings in self.postings.items()}),
        )

    def __contains__(self, term: object) -> bool:
        return term in self.postings

    @property
    def term_count(self) -> int:
        return len(self.postings)

    def get_postings(self, term: str) -> tuple[Posting, ...]:
        """Return postings for ``term`` across all fields (empty if unknown)."""
        return self.postings.get(term, ())

    def doc_ids(self, term: str) -> tuple[int, ...]:
        """Return the ascending, de-duplicated doc ids containing ``term`` in any field."""
        return self.term_doc_ids.get(term, ())

    def to_dict(self) -> dict[str, Any]:
        """Serialize for debugging and fixture comparison."""
        return {
            "doc_count": self.doc_count,
            "fingerprint": self.fingerprint,
            "postings": {term: [p.to_dict() for p in postings] for term, postings in sorted(self.postings.items())},
        }


def _distinct_doc_ids(postings: tuple[Posting, ...]) -> tuple[int, ...]:
    ids: list[int] = []
    for posting in postings:
        if not ids or ids[-1] != posting.doc_id:
            ids.append(posting.doc_id)
    return tuple(ids)
