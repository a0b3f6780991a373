"""Domain model - the immutable document table.

Documents are value objects: they are created once by the corpus loader,
never mutated, and replaced wholesale when a corpus is reloaded. The ``id``
is a dense index into the document table and doubles as the default
tie-break order for ranking.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Category(str, Enum):
    """Kind of documentation section a record describes."""

    SECTION = "section"
    FUNCTION = "function"
    TYPE = "type"
    PAGE = "page"
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: Any) -> Category:
        """Return the matching category, or ``UNSPECIFIED`` for anything unknown."""
        if not isinstance(value, str):
            return cls.UNSPECIFIED
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return cls.UNSPECIFIED


@dataclass(frozen=True, slots=True)
class Document:
    """A single page section from the exported search index."""

    id: int
    location: str
    page: str
    title: str = ""
    text: str = ""
    category: Category = Category.UNSPECIFIED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "location": self.location,
            "page": self.page,
            "title": self.title,
            "text": self.text,
            "category": self.category.value,
        }
