"""Corpus loader: validate raw index records and build the document table.

The loader is the only place raw producer records are interpreted. It is
strict about the fields navigation depends on (``location`` and ``page``) and
lenient about everything else, so a newer producer that adds categories does
not break older readers.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import Any

from docs_search_engine.domain.model import Category, Document
from docs_search_engine.errors import DuplicateAnchorError, SchemaError


logger = logging.getLogger(__name__)


def load_documents(records: Iterable[Any]) -> tuple[Document, ...]:
    """Validate ``records`` and return the immutable document table.

    Args:
        records: Raw records in producer order (typically the ``docs`` list of
            the exported index).

    Returns:
        Documents with ids assigned densely in input order.

    Raises:
        SchemaError: A record is not a mapping, or ``location``/``page`` is
            missing, not a string, or blank.
        DuplicateAnchorError: Two records share a ``location``.
    """

    documents: list[Document] = []
    seen_locations: dict[str, int] = {}
    unknown_categories = 0

    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise SchemaError(index, "<record>", f"must be an object, got {type(record).__name__}")

        location = _required_string(record, "location", index)
        page = _required_string(record, "page", index)

        first_index = seen_locations.get(location)
        if first_index is not None:
            raise DuplicateAnchorError(location, first_index, index)
        seen_locations[location] = index

        raw_category = record.get("category")
        category = Category.parse(raw_category)
        if category is Category.UNSPECIFIED and raw_category not in (None, Category.UNSPECIFIED.value):
            unknown_categories += 1
            logger.debug("Record %d has unrecognized category %r", index, raw_category)

        documents.append(
            Document(
                id=len(documents),
                location=location,
                page=page,
                title=_optional_string(record, "title"),
                text=_optional_string(record, "text"),
                category=category,
            )
        )

    if unknown_categories:
        logger.info(
            "Mapped %d record(s) with unrecognized categories to 'unspecified'",
            unknown_categories,
            extra={"unknown_categories": unknown_categories},
        )
    return tuple(documents)


def _required_string(record: Mapping[str, Any], field: str, index: int) -> str:
    if field not in record or record[field] is None:
        raise SchemaError(index, field, "is missing")
    value = record[field]
    if not isinstance(value, str):
        raise SchemaError(index, field, f"must be a string, got {type(value).__name__}")
    if not value.strip():
        raise SchemaError(index, field, "is empty")
    return value


def _optional_string(record: Mapping[str, Any], field: str) -> str:
    value = record.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        return str(value)
    return value
