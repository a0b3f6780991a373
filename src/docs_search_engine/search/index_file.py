"""Read exported search index files.

Documentation builds ship their index either as plain JSON
(``{"docs": [...]}``) or as a JavaScript file that assigns the same object
to a global (``var documenterSearchIndex = {"docs": [...]}``). This module
turns either form into the list of raw records :func:`load_corpus` expects.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from pathlib import Path
import re
from typing import Any

import orjson

from docs_search_engine.errors import IndexFileError


logger = logging.getLogger(__name__)

_JS_ASSIGNMENT = re.compile(rb"^\s*(?:(?:var|let|const)\s+)?[A-Za-z_$][\w$.]*\s*=\s*")
_MERGE_KEYS = ("page", "title", "category")


def parse_index_payload(raw: bytes | str) -> list[dict[str, Any]]:
    """Parse the contents of an index file into raw records.

    Raises:
        IndexFileError: The payload is not valid JSON or has no ``docs`` list.
    """
    data = raw.encode("utf-8") if isinstance(raw, str) else raw
    data = data.lstrip(b"\xef\xbb\xbf")

    match = _JS_ASSIGNMENT.match(data)
    if match:
        data = data[match.end() :].rstrip()
        if data.endswith(b";"):
            data = data[:-1]

    try:
        payload = orjson.loads(data)
    except orjson.JSONDecodeError as exc:
        raise IndexFileError(f"Search index is not valid JSON: {exc}") from exc

    if isinstance(payload, Mapping):
        docs = payload.get("docs")
        if not isinstance(docs, list):
            raise IndexFileError("Search index object has no 'docs' list")
    elif isinstance(payload, list):
        docs = payload
    else:
        raise IndexFileError(f"Search index must be an object or a list, got {type(payload).__name__}")
    return docs


def coalesce_duplicate_records(records: Sequence[Any]) -> list[Any]:
    """Merge records that repeat an earlier ``location`` with the same page, title and category.

    The producer emits one record per paragraph of a page, all sharing the
    page anchor. Their ``text`` values are joined with newlines in input order
    and the merged record takes the position of the first one. Records that
    share a location but differ otherwise are kept as they are.
    """
    merged: list[Any] = []
    first_by_key: dict[tuple[Any, ...], int] = {}
    folded = 0

    for record in records:
        if not isinstance(record, Mapping) or not isinstance(record.get("location"), str):
            merged.append(record)
            continue

        key = (record["location"], *(record.get(name) for name in _MERGE_KEYS))
        if not all(value is None or isinstance(value, str) for value in key):
            merged.append(record)
            continue
        position = first_by_key.get(key)
        if position is None:
            first_by_key[key] = len(merged)
            merged.append(dict(record))
            continue

        target = merged[position]
        extra_text = record.get("text") or ""
        if extra_text:
            target["text"] = f"{target['text']}\n{extra_text}" if target.get("text") else extra_text
        folded += 1

    if folded:
        logger.info("Coalesced %d duplicate record(s) into earlier entries", folded, extra={"coalesced": folded})
    return merged


def read_index_file(path: str | Path, *, coalesce_duplicates: bool = False) -> list[Any]:
    """Read and parse an index file from disk.

    Raises:
        IndexFileError: The file cannot be read or parsed.
    """
    index_path = Path(path)
    try:
        raw = index_path.read_bytes()
    except OSError as exc:
        raise IndexFileError(f"Cannot read search index {index_path}: {exc}") from exc

    records = parse_index_payload(raw)
    logger.debug("Read %d records from %s", len(records), index_path)
    if coalesce_duplicates:
        records = coalesce_duplicate_records(records)
    return records
