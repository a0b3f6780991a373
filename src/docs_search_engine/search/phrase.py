"""Phrase matching over token positions.

A phrase matches a field when the positions of its terms contain a run
``p, p + 1, ..., p + n - 1`` in phrase order. Positions come straight from
the inverted index, so document text never has to be re-analyzed.
"""

from __future__ import annotations

from collections.abc import Sequence


def find_phrase_starts(position_lists: Sequence[Sequence[int]]) -> list[int]:
    """Return every start position where the terms occur contiguously.

    Args:
        position_lists: One ascending position list per phrase term, in
            phrase order. A repeated term (``"data data"``) simply appears
            twice.

    Returns:
        Ascending start positions of each contiguous run; empty when the
        phrase does not occur or any list is empty.
    """
    if not position_lists or any(not positions for positions in position_lists):
        return []

    # Anchor on the rarest term to keep the candidate set small
    anchor_offset = min(range(len(position_lists)), key=lambda idx: len(position_lists[idx]))
    candidates = [pos - anchor_offset for pos in position_lists[anchor_offset] if pos >= anchor_offset]

    lookups = [frozenset(positions) for positions in position_lists]
    starts: list[int] = []
    for start in candidates:
        if all(start + offset in lookup for offset, lookup in enumerate(lookups)):
            starts.append(start)
    return starts
