"""Snippet extraction with sentence-boundary awareness.

Snippets are windows into a document's ``text`` described by character
offsets, so highlight ranges can be reported exactly instead of being
re-discovered with string searches.

Smart defaults:
- The window is centered on the first matched term and never exceeds the
  configured length.
- Inside that budget it prefers to start and end on sentence boundaries,
  falling back to word boundaries.
- Highlight markup is optional and only produced by ``render_highlights``.
"""

from __future__ import annotations

from collections.abc import Sequence
import html
import re

from docs_search_engine.domain.search import HighlightRange


# Sentence-ending punctuation pattern
SENTENCE_END_PATTERN = re.compile(r"[.!?]\s+")
# Word boundary pattern (for fallback)
WORD_BOUNDARY_PATTERN = re.compile(r"\s+")


def find_sentence_start(text: str, position: int, max_lookback: int = 200) -> int:
    """Find the start of the sentence containing the position.

    Args:
        text: The full text to search in.
        position: The position to find sentence start for.
        max_lookback: Maximum characters to look back.

    Returns:
        Index of sentence start, or position - max_lookback if not found.
    """
    if position == 0:
        return 0

    start_search = max(0, position - max_lookback)
    search_text = text[start_search:position]

    matches = list(SENTENCE_END_PATTERN.finditer(search_text))
    if matches:
        return start_search + matches[-1].end()

    # No sentence boundary found, use the first word boundary past the first quarter
    quarter_pos = len(search_text) // 4
    for match in WORD_BOUNDARY_PATTERN.finditer(search_text):
        if match.start() >= quarter_pos:
            return start_search + match.end()

    return start_search


def find_sentence_end(text: str, position: int, max_lookahead: int = 200) -> int:
    """Find the end of the sentence containing the position.

    Args:
        text: The full text to search in.
        position: The position to find sentence end for.
        max_lookahead: Maximum characters to look ahead.

    Returns:
        Index of sentence end, or position + max_lookahead if not found.
    """
    if position >= len(text):
        return len(text)

    end_search = min(len(text), position + max_lookahead)
    search_text = text[position:end_search]

    match = SENTENCE_END_PATTERN.search(search_text)
    if match:
        # Keep the punctuation, drop the trailing whitespace
        return position + match.start() + 1

    words = list(WORD_BOUNDARY_PATTERN.finditer(search_text))
    if words:
        three_quarter_pos = (len(search_text) * 3) // 4
        for word in reversed(words):
            if word.start() <= three_quarter_pos:
                return position + word.start()

    return end_search


def snippet_window(text: str, match_start: int, match_end: int, max_chars: int) -> tuple[int, int]:
    """Return ``(start, end)`` of a window of at most ``max_chars`` around a match.

    The window is centered on ``[match_start, match_end)`` and then narrowed
    to sentence or word boundaries without ever cutting the match itself.
    """
    length = len(text)
    if length <= max_chars:
        start, end = 0, length
    elif match_end - match_start >= max_chars:
        start, end = match_start, match_start + max_chars
    else:
        center = (match_start + match_end) // 2
        start = max(0, center - max_chars // 2)
        end = min(length, start + max_chars)
        start = max(0, end - max_chars)

        if start > 0:
            start = min(find_sentence_start(text, match_start, max_lookback=match_start - start), match_start)
        if end < length:
            end = max(find_sentence_end(text, match_end, max_lookahead=end - match_end), match_end)

    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def extract_snippet(
    text: str,
    occurrences: Sequence[tuple[int, int]],
    max_chars: int = 240,
) -> tuple[str, tuple[HighlightRange, ...]]:
    """Cut a snippet around the first occurrence and translate every range into it.

    Args:
        text: The full field text.
        occurrences: ``(start_char, end_char)`` spans of matched terms in
            ascending order.
        max_chars: Maximum snippet length.

    Returns:
        The snippet and the highlight ranges that overlap it, clipped to the
        snippet and relative to it.
    """
    if not text or not occurrences:
        return "", ()

    first_start, first_end = occurrences[0]
    start, end = snippet_window(text, first_start, first_end, max_chars)

    ranges: list[HighlightRange] = []
    for occ_start, occ_end in occurrences:
        clipped_start, clipped_end = max(occ_start, start), min(occ_end, end)
        if clipped_end > clipped_start:
            ranges.append(HighlightRange(start=clipped_start - start, end=clipped_end - start))
    return text[start:end], tuple(ranges)


def leading_snippet(text: str, max_chars: int) -> str:
    """Return the first ``max_chars`` characters of ``text`` (no highlight)."""
    if max_chars <= 0 or not text:
        return ""
    return text[:max_chars].rstrip()


def render_highlights(snippet: str, ranges: Sequence[HighlightRange], style: str = "plain") -> str:
    """Render highlight ranges as markup.

    Args:
        snippet: The snippet text the ranges refer to.
        ranges: Non-overlapping ranges; overlapping ones are skipped.
        style: "plain" for [[term]], "html" for <mark>term</mark> (the rest
            of the snippet is HTML-escaped), "none" to return the snippet as is.
    """
    if style == "none" or not ranges:
        return html.escape(snippet) if style == "html" else snippet

    escape = html.escape if style == "html" else (lambda value: value)
    parts: list[str] = []
    cursor = 0
    for highlight in sorted(ranges, key=lambda item: item.start):
        if highlight.start < cursor:
            continue
        matched_text = escape(snippet[highlight.start : highlight.end])
        parts.append(escape(snippet[cursor : highlight.start]))
        parts.append(f"<mark>{matched_text}</mark>" if style == "html" else f"[[{matched_text}]]")
        cursor = highlight.end
    parts.append(escape(snippet[cursor:]))
    return "".join(parts)
