"""Analyzer utilities for the in-memory search stack.

This module follows Whoosh's composable tokenizer/filter design: a tokenizer
emits raw word tokens with character offsets, and filters transform the
stream. The same analyzer instance must be used at index time and at query
time, otherwise query terms silently stop matching indexed terms.

Normalization order is fixed:

1. Unicode case-fold.
2. Strip characters outside letters, digits, ``_`` and ``-`` at token
   boundaries.
3. Split on whitespace and on the stripped punctuation.
4. Drop empty tokens.
5. Drop configured stop-words (none by default).

The tokenizer folds the whole text before splitting it and maps every
``start_char``/``end_char`` back into the original, unfolded text.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
import re
from typing import Protocol


@dataclass(frozen=True, slots=True)
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int

    def copy_with(self, **updates: object) -> Token:
        return replace(self, **updates)


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class RegexTokenizer:
    """Regex-based tokenizer that yields word tokens.

    The default pattern keeps maximal runs of word characters and hyphens, so
    identifiers such as ``get_queryset`` or ``flame-graph`` survive intact
    while ``FlameGraphs.flamegraph`` splits at the dot.

    With ``casefold=True`` the whole text is case-folded before it is split,
    and offsets are mapped back onto the unfolded text.
    """

    DEFAULT_PATTERN = r"[\w-]+"

    def __init__(self, pattern: str = DEFAULT_PATTERN, flags: int = re.UNICODE, *, casefold: bool = False) -> None:
        self.pattern = re.compile(pattern, flags)
        self.casefold = casefold

    def __call__(self, text: str) -> Iterator[Token]:
        offsets: list[int] | None = None
        if self.casefold:
            text, offsets = casefold_with_offsets(text)
        for position, match in enumerate(self.pattern.finditer(text)):
            start, end = match.span()
            if offsets is not None:
                start, end = offsets[start], offsets[end - 1] + 1
            yield Token(text=match.group(0), position=position, start_char=start, end_char=end)


def casefold_with_offsets(text: str) -> tuple[str, list[int] | None]:
    """Case-fold ``text`` and map each folded character to its source index.

    Folding can expand one character into several (``ß`` -> ``ss``,
    ``İ`` -> ``i`` + U+0307). The map is ``None`` when no character expanded,
    in which case folded and original offsets coincide.
    """
    folded = text.casefold()
    if len(folded) == len(text):
        return folded, None
    offsets: list[int] = []
    for index, char in enumerate(text):
        offsets.extend([index] * len(char.casefold()))
    return folded, offsets


class MinLengthFilter:
    """Drops tokens shorter than ``min_length`` characters."""

    def __init__(self, min_length: int = 1) -> None:
        self.min_length = min_length

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if len(token.text) >= self.min_length:
                yield token


class StopFilter:
    """Removes stopwords from the stream.

    Unlike general-purpose analyzers the default vocabulary is empty:
    documentation titles are often identifiers (``in``, ``map``, ``filter``)
    that a stop list would make unsearchable.
    """

    def __init__(self, stopwords: Collection[str] | None = None) -> None:
        self.stopwords = frozenset(word.casefold() for word in (stopwords or ()))

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        if not self.stopwords:
            yield from tokens
            return
        for token in tokens:
            if token.text not in self.stopwords:
                yield token


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def tokens(self, text: str) -> Iterator[Token]:
        """Lazily analyze ``text``; calling again restarts from the beginning."""
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        for idx, token in enumerate(stream):  # normalize positions post-filtering
            yield token if token.position == idx else token.copy_with(position=idx)

    def __call__(self, text: str) -> list[Token]:
        return list(self.tokens(text))


class DocumentAnalyzer:
    """Analyzer shared by the index builder and the query parser."""

    def __init__(self, *, stopwords: Collection[str] | None = None) -> None:
        self.stopwords = frozenset(word.casefold() for word in (stopwords or ()))
        self.pipeline = AnalyzerPipeline(
            RegexTokenizer(casefold=True),
            [MinLengthFilter(1), StopFilter(self.stopwords)],
        )

    def tokens(self, text: str) -> Iterator[Token]:
        if not text:
            return iter(())
        return self.pipeline.tokens(text)

    def terms(self, text: str) -> list[str]:
        """Return only the normalized term strings for ``text``."""
        return [token.text for token in self.tokens(text)]

    def __call__(self, text: str) -> list[Token]:
        return list(self.tokens(text))

    def config_key(self) -> tuple[str, ...]:
        """Stable description of the configuration, used in index fingerprints."""
        return (RegexTokenizer.DEFAULT_PATTERN, "casefold-then-split", *sorted(self.stopwords))
