"""Query parsing for interactive, search-as-you-type input.

A query is split on whitespace outside double quotes. Quoted runs become
phrase clauses; other pieces become single-term clauses. Parsing never
fails: an unterminated quote (the user is still typing) makes the rest of
the query plain text, and pieces that normalize to nothing are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass

from docs_search_engine.search.analyzers import DocumentAnalyzer


_QUOTE = '"'


@dataclass(frozen=True, slots=True)
class Clause:
    """One unit of a parsed query: a single term or an ordered phrase."""

    terms: tuple[str, ...]
    quoted: bool = False

    @property
    def is_phrase(self) -> bool:
        return len(self.terms) > 1


@dataclass(frozen=True)
class ParsedQuery:
    """Immutable, normalized view of a query string."""

    text: str
    clauses: tuple[Clause, ...]
    unterminated_quote: bool = False

    @classmethod
    def empty(cls, text: str = "") -> ParsedQuery:
        return cls(text=text, clauses=())

    def is_empty(self) -> bool:
        return not self.clauses

    @property
    def terms(self) -> tuple[str, ...]:
        """All distinct clause terms in first-seen order."""
        seen: dict[str, None] = {}
        for clause in self.clauses:
            for term in clause.terms:
                seen.setdefault(term, None)
        return tuple(seen)


def split_query(query: str) -> tuple[list[tuple[str, bool]], bool]:
    """Split raw query text into ``(piece, quoted)`` pairs.

    Returns the pieces plus a flag telling whether a quote was left open.
    The text after an unmatched quote is returned as ordinary unquoted
    pieces.
    """
    pieces: list[tuple[str, bool]] = []
    current: list[str] = []
    idx = 0
    length = len(query)

    def flush() -> None:
        if current:
            pieces.append(("".join(current), False))
            current.clear()

    while idx < length:
        char = query[idx]
        if char == _QUOTE:
            closing = query.find(_QUOTE, idx + 1)
            if closing == -1:
                flush()
                pieces.extend((word, False) for word in query[idx + 1 :].split())
                return pieces, True
            flush()
            pieces.append((query[idx + 1 : closing], True))
            idx = closing + 1
            continue
        if char.isspace():
            flush()
        else:
            current.append(char)
        idx += 1

    flush()
    return pieces, False


def parse_query(query: str, analyzer: DocumentAnalyzer) -> ParsedQuery:
    """Parse ``query`` into clauses normalized with ``analyzer``.

    ``analyzer`` must be the analyzer the index was built with.
    """
    if not query or not query.strip():
        return ParsedQuery.empty(query or "")

    pieces, unterminated = split_query(query)
    clauses: list[Clause] = []
    seen: set[tuple[str, ...]] = set()
    for piece, quoted in pieces:
        terms = tuple(analyzer.terms(piece))
        if not terms or terms in seen:
            continue
        seen.add(terms)
        clauses.append(Clause(terms=terms, quoted=quoted))

    return ParsedQuery(text=query, clauses=tuple(clauses), unterminated_quote=unterminated)
