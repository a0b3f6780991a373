"""Command-line search over an exported documentation index."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

import orjson
from pydantic import ValidationError

from docs_search_engine.config import Settings
from docs_search_engine.domain.search import SearchResult
from docs_search_engine.errors import CorpusLoadError, IndexFileError
from docs_search_engine.observability.logging import configure_logging
from docs_search_engine.search.corpus import load_corpus
from docs_search_engine.search.index_file import read_index_file
from docs_search_engine.search.snippet import render_highlights


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_LOAD_FAILURE = 2


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docs-search",
        description="Search a documentation site's exported search index",
    )
    parser.add_argument(
        "index_file",
        type=Path,
        help="Path to search_index.js or an equivalent JSON file",
    )
    parser.add_argument(
        "query",
        nargs="+",
        help="Query words; quote a phrase to require adjacent terms",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Maximum number of results to print (default: 10)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as a JSON array",
    )
    parser.add_argument(
        "--coalesce-duplicates",
        action="store_true",
        help="Merge repeated page records that share a location before loading",
    )
    parser.add_argument(
        "--highlight-style",
        choices=("plain", "html", "none"),
        default="plain",
        help="How matched terms are marked in printed snippets (default: plain)",
    )
    parser.add_argument(
        "--log-level",
        help="Log level for diagnostics written to stderr (defaults to DOCS_SEARCH_LOG_LEVEL)",
    )
    return parser


def _format_result(result: SearchResult, style: str) -> str:
    header = f"{result.score:8.3f}  {result.location}  ({result.page} / {result.title})"
    snippet = render_highlights(result.snippet, result.highlight_ranges, style)
    if not snippet:
        return header
    return f"{header}\n          {snippet}"


def _print_results(results: Sequence[SearchResult], *, as_json: bool, style: str) -> None:
    if as_json:
        payload = [result.model_dump(mode="json") for result in results]
        print(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))
        return
    if not results:
        print("No results.")
        return
    for result in results:
        print(_format_result(result, style))


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        configure_logging("ERROR", json_output=False, stream=sys.stderr)
        logger.error("Invalid configuration: %s", exc)
        return EXIT_LOAD_FAILURE

    configure_logging(args.log_level or settings.log_level, json_output=settings.log_json, stream=sys.stderr)

    try:
        records = read_index_file(args.index_file, coalesce_duplicates=args.coalesce_duplicates)
        corpus = load_corpus(records, settings)
    except IndexFileError as exc:
        logger.error("Cannot read search index: %s", exc)
        return EXIT_LOAD_FAILURE
    except CorpusLoadError as exc:
        logger.error("Invalid search index: %s", exc)
        return EXIT_LOAD_FAILURE

    query = " ".join(args.query)
    results, stats = corpus.query(query, limit=args.limit)
    logger.info(
        "Query %r returned %d result(s) in %.2fms",
        query,
        stats.returned,
        stats.search_time_ms,
        extra={"candidates": stats.candidates},
    )
    _print_results(results, as_json=args.json, style=args.highlight_style)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
