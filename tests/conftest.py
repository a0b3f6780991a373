"""Shared test fixtures and configuration."""

import logging
import os

import pytest


# Complete test environment that overrides every engine setting
TEST_ENV = {
    "DOCS_SEARCH_STOP_WORDS": "",
    "DOCS_SEARCH_TITLE_WEIGHT": "5.0",
    "DOCS_SEARCH_TEXT_WEIGHT": "1.0",
    "DOCS_SEARCH_PHRASE_BONUS": "1.0",
    "DOCS_SEARCH_TF_SATURATION": "1.2",
    "DOCS_SEARCH_SNIPPET_MAX_CHARS": "240",
    "DOCS_SEARCH_SNIPPET_FALLBACK_CHARS": "160",
    "DOCS_SEARCH_BUILD_WORKERS": "1",
    "DOCS_SEARCH_BUILD_PARALLEL_THRESHOLD": "2000",
    "DOCS_SEARCH_CORPUS_NAME": "test",
    "DOCS_SEARCH_LOG_LEVEL": "info",
    "DOCS_SEARCH_LOG_JSON": "false",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value

from docs_search_engine.config import Settings
from docs_search_engine.search.corpus import load_corpus


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset engine environment variables before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def flame_records() -> list[dict]:
    """Two-page corpus where only p1 has the query term in its title."""
    return [
        {
            "location": "p1",
            "page": "P1",
            "title": "Flame Graph",
            "text": "compute a flame graph from profiling data",
            "category": "function",
        },
        {
            "location": "p2",
            "page": "P2",
            "title": "Colors",
            "text": "flame coloring uses a palette",
            "category": "type",
        },
    ]


@pytest.fixture
def docs_records() -> list[dict]:
    """Records shaped like a real documentation site's exported index."""
    return [
        {"location": "#", "page": "Home", "title": "Home", "text": "", "category": "page"},
        {
            "location": "reference/#Computing-flame-graphs-1",
            "page": "Reference",
            "title": "Computing flame graphs",
            "text": "",
            "category": "section",
        },
        {
            "location": "reference/#FlameGraphs.flamegraph",
            "page": "Reference",
            "title": "FlameGraphs.flamegraph",
            "text": "flamegraph([data]; lidict, C=false, combine=true) Compute a graph representation of profiling data.",
            "category": "function",
        },
        {
            "location": "reference/#FlameGraphs.NodeData",
            "page": "Reference",
            "title": "FlameGraphs.NodeData",
            "text": "NodeData(sf::StackFrame, status::UInt8, span::UnitRange{Int}) Data associated with a single node.",
            "category": "type",
        },
        {
            "location": "#Colors-1",
            "page": "Home",
            "title": "Colors",
            "text": "The color of each bar is chosen by a colorization function. Red bars indicate runtime dispatch.",
            "category": "section",
        },
    ]


@pytest.fixture
def flame_corpus(flame_records, settings):
    return load_corpus(flame_records, settings)


@pytest.fixture
def docs_corpus(docs_records, settings):
    return load_corpus(docs_records, settings)


@pytest.fixture
def restore_root_logger():
    """Undo handler and level changes made by configure_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
