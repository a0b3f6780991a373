"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from docs_search_engine.observability.context import (
    bind_corpus,
    get_trace_context,
    set_trace_context,
    trace_context,
)
from docs_search_engine.observability.logging import JsonFormatter, configure_logging
from docs_search_engine.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_DOC_COUNT,
    INDEX_TERM_COUNT,
    SEARCH_LATENCY,
    SEARCH_QUERIES,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from docs_search_engine.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_BUILD_LATENCY",
    "INDEX_DOC_COUNT",
    "INDEX_TERM_COUNT",
    "SEARCH_LATENCY",
    "SEARCH_QUERIES",
    "JsonFormatter",
    "bind_corpus",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
