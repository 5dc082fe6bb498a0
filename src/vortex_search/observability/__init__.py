"""Observability module for tracing, metrics, and logging."""

from vortex_search.observability.context import get_trace_context, set_trace_context, trace_context
from vortex_search.observability.logging import JsonFormatter, configure_logging
from vortex_search.observability.metrics import (
    INDEX_DOC_COUNT,
    INDEX_VOCABULARY_SIZE,
    QUERY_CORRECTIONS,
    SEARCH_LATENCY,
    SEARCH_QUERIES,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from vortex_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_DOC_COUNT",
    "INDEX_VOCABULARY_SIZE",
    "QUERY_CORRECTIONS",
    "SEARCH_LATENCY",
    "SEARCH_QUERIES",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
