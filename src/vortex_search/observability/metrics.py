"""Prometheus metrics for the search engine."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


SEARCH_LATENCY = Histogram(
    "vortex_search_latency_seconds",
    "Search query latency",
    ["index"],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
)

SEARCH_QUERIES = Counter(
    "vortex_search_queries_total",
    "Search queries by outcome (hit, miss, empty)",
    ["index", "outcome"],
)

QUERY_CORRECTIONS = Counter(
    "vortex_search_query_corrections_total",
    "Query tokens replaced by a fuzzy vocabulary match",
    ["index"],
)

INDEX_DOC_COUNT = Gauge(
    "vortex_index_document_count",
    "Documents in index",
    ["index"],
)

INDEX_VOCABULARY_SIZE = Gauge(
    "vortex_index_vocabulary_size",
    "Distinct tokens known to the ranking model",
    ["index"],
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for metrics endpoint."""
    return CONTENT_TYPE_LATEST
