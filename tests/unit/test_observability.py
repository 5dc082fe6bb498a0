"""Unit tests for observability module."""

import json
import logging
from pathlib import Path
import sys

from opentelemetry import trace as trace_api
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import REGISTRY
import pytest

from vortex_search.observability import (
    SEARCH_LATENCY,
    JsonFormatter,
    configure_logging,
    create_span,
    get_metrics,
    get_metrics_content_type,
    get_trace_context,
    get_tracer,
    init_tracing,
    set_trace_context,
    track_latency,
)
from vortex_search.observability.context import update_span_id


def _record(msg: str = "test message", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="vortex_search.search.engine",
        level=level,
        pathname="engine.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context(self):
        set_trace_context("ab" * 16, "cd" * 8)

        data = json.loads(JsonFormatter().format(_record()))

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["logger"] == "vortex_search.search.engine"
        assert data["component"] == "engine"
        assert data["trace_id"] == "ab" * 16
        assert data["span_id"] == "cd" * 8
        assert "timestamp" in data

    def test_format_includes_index_from_context(self):
        set_trace_context("ab" * 16, "cd" * 8, index="products")

        data = json.loads(JsonFormatter().format(_record()))

        assert data["index"] == "products"

    def test_format_includes_extra_fields(self):
        record = _record()
        record.event = "CorrectionApplied"
        record.path = Path("snapshots/index.json")
        record.terms = {"repair", "fix"}

        data = json.loads(JsonFormatter().format(record))

        assert data["event"] == "CorrectionApplied"
        assert data["path"] == "snapshots/index.json"
        assert data["terms"] == ["fix", "repair"]

    def test_format_truncates_and_redacts(self):
        record = _record("x" * 5000)
        record.api_key = "secret"
        record.note = "y" * 600

        data = json.loads(JsonFormatter().format(record))

        assert data["message"].endswith("...")
        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3
        assert data["api_key"] == "[REDACTED]"
        assert data["note"] == "y" * 500 + "..."

    def test_format_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("test", logging.ERROR, "test.py", 1, "failed", (), sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: boom" in data["exception"]

    def test_json_default_handles_set_and_bytes(self):
        formatter = JsonFormatter()
        assert formatter._json_default({3, 1, 2}) == [1, 2, 3]
        assert formatter._json_default(b"ok") == "ok"

    def test_json_default_handles_unorderable_set(self):
        value = JsonFormatter()._json_default({1, "a"})
        assert isinstance(value, list)
        assert len(value) == 2


@pytest.mark.unit
class TestTraceContext:
    """Tests for trace context propagation."""

    def test_get_trace_context_generates_ids(self):
        set_trace_context("", "")
        ctx = get_trace_context()
        assert len(ctx["trace_id"]) == 32
        assert len(ctx["span_id"]) == 16

    def test_update_span_id_preserves_trace_id(self):
        set_trace_context("aa" * 16, "bb" * 8, index="alpha")
        update_span_id("cc" * 8)
        ctx = get_trace_context()
        assert ctx["trace_id"] == "aa" * 16
        assert ctx["span_id"] == "cc" * 8
        assert ctx["index"] == "alpha"


@pytest.mark.unit
class TestTracing:
    """Tests for OpenTelemetry tracing."""

    @staticmethod
    def _setup_exporter() -> InMemorySpanExporter:
        exporter = InMemorySpanExporter()
        provider = trace_api.get_tracer_provider()
        if not isinstance(provider, TracerProvider):
            provider = init_tracing("test-service")
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        return exporter

    def test_init_tracing_returns_provider(self):
        provider = init_tracing("test-service", {"deployment.environment": "test"})
        assert isinstance(provider, TracerProvider)
        assert get_tracer() is not None

    def test_create_span_sets_attributes_and_span_id(self):
        exporter = self._setup_exporter()
        set_trace_context("ab" * 16, "cd" * 8)

        with create_span("test.operation", attributes={"search.query": "apple"}) as span:
            span_id = format(span.get_span_context().span_id, "016x")
            assert get_trace_context()["span_id"] == span_id

        finished = exporter.get_finished_spans()[-1]
        assert finished.name == "test.operation"
        assert finished.attributes["search.query"] == "apple"

    def test_create_span_marks_error_and_reraises(self):
        exporter = self._setup_exporter()

        with pytest.raises(RuntimeError, match="boom"), create_span("test.failure"):
            raise RuntimeError("boom")

        finished = exporter.get_finished_spans()[-1]
        assert finished.name == "test.failure"
        assert finished.status.status_code == StatusCode.ERROR
        assert any(event.name == "exception" for event in finished.events)


@pytest.mark.unit
class TestMetrics:
    """Tests for Prometheus metrics."""

    def test_get_metrics_returns_bytes(self):
        output = get_metrics()
        assert isinstance(output, bytes)
        assert b"vortex_search_queries_total" in output
        assert b"vortex_index_document_count" in output

    def test_get_metrics_content_type(self):
        assert get_metrics_content_type().startswith("text/plain")

    def test_track_latency_records_histogram(self):
        labels = {"index": "latency-unit"}
        before = REGISTRY.get_sample_value("vortex_search_latency_seconds_count", labels) or 0.0

        with track_latency(SEARCH_LATENCY, index="latency-unit"):
            pass

        assert REGISTRY.get_sample_value("vortex_search_latency_seconds_count", labels) == before + 1

    def test_track_latency_records_on_error(self):
        labels = {"index": "latency-error"}

        with pytest.raises(KeyError), track_latency(SEARCH_LATENCY, index="latency-error"):
            raise KeyError("missing")

        assert REGISTRY.get_sample_value("vortex_search_latency_seconds_count", labels) == 1.0


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_logging_sets_level(self, restore_root_logger):
        configure_logging(level="DEBUG")
        assert restore_root_logger.level == logging.DEBUG

    def test_configure_logging_replaces_handlers(self, restore_root_logger):
        configure_logging(level="INFO")
        configure_logging(level="INFO")
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_configure_logging_non_json_formatter(self, restore_root_logger):
        configure_logging(level="INFO", json_output=False)
        formatter = restore_root_logger.handlers[0].formatter
        assert not isinstance(formatter, JsonFormatter)
        assert "%(asctime)s" in formatter._style._fmt

    def test_configure_logging_overrides(self, restore_root_logger):
        configure_logging(level="INFO", logger_levels={"vortex_search.search.engine": "ERROR"})
        assert logging.getLogger("vortex_search.search.engine").level == logging.ERROR
        logging.getLogger("vortex_search.search.engine").setLevel(logging.NOTSET)

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        configure_logging(level="verbose")
        assert restore_root_logger.level == logging.INFO
