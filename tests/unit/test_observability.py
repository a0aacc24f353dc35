"""Unit tests for observability module."""

from enum import Enum
import json
import logging
from pathlib import Path
import sys

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import REGISTRY, Counter
import pytest

from spec_search.config import Settings
from spec_search.observability import (
    SEARCH_LATENCY,
    JsonFormatter,
    configure_logging,
    configure_observability,
    create_span,
    get_metrics,
    get_metrics_content_type,
    get_trace_context,
    search_scope,
    set_trace_context,
    track_latency,
    tracing as tracing_module,
)
from spec_search.observability.context import trace_context, with_otel_span
from spec_search.observability.metrics import MetricBridge


def _record(msg="test message", level=logging.INFO, name="spec_search.engine", args=()):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fresh_trace_context():
    token = trace_context.set(None)
    yield
    trace_context.reset(token)


@pytest.fixture
def span_exporter(monkeypatch):
    provider = TracerProvider()
    exporter = InMemorySpanExporter()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setitem(tracing_module._tracer_holder, "tracer", provider.get_tracer("test"))
    return exporter


class Mode(Enum):
    SIMPLE = "simple"


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context(self, fresh_trace_context):
        set_trace_context("a" * 32, "b" * 16)

        data = json.loads(JsonFormatter().format(_record()))

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["logger"] == "spec_search.engine"
        assert data["component"] == "engine"
        assert data["trace_id"] == "a" * 32
        assert data["span_id"] == "b" * 16
        assert "timestamp" in data

    def test_format_includes_extra_fields(self):
        record = _record()
        record.document_path = "042-oauth2"
        record.field = Mode.SIMPLE
        record.paths = {"b", "a"}
        record.root = Path("/specs")

        data = json.loads(JsonFormatter().format(record))

        assert data["document_path"] == "042-oauth2"
        assert data["field"] == "simple"
        assert data["paths"] == ["a", "b"]
        assert data["root"] == "/specs"

    def test_sensitive_extras_are_redacted(self):
        record = _record()
        record.token = "abc123"
        record.api_key = "xyz"

        data = json.loads(JsonFormatter().format(record))

        assert data["token"] == "[REDACTED]"
        assert data["api_key"] == "[REDACTED]"

    def test_long_values_are_truncated(self):
        record = _record(msg="m" * 3000)
        record.query = "q" * 600

        data = json.loads(JsonFormatter().format(record))

        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3
        assert data["query"] == "q" * JsonFormatter.MAX_EXTRA_LEN + "..."

    def test_search_mode_from_scope(self):
        with search_scope(search_mode="advanced"):
            data = json.loads(JsonFormatter().format(_record()))

        assert data["search_mode"] == "advanced"

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("spec_search", logging.ERROR, "t.py", 1, "failed", (), sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: boom" in data["exception"]
        assert "component" not in data

    def test_message_args_interpolated(self):
        data = json.loads(JsonFormatter().format(_record(msg="%d results", args=(3,))))

        assert data["message"] == "3 results"


@pytest.mark.unit
class TestConfigureLogging:
    def test_json_handler_installed(self, restore_root_logger):
        configure_logging(level="WARNING", json_output=True)

        assert restore_root_logger.level == logging.WARNING
        (handler,) = restore_root_logger.handlers
        assert isinstance(handler.formatter, JsonFormatter)

    def test_plain_text_handler(self, restore_root_logger):
        configure_logging(level="debug", json_output=False)

        (handler,) = restore_root_logger.handlers
        assert not isinstance(handler.formatter, JsonFormatter)

    def test_logger_level_overrides(self, restore_root_logger):
        configure_logging(logger_levels={"spec_search.search.curation": "error"})

        assert logging.getLogger("spec_search.search.curation").level == logging.ERROR
        logging.getLogger("spec_search.search.curation").setLevel(logging.NOTSET)

    def test_configure_observability_applies_settings(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("SPEC_SEARCH_LOG_LEVEL", "error")
        monkeypatch.setenv("SPEC_SEARCH_LOG_JSON", "false")
        monkeypatch.setenv("SPEC_SEARCH_METRICS_ENABLED", "false")

        configure_observability(Settings())  # type: ignore[call-arg]

        assert restore_root_logger.level == logging.ERROR
        assert not isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)


@pytest.mark.unit
class TestTraceContext:
    def test_context_created_lazily(self, fresh_trace_context):
        ctx = get_trace_context()

        assert len(ctx["trace_id"]) == 32
        assert len(ctx["span_id"]) == 16
        assert get_trace_context() is ctx

    def test_search_scope_does_not_leak_generated_ids(self, fresh_trace_context):
        with search_scope(search_mode="simple") as first:
            pass
        with search_scope(search_mode="simple") as second:
            pass

        assert trace_context.get() is None
        assert first["trace_id"] != second["trace_id"]

    def test_search_scope_restores_previous_context(self, fresh_trace_context):
        set_trace_context("t" * 32, "s" * 16)

        with search_scope(search_mode="simple") as scoped:
            assert scoped["search_mode"] == "simple"
            assert scoped["trace_id"] == "t" * 32

        assert "search_mode" not in get_trace_context()


@pytest.mark.unit
class TestTracing:
    def test_create_span_sets_attributes_and_log_ids(self, span_exporter, fresh_trace_context):
        set_trace_context("t" * 32, "s" * 16, search_mode="simple")

        with create_span("unit.span", attributes={"search.mode": "simple"}) as span:
            ids = with_otel_span(span)
            assert get_trace_context() == {**ids, "search_mode": "simple"}

        assert get_trace_context() == {"trace_id": "t" * 32, "span_id": "s" * 16, "search_mode": "simple"}

        (finished,) = span_exporter.get_finished_spans()
        assert finished.name == "unit.span"
        assert finished.attributes["search.mode"] == "simple"

    def test_create_span_records_errors(self, span_exporter):
        with pytest.raises(RuntimeError), create_span("unit.failing"):
            raise RuntimeError("bad")

        (finished,) = span_exporter.get_finished_spans()
        assert finished.status.status_code is StatusCode.ERROR
        assert finished.events[0].name == "exception"

    def test_logs_inside_span_carry_its_trace_id(self, span_exporter, fresh_trace_context):
        with create_span("unit.logged"):
            data = json.loads(JsonFormatter().format(_record()))

        (finished,) = span_exporter.get_finished_spans()
        assert data["trace_id"] == format(finished.context.trace_id, "032x")
        assert data["span_id"] == format(finished.context.span_id, "016x")

    def test_context_restored_after_failing_span(self, span_exporter, fresh_trace_context):
        with pytest.raises(RuntimeError), create_span("unit.failing"):
            raise RuntimeError("bad")

        assert trace_context.get() is None


@pytest.mark.unit
class TestMetrics:
    def test_track_latency_observes_histogram(self):
        labels = {"mode": "unit"}
        before = REGISTRY.get_sample_value("spec_search_latency_seconds_count", labels) or 0.0

        with track_latency(SEARCH_LATENCY, mode="unit"):
            pass

        assert REGISTRY.get_sample_value("spec_search_latency_seconds_count", labels) == before + 1

    def test_track_latency_observes_on_error(self):
        labels = {"mode": "unit-error"}
        before = REGISTRY.get_sample_value("spec_search_latency_seconds_count", labels) or 0.0

        with pytest.raises(KeyError), track_latency(SEARCH_LATENCY, mode="unit-error"):
            raise KeyError("x")

        assert REGISTRY.get_sample_value("spec_search_latency_seconds_count", labels) == before + 1

    def test_exposition_lists_search_metrics(self):
        body = get_metrics().decode("utf-8")

        assert "spec_search_requests_total" in body
        assert "spec_search_latency_seconds" in body
        assert get_metrics_content_type().startswith("text/plain")

    def test_unknown_bridge_kind_rejected(self):
        bridge = MetricBridge(
            Counter("spec_search_unit_bridge_total", "unit", ["mode"], registry=None),
            otel_name="unit_bridge",
            otel_description="unit",
            otel_kind="gauge",
        )

        with pytest.raises(ValueError, match="Unknown metric kind"):
            bridge.labels(mode="x").inc()
