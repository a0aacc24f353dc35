"""Observability for the search core: JSON logging, tracing spans, metrics."""

from spec_search.observability.bootstrap import configure_observability
from spec_search.observability.context import get_trace_context, search_scope, set_trace_context, trace_context
from spec_search.observability.logging import JsonFormatter, configure_logging
from spec_search.observability.metrics import (
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    SEARCH_RESULTS,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from spec_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "SEARCH_LATENCY",
    "SEARCH_REQUESTS",
    "SEARCH_RESULTS",
    "JsonFormatter",
    "configure_logging",
    "configure_observability",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "search_scope",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
