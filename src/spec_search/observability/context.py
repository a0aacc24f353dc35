"""Per-call trace context used to correlate log lines with search spans."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING
from uuid import uuid4


if TYPE_CHECKING:
    from opentelemetry.trace import Span

trace_context: ContextVar[dict | None] = ContextVar("spec_search_trace_context", default=None)


def generate_trace_id() -> str:
    """32-char hex trace ID."""
    return uuid4().hex


def generate_span_id() -> str:
    """16-char hex span ID."""
    return uuid4().hex[:16]


def get_trace_context() -> dict:
    """Current trace context, created lazily with fresh IDs."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": generate_trace_id(), "span_id": generate_span_id()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def with_otel_span(span: Span) -> dict:
    """Trace/span IDs of an OpenTelemetry span as hex strings."""
    ctx = span.get_span_context()
    return {
        "trace_id": format(ctx.trace_id, "032x"),
        "span_id": format(ctx.span_id, "016x"),
    }


@contextmanager
def search_scope(**extra: object) -> Iterator[dict]:
    """Attach extra fields (e.g. ``search_mode``) to the context for one call.

    The previous context is restored on exit, IDs generated for the call
    included, so sequential calls never share a trace_id.
    """
    base = trace_context.get() or {"trace_id": generate_trace_id(), "span_id": generate_span_id()}
    token = trace_context.set({**base, **extra})
    try:
        yield trace_context.get() or {}
    finally:
        trace_context.reset(token)
