"""OpenTelemetry tracing for search calls."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import SpanKind, Status, StatusCode

from spec_search.observability.context import trace_context, with_otel_span


if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

_tracer_holder: dict[str, Tracer | None] = {"tracer": None}


def init_tracing(
    service_name: str = "spec-search",
    resource_attributes: dict[str, str] | None = None,
) -> TracerProvider:
    """Install an SDK tracer provider, reusing one that is already global."""
    provider = trace.get_tracer_provider()
    if not isinstance(provider, TracerProvider):
        attributes = {"service.name": service_name}
        if resource_attributes:
            attributes.update(resource_attributes)
        provider = TracerProvider(resource=Resource.create(attributes))
        trace.set_tracer_provider(provider)
        logger.info("Tracing initialized for service: %s", service_name)
    _tracer_holder["tracer"] = trace.get_tracer(__name__)
    return provider


def get_tracer() -> Tracer:
    """Configured tracer, or the global proxy tracer when tracing is off.

    The proxy is a no-op until the host application installs a provider,
    so the search core never forces a provider on its embedder.
    """
    tracer = _tracer_holder["tracer"]
    if tracer is None:
        return trace.get_tracer(__name__)
    return tracer


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Create a traced span and point the log context at its trace and span IDs.

    The previous log context is restored when the span ends.
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(name, kind=kind) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)

        token = None
        if span.get_span_context().is_valid:
            token = trace_context.set({**(trace_context.get() or {}), **with_otel_span(span)})

        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
        finally:
            if token is not None:
                trace_context.reset(token)
