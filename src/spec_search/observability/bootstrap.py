"""One-call observability setup for applications embedding the engine."""

from __future__ import annotations

import logging

from spec_search.config import Settings
from spec_search.observability.logging import configure_logging
from spec_search.observability.metrics import init_metrics
from spec_search.observability.tracing import init_tracing


logger = logging.getLogger(__name__)


def configure_observability(settings: Settings) -> None:
    """Apply logging, tracing and metrics settings.

    The engine itself never calls this; host applications (CLI, MCP server,
    web UI) call it once at startup.
    """
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    if settings.tracing_enabled:
        init_tracing(service_name=settings.service_name)
    if settings.metrics_enabled:
        init_metrics(service_name=settings.service_name)
    logger.debug(
        "Observability configured (tracing=%s, metrics=%s)",
        settings.tracing_enabled,
        settings.metrics_enabled,
    )
