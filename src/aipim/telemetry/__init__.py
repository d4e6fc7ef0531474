"""Telemetry module - Observability for aipim sends.

This module provides OpenTelemetry integration:
- init_telemetry: Install a tracer provider (OTLP or a given exporter)
- shutdown_telemetry: Graceful shutdown
- send_span / record_response: The span recorded around each send

Sends always create spans through the OpenTelemetry API; without
init_telemetry() they go to the no-op tracer provider.
"""

from .tracing import (
    SEND_SPAN_NAME,
    init_telemetry,
    record_response,
    send_span,
    shutdown_telemetry,
)

__all__ = [
    "init_telemetry",
    "shutdown_telemetry",
    "send_span",
    "record_response",
    "SEND_SPAN_NAME",
]
