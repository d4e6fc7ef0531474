"""OpenTelemetry setup and the span recorded around each send."""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor, SpanExporter

from .. import __version__
from ..errors import AipimError
from ..types import Response

logger = logging.getLogger(__name__)

# Proxy tracer: no-op until init_telemetry() installs a provider
tracer = trace.get_tracer(__name__)

SEND_SPAN_NAME = "aipim.send"

_provider: Optional[TracerProvider] = None


def init_telemetry(
    service_name: Optional[str] = None,
    otlp_endpoint: Optional[str] = None,
    exporter: Optional[SpanExporter] = None,
) -> TracerProvider:
    """Install a global tracer provider so send spans are exported.

    Calling it again returns the provider installed by the first call.

    Args:
        service_name: Service name for traces (default: from OTEL_SERVICE_NAME env or "aipim")
        otlp_endpoint: OTLP collector endpoint (default: from OTEL_EXPORTER_OTLP_ENDPOINT env or http://localhost:4317)
        exporter: Export spans synchronously to this exporter instead of OTLP

    Returns:
        The installed TracerProvider
    """
    global _provider
    if _provider is not None:
        return _provider

    service_name = service_name or os.getenv("OTEL_SERVICE_NAME", "aipim")
    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": __version__,
            "deployment.environment": os.getenv("DEPLOYMENT_ENV", "development"),
        }
    )
    provider = TracerProvider(resource=resource)

    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        target = type(exporter).__name__
    else:
        otlp_endpoint = otlp_endpoint or os.getenv(
            "OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"
        )
        # Short flush delay so spans of short-lived CLI runs are not lost
        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True),
                schedule_delay_millis=1000,
            )
        )
        target = otlp_endpoint

    trace.set_tracer_provider(provider)
    _provider = provider
    logger.info("OpenTelemetry initialized: service=%s, exporter=%s", service_name, target)
    return provider


def shutdown_telemetry() -> None:
    """Flush pending spans and shut the provider down."""
    global _provider
    if _provider is None:
        return

    _provider.shutdown()
    _provider = None
    logger.info("OpenTelemetry shutdown complete")


@contextmanager
def send_span(provider: str, model: str, endpoint: str, content_count: int) -> Iterator[trace.Span]:
    """Span around one send.

    An AipimError raised inside the block marks the span as failed, is
    recorded on it, and propagates unchanged.
    """
    with tracer.start_as_current_span(
        SEND_SPAN_NAME,
        attributes={
            "llm.provider": provider,
            "llm.model": model,
            "llm.endpoint": endpoint,
            "llm.contents.count": content_count,
        },
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except AipimError as e:
            span.set_attribute("llm.status", "error")
            span.set_attribute("llm.error", type(e).__name__)
            status_code = getattr(e, "status_code", None)
            if status_code is not None:
                span.set_attribute("http.response.status_code", status_code)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def record_response(span: trace.Span, response: Response) -> None:
    """Attach the outcome of a successful send to its span."""
    span.set_attribute("llm.status", "success")
    span.set_attribute("llm.response.length", len(response.text))
    if response.finish_reason:
        span.set_attribute("llm.finish_reason", response.finish_reason)
    usage = response.usage
    if usage:
        span.set_attribute("llm.usage.prompt_tokens", usage.get("prompt_tokens", 0))
        span.set_attribute("llm.usage.completion_tokens", usage.get("completion_tokens", 0))
    span.set_status(trace.Status(trace.StatusCode.OK))


__all__ = [
    "init_telemetry",
    "shutdown_telemetry",
    "send_span",
    "record_response",
    "SEND_SPAN_NAME",
]
