"""OpenTelemetry tracing setup for agentgate.

Initializes an OTLP exporter when OTEL_EXPORTER_OTLP_ENDPOINT is set.
Without an endpoint, get_tracer() returns the API's no-op tracer.
"""

from __future__ import annotations

import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from agentgate import __version__

_TRACER_NAME = "agentgate"

_provider: TracerProvider | None = None
_initialized = False


def init_tracing(
    endpoint: str | None = None,
    service_name: str | None = None,
) -> bool:
    """Initialize OpenTelemetry tracing.

    Args:
        endpoint: OTLP endpoint URL. Falls back to OTEL_EXPORTER_OTLP_ENDPOINT env var.
        service_name: Service name for traces. Falls back to OTEL_SERVICE_NAME env var.

    Returns:
        True if an exporter was installed, False if skipped (no endpoint).
    """
    global _provider, _initialized

    if _initialized:
        return _provider is not None

    _initialized = True

    endpoint = endpoint or os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        return False

    service_name = service_name or os.environ.get("OTEL_SERVICE_NAME", "agentgate")

    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(provider)

    _provider = provider
    return True


def get_tracer() -> trace.Tracer:
    """Get the agentgate tracer (no-op unless a provider is installed)."""
    return trace.get_tracer(_TRACER_NAME, __version__)


def shutdown() -> None:
    """Flush and shut down the tracer provider installed by init_tracing."""
    global _provider, _initialized
    if _provider is not None:
        _provider.shutdown()
    _provider = None
    _initialized = False
