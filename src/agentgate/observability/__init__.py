"""agentgate Observability - OpenTelemetry tracing.

Opt-in via OTEL_EXPORTER_OTLP_ENDPOINT env var.
Without it, all tracing calls are no-ops.
"""

from agentgate.observability.tracing import get_tracer, init_tracing, shutdown

__all__ = [
    "init_tracing",
    "get_tracer",
    "shutdown",
]
