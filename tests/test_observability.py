"""Tests for agentgate observability (OpenTelemetry tracing)."""

from unittest.mock import patch

import pytest

from agentgate import __version__
from agentgate.observability.tracing import get_tracer, init_tracing, shutdown


@pytest.fixture(autouse=True)
def reset_tracing(monkeypatch):
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    shutdown()
    yield
    shutdown()


class TestInitTracing:
    def test_no_endpoint_skips(self):
        assert init_tracing() is False

    def test_idempotent(self):
        assert init_tracing() is False
        assert init_tracing(endpoint="http://collector:4317") is False

    def test_endpoint_installs_provider(self):
        with patch("agentgate.observability.tracing.OTLPSpanExporter") as exporter, \
                patch("agentgate.observability.tracing.trace.set_tracer_provider") as set_provider:
            assert init_tracing(endpoint="http://collector:4317", service_name="gw-test") is True

        exporter.assert_called_once_with(endpoint="http://collector:4317")
        provider = set_provider.call_args.args[0]
        assert provider.resource.attributes["service.name"] == "gw-test"

    def test_endpoint_from_env(self, monkeypatch):
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://env-collector:4317")
        with patch("agentgate.observability.tracing.OTLPSpanExporter") as exporter, \
                patch("agentgate.observability.tracing.trace.set_tracer_provider"):
            assert init_tracing() is True
        exporter.assert_called_once_with(endpoint="http://env-collector:4317")


class TestTracer:
    def test_spans_work_without_provider(self):
        tracer = get_tracer()
        with tracer.start_as_current_span("gateway.test") as span:
            span.set_attribute("agentgate.tool_name", "tree_simple")

    def test_version_attached(self):
        with patch("agentgate.observability.tracing.trace.get_tracer") as get:
            get_tracer()
        get.assert_called_once_with("agentgate", __version__)
