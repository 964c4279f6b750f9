"""
Unit tests for diffdb.utils.tracing
"""

from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from diffdb.utils.tracing import initialize_tracing, shutdown_tracing, trace_operation


@pytest.fixture
def exporter():
    """Route trace_operation spans into memory"""
    span_exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))

    with patch("diffdb.utils.tracing.context.get_tracer", return_value=provider.get_tracer("test")):
        yield span_exporter


class TestTraceOperation:
    """Test trace_operation context manager"""

    def test_records_span_with_attributes(self, exporter):
        # Act
        with trace_operation("compare_table", table="public.a", strategy="rowcount"):
            pass

        # Assert
        (span,) = exporter.get_finished_spans()
        assert span.name == "compare_table"
        assert span.attributes["table"] == "public.a"
        assert span.attributes["strategy"] == "rowcount"

    def test_records_and_reraises_exceptions(self, exporter):
        # Act
        with pytest.raises(RuntimeError):
            with trace_operation("list_tables"):
                raise RuntimeError("catalog unavailable")

        # Assert
        (span,) = exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert span.attributes["error.type"] == "RuntimeError"
        assert span.attributes["error.message"] == "catalog unavailable"


class TestInitializeTracing:
    """Test tracer provider setup"""

    def teardown_method(self):
        shutdown_tracing()

    @patch("diffdb.utils.tracing.tracer.OTLPSpanExporter")
    @patch("diffdb.utils.tracing.tracer.trace.set_tracer_provider")
    def test_no_exporter_without_endpoint(self, mock_set_provider, mock_otlp, monkeypatch):
        # Arrange
        monkeypatch.delenv("OTLP_ENDPOINT", raising=False)
        monkeypatch.delenv("TRACE_CONSOLE", raising=False)

        # Act
        tracer = initialize_tracing()

        # Assert
        assert tracer is not None
        mock_set_provider.assert_called_once()
        mock_otlp.assert_not_called()

    @patch("diffdb.utils.tracing.tracer.OTLPSpanExporter")
    @patch("diffdb.utils.tracing.tracer.trace.set_tracer_provider")
    def test_otlp_exporter_from_environment(self, mock_set_provider, mock_otlp, monkeypatch):
        # Arrange
        monkeypatch.setenv("OTLP_ENDPOINT", "collector:4317")

        # Act
        initialize_tracing()

        # Assert
        mock_otlp.assert_called_once_with(endpoint="collector:4317", insecure=True)

    @patch("diffdb.utils.tracing.tracer.trace.set_tracer_provider")
    def test_initialize_is_idempotent(self, mock_set_provider, monkeypatch):
        # Arrange
        monkeypatch.delenv("OTLP_ENDPOINT", raising=False)

        # Act
        first = initialize_tracing()
        second = initialize_tracing()

        # Assert
        assert first is second
        mock_set_provider.assert_called_once()

    @patch("diffdb.utils.tracing.tracer.ConsoleSpanExporter")
    @patch("diffdb.utils.tracing.tracer.trace.set_tracer_provider")
    def test_console_exporter_from_environment(self, mock_set_provider, mock_console, monkeypatch):
        # Arrange
        monkeypatch.delenv("OTLP_ENDPOINT", raising=False)
        monkeypatch.setenv("TRACE_CONSOLE", "true")

        # Act
        initialize_tracing()

        # Assert
        mock_console.assert_called_once_with()
