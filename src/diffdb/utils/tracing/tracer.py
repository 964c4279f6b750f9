"""
OpenTelemetry provider setup for the diffdb process.

Spans only leave the process when an exporter is configured, either an
OTLP collector (``OTLP_ENDPOINT``) or stdout (``TRACE_CONSOLE=true``).
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from diffdb import __version__

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None
_tracer: trace.Tracer | None = None


def _exporters(otlp_endpoint: str | None, console_export: bool) -> list:
    exporters = []
    if otlp_endpoint:
        exporters.append(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        logger.info(f"Exporting traces to OTLP collector at {otlp_endpoint}")
    if console_export:
        exporters.append(ConsoleSpanExporter())
    return exporters


def initialize_tracing(
    service_name: str = "diffdb",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Install a TracerProvider for this process and return its tracer.

    Calling it again returns the tracer from the first call.

    Args:
        service_name: ``service.name`` resource attribute
        otlp_endpoint: Collector address such as "localhost:4317";
            defaults to ``OTLP_ENDPOINT``
        console_export: Also print spans to stdout
    """
    global _provider, _tracer

    if _tracer is not None:
        return _tracer

    otlp_endpoint = otlp_endpoint or os.getenv("OTLP_ENDPOINT")
    console_export = console_export or os.getenv("TRACE_CONSOLE", "").lower() == "true"

    _provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: service_name, SERVICE_VERSION: __version__})
    )
    exporters = _exporters(otlp_endpoint, console_export)
    for exporter in exporters:
        _provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(_provider)
    _tracer = _provider.get_tracer(service_name, __version__)

    logger.debug(f"Tracing initialized for {service_name} with {len(exporters)} exporter(s)")
    return _tracer


def get_tracer() -> trace.Tracer:
    """The diffdb tracer, or the global (usually no-op) one before initialization."""
    return _tracer or trace.get_tracer("diffdb")


def shutdown_tracing() -> None:
    """Flush buffered spans and drop the provider."""
    global _provider, _tracer

    if _provider is None:
        return

    _provider.shutdown()
    _provider = None
    _tracer = None
    logger.debug("Tracing shut down")
