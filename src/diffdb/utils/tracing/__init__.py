"""
Distributed tracing using OpenTelemetry.

Spans cover the whole comparison run, catalog listing and each table's
strategy so slow tables show up in the trace backend.
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
]
