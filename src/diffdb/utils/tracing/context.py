"""
Span helpers used by the comparison code.

Attribute values are stringified so table names, counts and byte sizes
all land in the backend with a uniform type.
"""

from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .tracer import get_tracer


def _as_attributes(values: dict) -> dict[str, str]:
    return {key: str(value) for key, value in values.items()}


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Run a block inside a new span.

    A failing block marks the span as errored with the exception type and
    message before the exception propagates.

    Example:
        >>> with trace_operation("compare_table", table="public.orders") as span:
        ...     outcome = strategy(table, base, test)
        ...     span.set_attribute("outcome", outcome.status.value)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(
        operation_name,
        kind=kind,
        attributes=_as_attributes(attributes),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_attributes({"error.type": type(e).__name__, "error.message": str(e)})
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def add_span_attributes(**attributes):
    """Attach attributes to whatever span is current."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(_as_attributes(attributes))


def add_span_event(name: str, **attributes):
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes=_as_attributes(attributes))
