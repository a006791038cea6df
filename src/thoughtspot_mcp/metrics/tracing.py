"""OpenTelemetry spans around protocol operations.

Only the OpenTelemetry API is used here. Without an SDK installed by the
host process the tracer is a no-op, and spans cost next to nothing.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

logger = logging.getLogger(__name__)

TRACER_NAME = "thoughtspot-mcp"


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def operation_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Run a block inside a span named ``name`` and log its duration.

    Exceptions are recorded on the span and re-raised.
    """
    start = time.perf_counter()
    with get_tracer().start_as_current_span(
        name, record_exception=False, set_status_on_exception=False
    ) as span:
        if attributes:
            span.set_attributes({k: v for k, v in attributes.items() if v is not None})
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.debug("%s failed after %.1fms", name, (time.perf_counter() - start) * 1000)
            raise
        logger.debug("%s finished in %.1fms", name, (time.perf_counter() - start) * 1000)


def mark_span(span: Span, *, error: bool, message: str = "") -> None:
    """Set the final status of a span from a tool result."""
    if error:
        span.set_status(Status(StatusCode.ERROR, message))
    else:
        span.set_status(Status(StatusCode.OK))
