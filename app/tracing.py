"""Spans for the lookup pipeline and trace propagation between the two services.

A `Tracer` is handed to every component at construction. `start_span()` opens a
span as a child of whatever span is current in this context, and reports it
through the tagged logger when it closes. `NoopTracer` keeps the same interface
for tests that do not care about spans.

The ASGI middleware reads `X-Trace-ID` / `X-Parent-Span-ID` on ingress so spans
opened by the internal service join the trace started at the edge.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from utils.logging_utils import get_tagged_logger
from utils.trace_context import (
    PARENT_SPAN_HEADER,
    TRACE_ID_HEADER,
    generate_span_id,
    generate_trace_id,
    get_current_span_id,
    get_or_create_trace_id,
    reset_current_span_id,
    reset_trace_id,
    set_current_span_id,
    set_trace_id,
)

logger = get_tagged_logger(__name__, tag="tracing")


@dataclass
class Span:
    """A timed unit of work with attributes."""
    name: str
    trace_id: str
    span_id: str
    parent_id: Optional[str]
    service: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    start: float = field(default_factory=time.perf_counter)
    end: Optional[float] = None

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def set_attributes(self, **attributes: Any) -> None:
        self.attributes.update(attributes)

    def set_error(self, message: str) -> None:
        self.error = message

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end is None:
            return None
        return (self.end - self.start) * 1000.0

    def finish(self) -> None:
        if self.end is None:
            self.end = time.perf_counter()


class Tracer:
    """Opens spans for one service and reports them when they finish."""

    def __init__(self, service_name: str, *, span_logger: Optional[logging.LoggerAdapter] = None):
        self.service_name = service_name
        self._logger = span_logger or logger

    @contextmanager
    def start_span(self, name: str, **attributes: Any) -> Iterator[Span]:
        """Open a child span of the current one; exceptions mark it as failed and propagate."""
        span = Span(
            name=name,
            trace_id=get_or_create_trace_id(),
            span_id=generate_span_id(),
            parent_id=get_current_span_id(),
            service=self.service_name,
            attributes=dict(attributes),
        )
        token = set_current_span_id(span.span_id)
        try:
            yield span
        except Exception as exc:
            if span.error is None:
                span.set_error(str(exc))
            raise
        finally:
            reset_current_span_id(token)
            span.finish()
            self.on_finish(span)

    def on_finish(self, span: Span) -> None:
        """Report a finished span."""
        self._logger.info(
            "span %s finished in %.1fms (%s)",
            span.name,
            span.duration_ms or 0.0,
            "ok" if span.ok else f"error: {span.error}",
            extra={
                "span_name": span.name,
                "span_id": span.span_id,
                "parent_span_id": span.parent_id,
                "span_attributes": span.attributes,
            },
        )


class NoopTracer(Tracer):
    """Tracer that opens spans (so context still nests) but reports nothing."""

    def __init__(self, service_name: str = "noop"):
        super().__init__(service_name)

    def on_finish(self, span: Span) -> None:
        return None


class TraceContextMiddleware:
    """ASGI middleware binding the caller's trace context to each HTTP request.

    Works at the ASGI level so the `X-Trace-ID` response header is also set on
    error responses produced by exception handlers.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = {k.decode("latin-1").lower(): v.decode("latin-1") for k, v in scope.get("headers", [])}
        trace_id = headers.get(TRACE_ID_HEADER.lower()) or generate_trace_id()
        parent_span_id = headers.get(PARENT_SPAN_HEADER.lower())

        trace_token = set_trace_id(trace_id)
        span_token = set_current_span_id(parent_span_id)

        async def send_with_trace_id(message):
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append((TRACE_ID_HEADER.lower().encode("latin-1"), trace_id.encode("latin-1")))
                message = {**message, "headers": response_headers}
            await send(message)

        try:
            await self.app(scope, receive, send_with_trace_id)
        finally:
            reset_current_span_id(span_token)
            reset_trace_id(trace_token)
