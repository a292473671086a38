"""
Trace context carried across threads and service hops.

The trace id and the id of the innermost open span live in context variables,
so every log line and every outgoing request made while handling a request can
be tied back to it. Both services read them from / write them to HTTP headers:

    X-Trace-ID:        id shared by every span of one end-user request
    X-Parent-Span-ID:  id of the caller's span that issued the request
"""

from __future__ import annotations

import contextvars
import uuid
from typing import Dict, Mapping, Optional

TRACE_ID_HEADER = "X-Trace-ID"
PARENT_SPAN_HEADER = "X-Parent-Span-ID"

_trace_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("trace_id", default=None)
_span_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("span_id", default=None)


def generate_trace_id() -> str:
    """Return a new 32-char hex trace id."""
    return uuid.uuid4().hex


def generate_span_id() -> str:
    """Return a new 16-char hex span id."""
    return uuid.uuid4().hex[:16]


def get_trace_id() -> Optional[str]:
    return _trace_id_var.get()


def set_trace_id(trace_id: str) -> contextvars.Token:
    """Set the trace id for the current context and return the reset token."""
    if not trace_id:
        raise ValueError("Trace ID cannot be empty")
    return _trace_id_var.set(trace_id)


def reset_trace_id(token: contextvars.Token) -> None:
    _trace_id_var.reset(token)


def get_or_create_trace_id() -> str:
    """Return the current trace id, starting a new trace if none is active."""
    trace_id = get_trace_id()
    if trace_id is None:
        trace_id = generate_trace_id()
        set_trace_id(trace_id)
    return trace_id


def get_current_span_id() -> Optional[str]:
    return _span_id_var.get()


def set_current_span_id(span_id: Optional[str]) -> contextvars.Token:
    return _span_id_var.set(span_id)


def reset_current_span_id(token: contextvars.Token) -> None:
    _span_id_var.reset(token)


def inject_headers(headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return a copy of `headers` with the active trace context added."""
    out = dict(headers or {})
    trace_id = get_trace_id()
    if trace_id:
        out[TRACE_ID_HEADER] = trace_id
        span_id = get_current_span_id()
        if span_id:
            out[PARENT_SPAN_HEADER] = span_id
    return out
