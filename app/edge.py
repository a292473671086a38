"""Edge forwarder: validate at the boundary, then hand the lookup to the internal service.

The internal service owns the meaning of every status code it returns, so
its status and body are relayed untouched.
"""
from __future__ import annotations

import json
from typing import Optional, Tuple

import requests

from app import config
from app.data_sources import http
from app.deadline import Deadline, DeadlineExceeded
from app.domain import validate_postal_code
from app.errors import InvalidZipcodeError, LookupFailure
from app.tracing import NoopTracer, Tracer
from utils.logging_utils import get_tagged_logger, mask_url_secrets
from utils.trace_context import inject_headers

logger = get_tagged_logger(__name__, tag="edge")

DEFAULT_FORWARD_TIMEOUT_SECONDS = 10.0
FORWARD_FAILURE_STATUS = 500


def _encode(payload: dict) -> bytes:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _failure_response(failure: LookupFailure) -> Tuple[bytes, int]:
    return _encode(failure.to_payload()), failure.status_code


class EdgeForwarder:
    """Forwards validated CEPs to the internal lookup service."""

    def __init__(
        self,
        internal_url: str,
        *,
        session: Optional[requests.Session] = None,
        tracer: Optional[Tracer] = None,
        timeout_seconds: float = DEFAULT_FORWARD_TIMEOUT_SECONDS,
    ):
        self.internal_url = internal_url
        self.session = session or http.session
        self.tracer = tracer or NoopTracer()
        self.timeout_seconds = timeout_seconds

    def forward(self, raw_code: str) -> Tuple[bytes, int]:
        """Return the (body, status) to send back to the end user."""
        try:
            code = validate_postal_code(raw_code)
        except InvalidZipcodeError as failure:
            logger.info("Rejected CEP %r at the edge: %s", raw_code, failure)
            return _failure_response(failure)

        deadline = Deadline.after(self.timeout_seconds)
        url = mask_url_secrets(self.internal_url)
        with self.tracer.start_span("edge.forward", cep=code.value, url=url) as span:
            try:
                resp = http.read_within(
                    self.session.post(
                        self.internal_url,
                        json={"cep": code.value},
                        headers=inject_headers({"Content-Type": "application/json"}),
                        timeout=deadline.timeout(self.timeout_seconds),
                        stream=True,
                    ),
                    deadline,
                )
            except (requests.RequestException, DeadlineExceeded) as exc:
                logger.error("Calling internal service failed: %s", exc, extra={"url": url})
                span.set_error(str(exc))
                return _encode({"error": f"error calling weather service: {exc}"}), FORWARD_FAILURE_STATUS

            span.set_attribute("http.status_code", resp.status_code)
            logger.info("Internal service answered %d for %s", resp.status_code, code.value)
            return resp.content, resp.status_code


def build_forwarder(settings: config.Settings | None = None, tracer: Optional[Tracer] = None) -> EdgeForwarder:
    settings = settings or config.settings
    return EdgeForwarder(
        settings.internal_service_url,
        tracer=tracer or Tracer(settings.service_name),
        timeout_seconds=settings.forward_timeout_seconds,
    )
