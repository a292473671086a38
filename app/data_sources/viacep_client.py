"""ViaCEP adapter: resolve a Brazilian postal code to its city name."""
from __future__ import annotations

from typing import Optional

import requests

from app.data_sources import http
from app.deadline import Deadline, DeadlineExceeded
from app.domain import PostalCode
from app.errors import GeoInternalError, ZipcodeNotFoundError
from app.tracing import NoopTracer, Tracer
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="viacep_client")

VIACEP_URL_TEMPLATE = "https://viacep.com.br/ws/{cep}/json/"
DEFAULT_TIMEOUT_SECONDS = 5.0


def _is_not_found_flag(value) -> bool:
    """ViaCEP signals a miss with "erro": true (older API) or "erro": "true"."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


class ViaCepClient:
    """Single-attempt lookup against ViaCEP. Failures are classified, never retried."""

    def __init__(
        self,
        url_template: str = VIACEP_URL_TEMPLATE,
        *,
        session: Optional[requests.Session] = None,
        tracer: Optional[Tracer] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.url_template = url_template
        self.session = session or http.session
        self.tracer = tracer or NoopTracer()
        self.timeout_seconds = timeout_seconds

    def resolve(self, code: PostalCode, *, deadline: Deadline) -> str:
        """Return the city (`localidade`) for `code`."""
        url = self.url_template.format(cep=code.value)
        call_deadline = deadline.child(self.timeout_seconds)

        with self.tracer.start_span("viacep.get_city", cep=code.value, url=url) as span:
            logger.info("Looking up zipcode %s", code.value, extra={"url": url})
            try:
                resp = http.read_within(
                    self.session.get(url, timeout=call_deadline.timeout(self.timeout_seconds), stream=True),
                    call_deadline,
                )
            except (requests.RequestException, DeadlineExceeded) as exc:
                logger.error("ViaCEP request failed: %s", exc, extra={"cep": code.value, "url": url})
                raise GeoInternalError(f"viacep request failed: {exc}") from exc

            span.set_attribute("http.status_code", resp.status_code)
            if not 200 <= resp.status_code < 300:
                logger.warning("ViaCEP returned status %d for %s", resp.status_code, code.value)
                raise ZipcodeNotFoundError(f"viacep status {resp.status_code}")

            try:
                data = resp.json()
            except ValueError as exc:
                logger.error("ViaCEP returned a non-JSON body: %s", (resp.text or "")[:200])
                raise GeoInternalError(f"undecodable viacep response: {exc}") from exc
            if not isinstance(data, dict):
                logger.error("ViaCEP returned unexpected JSON shape: %s", type(data).__name__)
                raise GeoInternalError("unexpected viacep response shape")
            logger.debug("ViaCEP response: %s", data)

            if _is_not_found_flag(data.get("erro", False)):
                logger.info("ViaCEP reports zipcode %s not found", code.value)
                raise ZipcodeNotFoundError("viacep reported erro")

            city = data.get("localidade")
            if not isinstance(city, str) or not city.strip():
                logger.info("ViaCEP response for %s has no city", code.value)
                raise ZipcodeNotFoundError("empty localidade")

            span.set_attribute("city", city)
            logger.info("Zipcode %s resolved to %s", code.value, city)
            return city
