"""WeatherAPI adapter: current temperature for a city, with bounded retries."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from app.data_sources import http
from app.deadline import Deadline, DeadlineExceeded
from app.domain import Temperature
from app.errors import (
    CityNotFoundError,
    WeatherConfigurationError,
    WeatherUnavailableError,
    WeatherUpstreamError,
)
from app.tracing import NoopTracer, Tracer
from utils.logging_utils import get_tagged_logger, mask_url_secrets

logger = get_tagged_logger(__name__, tag="weatherapi_client")

WEATHER_API_URL = "https://api.weatherapi.com/v1/current.json"
CITY_NOT_FOUND_CODE = 1006
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.1


@dataclass
class RetryState:
    """Attempt counter and linear backoff for one resolve() call.

    The delay before attempt n+1 is n * backoff_seconds.
    """
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    attempt: int = 0
    last_error: Optional[BaseException] = None

    def start_attempt(self) -> int:
        self.attempt += 1
        return self.attempt

    def record_failure(self, exc: BaseException) -> None:
        self.last_error = exc

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    def next_delay(self) -> float:
        return self.attempt * self.backoff_seconds


def _number_or_none(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class WeatherApiClient:
    """Current-conditions lookup against weatherapi.com."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = WEATHER_API_URL,
        *,
        session: Optional[requests.Session] = None,
        tracer: Optional[Tracer] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.session = session or http.session
        self.tracer = tracer or NoopTracer()
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def resolve(self, city: str, *, deadline: Deadline) -> Temperature:
        """Return the current temperature for `city`."""
        with self.tracer.start_span("weatherapi.get_temperature", city=city, url=self.base_url) as span:
            if not self.api_key:
                logger.error("WEATHER_API_KEY is not configured")
                raise WeatherConfigurationError("missing api key")

            call_deadline = deadline.child(self.timeout_seconds)
            state = RetryState(max_attempts=self.max_attempts, backoff_seconds=self.backoff_seconds)
            resp = self._get_with_retries(city, call_deadline, state)
            span.set_attributes(attempts=state.attempt, **{"http.status_code": resp.status_code})

            temperature = self._parse(resp, city)
            span.set_attributes(temp_c=temperature.celsius, temp_f=temperature.fahrenheit, temp_k=temperature.kelvin)
            return temperature

    def _get_with_retries(self, city: str, deadline: Deadline, state: RetryState) -> http.FetchedResponse:
        """Send the request, retrying transport failures only."""
        params = {"key": self.api_key, "q": city}
        while True:
            attempt = state.start_attempt()
            try:
                return http.read_within(
                    self.session.get(
                        self.base_url, params=params, timeout=deadline.timeout(self.timeout_seconds), stream=True
                    ),
                    deadline,
                )
            except DeadlineExceeded as exc:
                state.record_failure(exc)
                logger.warning("WeatherAPI attempt %d ran out of time: %s", attempt, exc)
                break
            except requests.RequestException as exc:
                state.record_failure(exc)
                url = mask_url_secrets(getattr(exc.request, "url", None) or self.base_url)
                logger.warning(
                    "WeatherAPI request failed (attempt %d/%d): %s",
                    attempt,
                    state.max_attempts,
                    exc,
                    extra={"url": url},
                )

            if state.exhausted:
                break
            delay = state.next_delay()
            if delay >= deadline.remaining():
                logger.warning("Deadline leaves no room for WeatherAPI attempt %d", attempt + 1)
                break
            self._sleep(delay)

        raise WeatherUnavailableError(
            f"all {state.attempt} weather requests failed: {state.last_error}",
            attempts=state.attempt,
        ) from state.last_error

    def _parse(self, resp: http.FetchedResponse, city: str) -> Temperature:
        """Classify a received response and extract the reading."""
        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("WeatherAPI returned a non-JSON body (status %d)", resp.status_code)
            raise WeatherUpstreamError(f"undecodable response: {exc}", upstream_status=resp.status_code) from exc
        if not isinstance(data, dict):
            raise WeatherUpstreamError("unexpected response shape", upstream_status=resp.status_code)

        if not 200 <= resp.status_code < 300:
            error = data.get("error") or {}
            code = error.get("code") if isinstance(error, dict) else None
            message = (error.get("message") if isinstance(error, dict) else None) or resp.reason or ""
            logger.warning("WeatherAPI status %d for %s: %s", resp.status_code, city, message)
            if code == CITY_NOT_FOUND_CODE:
                raise CityNotFoundError(message)
            raise WeatherUpstreamError(message, upstream_status=resp.status_code)

        current = data.get("current")
        celsius = _number_or_none(current.get("temp_c")) if isinstance(current, dict) else None
        if celsius is None:
            logger.error("WeatherAPI response for %s has no current.temp_c", city)
            raise WeatherUpstreamError("response missing current.temp_c", upstream_status=resp.status_code)

        temperature = Temperature.from_celsius(celsius, _number_or_none(current.get("temp_f")))
        logger.info("Temperature for %s: %.2fC", city, temperature.celsius)
        return temperature
