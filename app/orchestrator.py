"""Validate a CEP, resolve its city, then the city's temperature.

Stages run in order and the first failure ends the lookup:

    Start -> Validated -> CityResolved -> TemperatureResolved -> Done
      \\________\\______________\\___________________\\-> Failed(kind)

Failures arrive already classified as LookupFailure subclasses; they are
carried into the outcome unchanged.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from app import config
from app.data_sources import GeoResolver, WeatherResolver, build_geo_resolver, build_weather_resolver
from app.deadline import Deadline
from app.domain import LookupOutcome, validate_postal_code
from app.errors import LookupFailure
from app.tracing import NoopTracer, Tracer
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="orchestrator")

DEFAULT_LOOKUP_TIMEOUT_SECONDS = 15.0


class Stage(str, Enum):
    """Where a lookup stopped."""
    START = "start"
    VALIDATED = "validated"
    CITY_RESOLVED = "city_resolved"
    TEMPERATURE_RESOLVED = "temperature_resolved"
    DONE = "done"
    FAILED = "failed"


class LookupOrchestrator:
    """Runs the validate / geocode / weather pipeline for one raw postal code."""

    def __init__(
        self,
        geo: GeoResolver,
        weather: WeatherResolver,
        *,
        tracer: Optional[Tracer] = None,
        timeout_seconds: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS,
    ):
        self.geo = geo
        self.weather = weather
        self.tracer = tracer or NoopTracer()
        self.timeout_seconds = timeout_seconds

    def handle(self, raw_code: str) -> LookupOutcome:
        """Run every stage and return the outcome. Never raises LookupFailure."""
        deadline = Deadline.after(self.timeout_seconds)
        stage = Stage.START
        with self.tracer.start_span("lookup", raw_cep=raw_code) as span:
            try:
                with self.tracer.start_span("lookup.validate"):
                    code = validate_postal_code(raw_code)
                stage = Stage.VALIDATED

                with self.tracer.start_span("lookup.resolve_city", cep=code.value):
                    city = self.geo.resolve(code, deadline=deadline)
                stage = Stage.CITY_RESOLVED

                with self.tracer.start_span("lookup.resolve_temperature", city=city):
                    temperature = self.weather.resolve(city, deadline=deadline)
                stage = Stage.TEMPERATURE_RESOLVED
            except LookupFailure as failure:
                logger.info("Lookup for %r failed after stage %s: %s", raw_code, stage.value, failure)
                span.set_attributes(stage=Stage.FAILED.value, failed_after=stage.value, failure=failure.kind.value)
                span.set_error(str(failure))
                return LookupOutcome.failed(failure)

            outcome = LookupOutcome.success(city, temperature)
            span.set_attributes(stage=Stage.DONE.value, city=city)
            logger.info("Lookup for %s done: %s %.2fC", code.value, city, temperature.celsius)
            return outcome


def build_orchestrator(settings: config.Settings | None = None, tracer: Optional[Tracer] = None) -> LookupOrchestrator:
    """Wire the configured adapters into an orchestrator."""
    settings = settings or config.settings
    tracer = tracer or Tracer(settings.service_name)
    return LookupOrchestrator(
        build_geo_resolver(settings, tracer=tracer),
        build_weather_resolver(settings, tracer=tracer),
        tracer=tracer,
        timeout_seconds=settings.lookup_timeout_seconds,
    )
