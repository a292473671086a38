"""Factory helpers for choosing the upstream adapters at startup."""

from __future__ import annotations

from typing import Optional

from app import config
from app.data_sources.base import GeoResolver, WeatherResolver
from app.data_sources.viacep_client import ViaCepClient
from app.data_sources.weatherapi_client import WeatherApiClient
from app.tracing import Tracer
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_GEO_SOURCE = "viacep"
DEFAULT_WEATHER_SOURCE = "weatherapi"


def build_geo_resolver(settings: config.Settings | None = None, tracer: Optional[Tracer] = None) -> GeoResolver:
    """Instantiate the configured geocoding adapter."""
    settings = settings or config.settings
    source = (settings.geo_source or DEFAULT_GEO_SOURCE).lower()

    if source == "viacep":
        logger.info("Using ViaCEP geocoding source")
        return ViaCepClient(
            settings.viacep_url_template,
            tracer=tracer,
            timeout_seconds=settings.upstream_timeout_seconds,
        )

    raise ValueError(f"Unknown geo source '{source}'")


def build_weather_resolver(settings: config.Settings | None = None, tracer: Optional[Tracer] = None) -> WeatherResolver:
    """Instantiate the configured weather adapter."""
    settings = settings or config.settings
    source = (settings.weather_source or DEFAULT_WEATHER_SOURCE).lower()

    if source == "weatherapi":
        if not settings.weather_api_key:
            # Not fatal: every lookup will fail with a configuration error instead.
            logger.warning("WEATHER_API_KEY is not set; weather lookups will fail")
        logger.info("Using WeatherAPI weather source")
        return WeatherApiClient(
            settings.weather_api_key,
            settings.weather_api_url,
            tracer=tracer,
            timeout_seconds=settings.upstream_timeout_seconds,
            max_attempts=settings.weather_max_attempts,
            backoff_seconds=settings.weather_backoff_seconds,
        )

    raise ValueError(f"Unknown weather source '{source}'")
