"""Upstream adapters for geocoding and weather lookups."""

from .base import GeoResolver, WeatherResolver
from .factory import build_geo_resolver, build_weather_resolver
from .viacep_client import ViaCepClient
from .weatherapi_client import RetryState, WeatherApiClient

__all__ = [
    "build_geo_resolver",
    "build_weather_resolver",
    "GeoResolver",
    "WeatherResolver",
    "ViaCepClient",
    "WeatherApiClient",
    "RetryState",
]
