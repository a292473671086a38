"""Failure taxonomy shared by the resolvers, the orchestrator and both HTTP layers.

Every failure is classified where it happens by raising one of the classes
below. Each class fixes the externally visible status code and error message;
callers higher up only map, never re-classify.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Classified reasons a lookup can end without a temperature."""
    INVALID_FORMAT = "invalid_format"
    ZIPCODE_NOT_FOUND = "zipcode_not_found"
    GEO_INTERNAL = "geo_internal"
    WEATHER_CONFIGURATION = "weather_configuration"
    CITY_NOT_FOUND = "city_not_found"
    WEATHER_UNAVAILABLE = "weather_unavailable"
    WEATHER_UPSTREAM = "weather_upstream"
    MALFORMED_REQUEST = "malformed_request"


class LookupFailure(Exception):
    """Base class for classified lookup failures."""
    kind: FailureKind = FailureKind.GEO_INTERNAL
    status_code: int = 500
    message: str = "internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(f"{self.message}: {detail}" if detail else self.message)

    def to_payload(self) -> dict:
        """Body returned to HTTP callers. The detail stays in logs only."""
        return {"error": self.message}


class InvalidZipcodeError(LookupFailure):
    """Postal code is not 8 digits after stripping '-' and '.'."""
    kind = FailureKind.INVALID_FORMAT
    status_code = 422
    message = "invalid zipcode"


class MalformedRequestError(LookupFailure):
    """Inbound request body could not be parsed."""
    kind = FailureKind.MALFORMED_REQUEST
    status_code = 400
    message = "invalid request format"


# --- geocoding leg ---------------------------------------------------------

class ZipcodeNotFoundError(LookupFailure):
    kind = FailureKind.ZIPCODE_NOT_FOUND
    status_code = 404
    message = "can not find zipcode"


class GeoInternalError(LookupFailure):
    """Transport or decode failure talking to the geocoding upstream."""
    kind = FailureKind.GEO_INTERNAL
    status_code = 500
    message = "internal server error"


# --- weather leg -----------------------------------------------------------

class WeatherConfigurationError(LookupFailure):
    """The weather API credential is not configured."""
    kind = FailureKind.WEATHER_CONFIGURATION
    status_code = 500
    message = "weather service configuration error"


class CityNotFoundError(LookupFailure):
    kind = FailureKind.CITY_NOT_FOUND
    status_code = 404
    message = "city not found in weather service"


class WeatherUnavailableError(LookupFailure):
    """Every attempt to reach the weather upstream failed at transport level."""
    kind = FailureKind.WEATHER_UNAVAILABLE
    status_code = 500
    message = "failed to get weather data"

    def __init__(self, detail: Optional[str] = None, *, attempts: int = 0):
        self.attempts = attempts
        super().__init__(detail)


class WeatherUpstreamError(LookupFailure):
    """The weather upstream answered with an error other than city-not-found."""
    kind = FailureKind.WEATHER_UPSTREAM
    status_code = 500
    message = "failed to get weather data"

    def __init__(self, detail: Optional[str] = None, *, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(detail)
