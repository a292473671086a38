"""Interfaces for the two upstream lookups."""

from __future__ import annotations

from typing import Protocol

from app.deadline import Deadline
from app.domain import PostalCode, Temperature


class GeoResolver(Protocol):
    """Anything that can turn a validated postal code into a city name."""

    def resolve(self, code: PostalCode, *, deadline: Deadline) -> str:
        """Return the city name, or raise ZipcodeNotFoundError / GeoInternalError."""
        ...


class WeatherResolver(Protocol):
    """Anything that can report the current temperature for a city."""

    def resolve(self, city: str, *, deadline: Deadline) -> Temperature:
        """Return the temperature, or raise one of the weather LookupFailure classes."""
        ...
