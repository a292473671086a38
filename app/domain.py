"""Value types for a single CEP-to-weather lookup.

Nothing here performs I/O. A `PostalCode` can only be built through
`validate_postal_code`, a `Temperature` only through `Temperature.from_celsius`,
so the invariants on both hold wherever they are passed around.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from app.errors import InvalidZipcodeError, LookupFailure

POSTAL_CODE_LENGTH = 8
POSTAL_CODE_SEPARATORS = ("-", ".")
KELVIN_OFFSET = 273.15


def normalize_postal_code(raw: str) -> str:
    """Strip the separator characters users commonly type ("01001-000", "01.001-000")."""
    cep = raw
    for sep in POSTAL_CODE_SEPARATORS:
        cep = cep.replace(sep, "")
    return cep


@dataclass(frozen=True)
class PostalCode:
    """An 8-digit CEP that has passed validation."""
    value: str

    def __str__(self) -> str:
        return self.value


def validate_postal_code(raw: str) -> PostalCode:
    """Return a PostalCode for `raw`, or raise InvalidZipcodeError.

    The same rules apply at the edge and on both internal entry points.
    """
    if not isinstance(raw, str):
        raise InvalidZipcodeError(f"expected a string, got {type(raw).__name__}")
    cep = normalize_postal_code(raw)
    if len(cep) != POSTAL_CODE_LENGTH or not (cep.isascii() and cep.isdigit()):
        raise InvalidZipcodeError(f"{raw!r} is not {POSTAL_CODE_LENGTH} digits")
    return PostalCode(cep)


def round_half_up(value: float, places: int = 2) -> float:
    """Round to `places` decimals, halves away from zero (-0.125 -> -0.13).

    Goes through the shortest repr of the float so 1.005 rounds to 1.01.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def json_number(value: float) -> float | int:
    """Integral readings go out as JSON integers (25, not 25.0)."""
    return int(value) if float(value).is_integer() else value


@dataclass(frozen=True)
class Temperature:
    """Current temperature in the three units returned to callers."""
    celsius: float
    fahrenheit: float
    kelvin: float

    @classmethod
    def from_celsius(cls, celsius: float, fahrenheit: Optional[float] = None) -> "Temperature":
        """Derive the other units from Celsius.

        An upstream Fahrenheit reading is used as-is when present and non-zero.
        """
        if not fahrenheit:
            fahrenheit = celsius * 1.8 + 32
        kelvin = celsius + KELVIN_OFFSET
        return cls(
            celsius=round_half_up(celsius),
            fahrenheit=round_half_up(fahrenheit),
            kelvin=round_half_up(kelvin),
        )


@dataclass(frozen=True)
class LookupOutcome:
    """Result of one orchestration: a city and temperature, or a classified failure."""
    city: Optional[str] = None
    temperature: Optional[Temperature] = None
    failure: Optional[LookupFailure] = None

    @classmethod
    def success(cls, city: str, temperature: Temperature) -> "LookupOutcome":
        return cls(city=city, temperature=temperature)

    @classmethod
    def failed(cls, failure: LookupFailure) -> "LookupOutcome":
        return cls(failure=failure)

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def status_code(self) -> int:
        return 200 if self.failure is None else self.failure.status_code

    def to_payload(self) -> dict:
        """Response body for this outcome."""
        if self.failure is not None:
            return self.failure.to_payload()
        return {
            "city": self.city,
            "temp_C": json_number(self.temperature.celsius),
            "temp_F": json_number(self.temperature.fahrenheit),
            "temp_K": json_number(self.temperature.kelvin),
        }
