"""Domain models for daily meteorology resolution.

Provides the period filter, escalation diagnostics, the canonical variable
list and the unit table attached to resolved tables.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Optional

import pandas as pd


class ValidationError(ValueError):
    """Raised when model inputs violate constraints."""


class MeteoError(ValueError):
    """Raised when a mandatory meteorology variable cannot be resolved."""

    def __init__(self, diagnostic: "Diagnostic"):
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


class Severity(str, Enum):
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    variable: str
    severity: Severity
    message: str
    source: Optional[str] = None


@dataclass(frozen=True)
class Period:
    """Closed date interval used to restrict the meteorology records."""

    start: dt.date
    end: dt.date

    def __post_init__(self):
        try:
            start = pd.Timestamp(self.start).date()
            end = pd.Timestamp(self.end).date()
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Period bounds must be dates: {exc}") from exc
        if start > end:
            raise ValidationError("Period start must not be after period end")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def from_bounds(cls, bounds) -> "Period":
        if len(bounds) != 2:
            raise ValidationError("Period needs exactly two dates")
        return cls(bounds[0], bounds[1])


# Identifier columns are never rounded.
IDENTIFIERS = ("year", "DOY", "Date")

VARNAMES = (
    "year",
    "DOY",
    "Date",
    "Rain",
    "Tair",
    "RH",
    "RAD",
    "Pressure",
    "WindSpeed",
    "CO2",
    "DegreeDays",
    "PAR",
    "FDiff",
    "VPD",
    "Rn",
    "Tmax",
    "Tmin",
    "DaysWithoutRain",
    "Air_Density",
    "ZEN",
)

UNITS = MappingProxyType(
    {
        "year": "year",
        "DOY": "day",
        "Date": "date",
        "Rain": "mm",
        "Tair": "Celsius",
        "RH": "%",
        "RAD": "MJ m-2 d-1",
        "Pressure": "hPa",
        "WindSpeed": "m s-1",
        "CO2": "ppm",
        "DegreeDays": "Celsius",
        "PAR": "MJ m-2 d-1",
        "FDiff": "Fraction",
        "VPD": "hPa",
        "Rn": "MJ m-2 d-1",
        "Tmax": "Celsius",
        "Tmin": "Celsius",
        "DaysWithoutRain": "day",
        "Air_Density": "kg m-3",
        "ZEN": "rad",
    }
)


__all__ = [
    "ValidationError",
    "MeteoError",
    "Severity",
    "Diagnostic",
    "Period",
    "IDENTIFIERS",
    "VARNAMES",
    "UNITS",
]
