"""Humidity, pressure and density conversions for near-surface air.

All functions are vectorized over numpy arrays and pandas Series.
Temperatures are in Celsius, pressures and vapour pressures in kPa.
"""
from __future__ import annotations

import numpy as np

# Sonntag (1990) saturation vapour pressure coefficients.
_ESAT_A = 0.611213
_ESAT_B = 17.5043
_ESAT_C = 241.2

RD = 287.0586  # gas constant of dry air (J kg-1 K-1)
G = 9.81  # gravitational acceleration (m s-2)
EPS = 0.622  # ratio of molecular weights of water vapour and dry air
PRESSURE0 = 101325.0  # reference sea-level pressure (Pa)
KELVIN = 273.15


def saturation_vapor_pressure(tair):
    """Saturation vapour pressure (kPa) over water, Sonntag (1990)."""
    return _ESAT_A * np.exp((_ESAT_B * tair) / (_ESAT_C + tair))


def mean_saturation_vapor_pressure(tmax, tmin):
    """Daily saturation vapour pressure (kPa) as the mean over Tmax and Tmin (FAO-56 eq. 12)."""
    return (saturation_vapor_pressure(tmax) + saturation_vapor_pressure(tmin)) / 2.0


def rh_to_vpd(rh, tair):
    """Vapour pressure deficit (kPa) from relative humidity as a fraction (0-1)."""
    esat = saturation_vapor_pressure(tair)
    return esat - rh * esat


def vpd_to_rh(vpd, tair=None, *, esat=None):
    """Relative humidity fraction (0-1) from the vapour pressure deficit (kPa).

    ``esat`` overrides the saturation vapour pressure computed from ``tair``.
    """
    if esat is None:
        esat = saturation_vapor_pressure(tair)
    rh = 1.0 - vpd / esat
    return np.clip(rh, 0.0, 1.0)


def virtual_temperature(tair, pressure, vpd):
    """Virtual temperature (Celsius) of moist air."""
    e = saturation_vapor_pressure(tair) - vpd
    tair_k = tair + KELVIN
    return tair_k / (1.0 - (1.0 - EPS) * e / pressure) - KELVIN


def pressure_from_elevation(elevation, tair, vpd=None):
    """Atmospheric pressure (kPa) from site elevation using the hypsometric equation.

    When ``vpd`` is given, a first estimate is refined with the virtual
    temperature of moist air.
    """
    tair_k = tair + KELVIN
    if vpd is None:
        tv_k = tair_k
    else:
        pressure1 = PRESSURE0 / np.exp(G * elevation / (RD * tair_k))
        tv_k = virtual_temperature(tair, pressure1 / 1000.0, vpd) + KELVIN
    pressure = PRESSURE0 / np.exp(G * elevation / (RD * tv_k))
    return pressure / 1000.0


def air_density(tair, pressure):
    """Air density (kg m-3) from temperature (Celsius) and pressure (kPa)."""
    return (pressure * 1000.0) / (RD * (tair + KELVIN))


__all__ = [
    "saturation_vapor_pressure",
    "mean_saturation_vapor_pressure",
    "rh_to_vpd",
    "vpd_to_rh",
    "virtual_temperature",
    "pressure_from_elevation",
    "air_density",
]
