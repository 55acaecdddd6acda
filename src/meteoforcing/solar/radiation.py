"""Daily radiation budget helpers (FAO-56 / Allen et al. 1998, Spitters 1986)."""
from __future__ import annotations

import numpy as np
import pandas as pd

from meteoforcing.weather.atmosphere import mean_saturation_vapor_pressure

GSC = 0.0820  # solar constant (MJ m-2 min-1)
SIGMA = 4.903e-9  # Stefan-Boltzmann constant (MJ K-4 m-2 d-1)


def _like(values, template):
    if isinstance(template, pd.Series):
        return pd.Series(np.asarray(values, dtype=float), index=template.index)
    if np.ndim(values) == 0:
        return float(values)
    return values


def extraterrestrial_radiation(doy, latitude: float):
    """Daily extraterrestrial radiation (MJ m-2 d-1) for day-of-year and latitude (deg)."""
    doy_arr = np.asarray(doy, dtype=float)
    phi = np.deg2rad(latitude)
    dr = 1.0 + 0.033 * np.cos(2.0 * np.pi * doy_arr / 365.0)
    delta = 0.409 * np.sin(2.0 * np.pi * doy_arr / 365.0 - 1.39)
    # Polar day/night: clip the argument so the sunset hour angle stays defined.
    omega_s = np.arccos(np.clip(-np.tan(phi) * np.tan(delta), -1.0, 1.0))
    ra = (24.0 * 60.0 / np.pi) * GSC * dr * (
        omega_s * np.sin(phi) * np.sin(delta) + np.cos(phi) * np.cos(delta) * np.sin(omega_s)
    )
    return _like(ra, doy)


def net_radiation(
    doy,
    rad,
    tmax,
    tmin,
    elevation: float,
    latitude: float,
    albedo: float,
    rh=None,
    vpd=None,
):
    """Daily net radiation (MJ m-2 d-1), Allen et al. (1998).

    Parameters
    ----------
    doy : array-like
        Day of year.
    rad : array-like
        Incident shortwave radiation (MJ m-2 d-1).
    tmax, tmin : array-like
        Daily maximum and minimum air temperature (Celsius).
    elevation : float
        Site elevation (m), used for clear-sky radiation.
    latitude : float
        Site latitude (degrees).
    albedo : float
        Shortwave surface albedo.
    rh : array-like, optional
        Relative humidity (%). Preferred over ``vpd`` when both are given.
    vpd : array-like, optional
        Vapour pressure deficit (hPa).
    """
    es = mean_saturation_vapor_pressure(tmax, tmin)
    if rh is not None:
        ea = es * rh / 100.0
    elif vpd is not None:
        ea = es - vpd / 10.0
    else:
        raise ValueError("net_radiation needs either rh or vpd")
    ea = np.clip(ea, 0.0, None)

    ra = np.asarray(extraterrestrial_radiation(doy, latitude), dtype=float)
    rso = (0.75 + 2e-5 * elevation) * ra
    rs_rso = np.clip(np.divide(np.asarray(rad, dtype=float), rso, out=np.ones_like(rso), where=rso > 0), 0.0, 1.0)

    rns = (1.0 - albedo) * np.asarray(rad, dtype=float)
    tk4 = ((np.asarray(tmax, dtype=float) + 273.16) ** 4 + (np.asarray(tmin, dtype=float) + 273.16) ** 4) / 2.0
    rnl = SIGMA * tk4 * (0.34 - 0.14 * np.sqrt(np.asarray(ea, dtype=float))) * (1.35 * rs_rso - 0.35)
    return _like(rns - rnl, rad)


def diffuse_fraction(doy, rad, latitude: float):
    """Daily diffuse fraction of incident radiation, Spitters et al. (1986)."""
    s0 = np.asarray(extraterrestrial_radiation(doy, latitude), dtype=float)
    trans = np.divide(np.asarray(rad, dtype=float), s0, out=np.zeros_like(s0), where=s0 > 0)
    fdiff = np.select(
        [trans < 0.07, trans < 0.35, trans < 0.75],
        [1.0, 1.0 - 2.3 * (trans - 0.07) ** 2, 1.33 - 1.46 * trans],
        default=0.23,
    )
    return _like(fdiff, rad)


__all__ = ["extraterrestrial_radiation", "net_radiation", "diffuse_fraction"]
