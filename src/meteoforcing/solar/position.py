"""Solar position utilities built on pvlib."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pvlib

from meteoforcing.core.debug import DebugCollector, NullDebugCollector

UTC_ZONES = {"UTC", "GMT", "Etc/UTC", "Etc/GMT", "Z"}


def is_utc(timezone: str | None) -> bool:
    return (timezone or "UTC").strip() in UTC_ZONES


def check_timezone(timezone: str | None) -> str:
    """Return the zone name pandas localizes to, or raise ValueError if it is unknown."""
    if is_utc(timezone):
        return "UTC"
    try:
        pd.Timestamp("2000-01-01").tz_localize(timezone)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {timezone!r}") from exc
    return timezone


def noon_zenith(
    dates: pd.Series | pd.DatetimeIndex,
    latitude: float,
    longitude: float,
    timezone: str = "UTC",
    correction_hours: float = 0.0,
    debug: DebugCollector | None = None,
) -> np.ndarray:
    """Solar zenith angle (radians) at noon of each date.

    Parameters
    ----------
    dates: Series or DatetimeIndex
        Calendar days; any time-of-day component is dropped.
    latitude, longitude: float
        Site coordinates in degrees.
    timezone: str
        Zone used to localize naive dates. pvlib assumes UTC for naive
        timestamps, which would be wrong for local dates.
    correction_hours: float
        Offset added to the nominal 12:00 timestamp.

    Returns
    -------
    numpy.ndarray
        Zenith angles in radians, one per date.
    """
    debug = debug or NullDebugCollector()

    days = pd.DatetimeIndex(dates).normalize()
    times = days + pd.Timedelta(hours=12) + pd.to_timedelta(correction_hours * 3600.0, unit="s")
    if times.tz is None:
        times = times.tz_localize(check_timezone(timezone))

    loc = pvlib.location.Location(latitude=latitude, longitude=longitude, tz=times.tz)
    df = loc.get_solarposition(times)
    if "elevation" not in df.columns:
        raise RuntimeError("pvlib missing expected column: elevation")

    zen = np.arccos(np.sin(np.deg2rad(df["elevation"].to_numpy(dtype=float))))
    debug.emit(
        "solar_position.summary",
        {
            "zenith_min": float(zen.min()) if len(zen) else None,
            "zenith_max": float(zen.max()) if len(zen) else None,
            "timezone": str(times.tz),
            "correction_hours": correction_hours,
        },
        ts=times[0] if len(times) else None,
    )
    return zen


__all__ = ["noon_zenith", "is_utc", "check_timezone", "UTC_ZONES"]
