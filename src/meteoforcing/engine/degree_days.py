"""Growing degree days with base and ceiling temperature thresholds."""
from __future__ import annotations

import numpy as np
import pandas as pd


def growing_degree_days(tmean, min_tt: float = 5.0, max_tt: float = 30.0):
    """Daily growing degree days from the mean air temperature (Celsius).

    Returns ``tmean - min_tt``, or 0 when that difference is negative or
    larger than the ``max_tt - min_tt`` span. Temperatures above the ceiling
    therefore contribute nothing rather than the full span.

    Accepts scalars (returns ``float``), arrays and pandas Series (index kept).

    >>> growing_degree_days(25.0, 5.0, 28.0)
    20.0
    >>> growing_degree_days(5.0, 5.0, 28.0)
    0.0
    """
    dd = np.asarray(tmean, dtype=float) - min_tt
    dd = np.where((dd < 0.0) | (dd > (max_tt - min_tt)), 0.0, dd)
    if isinstance(tmean, pd.Series):
        return pd.Series(dd, index=tmean.index, name="DegreeDays")
    if dd.ndim == 0:
        return float(dd)
    return dd


def growing_degree_days_minmax(tmax, tmin, min_tt: float = 5.0, max_tt: float = 30.0):
    """Growing degree days from daily max/min temperature.

    This is an approximation: degree days are normally integrated over
    hourly (or finer) temperatures.

    >>> growing_degree_days_minmax(30.0, 27.0, 5.0, 27.0)
    0.0
    """
    return growing_degree_days((tmax + tmin) / 2.0, min_tt, max_tt)


__all__ = ["growing_degree_days", "growing_degree_days_minmax"]
