"""Resolution of missing daily meteorology variables.

Each variable is resolved by one step of :data:`RESOLUTION_STEPS`, in that
order. A step either keeps the supplied column, derives it from columns
resolved by earlier steps (or from site parameters) with a warning, always
recomputes it, or stops with a :class:`MeteoError`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from meteoforcing.core.debug import DebugCollector, NullDebugCollector, ScopedDebugCollector
from meteoforcing.core.models import VARNAMES, Diagnostic, MeteoError, Period, Severity
from meteoforcing.engine.assemble import assemble_table
from meteoforcing.engine.degree_days import growing_degree_days_minmax
from meteoforcing.engine.escalation import notice, warn_var
from meteoforcing.engine.presence import is_missing_column, is_missing_key
from meteoforcing.solar.position import check_timezone, is_utc, noon_zenith
from meteoforcing.solar.radiation import diffuse_fraction, net_radiation
from meteoforcing.weather.atmosphere import (
    air_density,
    mean_saturation_vapor_pressure,
    pressure_from_elevation,
    rh_to_vpd,
    vpd_to_rh,
)

DUMMY_START = pd.Timestamp("2000-01-01")
PAR_FLOOR = 0.1
WIND_FLOOR = 0.01

PRESENT = "present"
DERIVED = "derived"
RECOMPUTED = "recomputed"


@dataclass(frozen=True)
class MeteoResult:
    table: pd.DataFrame
    units: Dict[str, str]
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [d.message for d in self.diagnostics if d.severity is Severity.WARN]


@dataclass
class _Context:
    frame: pd.DataFrame
    parameters: Mapping[str, Any]
    period: Optional[Period]
    timezone: str
    debug: DebugCollector
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ts(self):
        if "Date" in self.frame.columns and len(self.frame):
            return self.frame["Date"].iloc[0]
        return None

    def has(self, column: str) -> bool:
        return not is_missing_column(self.frame, column)

    def warn(self, variable: str, replacement: str) -> None:
        warn_var(variable, replacement, Severity.WARN, debug=self.debug, diagnostics=self.diagnostics)

    def notice(self, variable: str, message: str) -> None:
        notice(variable, message, debug=self.debug, diagnostics=self.diagnostics)

    def fail(self, variable: str, replacement: Optional[str] = None) -> None:
        warn_var(variable, replacement, Severity.ERROR, debug=self.debug)

    def param(self, key: str, variable: str) -> float:
        if is_missing_key(self.parameters, key):
            self.fail(variable, f"the {key} parameter")
        return self.parameters[key]


@dataclass(frozen=True)
class ResolutionStep:
    """One node of the fixed dependency graph.

    ``requires`` lists columns that must be resolved by earlier steps;
    ``optional`` lists raw input columns the step uses when supplied.
    """

    outputs: Tuple[str, ...]
    requires: Tuple[str, ...]
    resolve: Callable[[_Context], str]
    optional: Tuple[str, ...] = ()


def _fail_with(ctx: _Context, variable: str, message: str) -> None:
    diag = Diagnostic(variable=variable, severity=Severity.ERROR, message=message)
    ctx.debug.emit("meteo.error", {"message": message, "source": None}, ts=ctx.ts, variable=variable)
    raise MeteoError(diag)


def _resolve_date(ctx: _Context) -> str:
    frame = ctx.frame
    if ctx.has("Date"):
        frame["Date"] = pd.to_datetime(frame["Date"])
        return PRESENT
    if not is_missing_key(ctx.parameters, "Start_Date"):
        start = pd.Timestamp(ctx.parameters["Start_Date"])
        source = "Parameters Start_Date"
    else:
        start = DUMMY_START
        source = f"dummy {DUMMY_START.date().isoformat()}"
    frame["Date"] = pd.date_range(start=start, periods=len(frame), freq="D")
    ctx.warn("Date", source)
    return DERIVED


def _restrict_period(ctx: _Context) -> str:
    frame = ctx.frame.sort_values("Date", kind="stable").reset_index(drop=True)
    if ctx.period is None:
        ctx.frame = frame
        return PRESENT

    days = frame["Date"].dt.date
    first, last = days.min(), days.max()
    start, end = ctx.period.start, ctx.period.end
    if end > last:
        ctx.notice(
            "Period",
            f"Meteo file does not cover the given period. Max date in meteo file = {last.isoformat()} ; "
            f"max given period = {end.isoformat()} ({(end - last).days} days later). "
            "Setting the maximum date of simulation to the one from the meteo file",
        )
        end = last
    if start < first:
        ctx.notice(
            "Period",
            f"Meteo file does not cover the given period. Min date in meteo file = {first.isoformat()} ; "
            f"min given period = {start.isoformat()} ({(first - start).days} days earlier). "
            "Setting the minimum date of simulation to the one from the meteo file",
        )
        start = first

    frame = frame.loc[(days >= start) & (days <= end)].reset_index(drop=True)
    ctx.frame = frame
    ctx.debug.emit(
        "meteo.period",
        {"start": start, "end": end, "rows": len(frame)},
        ts=start,
        variable="Period",
    )
    if frame.empty:
        _fail_with(
            ctx,
            "Period",
            f"No meteo records between {ctx.period.start.isoformat()} and {ctx.period.end.isoformat()}",
        )
    return DERIVED


def _resolve_rad(ctx: _Context) -> str:
    if ctx.has("RAD"):
        return PRESENT
    if not ctx.has("PAR"):
        ctx.fail("RAD", "PAR")
    ctx.frame["RAD"] = ctx.frame["PAR"] / ctx.param("FPAR", "RAD")
    ctx.warn("RAD", "PAR")
    return DERIVED


def _resolve_par(ctx: _Context) -> str:
    action = PRESENT
    if not ctx.has("PAR"):
        ctx.frame["PAR"] = ctx.frame["RAD"] * ctx.param("FPAR", "PAR")
        ctx.warn("PAR", "RAD")
        action = DERIVED
    ctx.frame["PAR"] = ctx.frame["PAR"].clip(lower=PAR_FLOOR)
    return action


def _resolve_temperature_range(ctx: _Context) -> str:
    missing = [col for col in ("Tmax", "Tmin") if not ctx.has(col)]
    if missing:
        ctx.fail(" and ".join(missing))
    return PRESENT


def _resolve_tair(ctx: _Context) -> str:
    if ctx.has("Tair"):
        return PRESENT
    # Half the diurnal range, not the mean; existing calibrations use this form.
    ctx.frame["Tair"] = (ctx.frame["Tmax"] - ctx.frame["Tmin"]) / 2
    ctx.warn("Tair", "the equation (Tmax - Tmin) / 2")
    return DERIVED


def _resolve_vpd(ctx: _Context) -> str:
    if ctx.has("VPD"):
        return PRESENT
    if not ctx.has("RH"):
        ctx.fail("VPD", "RH")
    ctx.frame["VPD"] = rh_to_vpd(ctx.frame["RH"] / 100.0, ctx.frame["Tair"]) * 10.0
    ctx.warn("VPD", "RH and Tair")
    return DERIVED


def _resolve_pressure(ctx: _Context) -> str:
    if ctx.has("Pressure"):
        return PRESENT
    if is_missing_key(ctx.parameters, "Elevation"):
        ctx.fail("Pressure", "Elevation")
    elevation = ctx.parameters["Elevation"]
    frame = ctx.frame
    if ctx.has("VPD"):
        frame["Pressure"] = pressure_from_elevation(elevation, frame["Tair"], frame["VPD"] / 10.0) * 10.0
        ctx.warn("Pressure", "Elevation, Tair and VPD")
    else:
        frame["Pressure"] = pressure_from_elevation(elevation, frame["Tair"]) * 10.0
        ctx.warn("Pressure", "Elevation and Tair")
    return DERIVED


def _resolve_rain(ctx: _Context) -> str:
    if ctx.has("Rain"):
        return PRESENT
    ctx.frame["Rain"] = 0.0
    ctx.warn("Rain", "constant (= 0, assuming no rain)")
    return DERIVED


def _resolve_constant(variable: str, floor: Optional[float] = None) -> Callable[[_Context], str]:
    def _resolve(ctx: _Context) -> str:
        action = PRESENT
        if not ctx.has(variable):
            if is_missing_key(ctx.parameters, variable):
                ctx.fail(variable, f"Parameters {variable} (constant value)")
            ctx.frame[variable] = float(ctx.parameters[variable])
            ctx.warn(variable, f"constant (= Parameters {variable})")
            action = DERIVED
        if floor is not None:
            ctx.frame[variable] = ctx.frame[variable].clip(lower=floor)
        return action

    return _resolve


def _resolve_degree_days(ctx: _Context) -> str:
    if ctx.has("DegreeDays"):
        return PRESENT
    thresholds = {key: ctx.parameters[key] for key in ("MinTT", "MaxTT") if not is_missing_key(ctx.parameters, key)}
    ctx.frame["DegreeDays"] = growing_degree_days_minmax(
        ctx.frame["Tmax"],
        ctx.frame["Tmin"],
        min_tt=thresholds.get("MinTT", 5.0),
        max_tt=thresholds.get("MaxTT", 30.0),
    )
    if len(thresholds) == 2:
        ctx.warn("DegreeDays", "Tmax, Tmin, MinTT and MaxTT")
    else:
        ctx.warn("DegreeDays", "Tmax, Tmin and default thresholds (MinTT = 5, MaxTT = 30) for missing parameters")
    return DERIVED


def _resolve_fdiff(ctx: _Context) -> str:
    if ctx.has("FDiff"):
        return PRESENT
    latitude = ctx.param("Latitude", "FDiff")
    ctx.frame["FDiff"] = diffuse_fraction(ctx.frame["Date"].dt.dayofyear, ctx.frame["RAD"], latitude)
    ctx.warn("FDiff", "DOY, RAD and Latitude using the Spitters diffuse fraction")
    return DERIVED


def _compute_calendar(ctx: _Context) -> str:
    ctx.frame["year"] = ctx.frame["Date"].dt.year
    ctx.frame["DOY"] = ctx.frame["Date"].dt.dayofyear
    return RECOMPUTED


def _compute_zenith(ctx: _Context) -> str:
    latitude = ctx.param("Latitude", "ZEN")
    longitude = ctx.param("Longitude", "ZEN")
    if is_utc(ctx.timezone):
        if is_missing_key(ctx.parameters, "TimezoneCF"):
            ctx.notice("ZEN", "TimezoneCF missing from Parameters. Solar noon is not corrected for the time zone")
            correction = 0.0
        else:
            correction = float(ctx.parameters["TimezoneCF"])
    else:
        ctx.notice(
            "ZEN",
            f"Meteo file uses this time-zone: {ctx.timezone}. Set it to \"UTC\" if you want to use "
            "the timezone from your parameter file",
        )
        correction = 0.0
    ctx.frame["ZEN"] = noon_zenith(
        ctx.frame["Date"],
        latitude,
        longitude,
        timezone=ctx.timezone,
        correction_hours=correction,
        debug=ScopedDebugCollector(ctx.debug, variable="ZEN"),
    )
    return RECOMPUTED


def _compute_net_radiation(ctx: _Context) -> str:
    frame = ctx.frame
    humidity = {"rh": frame["RH"]} if ctx.has("RH") else {"vpd": frame["VPD"]}
    frame["Rn"] = net_radiation(
        frame["DOY"],
        frame["RAD"],
        frame["Tmax"],
        frame["Tmin"],
        elevation=ctx.param("Elevation", "Rn"),
        latitude=ctx.param("Latitude", "Rn"),
        albedo=ctx.param("albedo", "Rn"),
        **humidity,
    )
    return RECOMPUTED


def _compute_dry_days(ctx: _Context) -> str:
    rain = ctx.frame["Rain"]
    spell = (rain > 0).cumsum()
    count = rain.groupby(spell).cumcount()
    # Rows after the first wet day: the wet day itself and the next dry day both count 0.
    ctx.frame["DaysWithoutRain"] = count.where(spell == 0, (count - 1).clip(lower=0))
    return RECOMPUTED


def _compute_air_density(ctx: _Context) -> str:
    ctx.frame["Air_Density"] = air_density(ctx.frame["Tair"], ctx.frame["Pressure"] / 10.0)
    return RECOMPUTED


def _resolve_rh(ctx: _Context) -> str:
    if ctx.has("RH"):
        return PRESENT
    frame = ctx.frame
    # Rn uses the Tmax/Tmin mean saturation pressure; RH must convert with the same one.
    esat = mean_saturation_vapor_pressure(frame["Tmax"], frame["Tmin"])
    frame["RH"] = vpd_to_rh(frame["VPD"] / 10.0, esat=esat) * 100.0
    ctx.warn("RH", "VPD, Tmax and Tmin")
    return DERIVED


def _check_order(steps: Tuple[ResolutionStep, ...]) -> Tuple[ResolutionStep, ...]:
    produced: set = set()
    for step in steps:
        missing = set(step.requires) - produced
        if missing:
            raise RuntimeError(f"Step for {step.outputs} requires {sorted(missing)} before they are resolved")
        produced.update(step.outputs)
    unresolved = set(VARNAMES) - produced
    if unresolved:
        raise RuntimeError(f"No resolution step for {sorted(unresolved)}")
    return steps


RESOLUTION_STEPS: Tuple[ResolutionStep, ...] = _check_order(
    (
        ResolutionStep(("Date",), (), _resolve_date),
        ResolutionStep(("Period",), ("Date",), _restrict_period),
        ResolutionStep(("RAD",), ("Period",), _resolve_rad, optional=("PAR",)),
        ResolutionStep(("PAR",), ("RAD",), _resolve_par),
        ResolutionStep(("Tmax", "Tmin"), ("Period",), _resolve_temperature_range),
        ResolutionStep(("Tair",), ("Tmax", "Tmin"), _resolve_tair),
        ResolutionStep(("VPD",), ("Tair",), _resolve_vpd, optional=("RH",)),
        ResolutionStep(("Pressure",), ("Tair",), _resolve_pressure, optional=("VPD",)),
        ResolutionStep(("Rain",), ("Period",), _resolve_rain),
        ResolutionStep(("WindSpeed",), ("Period",), _resolve_constant("WindSpeed", floor=WIND_FLOOR)),
        ResolutionStep(("CO2",), ("Period",), _resolve_constant("CO2")),
        ResolutionStep(("DegreeDays",), ("Tmax", "Tmin"), _resolve_degree_days),
        ResolutionStep(("FDiff",), ("Date", "RAD"), _resolve_fdiff),
        ResolutionStep(("year", "DOY"), ("Date",), _compute_calendar),
        ResolutionStep(("ZEN",), ("Date",), _compute_zenith),
        ResolutionStep(("Rn",), ("DOY", "RAD", "Tmax", "Tmin", "VPD"), _compute_net_radiation, optional=("RH",)),
        ResolutionStep(("DaysWithoutRain",), ("Rain", "Period"), _compute_dry_days),
        ResolutionStep(("Air_Density",), ("Tair", "Pressure"), _compute_air_density),
        ResolutionStep(("RH",), ("VPD", "Tmax", "Tmin"), _resolve_rh),
    )
)


def _coerce_numeric(ctx: _Context) -> None:
    for col in VARNAMES:
        if col == "Date" or col not in ctx.frame.columns:
            continue
        try:
            ctx.frame[col] = pd.to_numeric(ctx.frame[col])
        except (TypeError, ValueError) as exc:
            _fail_with(ctx, col, f"{col} must be numeric in input Meteo: {exc}")


def resolve_meteorology(
    frame: pd.DataFrame,
    parameters: Mapping[str, Any] | None = None,
    period: Period | None = None,
    timezone: str = "UTC",
    debug: DebugCollector | None = None,
) -> MeteoResult:
    """Fill every missing daily meteorology variable and assemble the table.

    Parameters
    ----------
    frame: pandas.DataFrame
        Daily records, one row per day. Not mutated.
    parameters: Mapping
        Site parameters (``Start_Date``, ``FPAR``, ``Elevation``, ...).
        Read only.
    period: Period | None
        Optional closed date interval; clipped to the available dates.
    timezone: str
        Declared time zone of the records. ``TimezoneCF`` only corrects
        solar noon when this is UTC/GMT.
    debug: DebugCollector | None
        Receives ``meteo.step``, ``meteo.warning`` and ``meteo.error`` events.

    Raises
    ------
    MeteoError
        A mandatory variable is missing and cannot be computed.
    """
    debug = debug or NullDebugCollector()
    ctx = _Context(
        frame=frame.copy(),
        parameters=parameters or {},
        period=period,
        timezone=timezone or "UTC",
        debug=debug,
    )
    if ctx.frame.empty:
        _fail_with(ctx, "Date", "Meteo table has no records")
    try:
        check_timezone(ctx.timezone)
    except ValueError as exc:
        _fail_with(ctx, "ZEN", str(exc))
    _coerce_numeric(ctx)

    for step in RESOLUTION_STEPS:
        action = step.resolve(ctx)
        debug.emit(
            "meteo.step",
            {"outputs": list(step.outputs), "action": action, "rows": len(ctx.frame)},
            ts=ctx.ts,
            variable=step.outputs[0],
        )

    table = assemble_table(ctx.frame, debug=debug)
    return MeteoResult(table=table, units=dict(table.attrs["units"]), diagnostics=list(ctx.diagnostics))


__all__ = [
    "MeteoResult",
    "ResolutionStep",
    "RESOLUTION_STEPS",
    "resolve_meteorology",
]
