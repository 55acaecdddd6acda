import datetime as dt

import numpy as np
import pandas as pd
import pytest

from meteoforcing.core.debug import ListDebugCollector
from meteoforcing.core.models import VARNAMES, MeteoError
from meteoforcing.engine.resolve import resolve_meteorology
from meteoforcing.weather.atmosphere import rh_to_vpd


def _params(**overrides):
    params = {
        "Start_Date": dt.date(2001, 3, 1),
        "FPAR": 0.5,
        "Elevation": 1100.0,
        "Latitude": 9.93,
        "Longitude": -83.72,
        "TimezoneCF": 6.0,
        "WindSpeed": 3.0,
        "CO2": 400.0,
        "MinTT": 5.0,
        "MaxTT": 30.0,
        "albedo": 0.144,
    }
    params.update(overrides)
    return params


def _frame(days: int = 5, **columns) -> pd.DataFrame:
    data = {
        "Date": pd.date_range("2001-03-01", periods=days, freq="D"),
        "Tmax": np.linspace(26.0, 30.0, days),
        "Tmin": np.linspace(16.0, 18.0, days),
        "RAD": np.linspace(10.0, 20.0, days),
        "RH": np.linspace(60.0, 90.0, days),
        "Rain": [0.0, 5.0] + [0.0] * (days - 2),
    }
    data.update(columns)
    return pd.DataFrame({k: v for k, v in data.items() if v is not None})


def _messages(result, variable):
    return [d.message for d in result.diagnostics if d.variable == variable]


def test_minimal_input_resolves_all_columns():
    result = resolve_meteorology(_frame(), _params())
    table = result.table
    assert list(table.columns) == list(VARNAMES)
    assert not table.isna().any().any()
    assert table.attrs["units"]["ZEN"] == "rad"
    assert result.units["Pressure"] == "hPa"


def test_input_frame_not_mutated():
    frame = _frame()
    before = list(frame.columns)
    resolve_meteorology(frame, _params())
    assert list(frame.columns) == before


def test_missing_tmin_is_fatal():
    with pytest.raises(MeteoError, match="Tmin"):
        resolve_meteorology(_frame(Tmin=None), _params())


def test_missing_both_temperatures_named():
    with pytest.raises(MeteoError) as excinfo:
        resolve_meteorology(_frame(Tmin=None, Tmax=None), _params())
    assert "Tmax and Tmin" in str(excinfo.value)
    assert "Hint" not in str(excinfo.value)


def test_rad_from_par():
    result = resolve_meteorology(_frame(RAD=None, PAR=[2.0, 3.0, 4.0, 5.0, 6.0]), _params())
    assert result.table["RAD"].tolist() == [4.0, 6.0, 8.0, 10.0, 12.0]
    assert _messages(result, "RAD") == ["RAD missing from input Meteo. Computed from PAR"]


def test_missing_rad_and_par_hints_par():
    with pytest.raises(MeteoError, match="RAD can be computed alternatively using PAR"):
        resolve_meteorology(_frame(RAD=None), _params())


def test_par_from_rad_with_floor():
    result = resolve_meteorology(_frame(RAD=[0.1, 0.15, 10.0, 12.0, 14.0]), _params())
    assert result.table["PAR"].tolist() == [0.1, 0.1, 5.0, 6.0, 7.0]
    assert _messages(result, "PAR") == ["PAR missing from input Meteo. Computed from RAD"]


def test_supplied_par_is_floored():
    result = resolve_meteorology(_frame(PAR=[0.0, -1.0, 0.05, 0.1, 4.0]), _params())
    assert result.table["PAR"].tolist() == [0.1, 0.1, 0.1, 0.1, 4.0]
    assert _messages(result, "PAR") == []


def test_tair_uses_half_diurnal_range():
    result = resolve_meteorology(_frame(Tmax=[30.0] * 5, Tmin=[20.0] * 5), _params())
    assert (result.table["Tair"] == 5.0).all()
    assert _messages(result, "Tair")


def test_vpd_from_rh():
    frame = _frame(Tair=[20.0] * 5, RH=[50.0] * 5)
    result = resolve_meteorology(frame, _params())
    expected = rh_to_vpd(0.5, 20.0) * 10.0
    assert result.table["VPD"].iloc[0] == pytest.approx(expected, abs=1e-4)


def test_missing_vpd_and_rh_hints_rh():
    with pytest.raises(MeteoError, match="using RH"):
        resolve_meteorology(_frame(RH=None), _params())


def test_vpd_without_rh_backfills_rh():
    result = resolve_meteorology(_frame(RH=None, VPD=[5.0] * 5, Tair=[20.0] * 5), _params())
    assert result.table["RH"].between(0.0, 100.0).all()
    assert _messages(result, "RH") == ["RH missing from input Meteo. Computed from VPD, Tmax and Tmin"]


def test_pressure_from_elevation():
    result = resolve_meteorology(_frame(), _params())
    assert result.table["Pressure"].between(850.0, 920.0).all()
    assert _messages(result, "Pressure") == ["Pressure missing from input Meteo. Computed from Elevation, Tair and VPD"]


def test_pressure_without_elevation_is_fatal():
    params = _params()
    del params["Elevation"]
    with pytest.raises(MeteoError, match="Pressure can be computed alternatively using Elevation"):
        resolve_meteorology(_frame(), params)


def test_supplied_pressure_skips_elevation():
    params = _params()
    result = resolve_meteorology(_frame(Pressure=[900.0] * 5), params)
    assert (result.table["Pressure"] == 900.0).all()
    assert _messages(result, "Pressure") == []


def test_missing_rain_assumes_dry_days():
    result = resolve_meteorology(_frame(Rain=None), _params())
    assert (result.table["Rain"] == 0.0).all()
    assert result.table["DaysWithoutRain"].tolist() == [0, 1, 2, 3, 4]
    assert _messages(result, "Rain")


def test_constant_wind_and_co2():
    result = resolve_meteorology(_frame(), _params())
    assert (result.table["WindSpeed"] == 3.0).all()
    assert (result.table["CO2"] == 400.0).all()


@pytest.mark.parametrize("variable", ["WindSpeed", "CO2"])
def test_missing_constant_parameter_is_fatal(variable):
    params = _params()
    del params[variable]
    with pytest.raises(MeteoError, match=f"Parameters {variable}"):
        resolve_meteorology(_frame(), params)


def test_wind_floor():
    result = resolve_meteorology(_frame(WindSpeed=[0.0, 0.005, 0.01, 1.0, 2.0]), _params())
    assert result.table["WindSpeed"].tolist() == [0.01, 0.01, 0.01, 1.0, 2.0]


def test_degree_days_from_thresholds():
    result = resolve_meteorology(_frame(Tmax=[30.0] * 5, Tmin=[20.0] * 5), _params(MinTT=10.0, MaxTT=30.0))
    assert (result.table["DegreeDays"] == 15.0).all()


def test_degree_days_default_thresholds_warn():
    params = _params()
    del params["MinTT"], params["MaxTT"]
    result = resolve_meteorology(_frame(Tmax=[30.0] * 5, Tmin=[20.0] * 5), params)
    assert (result.table["DegreeDays"] == 20.0).all()
    assert "default thresholds" in _messages(result, "DegreeDays")[0]


def test_diffuse_fraction_bounds():
    result = resolve_meteorology(_frame(), _params())
    assert result.table["FDiff"].between(0.23, 1.0).all()


def test_date_from_start_date():
    result = resolve_meteorology(_frame(Date=None), _params(Start_Date=dt.date(2005, 6, 1)))
    assert result.table["Date"].iloc[0] == pd.Timestamp("2005-06-01")
    assert result.table["DOY"].tolist() == [152, 153, 154, 155, 156]
    assert _messages(result, "Date") == ["Date missing from input Meteo. Computed from Parameters Start_Date"]


def test_date_dummy_when_no_start_date():
    params = _params()
    del params["Start_Date"]
    result = resolve_meteorology(_frame(Date=None), params)
    assert result.table["Date"].iloc[0] == pd.Timestamp("2000-01-01")
    assert result.table["year"].iloc[0] == 2000
    assert _messages(result, "Date") == ["Date missing from input Meteo. Computed from dummy 2000-01-01"]


def test_calendar_fields_overwritten():
    result = resolve_meteorology(_frame(year=[1999] * 5, DOY=[1] * 5), _params())
    assert (result.table["year"] == 2001).all()
    assert result.table["DOY"].tolist() == [60, 61, 62, 63, 64]


def test_non_utc_timezone_skips_correction_with_warning():
    result = resolve_meteorology(_frame(), _params(), timezone="America/Costa_Rica")
    messages = _messages(result, "ZEN")
    assert len(messages) == 1
    assert "America/Costa_Rica" in messages[0]


def test_utc_applies_timezone_correction_silently():
    result = resolve_meteorology(_frame(), _params(), timezone="UTC")
    assert _messages(result, "ZEN") == []
    assert result.table["ZEN"].between(0.0, np.pi / 2).all()


def test_unknown_timezone_is_fatal_before_any_step():
    collector = ListDebugCollector()
    with pytest.raises(MeteoError, match="Mars/Olympus"):
        resolve_meteorology(_frame(), _params(), timezone="Mars/Olympus", debug=collector)
    assert collector.stages() == ["meteo.error"]
    assert collector.events[0]["variable"] == "ZEN"


def test_zenith_summary_is_tagged_with_its_variable():
    collector = ListDebugCollector()
    resolve_meteorology(_frame(), _params(), debug=collector)
    summaries = [e for e in collector.events if e["stage"] == "solar_position.summary"]
    assert [e["variable"] for e in summaries] == ["ZEN"]


def test_net_radiation_prefers_supplied_rh():
    frame = _frame(VPD=[1.0] * 5)
    with_rh = resolve_meteorology(frame, _params()).table["Rn"]
    without_rh = resolve_meteorology(frame.drop(columns=["RH"]), _params()).table["Rn"]
    assert not np.allclose(with_rh, without_rh)


def test_missing_albedo_is_fatal():
    params = _params()
    del params["albedo"]
    with pytest.raises(MeteoError, match="albedo"):
        resolve_meteorology(_frame(), params)


def test_extra_columns_dropped_and_values_rounded():
    result = resolve_meteorology(_frame(Station=["A"] * 5, Rain=[1.234567] * 5), _params())
    assert "Station" not in result.table.columns
    assert (result.table["Rain"] == 1.2346).all()


def test_non_numeric_column_is_fatal():
    with pytest.raises(MeteoError, match="Rain"):
        resolve_meteorology(_frame(Rain=["a", "b", "c", "d", "e"]), _params())


def test_empty_table_is_fatal():
    with pytest.raises(MeteoError):
        resolve_meteorology(_frame().iloc[0:0], _params())


def test_debug_events_trace_every_step():
    collector = ListDebugCollector()
    resolve_meteorology(_frame(), _params(), debug=collector)
    steps = [e for e in collector.events if e["stage"] == "meteo.step"]
    assert [e["variable"] for e in steps][:3] == ["Date", "Period", "RAD"]
    actions = {e["variable"]: e["payload"]["action"] for e in steps}
    assert actions["RAD"] == "present"
    assert actions["PAR"] == "derived"
    assert actions["ZEN"] == "recomputed"
    assert collector.stages()[-1] == "meteo.done"
    assert "meteo.warning" in collector.stages()
