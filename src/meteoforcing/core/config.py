"""Configuration loader for site parameter files.

Supports YAML and JSON files. Top-level keys are the site parameters used to
fill missing meteorology; an optional ``run`` section stores CLI defaults.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

try:
    import yaml
except ModuleNotFoundError as exc:  # pragma: no cover - defensive import
    raise ImportError("PyYAML is required to load YAML configs") from exc

import pandas as pd

from .models import Period, ValidationError


class ConfigError(ValueError):
    """Raised when configuration cannot be parsed into parameters."""


PARAMETER_KEYS = (
    "Start_Date",
    "FPAR",
    "Elevation",
    "Latitude",
    "Longitude",
    "TimezoneCF",
    "WindSpeed",
    "CO2",
    "MinTT",
    "MaxTT",
    "albedo",
)
_NUMERIC_KEYS = set(PARAMETER_KEYS) - {"Start_Date"}
_RUN_KEYS = {"meteo", "period", "timezone", "output", "debug"}


def _load_raw(path: Path) -> Dict[str, Any]:
    text = path.read_text()
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text) or {}
    if path.suffix.lower() == ".json":
        return json.loads(text)
    raise ConfigError(f"Unsupported config extension: {path.suffix}")


def _read_mapping(path: str | Path) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        raw = _load_raw(path)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("Config must be a mapping of parameter names to values")
    return raw


def parse_parameters(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce known parameters to their types; unknown keys pass through."""
    params: Dict[str, Any] = {}
    for key, value in raw.items():
        if key == "run" or value is None:
            continue
        if key in _NUMERIC_KEYS:
            try:
                params[key] = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Parameter {key} must be numeric, got {value!r}") from exc
        elif key == "Start_Date":
            try:
                params[key] = pd.Timestamp(value).date()
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Parameter Start_Date is not a date: {value!r}") from exc
        else:
            params[key] = value

    lat = params.get("Latitude")
    if lat is not None and not (-90.0 <= lat <= 90.0):
        raise ConfigError("Latitude must be between -90 and 90 degrees")
    lon = params.get("Longitude")
    if lon is not None and not (-180.0 <= lon <= 180.0):
        raise ConfigError("Longitude must be between -180 and 180 degrees")
    fpar = params.get("FPAR")
    if fpar is not None and not (0.0 < fpar <= 1.0):
        raise ConfigError("FPAR must be in (0, 1]")
    albedo = params.get("albedo")
    if albedo is not None and not (0.0 <= albedo <= 1.0):
        raise ConfigError("albedo must be between 0 and 1")
    if "MinTT" in params and "MaxTT" in params and params["MinTT"] >= params["MaxTT"]:
        raise ConfigError("MinTT must be lower than MaxTT")
    return params


def load_parameters(path: str | Path) -> Dict[str, Any]:
    return parse_parameters(_read_mapping(path))


def load_run(path: str | Path) -> Dict[str, Any]:
    """Return the optional ``run`` section with the period parsed."""
    raw = _read_mapping(path).get("run") or {}
    if not isinstance(raw, dict):
        raise ConfigError("run section must be a mapping")
    unknown = set(raw) - _RUN_KEYS
    if unknown:
        raise ConfigError(f"Unknown run fields: {sorted(unknown)}")
    run = dict(raw)
    if run.get("period") is not None:
        try:
            run["period"] = Period.from_bounds(run["period"])
        except (TypeError, ValidationError) as exc:
            raise ConfigError(f"Invalid period: {exc}") from exc
    return run


__all__ = [
    "ConfigError",
    "PARAMETER_KEYS",
    "parse_parameters",
    "load_parameters",
    "load_run",
]
