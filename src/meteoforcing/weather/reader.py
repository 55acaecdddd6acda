"""Reading raw daily meteorology and writing resolved tables."""
from __future__ import annotations

import io
import json
from pathlib import Path

import pandas as pd

from meteoforcing.core.models import UNITS


def _looks_inline(source: str) -> bool:
    return "\n" in source


def read_meteo(source: str | Path, date_format: str = "%Y-%m-%d") -> pd.DataFrame:
    """Read a delimited daily meteorology table.

    ``source`` is either a file path or the table itself as text. The
    separator is sniffed. A ``Date`` column, when present, is parsed with
    ``date_format``.
    """
    if isinstance(source, str) and _looks_inline(source):
        handle = io.StringIO(source)
    else:
        path = Path(source)
        if not path.exists():
            raise ValueError(f"Meteo file not found: {path}")
        handle = path

    try:
        frame = pd.read_csv(handle, sep=None, engine="python")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise ValueError(f"Could not read meteo table: {exc}") from exc

    frame.columns = [str(col).strip() for col in frame.columns]
    if "Date" in frame.columns:
        try:
            frame["Date"] = pd.to_datetime(frame["Date"], format=date_format)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Date column does not match format {date_format}: {exc}") from exc
    return frame


def write_meteo(table: pd.DataFrame, path: str | Path) -> Path:
    """Write a resolved table as CSV, or as JSON with its units when the suffix is ``.json``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    out = table.copy()
    out["Date"] = out["Date"].dt.strftime("%Y-%m-%d")
    if path.suffix.lower() == ".json":
        units = table.attrs.get("units", dict(UNITS))
        doc = {"units": units, "data": out.to_dict(orient="records")}
        path.write_text(json.dumps(doc, indent=2))
    else:
        out.to_csv(path, index=False)
    return path


__all__ = ["read_meteo", "write_meteo"]
