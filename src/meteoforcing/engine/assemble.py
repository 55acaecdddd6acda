"""Final projection of resolved meteorology onto the canonical variables."""
from __future__ import annotations

import pandas as pd

from meteoforcing.core.debug import DebugCollector, NullDebugCollector
from meteoforcing.core.models import IDENTIFIERS, UNITS, VARNAMES


def assemble_table(frame: pd.DataFrame, debug: DebugCollector | None = None) -> pd.DataFrame:
    """Keep only the canonical variables, round values and attach units.

    Extra input columns are dropped. Every column except ``year``, ``DOY``
    and ``Date`` is rounded to 4 decimals. Units are stored in
    ``table.attrs["units"]``.
    """
    debug = debug or NullDebugCollector()

    missing = [col for col in VARNAMES if col not in frame.columns]
    if missing:
        raise ValueError(f"Cannot assemble meteo table, unresolved columns: {missing}")

    table = frame.loc[:, list(VARNAMES)].copy()
    values = [col for col in VARNAMES if col not in IDENTIFIERS]
    table[values] = table[values].round(4)
    table.attrs["units"] = dict(UNITS)

    debug.emit(
        "meteo.done",
        {
            "rows": len(table),
            "columns": list(table.columns),
            "first_date": table["Date"].iloc[0] if len(table) else None,
            "last_date": table["Date"].iloc[-1] if len(table) else None,
        },
        ts=table["Date"].iloc[0] if len(table) else None,
    )
    return table


__all__ = ["assemble_table"]
