"""Presence checks for meteorology columns and parameter keys."""
from __future__ import annotations

from typing import Any, Mapping

import pandas as pd


def is_missing_column(frame: pd.DataFrame, column: str) -> bool:
    """True when ``column`` is not a column of ``frame``."""
    return column not in frame.columns


def is_missing_key(data: Mapping[str, Any], key: str) -> bool:
    """True when ``key`` is absent from the parameter mapping, whatever the value of a present key."""
    return key not in data


__all__ = ["is_missing_column", "is_missing_key"]
