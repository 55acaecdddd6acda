import pandas as pd

from meteoforcing.engine.presence import is_missing_column, is_missing_key


def test_column_presence():
    df = pd.DataFrame({"A": range(1, 11)})
    assert is_missing_column(df, "A") is False
    assert is_missing_column(df, "B") is True


def test_key_presence_never_raises():
    params = {"Stocking_Coffee": 5580}
    assert is_missing_key(params, "Stocking_Coffee") is False
    assert is_missing_key(params, "B") is True


def test_present_key_is_not_missing_whatever_its_value():
    assert is_missing_key({"Elevation": None}, "Elevation") is False
