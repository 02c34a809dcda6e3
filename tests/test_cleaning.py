# tests/test_cleaning.py
import math
import pandas as pd
import pytest

from phabmet.data_process.cleaning import as_character, cast_kinds, is_kind, normalize_columns
from phabmet.data_process.validators import (
    ArgumentCollector, ArgumentSchema, ColumnRule, StandardizationFailure, ValidationWarning,
    observation_schema, standardize_argument,
)


def test_normalize_columns_lower_trim():
    df = pd.DataFrame({" SITE ": [1], "Station": ["A"], "VALUE": ["2"]})
    out = normalize_columns(df)
    assert list(out.columns) == ["site", "station", "value"]


def test_is_kind_integral_float_counts_as_integer():
    assert is_kind(3.0, "integer")
    assert not is_kind(3.5, "integer")
    assert is_kind(3.5, "double")
    assert not is_kind(True, "double")
    assert is_kind("x", "character")
    assert is_kind(1, "logical")


def test_as_character_blank_is_null_and_codes_lose_decimal():
    assert as_character("  ") is None
    assert as_character(" C ") == "C"
    assert as_character(2.0) == "2"
    assert as_character(float("nan")) is None


def test_cast_kinds_ids_and_codes():
    df = pd.DataFrame({"site": [1.0, 2.0], "value": [0.0, None]})
    out = cast_kinds(df, {"site": ("integer", "character"), "value": ("character",)})
    assert list(out["site"]) == [1, 2]
    assert out["value"].tolist() == ["0", None]


def test_standardize_absent_and_empty_tables_are_no_data():
    schema = observation_schema(legal=("0", "1"))
    assert standardize_argument(None, schema, "x") is None
    assert standardize_argument(pd.DataFrame({"site": [], "station": [], "value": []}), schema, "x") is None


def test_standardize_adds_class_and_drops_extra_columns():
    df = pd.DataFrame({"SITE": [1, 1], "STATION": ["A", "B"], "VALUE": ["1", ""], "NOTE": ["a", "b"]})
    out = standardize_argument(df, observation_schema(legal=("0", "1")), "sand", class_name="SAND")
    assert list(out.columns) == ["site", "station", "value", "class"]
    assert out["value"].tolist() == ["1", None]
    assert set(out["class"]) == {"SAND"}


def test_standardize_reports_illegal_values():
    df = pd.DataFrame({"site": [1, 1], "station": ["A", "B"], "value": ["1", "7"]})
    out = standardize_argument(df, observation_schema(legal=("0", "1")), "sand")
    assert isinstance(out, StandardizationFailure)
    assert "sand" in str(out)
    assert "7" in str(out)


def test_standardize_reports_missing_columns():
    df = pd.DataFrame({"site": [1], "value": ["1"]})
    out = standardize_argument(df, observation_schema(legal=("0", "1")), "sand")
    assert isinstance(out, StandardizationFailure)
    assert "station" in str(out)


def test_numeric_values_coerced_and_range_checked():
    schema = observation_schema(numeric=True, limits=(0, 5), with_station=False)
    ok = standardize_argument(pd.DataFrame({"site": [1, 1], "value": ["2.5", "abc"]}), schema, "depth")
    assert ok["value"].iloc[0] == 2.5
    assert math.isnan(ok["value"].iloc[1])

    bad = standardize_argument(pd.DataFrame({"site": [1], "value": [9.0]}), schema, "depth")
    assert isinstance(bad, StandardizationFailure)


def test_pattern_rule():
    schema = ArgumentSchema({"site": ColumnRule(("integer", "character")),
                             "value": ColumnRule(("character",), pattern=r"^(BLACK|OTHER.*)$")})
    good = standardize_argument(pd.DataFrame({"site": [1, 2], "value": ["BLACK", "OTHER (tan)"]}), schema, "color")
    assert isinstance(good, pd.DataFrame)
    bad = standardize_argument(pd.DataFrame({"site": [1], "value": ["PURPLE"]}), schema, "color")
    assert isinstance(bad, StandardizationFailure)


def test_collector_concatenates_failures():
    collector = ArgumentCollector()
    schema = observation_schema(legal=("0", "1"))
    bad = pd.DataFrame({"site": [1], "station": ["A"], "value": ["9"]})
    collector.standardize(bad, schema, "first")
    collector.standardize(bad, schema, "second")
    assert not collector.ok
    msg = collector.error_message()
    assert "first" in msg and "second" in msg


def test_collector_unit_test_mode_warns_and_skips():
    collector = ArgumentCollector(is_unit_test=True)
    bad = pd.DataFrame({"site": [1], "station": ["A"], "value": ["9"]})
    with pytest.warns(ValidationWarning):
        out = collector.standardize(bad, observation_schema(legal=("0", "1")), "sand")
    assert out is None
    assert collector.ok


def test_collector_saves_arguments(tmp_path):
    collector = ArgumentCollector(arg_save_path=tmp_path)
    df = pd.DataFrame({"site": [1, "X"], "station": ["A", "B"], "value": ["1", "0"]})
    collector.standardize(df, observation_schema(legal=("0", "1")), "sand")
    assert (tmp_path / "sand.parquet").exists()
