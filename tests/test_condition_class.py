import pandas as pd
import pytest

from phabmet.condition_assessment import (
    NOT_ASSESSED, assign_oe_condition, assign_threshold_condition, lookup_expected,
)


def test_oe_condition_classes():
    df = pd.DataFrame({"site": [1, 2, 3, 4, 5, 6],
                       "OBSERVED": [4, 5, 7.5, 9, 5, None],
                       "EXPECTED": [10, 10, 10, 10, 0, 10]})
    out = assign_oe_condition(df)
    assert out["CONDITION"].tolist() == ["Poor", "Fair", "Good", "Good", NOT_ASSESSED, NOT_ASSESSED]
    assert out["OE"].iloc[0] == pytest.approx(0.4)
    assert pd.isna(out["OE"].iloc[4])
    assert list(out["CONDITION"].cat.categories) == ["Poor", "Fair", "Good", NOT_ASSESSED]
    assert out["CONDITION"].cat.ordered


def test_oe_condition_custom_columns_and_labels():
    df = pd.DataFrame({"lake": ["A", "B"], "obs": [1, 3], "exp": [2, 2]})
    out = assign_oe_condition(df, site="lake", observed="obs", expected="exp",
                              thresholds=(1.0,), labels=("Low", "High"))
    assert out["lake"].tolist() == ["A", "B"]
    assert out["CONDITION"].tolist() == ["Low", "High"]


def test_oe_condition_bad_arguments():
    df = pd.DataFrame({"site": [1], "OBSERVED": [1.0]})
    assert "EXPECTED" in assign_oe_condition(df)
    df["EXPECTED"] = 1.0
    assert isinstance(assign_oe_condition(df, thresholds=(0.75, 0.5)), str)
    assert isinstance(assign_oe_condition(df, labels=("Poor", "Good")), str)


def test_threshold_condition_by_group():
    df = pd.DataFrame({"site": [1, 2, 3, 4, 5],
                       "eco": ["A", "A", "B", "C", "B"],
                       "xlit": [25, 10, 4, 30, None]})
    out = assign_threshold_condition(df, metric="xlit", group="eco",
                                     thresholds={"A": (10, 20), "B": (5, 15)})
    assert out["CONDITION"].tolist() == ["Good", "Fair", "Poor", NOT_ASSESSED, NOT_ASSESSED]
    assert list(out.columns) == ["site", "xlit", "eco", "CONDITION"]


def test_threshold_condition_without_group():
    df = pd.DataFrame({"site": [1, 2], "value": [0.1, 0.9]})
    out = assign_threshold_condition(df, thresholds=(0.5,), labels=("Fair", "Good"))
    assert out["CONDITION"].tolist() == ["Fair", "Good"]
    assert "missing" in assign_threshold_condition(df, metric="xlit", thresholds=(0.5,)).lower()


def test_lookup_expected():
    df = pd.DataFrame({"site": [1, 2, 3], "eco": ["A", "B", "Z"], "EXPECTED": [0, 0, 0]})
    ref = pd.DataFrame({"eco": ["A", "B"], "EXPECTED": [10.0, 20.0]})
    out = lookup_expected(df, ref, ["eco"])
    assert out["EXPECTED"].tolist()[:2] == [10.0, 20.0]
    assert pd.isna(out["EXPECTED"].iloc[2])
    with pytest.raises(KeyError):
        lookup_expected(df, ref, ["origin"])
    with pytest.raises(ValueError):
        lookup_expected(df, pd.concat([ref, ref]), ["eco"])
