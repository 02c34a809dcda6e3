import pandas as pd
import pytest

from phabmet.habitat_metrics.littoral_depth import littoral_depth
from phabmet.pipeline import compute_metrics, load_tables


def _obs(values, site=1):
    return pd.DataFrame({"site": [site] * len(values),
                         "station": [f"S{i}" for i in range(len(values))],
                         "value": values})


def test_family_scoped_tables():
    tables = {"depth": pd.DataFrame({"site": [1, 1], "value": [1.0, 2.0]}),
              "bottom_substrate.sand": _obs(["2"])}
    mets, errors = compute_metrics(tables, families=["littoral_depth", "bottom_substrate",
                                                     "shoreline_substrate"])
    names = set(mets["metric"])
    assert {"xlit", "BSFCSAND"} <= names
    assert "SSFCSAND" not in names
    assert errors == {}


def test_errors_collected_per_family():
    tables = {"depth": pd.DataFrame({"site": [1], "value": [9.0]}), "sand": _obs(["2"])}
    mets, errors = compute_metrics(tables, families=["littoral_depth", "bottom_substrate"])
    assert set(errors) == {"littoral_depth"}
    assert "littoralDepth" in errors["littoral_depth"]
    assert "BSFCSAND" in set(mets["metric"])


def test_options_reach_families():
    tables = {"boulders": _obs(["1"])}
    mets, errors = compute_metrics(tables, families=["fish_cover"], data_2007=True)
    assert "FCFPBOULDERS" in set(mets["metric"])
    _, errors = compute_metrics(tables, families=["fish_cover"])
    assert "fish_cover" in errors


def test_unknown_family():
    with pytest.raises(KeyError):
        compute_metrics({}, families=["macroinvertebrates"])


def test_no_tables():
    mets, errors = compute_metrics({})
    assert mets.empty and errors == {}


def test_load_saved_tables(tmp_path):
    littoral_depth(pd.DataFrame({"site": [1], "value": [1.5]}), arg_save_path=tmp_path)
    tables = load_tables({"depth": "littoralDepth", "sand": "SAND"}, tmp_path)
    assert list(tables) == ["depth"]
    mets, _ = compute_metrics(tables, families=["littoral_depth"])
    assert mets.loc[mets["metric"] == "xlit", "value"].iloc[0] == 1.5
