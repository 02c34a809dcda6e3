import math

import numpy as np
import pandas as pd
import pytest

from phabmet.data_process.transform import (
    aggregate_metric, count_valid, dense_counts, iqr_type2, median, modal_classes, mode_metric,
    normalized_cover, population_estimates, protected_mean, protected_sum, quantile_type2, sample_sd,
    weighted_log_diameter,
)


def test_protected_reducers_all_null_is_nan_not_zero():
    assert math.isnan(protected_sum([None, np.nan]))
    assert math.isnan(protected_mean([None, np.nan]))
    assert protected_sum([1, None, 2]) == 3
    assert protected_mean([1, None, 2]) == 1.5


def test_protected_sum_is_order_independent():
    values = [0.1] * 10 + [1e16, -1e16]
    assert protected_sum(values) == protected_sum(list(reversed(values)))


def test_sample_sd_and_counts():
    assert math.isnan(sample_sd([3.0]))
    assert sample_sd([1, 2, 3, None]) == pytest.approx(1.0)
    assert count_valid(["a", None, "b", np.nan]) == 2
    assert protected_mean([True, False, None]) == 0.5


def test_quantile_type2_averages_at_discontinuities():
    x = [1, 2, 3, 4]
    assert quantile_type2(x, 0.5) == 2.5
    assert quantile_type2(x, 0.25) == 1.5
    assert quantile_type2(x, 0.3) == 2
    assert median([5, 1, 3]) == 3
    assert iqr_type2(x) == pytest.approx(2.0)
    assert math.isnan(quantile_type2([None], 0.5))


def test_normalized_cover_leaves_small_totals_alone():
    df = pd.DataFrame({"site": [1, 1, 1, 1], "station": ["A", "A", "B", "B"],
                       "cover": [0.25, 0.5, 0.875, 0.575]})
    out = normalized_cover(df)
    a = out[out["station"] == "A"]["norm_cover"].tolist()
    b = out[out["station"] == "B"]["norm_cover"].tolist()
    assert a == [0.25, 0.5]
    assert sum(b) == pytest.approx(1.0)
    assert b[0] / b[1] == pytest.approx(0.875 / 0.575)


def test_normalized_cover_keeps_nulls():
    df = pd.DataFrame({"site": [1, 1], "station": ["A", "A"], "cover": [np.nan, 0.25]})
    out = normalized_cover(df)
    assert math.isnan(out["norm_cover"].iloc[0])
    assert out["norm_cover"].iloc[1] == 0.25


def test_aggregate_metric_names():
    df = pd.DataFrame({"site": [1, 1, 2], "class": ["SAND", "SAND", "SILT"], "x": [1.0, 3.0, None]})
    out = aggregate_metric(df, "x", protected_mean, "BSFC")
    assert out["metric"].tolist() == ["BSFCSAND", "BSFCSILT"]
    assert out["value"].iloc[0] == 2.0
    assert math.isnan(out["value"].iloc[1])

    by_site = aggregate_metric(df, "x", protected_mean, "BSX", by=["site"], suffix="_RIP")
    assert by_site["metric"].tolist() == ["BSX_RIP", "BSX_RIP"]


def test_dense_counts_fill_zero():
    df = pd.DataFrame({"site": [1, 1, 2], "class": ["SAND", "SILT", "SAND"], "x": [0.25, None, 0.5]})
    out = dense_counts(df, "x", "BSN")
    counts = {(r.site, r.metric): r.value for r in out.itertuples()}
    assert counts == {(1, "BSNSAND"): 1, (1, "BSNSILT"): 0, (2, "BSNSAND"): 1, (2, "BSNSILT"): 0}
    assert all(isinstance(v, (int, np.integer)) for v in counts.values())


def test_modal_classes_tie_in_canonical_order():
    assert modal_classes({"A": 0.5, "B": 0.5, "C": 0.0}, ["A", "B", "C"]) == "A, B"
    assert modal_classes({"B": 0.5, "A": 0.5}, ["A", "B"]) == "A, B"
    assert modal_classes({"A": 0.0, "B": None}, ["A", "B"]) is None


def test_mode_metric_relabels():
    fracs = pd.DataFrame({"site": [1, 1], "class": ["SAND", "SILT"], "value": [0.2, 0.6]})
    out = mode_metric(fracs, "BSOPCLASS", ["SAND", "SILT"], {"SAND": "Sand", "SILT": "Silt"})
    assert out["value"].tolist() == ["Silt"]


def test_weighted_log_diameter_uses_positive_covers():
    covers = pd.DataFrame({"site": [1, 1, 1], "class": ["SAND", "GRAVEL", "ORGANIC"],
                           "value": [0.5, 0.0, 0.25]})
    diam = pd.Series({"SAND": 1.0, "GRAVEL": 10.0, "ORGANIC": np.nan})
    out = weighted_log_diameter(covers, diam)
    assert out["value"].tolist() == [0.0]

    diam["SAND"] = 100.0
    assert weighted_log_diameter(covers, diam)["value"].iloc[0] == pytest.approx(1.0)


def test_population_estimates_use_mineral_classes_only():
    data = pd.DataFrame({
        "site": [1, 1, 1, 1],
        "station": ["A", "A", "B", "B"],
        "class": ["SAND", "WOOD", "SAND", "GRAVEL"],
        "cover": [0.25, 0.875, 0.875, 0.875],
        "diam": [1.0, np.nan, 1.0, 100.0],
        "in_population_estimate": [True, False, True, True],
    })
    est = population_estimates(data).set_index("metric")["value"]
    # station A: log10(1) = 0; station B rescales to 0.5 + 0.5 and gives 0.5 * 2
    assert est["XLDIA"] == pytest.approx(0.5)
    assert est["VLDIA"] == pytest.approx(math.sqrt(0.5))
    assert est["50LDIA"] == pytest.approx(0.5)
    assert est["16LDIA"] == 0
    assert est["84LDIA"] == pytest.approx(1.0)
