import pandas as pd
import pytest

from phabmet.habitat_metrics.channel_habitat import channel_habitat


def _obs(values, site=1):
    return pd.DataFrame({"site": [site] * len(values),
                         "station": [f"S{i}" for i in range(len(values))],
                         "value": values})


def _get(mets, metric, site=1):
    hit = mets[(mets["site"] == site) & (mets["metric"] == metric)]
    assert len(hit) == 1, metric
    return hit["value"].iloc[0]


def test_unit_percentages_and_groups():
    mets = channel_habitat(wadeable=_obs(["RI", "RI", "PL", None]), boatable=_obs(["GL"], site=2))
    assert _get(mets, "n_ch") == 3
    assert _get(mets, "pct_ri") == pytest.approx(200 / 3)
    assert _get(mets, "pct_pl") == pytest.approx(100 / 3)
    assert _get(mets, "pct_gl") == 0
    assert _get(mets, "pct_fast") == pytest.approx(200 / 3)
    assert _get(mets, "pct_slow") == pytest.approx(100 / 3)
    assert _get(mets, "pct_pool") == pytest.approx(100 / 3)
    assert _get(mets, "pct_gl", site=2) == 100
    assert _get(mets, "pct_pool", site=2) == 0


def test_custom_unit_lookup():
    units = pd.DataFrame({"value": ["A", "B"], "is_fast": [True, False],
                          "is_slow": [False, True], "is_pool": [False, False]})
    mets = channel_habitat(wadeable=_obs(["A", "B", "B", "B"]), channel_units=units)
    assert _get(mets, "pct_a") == 25
    assert _get(mets, "pct_slow") == 75
    assert "pct_ri" not in set(mets["metric"])


def test_unknown_unit_code():
    out = channel_habitat(wadeable=_obs(["ZZ"]))
    assert isinstance(out, str) and "wadeable" in out


def test_all_missing_gives_count_only():
    mets = channel_habitat(wadeable=_obs([None, None]))
    assert mets["metric"].tolist() == ["n_ch"]
    assert _get(mets, "n_ch") == 0
