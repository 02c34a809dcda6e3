import pandas as pd
import pytest

from phabmet.habitat_metrics.drawdown import SYNTHETIC_REQUIRES_HORIZ_DIST
from phabmet.habitat_metrics.fish_cover import fish_cover


def _obs(values, site=1):
    return pd.DataFrame({"site": [site] * len(values),
                         "station": [f"S{i}" for i in range(len(values))],
                         "value": values})


def _get(mets, metric, site=1):
    hit = mets[(mets["site"] == site) & (mets["metric"] == metric)]
    assert len(hit) == 1, metric
    return hit["value"].iloc[0]


def test_single_zone_cover_metrics_and_indices():
    mets = fish_cover(boulders=_obs(["1", "2"]), brush=_obs(["0", None]), data_2007=True)
    assert _get(mets, "FCFPBOULDERS") == 1.0
    assert _get(mets, "FCFCBOULDERS") == pytest.approx(0.15)
    assert _get(mets, "FCNBOULDERS") == 2
    assert _get(mets, "FCFPBRUSH") == 0
    assert _get(mets, "FCNBRUSH") == 1
    assert _get(mets, "FCIALL") == pytest.approx(0.15)
    assert _get(mets, "FCIBIG") == pytest.approx(0.15)
    assert _get(mets, "FCIRIPVEG") == 0
    assert not any(m.endswith("_RIP") for m in mets["metric"])


def test_sample_sd_of_cover():
    mets = fish_cover(snags=_obs(["0", "4"]), data_2007=True)
    assert _get(mets, "FCVSNAGS") == pytest.approx(0.875 / 2 ** 0.5)
    assert pd.isna(_get(fish_cover(snags=_obs(["4"]), data_2007=True), "FCVSNAGS"))


def test_synthetic_covers_need_distances():
    assert fish_cover(boulders=_obs(["1"])) == SYNTHETIC_REQUIRES_HORIZ_DIST


def test_zones_without_synthetic():
    mets = fish_cover(boulders=_obs(["4"]), boulders_dd=_obs(["2"]),
                      create_synthetic_covers=False)
    assert _get(mets, "FCFCBOULDERS_RIP") == 0.875
    assert _get(mets, "FCFCBOULDERS_DD") == 0.25
    assert not any(m.endswith("_SYN") for m in mets["metric"])


def test_synthetic_cover_blend():
    mets = fish_cover(boulders=_obs(["4"]), boulders_dd=_obs(["2"]),
                      drawdown=_obs(["Y"]), horizontal_distance_dd=_obs(["7.5"]))
    assert _get(mets, "FCFCBOULDERS_SYN") == pytest.approx(0.5 * 0.875 + 0.5 * 0.25)
    assert _get(mets, "FCIBIG_SYN") == pytest.approx(0.5625)


def test_illegal_cover_class():
    out = fish_cover(snags=_obs(["7"]), data_2007=True)
    assert isinstance(out, str) and "FC_SNAGS" in out


def test_no_data():
    assert fish_cover().empty


def test_all_null_class_counted_as_zero():
    mets = fish_cover(aquatic=_obs(["1", "2"]), snags=_obs([None, None]), data_2007=True)
    assert _get(mets, "FCNAQUATIC") == 2
    assert _get(mets, "FCNSNAGS") == 0
    assert "FCFCSNAGS" not in set(mets["metric"])


def test_zero_counts_for_sites_missing_a_class():
    mets = fish_cover(snags=pd.concat([_obs(["1"], site=1), _obs([None], site=2)]),
                      brush=_obs(["2"], site=2), data_2007=True)
    assert _get(mets, "FCNBRUSH", site=1) == 0
    assert _get(mets, "FCNSNAGS", site=2) == 0
