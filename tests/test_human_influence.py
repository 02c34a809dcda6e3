import pandas as pd
import pytest

from phabmet.habitat_metrics.drawdown import SYNTHETIC_REQUIRES_HORIZ_DIST
from phabmet.habitat_metrics.human_influence import human_influence


def _obs(values, site=1):
    return pd.DataFrame({"site": [site] * len(values),
                         "station": [f"S{i}" for i in range(len(values))],
                         "value": values})


def _get(mets, metric, site=1):
    hit = mets[(mets["site"] == site) & (mets["metric"] == metric)]
    assert len(hit) == 1, metric
    return hit["value"].iloc[0]


def test_riparian_only_2007_metrics():
    mets = human_influence(buildings=_obs(["C", "P", "0"]), crops=_obs(["0", "0", "P"]),
                           data_2007=True)
    assert _get(mets, "HIPWBUILDINGS") == pytest.approx(0.5)
    assert _get(mets, "HINBUILDINGS") == 3
    assert _get(mets, "HIPWCROPS") == pytest.approx(0.5 / 3)
    assert _get(mets, "HIIAG") == pytest.approx(0.5 / 3)
    assert _get(mets, "HIINONAG") == pytest.approx(0.5)
    assert _get(mets, "HIIALL") == pytest.approx(0.5 + 0.5 / 3)
    assert _get(mets, "HIIALLCIRCA") == pytest.approx(1 / 3)
    assert _get(mets, "HIFPANY") == pytest.approx(1.0)
    assert _get(mets, "HIFPANYCIRCA") == pytest.approx(1 / 3)
    assert _get(mets, "HIPWAG") == pytest.approx(0.5 / 3)
    assert _get(mets, "HINAG") == 3
    assert _get(mets, "HINALL") == 6
    assert not any(m.endswith(("_RIP", "_DD", "_SYN")) for m in mets["metric"])


def test_drawdown_filled_from_riparian_value():
    mets = human_influence(
        buildings=_obs(["C"]),
        drawdown=_obs(["Y"]),
        horizontal_distance_dd=_obs(["1.0"]),
    )
    assert _get(mets, "HIPWBUILDINGS_RIP") == 1.0
    assert _get(mets, "HIPWBUILDINGS_DD") == 1.0
    assert _get(mets, "HIPWBUILDINGS_SYN") == pytest.approx(1.0)
    assert _get(mets, "HIFPANYCIRCA_SYN") == pytest.approx(1.0)


def test_no_drawdown_station_filled_with_absent():
    buildings_dd = pd.DataFrame({"site": [1], "station": ["S1"], "value": ["C"]})
    horiz = pd.DataFrame({"site": [1], "station": ["S1"], "value": ["5"]})
    mets = human_influence(buildings=_obs(["P", "P"]), buildings_dd=buildings_dd,
                           drawdown=_obs(["N", "Y"]), horizontal_distance_dd=horiz)
    # S0 reported no drawdown, so its drawdown value and distance default to 0
    assert _get(mets, "HIPWBUILDINGS_DD") == pytest.approx(0.5)
    assert _get(mets, "HINBUILDINGS_DD") == 2
    assert _get(mets, "HIPWBUILDINGS_SYN") == pytest.approx((0.5 + (2 / 3 * 0.5 + 1 / 3 * 1.0)) / 2)


def test_counts_filled_with_zero_on_dense_grid():
    mets = human_influence(buildings=_obs(["C"], site=1), roads_dd=_obs(["P"], site=2),
                           drawdown=pd.concat([_obs(["Y"], site=1), _obs(["Y"], site=2)]),
                           horizontal_distance_dd=pd.concat([_obs(["20"], site=1), _obs(["20"], site=2)]),
                           fillin_dd_max_drawdown_dist=None)
    assert _get(mets, "HINROADS_RIP", site=1) == 0
    assert _get(mets, "HINBUILDINGS_DD", site=2) == 0
    assert pd.isna(_get(mets, "HIPWROADS_RIP", site=1))


def test_synthetic_without_distance_is_error():
    out = human_influence(buildings=_obs(["C"]), drawdown=_obs(["Y"]))
    assert out == SYNTHETIC_REQUIRES_HORIZ_DIST


def test_invalid_proximity_code():
    out = human_influence(buildings=_obs(["X"]), data_2007=True)
    assert isinstance(out, str)
    assert "HI_BUILDINGS" in out


def test_custom_proximity_weights():
    weights = pd.DataFrame({"value": ["0", "P", "C"], "weights": [0.0, 0.25, 1.0],
                            "presence": [False, True, True], "in_stream": [False, False, True]})
    mets = human_influence(buildings=_obs(["P", "P"]), data_2007=True, proximity_weights=weights)
    assert _get(mets, "HIPWBUILDINGS") == pytest.approx(0.25)


def test_no_tables_is_empty():
    assert human_influence().empty
