import math

import pytest

from phabmet.habitat_metrics import class_weights as cw


def test_build_cover_table_defaults():
    t = cw.build_weight_table("cover")
    assert list(t.columns) == ["value", "weights", "presence"]
    assert dict(zip(t["value"], t["weights"]))["2"] == 0.25
    assert not dict(zip(t["value"], t["presence"]))["0"]


def test_build_proximity_table_with_override():
    t = cw.build_weight_table("proximity", weights={"P": 0.25})
    assert list(t.columns) == ["value", "weights", "presence", "in_stream"]
    row = t.set_index("value").loc["P"]
    assert row["weights"] == 0.25
    assert bool(row["presence"]) and not bool(row["in_stream"])
    assert t.set_index("value").loc["C", "in_stream"]


def test_get_class_weight_precedence():
    assert cw.get_class_weight("C", kind="proximity") == 1.0
    assert cw.get_class_weight("C", kind="proximity", weights={"C": 0.9}) == 0.9
    assert math.isnan(cw.get_class_weight("Z", kind="cover"))
    with pytest.raises(ValueError):
        cw.get_class_weight("0", kind="unknown")


def test_configure_cover_weights_updates_and_restores():
    saved = dict(cw.COVER_WEIGHTS)
    try:
        cw.configure_cover_weights({"1": 0.1})
        assert cw.get_class_weight("1") == 0.1
        assert cw.get_class_weight("2") == 0.25
    finally:
        cw.configure_cover_weights(saved, replace=True)
    assert cw.get_class_weight("1") == 0.05


def test_substrate_sizes_geometric_mean():
    t = cw.substrate_class_table().set_index("name")
    assert t.loc["SAND", "characteristic_diameter"] == pytest.approx(math.sqrt(0.06 * 2))
    assert bool(t.loc["BEDROCK", "in_population_estimate"])
    assert not bool(t.loc["WOOD", "in_population_estimate"])


def test_channel_unit_groups():
    t = cw.channel_unit_table().set_index("value")
    assert bool(t.loc["RI", "is_fast"])
    assert bool(t.loc["PL", "is_pool"]) and bool(t.loc["PL", "is_slow"])
    assert not t.loc["DR", ["is_fast", "is_slow", "is_pool"]].any()


def test_configure_proximity_weights_updates_and_restores():
    saved = dict(cw.PROXIMITY_WEIGHTS)
    try:
        cw.configure_proximity_weights({"P": 0.4})
        assert cw.get_class_weight("P", kind="proximity") == 0.4
        assert cw.build_weight_table("proximity").set_index("value").loc["P", "weights"] == 0.4
        cw.configure_proximity_weights({"0": 0.0, "C": 0.9}, replace=True)
        assert math.isnan(cw.get_class_weight("P", kind="proximity"))
    finally:
        cw.configure_proximity_weights(saved, replace=True)
    assert cw.get_class_weight("P", kind="proximity") == 0.5
