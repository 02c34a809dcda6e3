import pandas as pd
import pytest

from phabmet.habitat_metrics.invasive_species import RESERVED_NAME, invasive_species


def _site(values, site=1):
    return pd.DataFrame({"SITE": [site] * len(values), "VALUE": values})


def _get(mets, metric, site=1):
    hit = mets[(mets["site"] == site) & (mets["metric"] == metric)]
    assert len(hit) == 1, metric
    return hit["value"].iloc[0]


def test_fractions_and_score():
    mets = invasive_species({"hydrilla": _site(["X", "N", "", None]),
                             "zebra_mussel": _site(["Y", "Y", "N"])})
    # blank means looked for and not seen; null is missing
    assert _get(mets, "f_hydrilla") == pytest.approx(1 / 3)
    assert _get(mets, "f_zebra_mussel") == pytest.approx(2 / 3)
    assert _get(mets, "ip_score") == pytest.approx(1.0)


def test_site_only_in_none_table_scores_zero():
    mets = invasive_species({"hydrilla": _site(["X"])}, none=_site(["X", "X"], site=2))
    assert _get(mets, "f_none", site=2) == 1.0
    assert _get(mets, "ip_score", site=2) == 0.0
    assert _get(mets, "ip_score", site=1) == 1.0

    only_none = invasive_species(none=_site(["X"], site=3))
    assert _get(only_none, "ip_score", site=3) == 0.0


def test_reserved_taxon_name():
    assert invasive_species({"None": _site(["X"])}) == RESERVED_NAME


def test_illegal_presence_code():
    out = invasive_species({"hydrilla": _site(["maybe"])})
    assert isinstance(out, str) and "hydrilla" in out


def test_no_tables():
    assert invasive_species().empty
