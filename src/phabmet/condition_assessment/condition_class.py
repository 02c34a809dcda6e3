"""
Condition class assignment.

Site metrics (one row per site visit, e.g. from `metrics_to_wide`) are
compared with site specific expected values or with fixed cut points and
mapped to an ordered condition class. A site whose required inputs are
missing is classed 'Not Assessed' rather than dropped.
"""
from __future__ import annotations
import logging
from typing import Mapping, Optional, Sequence, Union
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

NOT_ASSESSED = "Not Assessed"
DEFAULT_LABELS = ("Poor", "Fair", "Good")

OBSERVED = "OBSERVED"
EXPECTED = "EXPECTED"
OE = "OE"
CONDITION = "CONDITION"


def lookup_expected(df: pd.DataFrame, reference: pd.DataFrame, keys: Sequence[str],
                    expected_col: str = EXPECTED) -> pd.DataFrame:
    """
    Attach expected values from a reference table keyed by e.g. ecoregion,
    lake origin and protocol. Rows without a matching key get a null
    expected value.

    Raises:
        KeyError: if a key column or `expected_col` is missing
    """
    keys = list(keys)
    missing = [k for k in keys if k not in df.columns] + \
              [k for k in keys + [expected_col] if k not in reference.columns]
    if missing:
        raise KeyError(f"Missing columns for expected value lookup: {missing}")
    ref = reference[keys + [expected_col]]
    if ref.duplicated(subset=keys).any():
        raise ValueError(f"Reference table has duplicate keys {keys}")
    out = df.drop(columns=[expected_col], errors="ignore")
    return out.merge(ref, on=keys, how="left", sort=False)


def _condition_classes(values: pd.Series, thresholds: Sequence[float],
                       labels: Sequence[str]) -> pd.Series:
    """Bin values by ascending cut points; a value equal to a cut point falls in the upper class."""
    x = pd.to_numeric(values, errors="coerce").astype(float).to_numpy()
    bins = np.digitize(x, np.asarray(thresholds, dtype=float), right=False)
    classes = [NOT_ASSESSED if np.isnan(v) else labels[b] for v, b in zip(x, bins)]
    return pd.Categorical(classes, categories=list(labels) + [NOT_ASSESSED], ordered=True)


def _check_cuts(thresholds: Sequence[float], labels: Sequence[str]) -> Optional[str]:
    cuts = list(thresholds)
    if len(labels) != len(cuts) + 1:
        return f"Expected {len(cuts) + 1} condition labels for {len(cuts)} thresholds, got {len(labels)}"
    if any(b <= a for a, b in zip(cuts, cuts[1:])):
        return f"Thresholds must be strictly increasing: {cuts}"
    return None


def assign_oe_condition(
    df: pd.DataFrame,
    site: str = "site",
    observed: str = OBSERVED,
    expected: str = EXPECTED,
    thresholds: Sequence[float] = (0.5, 0.75),
    labels: Sequence[str] = DEFAULT_LABELS,
) -> Union[pd.DataFrame, str]:
    """
    Condition from the ratio of observed to expected values.

    Args:
        df: Wide table with one row per site visit
        site, observed, expected: Names of the site id, observed and
            expected value columns
        thresholds: Ascending O/E cut points between classes
        labels: Class names from the lowest O/E class up; they also give the
            order of the resulting categorical, with 'Not Assessed' last

    Returns:
        Table with the site column and OBSERVED, EXPECTED, OE and CONDITION,
        or an error message. OE is null, and the site 'Not Assessed', when
        either value is missing or the expected value is not positive.
    """
    missing = [c for c in (site, observed, expected) if c not in df.columns]
    if missing:
        msg = f"Missing required columns: {missing}"
        logger.warning(msg)
        return msg
    bad = _check_cuts(thresholds, labels)
    if bad:
        return bad

    obs = pd.to_numeric(df[observed], errors="coerce").astype(float)
    exp = pd.to_numeric(df[expected], errors="coerce").astype(float)
    oe = (obs / exp).where(exp > 0)
    out = pd.DataFrame({site: df[site].to_numpy(), OBSERVED: obs.to_numpy(),
                        EXPECTED: exp.to_numpy(), OE: oe.to_numpy()})
    out[CONDITION] = _condition_classes(out[OE], thresholds, labels)
    logger.debug("Assigned O/E condition to %d sites, %d not assessed",
                 len(out), int((out[CONDITION] == NOT_ASSESSED).sum()))
    return out


def assign_threshold_condition(
    df: pd.DataFrame,
    site: str = "site",
    metric: str = "value",
    thresholds: Union[Sequence[float], Mapping[str, Sequence[float]]] = (),
    group: Optional[str] = None,
    labels: Sequence[str] = DEFAULT_LABELS,
) -> Union[pd.DataFrame, str]:
    """
    Condition from direct comparison of a metric with cut points.

    With `group` set, `thresholds` maps each group value (e.g. ecoregion) to
    its own ascending cut points; sites in groups without cut points are
    'Not Assessed', as are sites with a missing metric value.

    Returns:
        Table with the site column, the group column (if any), the metric
        column and CONDITION, or an error message.
    """
    required = [site, metric] + ([group] if group is not None else [])
    missing = [c for c in required if c not in df.columns]
    if missing:
        msg = f"Missing required columns: {missing}"
        logger.warning(msg)
        return msg

    cuts_by_group = dict(thresholds) if group is not None else {None: list(thresholds)}
    for cuts in cuts_by_group.values():
        bad = _check_cuts(cuts, labels)
        if bad:
            return bad

    out = df[required].reset_index(drop=True).copy()
    out[metric] = pd.to_numeric(out[metric], errors="coerce").astype(float)
    groups = out[group] if group is not None else pd.Series([None] * len(out))
    condition = pd.Series(NOT_ASSESSED, index=out.index, dtype=object)
    for key, cuts in cuts_by_group.items():
        mask = groups == key if key is not None else pd.Series(True, index=out.index)
        if mask.any():
            condition[mask] = np.asarray(_condition_classes(out.loc[mask, metric], cuts, labels),
                                         dtype=object)
    out[CONDITION] = pd.Categorical(condition, categories=list(labels) + [NOT_ASSESSED], ordered=True)
    return out
