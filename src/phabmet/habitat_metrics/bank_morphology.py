"""
Stream bank morphology metrics.

Wadeable reaches record bank angles (degrees) and undercut distances (m);
boatable reaches record bank angle classes. Observations are site level
(no station column is required).
"""
from __future__ import annotations
import logging
from typing import Optional, Union
import pandas as pd

from .class_weights import BANK_ANGLE_CLASSES
from ..config import CLASS, METRIC, SITE, VALUE
from ..data_process.dataframe_ops import combine_metrics
from ..data_process.transform import (
    aggregate_metric, count_valid, iqr_type2, median, modal_classes, protected_mean,
    quantile_type2, sample_sd,
)
from ..data_process.validators import ArgumentCollector, observation_schema

logger = logging.getLogger(__name__)

ADJACENT_TIES = {("low", "med"): "low-med", ("med", "stp"): "med-stp", ("stp", "vst"): "stp-vst"}
NO_MODE = "None"


def bank_morphology(
    b_angle: Optional[pd.DataFrame] = None,
    w_angle: Optional[pd.DataFrame] = None,
    w_undercut: Optional[pd.DataFrame] = None,
    *,
    is_unit_test: bool = False,
    arg_save_path=None,
) -> Union[pd.DataFrame, str]:
    """
    Calculate bank morphology metrics.

    Args:
        b_angle: Boatable bank angle classes (site, value in '0-5', '5-30',
            '30-75', '75-100')
        w_angle: Wadeable bank angles in degrees, 0-180
        w_undercut: Wadeable undercut distances in m, 0-1

    Returns:
        Metric table (site, metric, value) or an error message. Absent tables
        contribute no metrics.
    """
    collector = ArgumentCollector(is_unit_test, arg_save_path)
    b_angle = collector.standardize(
        b_angle, observation_schema(legal=tuple(BANK_ANGLE_CLASSES), with_station=False), "bAngle")
    w_angle = collector.standardize(
        w_angle, observation_schema(numeric=True, limits=(0, 180), with_station=False), "wAngle")
    w_undercut = collector.standardize(
        w_undercut, observation_schema(numeric=True, limits=(0, 1), with_station=False), "wUndercut")
    if not collector.ok:
        return collector.error_message()

    if b_angle is not None and w_angle is not None:
        both = sorted(set(b_angle[SITE]) & set(w_angle[SITE]), key=str)
        if both:
            return f"Sites have both boatable and wadeable bank angles: {both[:10]}"

    parts = []
    if w_angle is not None:
        logger.debug("Calculating wadeable bank angle metrics")
        parts.append(numeric_summary(w_angle, {
            "n_ba": count_valid, "xbka": protected_mean, "sdbk_a": sample_sd,
            "intqbka": iqr_type2, "medbk_a": median,
            "bka_q1": lambda x: quantile_type2(x, 0.25), "bka_q3": lambda x: quantile_type2(x, 0.75),
        }))
    if w_undercut is not None:
        logger.debug("Calculating wadeable undercut metrics")
        parts.append(numeric_summary(w_undercut, {
            "n_un": count_valid, "xun": protected_mean, "sdun": sample_sd,
            "intqbkun": iqr_type2, "medbkun": median,
            "bkun_q1": lambda x: quantile_type2(x, 0.25), "bkun_q3": lambda x: quantile_type2(x, 0.75),
        }))
    if b_angle is not None:
        logger.debug("Calculating boatable bank angle metrics")
        parts.append(angle_classes(b_angle))
    return combine_metrics(parts)


def numeric_summary(df: pd.DataFrame, funcs: dict) -> pd.DataFrame:
    return pd.concat([aggregate_metric(df, VALUE, f, name, by=[SITE]) for name, f in funcs.items()],
                     ignore_index=True)


def angle_classes(b_angle: pd.DataFrame) -> pd.DataFrame:
    """
    Percent of recorded angles in each class (bap_*), their count (n_ba) and
    the modal class. Sites without a recorded angle get null percentages and
    a bangmode of 'None'.
    """
    order = list(BANK_ANGLE_CLASSES.values())
    sites = pd.Index(pd.unique(b_angle[SITE]), name=SITE)
    rec = b_angle[b_angle[VALUE].notna()].copy()
    rec[CLASS] = rec[VALUE].map(BANK_ANGLE_CLASSES)
    count = aggregate_metric(b_angle, VALUE, count_valid, "n_ba", by=[SITE])

    if rec.empty:
        fracs = pd.DataFrame(index=sites, columns=order, dtype=float)
    else:
        fracs = pd.crosstab(rec[SITE], rec[CLASS], normalize="index")
        fracs = fracs.reindex(columns=order, fill_value=0.0).reindex(sites)
    fracs.index.name = SITE
    fracs.columns.name = None
    pct = (fracs * 100).reset_index().melt(id_vars=[SITE], var_name=CLASS, value_name=VALUE)
    pct[METRIC] = "bap_" + pct[CLASS]

    modes = [(site, "bangmode", bank_angle_mode(row.to_dict())) for site, row in fracs.iterrows()]
    mode = pd.DataFrame(modes, columns=[SITE, METRIC, VALUE])
    return pd.concat([pct[[SITE, METRIC, VALUE]].astype({VALUE: object}), count,
                      mode.astype({VALUE: object})], ignore_index=True)


def bank_angle_mode(fracs: dict) -> str:
    """
    Modal bank angle class. A tie between adjacent classes is reported as a
    range ('low-med', 'med-stp', 'stp-vst'); any other tie, or no data, is
    reported as 'None'.
    """
    order = list(BANK_ANGLE_CLASSES.values())
    mode = modal_classes(fracs, order)
    if mode is None:
        return NO_MODE
    tied = tuple(mode.split(", "))
    if len(tied) == 1:
        return tied[0]
    return ADJACENT_TIES.get(tied, NO_MODE)
