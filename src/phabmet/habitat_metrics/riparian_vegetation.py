"""
Riparian vegetation metrics.

Vegetation cover is recorded per layer (canopy, understory, ground) and
growth form as cover class codes at each station, in the riparian zone and in
the drawdown zone. The dominant vegetation type of the canopy and of the
understory is recorded in the riparian zone only.
"""
from __future__ import annotations
import logging
from typing import Optional, Union
import pandas as pd

from .class_weights import COVER_TABLE_SCHEMA, build_weight_table
from .drawdown import DRAWDOWN_INDICATOR, HORIZ_DIST_DD
from .human_influence import DRAWDOWN_VALUES
from .zones import zoned_cover_metrics
from ..config import CLASS, MAX_DRAWDOWN_DIST, METRIC, RIPARIAN, SITE, VALUE
from ..data_process.dataframe_ops import combine_metrics, stack_classes
from ..data_process.transform import aggregate_metric, count_valid, empty_metrics
from ..data_process.validators import ArgumentCollector, observation_schema

logger = logging.getLogger(__name__)

RIPARIAN_VEGETATION_INDICES = {
    "ICANOPY": ("CANBIG", "CANSMALL"),
    "IUNDERSTORY": ("UNDWOODY", "UNDNONW"),
    "IGROUND": ("GNDWOODY", "GNDNONW"),
    "IWOODY": ("CANBIG", "CANSMALL", "UNDWOODY", "GNDWOODY"),
    "ITOTALVEG": ("CANBIG", "CANSMALL", "UNDWOODY", "UNDNONW", "GNDWOODY", "GNDNONW"),
    "ICANUND": ("CANBIG", "CANSMALL", "UNDWOODY", "UNDNONW"),
}

VEGETATION_TYPES = {
    "D": "DECIDUOUS",
    "C": "CONIFEROUS",
    "E": "BROADLEAF",   # broadleaf evergreen
    "M": "MIXED",
    "N": "NONE",
}


def riparian_vegetation(
    canbig: Optional[pd.DataFrame] = None,
    canbig_dd: Optional[pd.DataFrame] = None,
    cansmall: Optional[pd.DataFrame] = None,
    cansmall_dd: Optional[pd.DataFrame] = None,
    undwoody: Optional[pd.DataFrame] = None,
    undwoody_dd: Optional[pd.DataFrame] = None,
    undnonw: Optional[pd.DataFrame] = None,
    undnonw_dd: Optional[pd.DataFrame] = None,
    gndwoody: Optional[pd.DataFrame] = None,
    gndwoody_dd: Optional[pd.DataFrame] = None,
    gndnonw: Optional[pd.DataFrame] = None,
    gndnonw_dd: Optional[pd.DataFrame] = None,
    gndbare: Optional[pd.DataFrame] = None,
    gndbare_dd: Optional[pd.DataFrame] = None,
    gndinundated: Optional[pd.DataFrame] = None,
    gndinundated_dd: Optional[pd.DataFrame] = None,
    canopy: Optional[pd.DataFrame] = None,
    understory: Optional[pd.DataFrame] = None,
    drawdown: Optional[pd.DataFrame] = None,
    horizontal_distance_dd: Optional[pd.DataFrame] = None,
    *,
    create_synthetic_covers: bool = True,
    data_2007: bool = False,
    fillin_drawdown: bool = True,
    fillin_dd_max_drawdown_dist: Optional[float] = MAX_DRAWDOWN_DIST,
    cover_weights: Optional[pd.DataFrame] = None,
    is_unit_test: bool = False,
    arg_save_path=None,
) -> Union[pd.DataFrame, str]:
    """
    Calculate riparian vegetation metrics.

    Cover metrics RVFP, RVFC, RVV and RVN per class and the RVI* layer
    indices are suffixed by zone. `canopy` and `understory` hold vegetation
    type codes (D, C, E, M, N) and yield RVFPCAN<type>, RVFPUND<type>,
    RVNCANOPY and RVNUNDERSTORY for the riparian zone.

    See `fish_cover` for the remaining arguments.
    """
    classes = {
        "CANBIG": canbig, "CANBIG_DD": canbig_dd,
        "CANSMALL": cansmall, "CANSMALL_DD": cansmall_dd,
        "UNDWOODY": undwoody, "UNDWOODY_DD": undwoody_dd,
        "UNDNONW": undnonw, "UNDNONW_DD": undnonw_dd,
        "GNDWOODY": gndwoody, "GNDWOODY_DD": gndwoody_dd,
        "GNDNONW": gndnonw, "GNDNONW_DD": gndnonw_dd,
        "GNDBARE": gndbare, "GNDBARE_DD": gndbare_dd,
        "GNDINUNDATED": gndinundated, "GNDINUNDATED_DD": gndinundated_dd,
    }
    collector = ArgumentCollector(is_unit_test, arg_save_path)
    covers = collector.standardize(
        cover_weights if cover_weights is not None else build_weight_table("cover"),
        COVER_TABLE_SCHEMA, "cover_weights")
    legal = covers[VALUE].dropna().tolist() if covers is not None else None
    tables = [collector.standardize(t, observation_schema(legal=legal), f"RV_{name}", class_name=name)
              for name, t in classes.items()]
    type_schema = observation_schema(legal=tuple(VEGETATION_TYPES))
    canopy = collector.standardize(canopy, type_schema, "CANOPY")
    understory = collector.standardize(understory, type_schema, "UNDERSTORY")
    drawdown = collector.standardize(drawdown, observation_schema(legal=DRAWDOWN_VALUES),
                                     DRAWDOWN_INDICATOR, class_name=DRAWDOWN_INDICATOR)
    horiz = collector.standardize(horizontal_distance_dd, observation_schema(),
                                  HORIZ_DIST_DD, class_name=HORIZ_DIST_DD)
    if not collector.ok:
        return collector.error_message()

    suffix = "" if data_2007 else RIPARIAN
    parts = [vegetation_types(canopy, "RVFPCAN", "RVNCANOPY", suffix),
             vegetation_types(understory, "RVFPUND", "RVNUNDERSTORY", suffix)]

    data = stack_classes(tables)
    if data is not None and covers is not None:
        logger.debug("Calculating riparian vegetation cover metrics")
        mets = zoned_cover_metrics(
            data, horiz, drawdown, covers, "RV", RIPARIAN_VEGETATION_INDICES,
            create_synthetic_covers=create_synthetic_covers, data_2007=data_2007,
            fillin_drawdown=fillin_drawdown, max_drawdown_dist=fillin_dd_max_drawdown_dist,
        )
        if isinstance(mets, str):
            return mets
        parts.append(mets)
    return combine_metrics(parts)


def vegetation_types(df: Optional[pd.DataFrame], fraction_prefix: str, count_metric: str,
                     suffix: str = "") -> pd.DataFrame:
    """Fraction of stations with each vegetation type, over stations with a recorded type."""
    if df is None:
        return empty_metrics()
    rec = df[df[VALUE].notna()]
    if rec.empty:
        return empty_metrics()
    flags = pd.DataFrame({SITE: rec[SITE].to_numpy()})
    for code, name in VEGETATION_TYPES.items():
        flags[name] = (rec[VALUE] == code).to_numpy()
    fracs = flags.groupby(SITE, sort=True).mean().reset_index()
    long = fracs.melt(id_vars=[SITE], var_name=CLASS, value_name=VALUE)
    long[METRIC] = fraction_prefix + long[CLASS] + suffix
    count = aggregate_metric(df, VALUE, count_valid, count_metric, by=[SITE], suffix=suffix)
    return pd.concat([long[[SITE, METRIC, VALUE]].astype({VALUE: object}), count], ignore_index=True)
