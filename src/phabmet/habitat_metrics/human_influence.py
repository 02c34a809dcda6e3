"""
Human influence metrics.

Each influence class (buildings, roads, crops, ...) is recorded at every
station as a proximity code in the riparian zone and, separately, in the
drawdown zone. Codes are weighted by proximity (see `class_weights`) and
summarised per site and zone as mean weighted influence, sample sizes,
summed influence indices and the fraction of stations with any influence.
"""
from __future__ import annotations
import logging
from typing import Optional, Union
import numpy as np
import pandas as pd

from .class_weights import AG_CLASSES, PROXIMITY_TABLE_SCHEMA, build_weight_table
from .drawdown import (
    DRAWDOWN_INDICATOR, HORIZ_DIST_DD, ReconcilerError, calc_syn_influence,
)
from .zones import ZONE, prepare_zoned_data, strip_riparian_suffix
from ..config import CLASS, MAX_DRAWDOWN_DIST, METRIC, METRIC_COLUMNS, SITE, STATION, VALUE
from ..data_process.dataframe_ops import sort_metrics, stack_classes
from ..data_process.transform import count_valid, empty_metrics, protected_mean, protected_sum
from ..data_process.validators import ArgumentCollector, observation_schema

logger = logging.getLogger(__name__)

IS_AG = "is_ag"
DRAWDOWN_VALUES = ("N", "NO", "Y", "YES")


def human_influence(
    buildings: Optional[pd.DataFrame] = None,
    buildings_dd: Optional[pd.DataFrame] = None,
    commercial: Optional[pd.DataFrame] = None,
    commercial_dd: Optional[pd.DataFrame] = None,
    crops: Optional[pd.DataFrame] = None,
    crops_dd: Optional[pd.DataFrame] = None,
    docks: Optional[pd.DataFrame] = None,
    docks_dd: Optional[pd.DataFrame] = None,
    landfill: Optional[pd.DataFrame] = None,
    landfill_dd: Optional[pd.DataFrame] = None,
    lawn: Optional[pd.DataFrame] = None,
    lawn_dd: Optional[pd.DataFrame] = None,
    orchard: Optional[pd.DataFrame] = None,
    orchard_dd: Optional[pd.DataFrame] = None,
    other: Optional[pd.DataFrame] = None,
    other_dd: Optional[pd.DataFrame] = None,
    park: Optional[pd.DataFrame] = None,
    park_dd: Optional[pd.DataFrame] = None,
    pasture: Optional[pd.DataFrame] = None,
    pasture_dd: Optional[pd.DataFrame] = None,
    powerlines: Optional[pd.DataFrame] = None,
    powerlines_dd: Optional[pd.DataFrame] = None,
    roads: Optional[pd.DataFrame] = None,
    roads_dd: Optional[pd.DataFrame] = None,
    walls: Optional[pd.DataFrame] = None,
    walls_dd: Optional[pd.DataFrame] = None,
    drawdown: Optional[pd.DataFrame] = None,
    horizontal_distance_dd: Optional[pd.DataFrame] = None,
    *,
    data_2007: bool = False,
    fillin_drawdown: bool = True,
    fillin_dd_max_drawdown_dist: Optional[float] = MAX_DRAWDOWN_DIST,
    proximity_weights: Optional[pd.DataFrame] = None,
    is_unit_test: bool = False,
    arg_save_path=None,
) -> Union[pd.DataFrame, str]:
    """
    Calculate lake human influence metrics.

    Each class table has columns site, station, value with a proximity code
    ('0', 'P' or 'C' by default). `drawdown` holds the Y/N drawdown indicator
    and `horizontal_distance_dd` the horizontal extent of the drawdown zone
    at each station.

    Args:
        data_2007: Compute riparian metrics only, named without zone suffix,
            without filling in or synthesizing drawdown values
        fillin_drawdown: Fill absent drawdown values with '0' at stations
            with no drawdown
        fillin_dd_max_drawdown_dist: Copy riparian values into unrecorded
            drawdown values at stations whose drawdown zone is at most this
            wide; None disables the copy
        proximity_weights: Lookup table (value, weights, presence, in_stream)

    Returns:
        Metric table (site, metric, value) with metrics suffixed by zone
        (_RIP, _DD, _SYN), or an error message.
    """
    classes = {
        "BUILDINGS": buildings, "BUILDINGS_DD": buildings_dd,
        "COMMERCIAL": commercial, "COMMERCIAL_DD": commercial_dd,
        "CROPS": crops, "CROPS_DD": crops_dd,
        "DOCKS": docks, "DOCKS_DD": docks_dd,
        "LANDFILL": landfill, "LANDFILL_DD": landfill_dd,
        "LAWN": lawn, "LAWN_DD": lawn_dd,
        "ORCHARD": orchard, "ORCHARD_DD": orchard_dd,
        "OTHER": other, "OTHER_DD": other_dd,
        "PARK": park, "PARK_DD": park_dd,
        "PASTURE": pasture, "PASTURE_DD": pasture_dd,
        "POWERLINES": powerlines, "POWERLINES_DD": powerlines_dd,
        "ROADS": roads, "ROADS_DD": roads_dd,
        "WALLS": walls, "WALLS_DD": walls_dd,
    }
    collector = ArgumentCollector(is_unit_test, arg_save_path)
    weights = collector.standardize(
        proximity_weights if proximity_weights is not None else build_weight_table("proximity"),
        PROXIMITY_TABLE_SCHEMA, "proximity_weights")
    legal = weights[VALUE].dropna().tolist() if weights is not None else None
    tables = [collector.standardize(t, observation_schema(legal=legal), f"HI_{name}", class_name=name)
              for name, t in classes.items()]
    drawdown = collector.standardize(drawdown, observation_schema(legal=DRAWDOWN_VALUES),
                                     DRAWDOWN_INDICATOR, class_name=DRAWDOWN_INDICATOR)
    horiz = collector.standardize(horizontal_distance_dd, observation_schema(),
                                  HORIZ_DIST_DD, class_name=HORIZ_DIST_DD)
    if not collector.ok:
        return collector.error_message()

    data = stack_classes(tables)
    if data is None or weights is None:
        logger.info("No human influence data to summarise")
        return empty_metrics()
    data = data[data[VALUE].notna()]

    lookup = weights.rename(columns={"weights": "calc", "in_stream": "circa", "presence": "present"})
    logger.debug("Calculating human influence metrics for %d observations", len(data))
    try:
        hi = prepare_zoned_data(
            data, _recorded(horiz), _recorded(drawdown), lookup,
            synthesize=calc_syn_influence, data_2007=data_2007,
            fillin_drawdown=fillin_drawdown, max_drawdown_dist=fillin_dd_max_drawdown_dist,
        )
    except ReconcilerError as err:
        logger.warning("%s", err)
        return str(err)
    hi[IS_AG] = hi[CLASS].isin(AG_CLASSES)

    mets = influence_metrics(hi)
    if data_2007:
        mets = strip_riparian_suffix(mets)
    return sort_metrics(mets)


def _recorded(df: Optional[pd.DataFrame]) -> Optional[pd.DataFrame]:
    if df is None:
        return None
    df = df[df[VALUE].notna()]
    return df if not df.empty else None


def _agg(df: pd.DataFrame, keys: list, column: str, func, metric=None) -> pd.DataFrame:
    out = df.groupby(keys, sort=False)[column].agg(func).reset_index(name=VALUE)
    if metric is not None:
        out[METRIC] = metric(out) if callable(metric) else metric
    return out


def _station_any(hi: pd.DataFrame, column: str, metric: str) -> pd.DataFrame:
    """Fraction of stations with at least one influence flagged in `column`."""
    sta = _agg(hi, [SITE, STATION, ZONE], column, protected_sum)
    sta[VALUE] = np.where(sta[VALUE].isna(), np.nan, (sta[VALUE] != 0).astype(float))
    return _agg(sta, [SITE, ZONE], VALUE, protected_mean, metric)


def influence_metrics(hi: pd.DataFrame) -> pd.DataFrame:
    """
    Metrics for weighted station data with columns site, station, class, zone,
    calc, circa, present and is_ag.

    Results are expanded to every (site, metric, zone) combination; missing
    counts (HIN*) become 0, other missing values stay null.
    """
    by_site = [SITE, ZONE]
    means = _agg(hi, by_site + [CLASS, IS_AG], "calc", protected_mean,
                 lambda t: "HIPW" + t[CLASS])
    counts = _agg(hi, by_site + [CLASS], "calc", count_valid, lambda t: "HIN" + t[CLASS])
    circa_means = _agg(hi, by_site + [CLASS, IS_AG], "circa", protected_mean)
    ag_name = lambda t, ag, nonag: np.where(t[IS_AG].astype(bool), ag, nonag)

    ag = hi[hi[IS_AG]]
    nonag = hi[~hi[IS_AG]]
    parts = [
        means, counts,
        _station_any(hi, "present", "HIFPANY"),
        _station_any(hi, "circa", "HIFPANYCIRCA"),
        _agg(means, by_site, VALUE, protected_sum, "HIIALL"),
        _agg(means, by_site + [IS_AG], VALUE, protected_sum, lambda t: ag_name(t, "HIIAG", "HIINONAG")),
        _agg(circa_means, by_site, VALUE, protected_sum, "HIIALLCIRCA"),
        _agg(circa_means, by_site + [IS_AG], VALUE, protected_sum,
             lambda t: ag_name(t, "HIIAGCIRCA", "HIINONAGCIRCA")),
        _agg(ag, by_site, "calc", protected_mean, "HIPWAG"),
        _agg(ag, by_site, "calc", count_valid, "HINAG"),
        _agg(nonag, by_site, "calc", protected_mean, "HIPWNONAG"),
        _agg(nonag, by_site, "calc", count_valid, "HINNONAG"),
        _agg(hi, by_site, "calc", protected_mean, "HIPWALL"),
        _agg(hi, by_site, "calc", count_valid, "HINALL"),
    ]
    parts = [p[[SITE, ZONE, METRIC, VALUE]] for p in parts if not p.empty]
    if not parts:
        return empty_metrics()
    allmets = pd.concat(parts, ignore_index=True)

    grid = pd.MultiIndex.from_product(
        [pd.unique(allmets[SITE]), pd.unique(allmets[METRIC]), pd.unique(allmets[ZONE])],
        names=[SITE, METRIC, ZONE])
    out = allmets.set_index([SITE, METRIC, ZONE])[VALUE].reindex(grid).reset_index()
    out[VALUE] = out[VALUE].astype(object)
    is_count = out[METRIC].str.startswith("HIN")
    out.loc[is_count, VALUE] = [0 if pd.isna(v) else int(v) for v in out.loc[is_count, VALUE]]
    out[METRIC] = out[METRIC] + out[ZONE]
    return out[METRIC_COLUMNS]
