"""
Station data preparation shared by the families recorded in riparian and
drawdown zones (human influence, fish cover, riparian vegetation).
"""
from __future__ import annotations
import logging
from typing import Callable, Optional, Union
import pandas as pd

from .drawdown import ReconcilerError, calc_syn_covers, reconcile_drawdown, split_zone_suffix
from ..config import CLASS, METRIC, RIPARIAN, SITE, SYNTHETIC, VALUE
from ..data_process.transform import (
    aggregate_metric, empty_metrics, protected_mean, protected_sum, summarise_by_class,
)

logger = logging.getLogger(__name__)

ZONE = "zone"


def prepare_zoned_data(
    data: pd.DataFrame,
    horiz_dist: Optional[pd.DataFrame],
    drawdown: Optional[pd.DataFrame],
    lookup: pd.DataFrame,
    *,
    synthesize: Optional[Callable[[pd.DataFrame, Optional[pd.DataFrame]], pd.DataFrame]],
    data_2007: bool = False,
    fillin_drawdown: bool = True,
    max_drawdown_dist: Optional[float] = None,
) -> pd.DataFrame:
    """
    Turn recorded class codes into weighted station values by zone.

    Unless `data_2007`, drawdown values are first filled in (see
    `reconcile_drawdown`) and, when `synthesize` is given, synthetic values
    are appended. Class names are then split into base class and zone
    (`_RIP`, `_DD` or `_SYN`).

    Args:
        data: Stacked observations (site, station, class, value), nulls dropped
        horiz_dist: HORIZ_DIST_DD rows, nulls dropped
        drawdown: DRAWDOWN indicator rows, nulls dropped
        lookup: Table keyed by `value` with the weight and flag columns
        synthesize: Function making synthetic rows from the weighted data and
            the distances, e.g. `calc_syn_covers`

    Returns:
        Long table with columns site, station, class, zone, value and the
        lookup columns

    Raises:
        ReconcilerError: if synthetic values are requested without distances
    """
    if not data_2007:
        data, horiz_dist = reconcile_drawdown(data, horiz_dist, drawdown,
                                              fillin_drawdown=fillin_drawdown,
                                              max_drawdown_dist=max_drawdown_dist)

    weighted = data.merge(lookup, on=VALUE, how="left", sort=False)

    if synthesize is not None and not data_2007:
        logger.debug("Synthesizing values from riparian and drawdown zones")
        syn = synthesize(weighted, horiz_dist)
        syn[VALUE] = None
        weighted = pd.concat([weighted, syn[weighted.columns]], ignore_index=True)

    parts = split_zone_suffix(weighted[CLASS].tolist())
    weighted[CLASS] = parts["base"].to_numpy()
    weighted[ZONE] = parts["suffix"].replace("", RIPARIAN).to_numpy()
    return weighted


def per_zone(zoned: pd.DataFrame, func: Callable[[pd.DataFrame, str], pd.DataFrame]) -> list[pd.DataFrame]:
    """Apply `func(zone_data, suffix)` to each zone present in `zoned`."""
    return [func(grp, zone) for zone, grp in zoned.groupby(ZONE, sort=True)]


def strip_riparian_suffix(metrics: pd.DataFrame) -> pd.DataFrame:
    """Rename `<metric>_RIP` to `<metric>` for comparison with single zone surveys."""
    out = metrics.copy()
    out[METRIC] = out[METRIC].str.replace(f"{RIPARIAN}$", "", regex=True)
    return out


def zoned_cover_metrics(
    data: pd.DataFrame,
    horiz_dist: Optional[pd.DataFrame],
    drawdown: Optional[pd.DataFrame],
    covers: pd.DataFrame,
    prefix: str,
    indices: dict[str, tuple[str, ...]],
    *,
    create_synthetic_covers: bool = True,
    data_2007: bool = False,
    fillin_drawdown: bool = True,
    max_drawdown_dist: Optional[float] = None,
) -> Union[pd.DataFrame, str]:
    """
    Cover metrics by class and zone for the zoned cover families.

    For each zone: mean presence (<prefix>FP<class>), mean cover (FC), sample
    sd of cover (V), dense count of covers (N), and each index in `indices`
    as the sum of the mean covers of its member classes.

    Returns:
        Long table (site, metric, value), or the reconciler's message when
        synthetic covers cannot be made.
    """
    # count grid covers every supplied site and class, including all-null tables
    supplied = split_zone_suffix(data[CLASS].tolist())
    supplied_zone = supplied["suffix"].replace("", RIPARIAN).to_numpy()
    sites = list(pd.unique(data[SITE]))
    zone_classes = {zone: set(supplied["base"][supplied_zone == zone]) for zone in set(supplied_zone)}
    zone_classes[SYNTHETIC] = set(supplied["base"])

    data = data[data[VALUE].notna()]
    if data.empty:
        return empty_metrics()
    lookup = covers.rename(columns={"weights": "cover"})
    try:
        zoned = prepare_zoned_data(
            data, horiz_dist, drawdown, lookup,
            synthesize=calc_syn_covers if create_synthetic_covers else None,
            data_2007=data_2007, fillin_drawdown=fillin_drawdown,
            max_drawdown_dist=max_drawdown_dist,
        )
    except ReconcilerError as err:
        logger.warning("%s", err)
        return str(err)

    def one_zone(grp: pd.DataFrame, zone: str) -> pd.DataFrame:
        classes = sorted(zone_classes.get(zone, set()) | set(grp[CLASS]))
        parts = [
            aggregate_metric(grp, "presence", protected_mean, f"{prefix}FP", suffix=zone),
            summarise_by_class(grp, "cover", f"{prefix}FC", f"{prefix}V", f"{prefix}N", suffix=zone,
                               sites=sites, classes=classes),
        ]
        means = grp.groupby([SITE, CLASS], sort=False)["cover"].agg(protected_mean).reset_index()
        for name, members in indices.items():
            sub = means[means[CLASS].isin(members)]
            if sub.empty:
                continue
            parts.append(aggregate_metric(sub, "cover", protected_sum, f"{prefix}{name}",
                                          by=[SITE], suffix=zone))
        return pd.concat(parts, ignore_index=True)

    mets = pd.concat(per_zone(zoned, one_zone), ignore_index=True)
    if data_2007:
        mets = strip_riparian_suffix(mets)
    return mets
