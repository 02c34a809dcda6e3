"""
Drawdown zone reconciliation.

Observations of lake shore characteristics are recorded in two zones: the
riparian zone (class names without a suffix) and the drawdown zone exposed
between the current waterline and the high water mark (class names ending in
`_DD`). The functions here fill in unrecorded drawdown values and create
synthetic values (`_SYN`) that blend both zones over a fixed plot depth, so
that results can be compared with surveys that recorded a single zone.

All tables are long: site, station, class plus a value column.
"""
from __future__ import annotations
import logging
from typing import Iterable, Optional, Sequence, Union
import numpy as np
import pandas as pd

from ..config import (
    CLASS, DEFAULT_FILLIN_HORIZ_DIST, DEFAULT_FILLIN_VALUE, DRAWDOWN, EPSILON, KEYS,
    MAX_DRAWDOWN_DIST, SITE, STATION, SYNTHETIC, SYNTHETIC_PLOT_DEPTH, VALUE,
)

logger = logging.getLogger(__name__)

DRAWDOWN_INDICATOR = "DRAWDOWN"
HORIZ_DIST_DD = "HORIZ_DIST_DD"
NO_DRAWDOWN = ("N", "NO")

SYNTHETIC_REQUIRES_HORIZ_DIST = (
    "Synthesizing 2007-esque values requires values for the drawdown horizontal "
    "distance (argument horizontal_distance_dd)"
)


class ReconcilerError(ValueError):
    """Synthetic values were requested without the data needed to make them."""


def split_zone_suffix(classes: Union[str, Iterable[str]]):
    """
    Split class names into base name and zone suffix.

    'BUILDINGS_DD' -> ('BUILDINGS', '_DD'); 'BUILDINGS_SYN' -> ('BUILDINGS', '_SYN');
    'BUILDINGS' -> ('BUILDINGS', ''). A sequence of names returns a DataFrame
    with columns base and suffix.
    """
    if isinstance(classes, str):
        for suffix in (DRAWDOWN, SYNTHETIC):
            if classes.endswith(suffix) and len(classes) > len(suffix):
                return classes[: -len(suffix)], suffix
        return classes, ""
    pairs = [split_zone_suffix(c) for c in classes]
    return pd.DataFrame(pairs, columns=["base", "suffix"])


def is_drawdown_class(name: str) -> bool:
    return name != HORIZ_DIST_DD and split_zone_suffix(name)[1] == DRAWDOWN


def _horizontal_distances(horiz_dist: Optional[pd.DataFrame]) -> pd.Series:
    """Numeric drawdown distance indexed by (site, station); unparseable -> NaN."""
    if horiz_dist is None or horiz_dist.empty:
        return pd.Series(dtype=float, index=pd.MultiIndex.from_tuples([], names=KEYS))
    d = horiz_dist.copy()
    d["dist"] = pd.to_numeric(d[VALUE], errors="coerce").astype(float)
    return d.drop_duplicates(KEYS).set_index(KEYS)["dist"]


def fillin_dd_with_riparian_values(
    data: pd.DataFrame,
    horiz_dist: Optional[pd.DataFrame],
    max_drawdown_dist: Optional[float] = MAX_DRAWDOWN_DIST,
) -> pd.DataFrame:
    """
    Copy riparian values into unrecorded drawdown classes at stations with a
    narrow drawdown zone.

    At a station whose horizontal drawdown distance is at most
    `max_drawdown_dist`, each drawdown class that is absent or null takes the
    riparian value of the same base class at that station. A
    `max_drawdown_dist` of None disables the fill.

    Args:
        data: Long table with columns site, station, class, value
        horiz_dist: Drawdown horizontal distances (site, station, value)
        max_drawdown_dist: Largest distance at which values are copied

    Returns:
        Copy of data with filled drawdown rows
    """
    if max_drawdown_dist is None or data is None or data.empty:
        return data
    dist = _horizontal_distances(horiz_dist)
    narrow = dist[dist.notna() & (dist <= max_drawdown_dist)]
    if narrow.empty:
        return data.copy()

    parts = split_zone_suffix(data[CLASS].tolist())
    riparian = data[(parts["suffix"] == "").to_numpy()].copy()
    riparian = riparian[riparian[VALUE].notna()]
    riparian = riparian.set_index(KEYS).loc[lambda t: t.index.isin(narrow.index)].reset_index()
    if riparian.empty:
        return data.copy()
    riparian[CLASS] = riparian[CLASS] + DRAWDOWN

    recorded = data[data[VALUE].notna()]
    have = pd.MultiIndex.from_frame(recorded[[SITE, STATION, CLASS]])
    want = pd.MultiIndex.from_frame(riparian[[SITE, STATION, CLASS]])
    fill = riparian[~want.isin(have)]
    logger.debug("Filling %d drawdown values from riparian values", len(fill))

    # drop null placeholders that are being replaced
    placeholders = pd.MultiIndex.from_frame(data[[SITE, STATION, CLASS]]).isin(
        pd.MultiIndex.from_frame(fill[[SITE, STATION, CLASS]]))
    out = pd.concat([data[~placeholders], fill[data.columns]], ignore_index=True)
    return out


def fillin_absent_missing_with_default(
    data: pd.DataFrame,
    fill_value: str = DEFAULT_FILLIN_VALUE,
    fill_horiz_dist: str = DEFAULT_FILLIN_HORIZ_DIST,
    drawdown_classes: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Fill in unrecorded drawdown values at stations that reported no drawdown.

    `data` holds the drawdown class rows, the DRAWDOWN indicator and the
    HORIZ_DIST_DD distances in one long table. At stations whose indicator is
    N or NO, every drawdown class that is absent or null gets `fill_value`,
    and an absent or null distance gets `fill_horiz_dist`. Stations with any
    other indicator, or none, are left unchanged.
    """
    if data is None or data.empty:
        return data
    if drawdown_classes is None:
        drawdown_classes = sorted(c for c in pd.unique(data[CLASS]) if is_drawdown_class(c))
    targets = list(drawdown_classes) + [HORIZ_DIST_DD]

    indicator = data[(data[CLASS] == DRAWDOWN_INDICATOR) & data[VALUE].notna()]
    no_dd = indicator[indicator[VALUE].astype(str).str.upper().isin(NO_DRAWDOWN)][KEYS].drop_duplicates()
    if no_dd.empty:
        return data.copy()

    grid = no_dd.merge(pd.DataFrame({CLASS: targets}), how="cross")
    recorded = data[data[VALUE].notna()]
    have = pd.MultiIndex.from_frame(recorded[[SITE, STATION, CLASS]])
    missing = grid[~pd.MultiIndex.from_frame(grid[[SITE, STATION, CLASS]]).isin(have)].copy()
    missing[VALUE] = np.where(missing[CLASS] == HORIZ_DIST_DD, fill_horiz_dist, fill_value)
    logger.debug("Filling %d absent drawdown values with defaults", len(missing))

    placeholders = pd.MultiIndex.from_frame(data[[SITE, STATION, CLASS]]).isin(
        pd.MultiIndex.from_frame(missing[[SITE, STATION, CLASS]]))
    extra = [c for c in data.columns if c not in missing.columns]
    for col in extra:
        missing[col] = None
    return pd.concat([data[~placeholders], missing[data.columns]], ignore_index=True)


def _blend(data: pd.DataFrame, horiz_dist: Optional[pd.DataFrame], column: str,
           plot_depth: float) -> pd.DataFrame:
    if horiz_dist is None or horiz_dist.empty:
        raise ReconcilerError(SYNTHETIC_REQUIRES_HORIZ_DIST)
    dist = _horizontal_distances(horiz_dist).dropna()
    if dist.empty:
        raise ReconcilerError(SYNTHETIC_REQUIRES_HORIZ_DIST)

    parts = split_zone_suffix(data[CLASS].tolist())
    zoned = data[[SITE, STATION]].copy()
    zoned["base"] = parts["base"].to_numpy()
    zoned["suffix"] = parts["suffix"].to_numpy()
    zoned["x"] = pd.to_numeric(data[column], errors="coerce").astype(float).to_numpy()
    zoned = zoned[zoned["suffix"].isin(["", DRAWDOWN])]

    keys = [SITE, STATION, "base"]
    rip = (zoned[zoned["suffix"] == ""].groupby(keys, sort=False)["x"].first()
           .rename("rip").reset_index())
    dd = (zoned[zoned["suffix"] == DRAWDOWN].groupby(keys, sort=False)["x"].first()
          .rename("dd").reset_index())
    wide = rip.merge(dd, on=keys, how="outer")
    wide = wide.merge(dist.rename("dist").reset_index(), on=KEYS, how="inner")

    w = np.clip(wide["dist"].to_numpy() / plot_depth, 0.0, 1.0)
    rip = wide["rip"].to_numpy()
    dd = wide["dd"].to_numpy()
    # a null component only matters when it carries weight
    rip_part = np.where(w >= 1.0, 0.0, (1.0 - w) * rip)
    dd_part = np.where(w <= 0.0, 0.0, w * dd)
    syn = rip_part + dd_part

    return pd.DataFrame({SITE: wide[SITE].to_numpy(), STATION: wide[STATION].to_numpy(),
                         CLASS: (wide["base"] + SYNTHETIC).to_numpy(), column: syn})


def calc_syn_influence(data: pd.DataFrame, horiz_dist: Optional[pd.DataFrame],
                       plot_depth: float = SYNTHETIC_PLOT_DEPTH,
                       weight_col: str = "calc") -> pd.DataFrame:
    """
    Synthetic human influence values at each station.

    The synthetic weight is (1 - w) * riparian + w * drawdown with
    w = clip(distance / plot_depth, 0, 1). An influence is circa when the
    synthetic weight is 1 and present when it is above 0.

    Returns:
        Long table with columns site, station, class (`<base>_SYN`),
        `weight_col`, circa and present

    Raises:
        ReconcilerError: if no horizontal drawdown distances are available
    """
    syn = _blend(data, horiz_dist, weight_col, plot_depth)
    x = syn[weight_col]
    syn["circa"] = np.where(x.isna(), None, x >= 1.0 - EPSILON)
    syn["present"] = np.where(x.isna(), None, x > EPSILON)
    return syn


def calc_syn_covers(data: pd.DataFrame, horiz_dist: Optional[pd.DataFrame],
                    plot_depth: float = SYNTHETIC_PLOT_DEPTH,
                    cover_col: str = "cover") -> pd.DataFrame:
    """
    Synthetic cover values at each station, blended like `calc_syn_influence`.
    A class is present when its synthetic cover is above 0.
    """
    syn = _blend(data, horiz_dist, cover_col, plot_depth)
    x = syn[cover_col]
    syn["presence"] = np.where(x.isna(), None, x > EPSILON)
    return syn


def reconcile_drawdown(
    data: pd.DataFrame,
    horiz_dist: Optional[pd.DataFrame],
    drawdown: Optional[pd.DataFrame],
    *,
    fillin_drawdown: bool = True,
    max_drawdown_dist: Optional[float] = MAX_DRAWDOWN_DIST,
) -> tuple[pd.DataFrame, Optional[pd.DataFrame]]:
    """
    Run the drawdown fill-in steps shared by the zoned families: first copy
    riparian values into narrow drawdown zones, then (if `fillin_drawdown`)
    fill absent drawdown values at stations without drawdown.

    Args:
        data: Recorded class values (site, station, class, value), no nulls
        horiz_dist: HORIZ_DIST_DD rows (site, station, class, value), no nulls
        drawdown: DRAWDOWN indicator rows, no nulls

    Returns:
        The filled class values and the (possibly filled) distances
    """
    data = fillin_dd_with_riparian_values(data, horiz_dist, max_drawdown_dist)
    if not fillin_drawdown:
        return data, horiz_dist

    frames = [f for f in (data, horiz_dist, drawdown) if f is not None and not f.empty]
    if not frames:
        return data, horiz_dist
    filled = fillin_absent_missing_with_default(pd.concat(frames, ignore_index=True))
    filled = filled[filled[VALUE].notna()]
    keep = ~filled[CLASS].isin([DRAWDOWN_INDICATOR, HORIZ_DIST_DD])
    dist = filled[filled[CLASS] == HORIZ_DIST_DD]
    return filled[keep].reset_index(drop=True), (dist.reset_index(drop=True) if not dist.empty else None)
