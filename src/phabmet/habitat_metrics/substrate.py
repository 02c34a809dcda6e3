"""
Bottom and shoreline substrate metrics.

Substrate cover is recorded per class at each station as a cover class code,
which is converted to a characteristic fractional cover. Metrics describe the
presence, cover and variability of each class, the variety of classes, the
distribution of (log10) particle diameters and the modal classes. Bottom
substrate additionally summarises sediment color and odor.
"""
from __future__ import annotations
import logging
from typing import Optional, Union
import pandas as pd

from .class_weights import (
    COVER_TABLE_SCHEMA, SUBSTRATE_TABLE_SCHEMA, build_weight_table, substrate_class_table,
)
from ..config import CLASS, METRIC, SITE, STATION, VALUE
from ..data_process.dataframe_ops import combine_metrics, rename_metrics, stack_classes
from ..data_process.transform import (
    aggregate_metric, count_valid, empty_metrics, mode_metric, normalized_cover,
    population_estimates, protected_mean, protected_sum, summarise_by_class,
    weighted_log_diameter,
)
from ..data_process.validators import ArgumentCollector, observation_schema

logger = logging.getLogger(__name__)

SUBSTRATE_CLASSES = ("BEDROCK", "BOULDERS", "COBBLE", "GRAVEL", "SAND", "SILT", "ORGANIC", "WOOD")
SHORELINE_CLASSES = SUBSTRATE_CLASSES + ("OTHER",)

COLOR_PATTERN = r"^(|BLACK|BROWN|GRAY|OTHER.*|RED)$"
ODOR_PATTERN = r"^(|ANOXIC|CHEMICAL|H2S|NONE|OTHER.*|OIL)$"
COLOR_CLASSES = ("BLACK", "BROWN", "GRAY", "OTHERCOLOR", "RED")
ODOR_CLASSES = ("ANOXIC", "CHEMICAL", "H2S", "NONE", "OIL", "OTHER")
ODOR_METRICS = {"ANOXIC": "BSFANOXIC", "CHEMICAL": "BSFCHEMICAL", "H2S": "BSFH2S",
                "NONE": "BSFNONEODOR", "OIL": "BSFOIL", "OTHER": "BSFOTHERODOR"}

SIZES_REQUIRED = ("This function requires substrate class size information as an argument. "
                  "You might consider using the default values by removing the value from your call.")


def bottom_substrate(
    bedrock: Optional[pd.DataFrame] = None,
    boulders: Optional[pd.DataFrame] = None,
    cobble: Optional[pd.DataFrame] = None,
    gravel: Optional[pd.DataFrame] = None,
    organic: Optional[pd.DataFrame] = None,
    sand: Optional[pd.DataFrame] = None,
    silt: Optional[pd.DataFrame] = None,
    wood: Optional[pd.DataFrame] = None,
    color: Optional[pd.DataFrame] = None,
    odor: Optional[pd.DataFrame] = None,
    *,
    substrate_covers: Optional[pd.DataFrame] = None,
    substrate_sizes: Optional[pd.DataFrame] = None,
    is_unit_test: bool = False,
    arg_save_path=None,
) -> Union[pd.DataFrame, str]:
    """
    Calculate lake bottom substrate metrics.

    Each class table has columns site, station, value where value is a cover
    class code of `substrate_covers`. `color` and `odor` hold the sediment
    color and odor observed at each station.

    Args:
        substrate_covers: Cover class lookup (value, weights, presence);
            defaults to `build_weight_table('cover')`
        substrate_sizes: Substrate class lookup (name, characteristic_diameter,
            in_population_estimate); defaults to `substrate_class_table()`
        is_unit_test: Report invalid tables as warnings and skip them
        arg_save_path: Directory to write each standardized argument to

    Returns:
        Metric table (site, metric, value), or a message describing why the
        metrics could not be calculated.
    """
    collector = ArgumentCollector(is_unit_test, arg_save_path)
    covers, sizes = _lookups(collector, substrate_covers, substrate_sizes)
    if collector.ok and sizes is None:
        return SIZES_REQUIRED
    schema = observation_schema(legal=covers[VALUE].dropna().tolist() if covers is not None else None)
    names = ("BEDROCK", "BOULDERS", "COBBLE", "GRAVEL", "ORGANIC", "SAND", "SILT", "WOOD")
    tables = [collector.standardize(t, schema, name, class_name=name)
              for name, t in zip(names, (bedrock, boulders, cobble, gravel, organic,
                                         sand, silt, wood))]
    color = collector.standardize(color, observation_schema(pattern=COLOR_PATTERN), "BS_COLOR")
    odor = collector.standardize(odor, observation_schema(pattern=ODOR_PATTERN), "ODOR")
    if not collector.ok:
        return collector.error_message()

    logger.debug("Calculating bottom substrate metrics")
    parts = []
    data = stack_classes(tables)
    if data is not None and covers is not None:
        parts.append(_cover_metrics(data, covers, sizes, "BS", SUBSTRATE_CLASSES, weighted_fc=True))
    parts.append(indiv_color(color))
    parts.append(indiv_odor(odor))
    return combine_metrics(parts)


def shoreline_substrate(
    bedrock: Optional[pd.DataFrame] = None,
    boulders: Optional[pd.DataFrame] = None,
    cobble: Optional[pd.DataFrame] = None,
    gravel: Optional[pd.DataFrame] = None,
    organic: Optional[pd.DataFrame] = None,
    other: Optional[pd.DataFrame] = None,
    sand: Optional[pd.DataFrame] = None,
    silt: Optional[pd.DataFrame] = None,
    wood: Optional[pd.DataFrame] = None,
    *,
    substrate_covers: Optional[pd.DataFrame] = None,
    substrate_sizes: Optional[pd.DataFrame] = None,
    is_unit_test: bool = False,
    arg_save_path=None,
) -> Union[pd.DataFrame, str]:
    """
    Calculate lake shoreline substrate metrics (prefix SS).

    Same calculations as `bottom_substrate` with an additional OTHER class,
    which counts toward presence and cover but not toward site variety or
    particle size estimates.
    """
    collector = ArgumentCollector(is_unit_test, arg_save_path)
    covers, sizes = _lookups(collector, substrate_covers, substrate_sizes)
    if collector.ok and sizes is None:
        return SIZES_REQUIRED
    schema = observation_schema(legal=covers[VALUE].dropna().tolist() if covers is not None else None)
    names = ("BEDROCK", "BOULDERS", "COBBLE", "GRAVEL", "ORGANIC", "OTHER", "SAND", "SILT", "WOOD")
    tables = [collector.standardize(t, schema, name, class_name=name)
              for name, t in zip(names, (bedrock, boulders, cobble, gravel, organic,
                                         other, sand, silt, wood))]
    if not collector.ok:
        return collector.error_message()

    logger.debug("Calculating shoreline substrate metrics")
    data = stack_classes(tables)
    if data is None or covers is None:
        return empty_metrics()
    return combine_metrics([_cover_metrics(data, covers, sizes, "SS", SHORELINE_CLASSES)])


def _lookups(collector: ArgumentCollector, covers, sizes):
    covers = collector.standardize(covers if covers is not None else build_weight_table("cover"),
                                   COVER_TABLE_SCHEMA, "substrate_covers")
    sizes = collector.standardize(sizes if sizes is not None else substrate_class_table(),
                                  SUBSTRATE_TABLE_SCHEMA, "substrate_sizes")
    return covers, sizes


def _cover_metrics(data: pd.DataFrame, covers: pd.DataFrame, sizes: pd.DataFrame,
                   prefix: str, order: tuple[str, ...], weighted_fc: bool = False) -> pd.DataFrame:
    sizes = sizes.rename(columns={"name": CLASS, "characteristic_diameter": "diam"})
    bs = (data.merge(covers.rename(columns={"weights": "cover"}), on=VALUE, how="left")
          .merge(sizes, on=CLASS, how="left"))

    presence = aggregate_metric(bs, "presence", protected_mean, f"{prefix}FP")
    variety = _variety(bs, presence, prefix)

    bs = normalized_cover(bs, "cover", "norm_cover")
    cover_stats = summarise_by_class(bs, "norm_cover", f"{prefix}FC", f"{prefix}V", f"{prefix}N")
    mean_cover = cover_stats[cover_stats[METRIC].str.startswith(f"{prefix}FC")]

    estimates = rename_metrics(population_estimates(bs, "cover"), prefix=prefix)
    modes = pd.concat([
        mode_metric(_with_class(presence, f"{prefix}FP"), f"{prefix}OPCLASS", order, _labels(order)),
        mode_metric(_with_class(mean_cover, f"{prefix}FC"), f"{prefix}OFCLASS", order, _labels(order)),
    ], ignore_index=True)

    parts = [presence, variety, cover_stats, estimates, modes]
    if weighted_fc:
        mineral = sizes.loc[sizes["in_population_estimate"].fillna(False).astype(bool)]
        wfc = weighted_log_diameter(_with_class(mean_cover, f"{prefix}FC"),
                                    mineral.set_index(CLASS)["diam"])
        wfc[METRIC] = f"{prefix}XLDIA_WFC"
        parts.append(wfc)
    return pd.concat(parts, ignore_index=True)


def _variety(bs: pd.DataFrame, presence: pd.DataFrame, prefix: str) -> pd.DataFrame:
    """
    Station variety: mean over stations of the number of classes present.
    Site variety: number of classes present anywhere at the site, OTHER excluded;
    sites with no class present get no record.
    """
    stations = bs.groupby([SITE, STATION], sort=True)["presence"].agg(protected_sum).reset_index()
    sta = aggregate_metric(stations.rename(columns={"presence": VALUE}), VALUE, protected_mean,
                           f"{prefix}ISTAVARIETY", by=[SITE])

    fp = _with_class(presence, f"{prefix}FP")
    fp = fp[fp[CLASS] != "OTHER"]
    fp = fp.assign(present=pd.to_numeric(fp[VALUE], errors="coerce") > 0)
    site = fp.groupby(SITE, sort=True)["present"].sum().astype(int).reset_index(name=VALUE)
    site = site[site[VALUE] > 0].copy()
    site[METRIC] = f"{prefix}ISITEVARIETY"
    return pd.concat([sta, site[[SITE, METRIC, VALUE]].astype({VALUE: object})], ignore_index=True)


def _with_class(metrics: pd.DataFrame, prefix: str) -> pd.DataFrame:
    out = metrics.copy()
    out[CLASS] = out[METRIC].str[len(prefix):]
    return out


def _labels(order) -> dict:
    return {c: c.capitalize() for c in order}


def indiv_color(color: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Fractional presence of each sediment color among stations with a color, and its mode."""
    if color is None:
        return empty_metrics()
    c = color[color[VALUE].notna()].copy()
    if c.empty:
        logger.info("No sediment color values recorded")
        return empty_metrics()
    c["OTHERCOLOR"] = c[VALUE].str.startswith("OTHER_")
    for name in ("BLACK", "BROWN", "GRAY", "RED"):
        c[name] = c[VALUE] == name
    fracs = c.groupby(SITE, sort=True)[list(COLOR_CLASSES)].mean()
    long = (fracs.reset_index().melt(id_vars=[SITE], var_name=CLASS, value_name=VALUE))
    indiv = long.assign(**{METRIC: "BSF" + long[CLASS]})
    count = aggregate_metric(c, VALUE, count_valid, "BSNCOLOR", by=[SITE])
    mode = mode_metric(long, "BSOCOLOR", COLOR_CLASSES)
    return pd.concat([indiv[[SITE, METRIC, VALUE]].astype({VALUE: object}), count, mode],
                     ignore_index=True)


def indiv_odor(odor: Optional[pd.DataFrame]) -> pd.DataFrame:
    """
    Fractional presence of each sediment odor, and its mode. Stations without
    a recorded odor count toward the denominator; odors never observed at a
    site do not count toward its mode.
    """
    if odor is None:
        return empty_metrics()
    o = odor.copy()
    values = o[VALUE].astype(object)
    for name in ODOR_CLASSES:
        if name == "OTHER":
            o[name] = values.map(lambda v: isinstance(v, str) and v.startswith("OTHER"))
        else:
            o[name] = values.map(lambda v, name=name: v == name)
    fracs = o.groupby(SITE, sort=True)[list(ODOR_CLASSES)].mean()
    long = fracs.reset_index().melt(id_vars=[SITE], var_name=CLASS, value_name=VALUE)
    indiv = long.assign(**{METRIC: long[CLASS].map(ODOR_METRICS)})
    count = aggregate_metric(o, VALUE, count_valid, "BSNODOR", by=[SITE])
    mode = mode_metric(long.assign(**{VALUE: long[VALUE].where(long[VALUE] != 0)}),
                       "BSOODOR", ODOR_CLASSES)
    return pd.concat([indiv[[SITE, METRIC, VALUE]].astype({VALUE: object}), count, mode],
                     ignore_index=True)
