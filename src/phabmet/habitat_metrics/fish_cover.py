"""
Fish cover metrics.

Cover of each fish concealment feature is recorded as a cover class code at
each station, in the riparian (littoral) zone and in the drawdown zone.
"""
from __future__ import annotations
import logging
from typing import Optional, Union
import pandas as pd

from .class_weights import COVER_TABLE_SCHEMA, FISH_COVER_CLASSES, build_weight_table
from .drawdown import DRAWDOWN_INDICATOR, HORIZ_DIST_DD
from .human_influence import DRAWDOWN_VALUES
from .zones import zoned_cover_metrics
from ..config import MAX_DRAWDOWN_DIST, VALUE
from ..data_process.dataframe_ops import combine_metrics, stack_classes
from ..data_process.transform import empty_metrics
from ..data_process.validators import ArgumentCollector, observation_schema

logger = logging.getLogger(__name__)

# Indices are sums of the mean covers of their member classes
FISH_COVER_INDICES = {
    "IALL": FISH_COVER_CLASSES,
    "IBIG": ("BOULDERS", "LEDGES", "OVERHANG", "STRUCTURES"),
    "INATURAL": tuple(c for c in FISH_COVER_CLASSES if c != "STRUCTURES"),
    "IRIPVEG": ("BRUSH", "LIVETREES", "OVERHANG"),
}


def fish_cover(
    aquatic: Optional[pd.DataFrame] = None,
    aquatic_dd: Optional[pd.DataFrame] = None,
    boulders: Optional[pd.DataFrame] = None,
    boulders_dd: Optional[pd.DataFrame] = None,
    brush: Optional[pd.DataFrame] = None,
    brush_dd: Optional[pd.DataFrame] = None,
    ledges: Optional[pd.DataFrame] = None,
    ledges_dd: Optional[pd.DataFrame] = None,
    livetrees: Optional[pd.DataFrame] = None,
    livetrees_dd: Optional[pd.DataFrame] = None,
    overhang: Optional[pd.DataFrame] = None,
    overhang_dd: Optional[pd.DataFrame] = None,
    snags: Optional[pd.DataFrame] = None,
    snags_dd: Optional[pd.DataFrame] = None,
    structures: Optional[pd.DataFrame] = None,
    structures_dd: Optional[pd.DataFrame] = None,
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
    Calculate fish cover metrics: FCFP, FCFC, FCV and FCN per class and the
    FCIALL, FCIBIG, FCINATURAL and FCIRIPVEG indices, suffixed by zone.

    Args:
        create_synthetic_covers: Also blend riparian and drawdown covers into
            synthetic (_SYN) covers; requires `horizontal_distance_dd`
        cover_weights: Cover class lookup (value, weights, presence)

    See `human_influence` for the drawdown arguments.
    """
    classes = {
        "AQUATIC": aquatic, "AQUATIC_DD": aquatic_dd,
        "BOULDERS": boulders, "BOULDERS_DD": boulders_dd,
        "BRUSH": brush, "BRUSH_DD": brush_dd,
        "LEDGES": ledges, "LEDGES_DD": ledges_dd,
        "LIVETREES": livetrees, "LIVETREES_DD": livetrees_dd,
        "OVERHANG": overhang, "OVERHANG_DD": overhang_dd,
        "SNAGS": snags, "SNAGS_DD": snags_dd,
        "STRUCTURES": structures, "STRUCTURES_DD": structures_dd,
    }
    collector = ArgumentCollector(is_unit_test, arg_save_path)
    covers = collector.standardize(
        cover_weights if cover_weights is not None else build_weight_table("cover"),
        COVER_TABLE_SCHEMA, "cover_weights")
    legal = covers[VALUE].dropna().tolist() if covers is not None else None
    tables = [collector.standardize(t, observation_schema(legal=legal), f"FC_{name}", class_name=name)
              for name, t in classes.items()]
    drawdown = collector.standardize(drawdown, observation_schema(legal=DRAWDOWN_VALUES),
                                     DRAWDOWN_INDICATOR, class_name=DRAWDOWN_INDICATOR)
    horiz = collector.standardize(horizontal_distance_dd, observation_schema(),
                                  HORIZ_DIST_DD, class_name=HORIZ_DIST_DD)
    if not collector.ok:
        return collector.error_message()

    data = stack_classes(tables)
    if data is None or covers is None:
        logger.info("No fish cover data to summarise")
        return empty_metrics()

    logger.debug("Calculating fish cover metrics")
    mets = zoned_cover_metrics(
        data, horiz, drawdown, covers, "FC", FISH_COVER_INDICES,
        create_synthetic_covers=create_synthetic_covers, data_2007=data_2007,
        fillin_drawdown=fillin_drawdown, max_drawdown_dist=fillin_dd_max_drawdown_dist,
    )
    if isinstance(mets, str):
        return mets
    return combine_metrics([mets])
