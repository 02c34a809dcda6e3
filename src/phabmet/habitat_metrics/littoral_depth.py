"""Littoral depth metrics: depth in m at the littoral plot of each station."""
from __future__ import annotations
import logging
from typing import Optional, Union
import pandas as pd

from ..config import SITE, VALUE
from ..data_process.dataframe_ops import combine_metrics
from ..data_process.transform import (
    aggregate_metric, empty_metrics, protected_max, protected_mean, protected_min, sample_sd,
)
from ..data_process.validators import ArgumentCollector, observation_schema

logger = logging.getLogger(__name__)

LITTORAL_DEPTH_METRICS = {
    "xlit": protected_mean,
    "vlit": sample_sd,
    "mxlit": protected_max,
    "mnlit": protected_min,
}


def littoral_depth(
    depth: Optional[pd.DataFrame] = None,
    *,
    is_unit_test: bool = False,
    arg_save_path=None,
) -> Union[pd.DataFrame, str]:
    """
    Mean (xlit), sample sd (vlit), maximum (mxlit) and minimum (mnlit)
    littoral depth per site. Depths must lie within 0-5 m; unparseable
    values are treated as missing, and a site with no valid depths gets
    null metrics.
    """
    collector = ArgumentCollector(is_unit_test, arg_save_path)
    depth = collector.standardize(
        depth, observation_schema(numeric=True, limits=(0, 5), with_station=False), "littoralDepth")
    if not collector.ok:
        return collector.error_message()
    if depth is None:
        logger.info("No littoral depth data to summarise")
        return empty_metrics()

    logger.debug("Calculating littoral depth metrics")
    return combine_metrics([aggregate_metric(depth, VALUE, func, name, by=[SITE])
                            for name, func in LITTORAL_DEPTH_METRICS.items()])
