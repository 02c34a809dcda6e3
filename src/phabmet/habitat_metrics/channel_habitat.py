"""
Channel habitat unit metrics.

The channel unit (riffle, glide, pool, ...) is recorded at each station of
wadeable and boatable reaches; both protocols share the same unit codes.
"""
from __future__ import annotations
import logging
from typing import Optional, Union
import numpy as np
import pandas as pd

from .class_weights import channel_unit_table
from ..config import METRIC, SITE, VALUE
from ..data_process.dataframe_ops import combine_metrics, stack_classes
from ..data_process.transform import aggregate_metric, count_valid, empty_metrics
from ..data_process.validators import ArgumentCollector, ArgumentSchema, ColumnRule, observation_schema

logger = logging.getLogger(__name__)

CHANNEL_UNIT_TABLE_SCHEMA = ArgumentSchema({
    "value": ColumnRule(("character",)),
    "is_fast": ColumnRule(("logical",), legal=(False, True)),
    "is_slow": ColumnRule(("logical",), legal=(False, True)),
    "is_pool": ColumnRule(("logical",), legal=(False, True)),
})

GROUPS = {"pct_fast": "is_fast", "pct_slow": "is_slow", "pct_pool": "is_pool"}


def channel_habitat(
    boatable: Optional[pd.DataFrame] = None,
    wadeable: Optional[pd.DataFrame] = None,
    *,
    channel_units: Optional[pd.DataFrame] = None,
    is_unit_test: bool = False,
    arg_save_path=None,
) -> Union[pd.DataFrame, str]:
    """
    Percent of stations in each channel unit type.

    Each site gets pct_<code> (lower case) for every unit in the lookup,
    pct_fast, pct_slow and pct_pool as sums over the unit groups, and n_ch,
    the number of stations with a recorded unit. Percentages are taken over
    that number.

    Args:
        boatable: Boatable channel units (site, station, value)
        wadeable: Wadeable channel units (site, station, value)
        channel_units: Lookup (value, is_fast, is_slow, is_pool) overriding
            the default unit codes
    """
    collector = ArgumentCollector(is_unit_test, arg_save_path)
    units = collector.standardize(
        channel_units if channel_units is not None else channel_unit_table(),
        CHANNEL_UNIT_TABLE_SCHEMA, "channel_units")
    legal = units[VALUE].dropna().tolist() if units is not None else None
    boatable = collector.standardize(boatable, observation_schema(legal=legal), "boatable")
    wadeable = collector.standardize(wadeable, observation_schema(legal=legal), "wadeable")
    if not collector.ok:
        return collector.error_message()

    data = stack_classes([boatable, wadeable])
    if data is None or units is None:
        logger.info("No channel habitat data to summarise")
        return empty_metrics()
    logger.debug("Calculating channel habitat metrics for %d stations", len(data))
    return combine_metrics([unit_percentages(data, units)])


def unit_percentages(data: pd.DataFrame, units: pd.DataFrame) -> pd.DataFrame:
    count = aggregate_metric(data, VALUE, count_valid, "n_ch", by=[SITE])
    rec = data[data[VALUE].notna()]
    if rec.empty:
        return count

    codes = units[VALUE].tolist()
    pct = pd.crosstab(rec[SITE], rec[VALUE], normalize="index") * 100
    pct = pct.reindex(columns=codes, fill_value=0.0)
    pct.columns.name = None

    parts = [count]
    long = pct.rename(columns=lambda c: f"pct_{c.lower()}").reset_index().melt(
        id_vars=[SITE], var_name=METRIC, value_name=VALUE)
    parts.append(long.astype({VALUE: object}))
    for metric, flag in GROUPS.items():
        members = units.loc[units[flag].fillna(False).astype(bool), VALUE].tolist()
        total = pct[members].sum(axis=1) if members else pd.Series(0.0, index=pct.index)
        parts.append(pd.DataFrame({SITE: pct.index.to_numpy(), METRIC: metric,
                                   VALUE: np.asarray(total, dtype=float)}).astype({VALUE: object}))
    return pd.concat(parts, ignore_index=True)
