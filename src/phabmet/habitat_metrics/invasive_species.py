"""
Invasive species metrics.

Each taxon searched for at a site is recorded per station as X or Y (seen) or
N or blank (not seen). A separate table records stations where no invasive
species were seen at all.
"""
from __future__ import annotations
import logging
from typing import Mapping, Optional, Union
import pandas as pd

from ..config import CLASS, METRIC, SITE, VALUE
from ..data_process.cleaning import normalize_columns
from ..data_process.dataframe_ops import combine_metrics, stack_classes
from ..data_process.transform import aggregate_metric, empty_metrics, protected_mean, protected_sum
from ..data_process.validators import ArgumentCollector, observation_schema

logger = logging.getLogger(__name__)

NONE_TAXON = "none"
PRESENCE_CODES = {"X": 1, "Y": 1, "N": 0}
RESERVED_NAME = f"The taxon name '{NONE_TAXON}' is reserved for the table of sites without invasive species"


def invasive_species(
    species: Optional[Mapping[str, pd.DataFrame]] = None,
    none: Optional[pd.DataFrame] = None,
    *,
    is_unit_test: bool = False,
    arg_save_path=None,
) -> Union[pd.DataFrame, str]:
    """
    Fraction of stations at which each invasive taxon was seen.

    Args:
        species: Mapping of taxon name to its observations (site, value in
            X, Y, N or blank); metric names follow the mapping keys
        none: Observations of "no invasive species seen"

    Returns:
        Metric table with f_<taxon> and f_none, the fraction of stations
        with the taxon, and ip_score, the sum of the taxon fractions at a
        site (0 for sites recorded only in `none`). An error message if the
        tables are invalid or a taxon is named 'none'.
    """
    species = dict(species or {})
    if any(str(name).lower() == NONE_TAXON for name in species):
        logger.warning(RESERVED_NAME)
        return RESERVED_NAME

    collector = ArgumentCollector(is_unit_test, arg_save_path)
    schema = observation_schema(legal=tuple(PRESENCE_CODES), with_station=False)
    tables = [collector.standardize(_blank_as_absent(df), schema, name, class_name=str(name))
              for name, df in species.items()]
    none = collector.standardize(_blank_as_absent(none), schema, NONE_TAXON, class_name=NONE_TAXON)
    if not collector.ok:
        return collector.error_message()

    data = stack_classes(tables + [none])
    if data is None:
        logger.info("No invasive species data to summarise")
        return empty_metrics()

    data["seen"] = data[VALUE].map(PRESENCE_CODES)
    logger.debug("Calculating invasive species metrics for %d observations", len(data))
    fractions = aggregate_metric(data, "seen", protected_mean, "f_")
    return combine_metrics([fractions, ip_score(data)])


def _blank_as_absent(df: Optional[pd.DataFrame]) -> Optional[pd.DataFrame]:
    # a blank entry is a taxon looked for and not seen; only nulls are missing
    if df is None or not isinstance(df, pd.DataFrame) or VALUE not in normalize_columns(df).columns:
        return df
    out = normalize_columns(df)
    out[VALUE] = [("N" if isinstance(v, str) and v.strip() == "" else v) for v in out[VALUE]]
    return out


def ip_score(data: pd.DataFrame) -> pd.DataFrame:
    """Sum of taxon fractions per site; sites seen only in the 'none' table score 0."""
    taxa = data[data[CLASS] != NONE_TAXON]
    fracs = taxa.groupby([SITE, CLASS], sort=False)["seen"].agg(protected_mean).reset_index()
    score = fracs.groupby(SITE, sort=False)["seen"].agg(protected_sum)
    none_sites = pd.unique(data.loc[data[CLASS] == NONE_TAXON, SITE])
    only_none = [s for s in none_sites if s not in score.index]
    sites = list(score.index) + only_none
    values = [float(v) for v in score] + [0.0] * len(only_none)
    return pd.DataFrame({SITE: sites, METRIC: "ip_score", VALUE: values}).astype({VALUE: object})
