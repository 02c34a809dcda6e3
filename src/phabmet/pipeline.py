"""
Run several metric families over one set of parameter tables.

Tables are passed as a mapping from argument name (e.g. 'sand',
'buildings_dd', 'drawdown') to observation table; each family receives the
tables whose names match its arguments.
"""
from __future__ import annotations
import inspect
import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union
import pandas as pd

from .config import INTERIM, METRIC, SITE
from .data_io import load_argument
from .data_process.dataframe_ops import combine_metrics
from .habitat_metrics import (
    bank_morphology, bottom_substrate, channel_habitat, fish_cover, human_influence,
    invasive_species, littoral_depth, riparian_vegetation, shoreline_substrate,
)

logger = logging.getLogger(__name__)

FAMILIES = {
    "bottom_substrate": bottom_substrate,
    "shoreline_substrate": shoreline_substrate,
    "human_influence": human_influence,
    "fish_cover": fish_cover,
    "riparian_vegetation": riparian_vegetation,
    "bank_morphology": bank_morphology,
    "channel_habitat": channel_habitat,
    "invasive_species": invasive_species,
    "littoral_depth": littoral_depth,
}


def _family_arguments(family: str, func, tables: Mapping[str, object],
                      options: Mapping[str, object]) -> tuple[dict, dict]:
    params = inspect.signature(func).parameters
    kwargs = {}
    for name, p in params.items():
        if p.kind is not inspect.Parameter.POSITIONAL_OR_KEYWORD:
            continue
        for key in (f"{family}.{name}", name):
            if key in tables:
                kwargs[name] = tables[key]
                break
    opts = {name: value for name, value in options.items()
            if name in params and params[name].kind is inspect.Parameter.KEYWORD_ONLY}
    return kwargs, opts


def compute_metrics(
    tables: Mapping[str, object],
    families: Optional[Iterable[str]] = None,
    **options,
) -> tuple[pd.DataFrame, dict[str, str]]:
    """
    Compute the requested metric families and stack their results.

    Args:
        tables: Observation tables keyed by argument name. A key of the form
            "<family>.<argument>" (e.g. "fish_cover.boulders") applies to one
            family only and takes precedence over a plain argument name,
            which is shared by every family having that argument.
        families: Names from FAMILIES (default: all)
        **options: Keyword options such as data_2007 or is_unit_test, passed
            to each family that accepts them

    Returns:
        (metrics, errors): the combined long metric table, and the error
        message of each family that rejected its input

    Raises:
        KeyError: for an unknown family name
    """
    names = list(FAMILIES) if families is None else list(families)
    unknown = [n for n in names if n not in FAMILIES]
    if unknown:
        raise KeyError(f"Unknown metric families: {unknown}")

    results, errors = [], {}
    for name in names:
        func = FAMILIES[name]
        kwargs, opts = _family_arguments(name, func, tables, options)
        if not kwargs:
            logger.info("Skipping %s: no tables", name)
            continue
        logger.debug("Computing %s", name)
        out = func(**kwargs, **opts)
        if isinstance(out, str):
            logger.warning("%s failed: %s", name, out)
            errors[name] = out
        else:
            results.append(out)

    metrics = combine_metrics(results)
    logger.info("Computed %d metrics for %d sites",
                metrics[METRIC].nunique(), metrics[SITE].nunique())
    return metrics, errors


def load_tables(names: Union[Iterable[str], Mapping[str, str]],
                directory: Optional[Union[str, Path]] = None) -> dict[str, pd.DataFrame]:
    """
    Load argument tables saved with `arg_save_path`.

    Args:
        names: Argument names, or a mapping of argument name to the saved
            file stem (e.g. {'buildings': 'HI_BUILDINGS'})
        directory: Directory of the saved tables (default: the interim data
            directory)

    Returns:
        Tables keyed by argument name; names without a saved file are skipped
    """
    stems = dict(names) if isinstance(names, Mapping) else {n: n for n in names}
    directory = Path(directory) if directory is not None else INTERIM
    tables = {}
    for name, stem in stems.items():
        if not (directory / f"{stem}.parquet").exists():
            logger.debug("No saved table for %s", name)
            continue
        tables[name] = load_argument(stem, directory)
    return tables
