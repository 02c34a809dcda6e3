"""
Null-safe statistics and the cover normalization engine.

All reducers ignore nulls, return NaN (never 0) when every input is null, and
sum with `math.fsum` so that results do not depend on row order.
"""
from __future__ import annotations
import math
from typing import Iterable, Optional, Sequence
import numpy as np
import pandas as pd

from .dataframe_ops import sort_rows
from ..config import CLASS, METRIC, SITE, STATION, VALUE

_FUZZ = 4 * np.finfo(float).eps


def _valid(values) -> np.ndarray:
    # presence flags arrive as object columns of bool/None
    items = [float(v) if isinstance(v, (bool, np.bool_)) else v for v in values]
    x = pd.to_numeric(pd.Series(items, dtype=object), errors="coerce").to_numpy(dtype=float)
    return x[~np.isnan(x)]


def protected_sum(values) -> float:
    """Sum of non-null values; NaN when there are none."""
    x = _valid(values)
    if x.size == 0:
        return np.nan
    return math.fsum(x)


def protected_mean(values) -> float:
    """Mean of non-null values; NaN when there are none."""
    x = _valid(values)
    if x.size == 0:
        return np.nan
    return math.fsum(x) / x.size


def sample_sd(values) -> float:
    """Sample standard deviation of non-null values; NaN for fewer than two."""
    x = _valid(values)
    if x.size < 2:
        return np.nan
    mean = math.fsum(x) / x.size
    return math.sqrt(math.fsum((x - mean) ** 2) / (x.size - 1))


def count_valid(values) -> int:
    """Number of non-null values of any kind."""
    return int(pd.Series(list(values), dtype=object).notna().sum())


def protected_max(values) -> float:
    x = _valid(values)
    return float(x.max()) if x.size else np.nan


def protected_min(values) -> float:
    x = _valid(values)
    return float(x.min()) if x.size else np.nan


def quantile_type2(values, p: float) -> float:
    """
    Sample quantile by inverse of the empirical CDF with averaging at
    discontinuities (Hyndman & Fan type 2, the SAS PROC UNIVARIATE default).

    When n*p falls on an integer j the result is the mean of the j-th and
    (j+1)-th order statistics, otherwise the ceil(n*p)-th order statistic.
    """
    x = np.sort(_valid(values))
    n = x.size
    if n == 0:
        return np.nan
    nppm = n * p
    j = int(math.floor(nppm + _FUZZ))
    # pad so that x[0] and x[n+1] repeat the extremes
    padded = np.concatenate(([x[0]], x, [x[-1]]))
    lower = padded[min(max(j, 0), n + 1)]
    upper = padded[min(max(j + 1, 0), n + 1)]
    if nppm > j:
        return float(upper)
    return float((lower + upper) / 2)


def iqr_type2(values) -> float:
    return quantile_type2(values, 0.75) - quantile_type2(values, 0.25)


def median(values) -> float:
    return quantile_type2(values, 0.5)


# ---------------------------------------------------------------------------
# Cover normalization engine
# ---------------------------------------------------------------------------

def normalized_cover(df: pd.DataFrame, cover: str = "cover", out: str = "norm_cover",
                     keys: Sequence[str] = (SITE, STATION)) -> pd.DataFrame:
    """
    Rescale competing covers so that they do not exceed full coverage.

    Within each `keys` group, covers are divided by their total only when the
    total exceeds 1; totals at or below 1 are left as they are. Null covers
    stay null.

    Args:
        df: Station level table with a numeric `cover` column
        cover: Name of the raw cover column
        out: Name of the column to receive normalized covers
        keys: Grouping columns

    Returns:
        Copy of df with the `out` column added
    """
    df = df.copy()
    covers = pd.to_numeric(df[cover], errors="coerce").astype(float)
    totals = covers.groupby([df[k] for k in keys], dropna=False).transform(protected_sum)
    df[out] = np.where(totals > 1, covers / totals, covers)
    return df


def _long(frame: pd.DataFrame, metric: pd.Series) -> pd.DataFrame:
    return pd.DataFrame({SITE: frame[SITE].to_numpy(), METRIC: metric.to_numpy(),
                         VALUE: frame[VALUE].to_numpy()}).astype({VALUE: object})


def aggregate_metric(df: pd.DataFrame, values: str, func, prefix: str,
                     by: Sequence[str] = (SITE, CLASS), suffix: str = "") -> pd.DataFrame:
    """
    Apply `func` to `values` grouped by site (and class), naming the results
    `<prefix><class><suffix>`, or `<prefix><suffix>` when grouping by site only.
    """
    if df is None or df.empty:
        return empty_metrics()
    by = list(by)
    tt = df.groupby(by, sort=True)[values].agg(func).reset_index().rename(columns={values: VALUE})
    if CLASS in by:
        metric = prefix + tt[CLASS].astype(str) + suffix
    else:
        metric = pd.Series([prefix + suffix] * len(tt))
    return _long(tt, metric)


def dense_counts(df: pd.DataFrame, values: str, prefix: str,
                 sites: Optional[Iterable] = None, classes: Optional[Iterable] = None,
                 suffix: str = "") -> pd.DataFrame:
    """
    Count non-null `values` for every (site, class) pair, emitting 0 for
    pairs with no valid observations instead of dropping them.
    """
    if df is None or df.empty:
        return empty_metrics()
    sites = pd.unique(df[SITE]) if sites is None else list(sites)
    classes = pd.unique(df[CLASS]) if classes is None else list(classes)
    counts = df.groupby([SITE, CLASS], sort=False)[values].agg(count_valid)
    grid = pd.MultiIndex.from_product([sites, classes], names=[SITE, CLASS])
    tt = counts.reindex(grid, fill_value=0).reset_index().rename(columns={values: VALUE})
    tt = sort_rows(tt, [SITE, CLASS])
    tt[VALUE] = tt[VALUE].astype(int)
    return _long(tt, prefix + tt[CLASS].astype(str) + suffix)


def summarise_by_class(df: pd.DataFrame, values: str, mean_prefix: str, sd_prefix: str,
                       count_prefix: str, suffix: str = "", sites: Optional[Iterable] = None,
                       classes: Optional[Iterable] = None) -> pd.DataFrame:
    """
    Mean, sample sd and dense count of `values` per (site, class). `sites` and
    `classes` extend the count grid beyond the pairs present in `df`.
    """
    if df is None or df.empty:
        return empty_metrics()
    return pd.concat([
        aggregate_metric(df, values, protected_mean, mean_prefix, suffix=suffix),
        aggregate_metric(df, values, sample_sd, sd_prefix, suffix=suffix),
        dense_counts(df, values, count_prefix, sites=sites, classes=classes, suffix=suffix),
    ], ignore_index=True)


def weighted_log_diameter(mean_covers: pd.DataFrame, diameters: pd.Series) -> pd.DataFrame:
    """
    Site level grain size index: sum over classes of mean fractional cover
    times log10 of the characteristic diameter, using classes with cover > 0.

    Args:
        mean_covers: Table with columns site, class, value (mean cover)
        diameters: Characteristic diameter indexed by class

    Returns:
        Table with columns site, value (sites without qualifying covers are absent)
    """
    tt = mean_covers.copy()
    tt["diam"] = tt[CLASS].map(diameters)
    tt[VALUE] = pd.to_numeric(tt[VALUE], errors="coerce")
    tt = tt[tt[VALUE].notna() & (tt[VALUE] > 0) & tt["diam"].notna()]
    tt["wt"] = tt[VALUE] * np.log10(tt["diam"].astype(float))
    tt = tt[np.isfinite(tt["wt"])]
    return tt.groupby(SITE, sort=True)["wt"].agg(protected_sum).reset_index().rename(columns={"wt": VALUE})


_POPULATION_QUANTILES = ((0.16, "16LDIA"), (0.25, "25LDIA"), (0.50, "50LDIA"),
                         (0.75, "75LDIA"), (0.84, "84LDIA"))


def population_estimates(data: pd.DataFrame, cover: str = "cover") -> pd.DataFrame:
    """
    Distribution of station level mean log diameters within each site.

    Covers of classes outside the population estimate (or equal to zero) are
    dropped, the remaining covers renormalized per station, and each station
    summarised as the sum of normalized cover times log10(diameter). The
    station values are then summarised per site as XLDIA (mean), VLDIA (sd)
    and the 16/25/50/75/84th type 2 percentiles. Metric names carry no family
    prefix; callers add it.

    Args:
        data: Station level table with columns site, station, class, cover,
            diam and in_population_estimate
    """
    if data is None or data.empty:
        return empty_metrics()
    mineral = data.copy()
    c = pd.to_numeric(mineral[cover], errors="coerce").astype(float)
    in_pop = mineral["in_population_estimate"].map(lambda v: bool(v) if not pd.isna(v) else False)
    mineral[cover] = c.where((c != 0) & in_pop.astype(bool))
    mineral = normalized_cover(mineral, cover, "norm_cover")
    mineral["wt_diam"] = mineral["norm_cover"] * np.log10(mineral["diam"].astype(float))

    stations = (mineral.groupby([SITE, STATION], sort=True)["wt_diam"]
                .agg(protected_sum).reset_index())

    grouped = stations.groupby(SITE, sort=True)["wt_diam"]
    parts = [_site_series(grouped.agg(protected_mean), "XLDIA"),
             _site_series(grouped.agg(sample_sd), "VLDIA")]
    for p, name in _POPULATION_QUANTILES:
        parts.append(_site_series(grouped.agg(lambda s, p=p: quantile_type2(s, p)), name))
    return pd.concat(parts, ignore_index=True)


def _site_series(s: pd.Series, metric: str) -> pd.DataFrame:
    return pd.DataFrame({SITE: s.index.to_numpy(), METRIC: metric,
                         VALUE: s.to_numpy()}).astype({VALUE: object})


def modal_classes(freqs, order: Sequence[str], sep: str = ", ") -> Optional[str]:
    """
    Most frequent class(es) from a mapping of class -> frequency.

    Ties are joined with `sep` in the canonical `order`. Null frequencies are
    ignored; when no frequency is positive there is no mode and None is
    returned.
    """
    vals = {k: float(freqs[k]) for k in order
            if k in freqs and not pd.isna(freqs[k])}
    if not vals:
        return None
    top = max(vals.values())
    if top <= 0:
        return None
    return sep.join(k for k in order if k in vals and math.isclose(vals[k], top, rel_tol=1e-12, abs_tol=0.0))


def mode_metric(fracs: pd.DataFrame, metric: str, order: Sequence[str],
                labels: Optional[dict] = None) -> pd.DataFrame:
    """
    Per site modal class from a long table of site, class, value frequencies.

    Args:
        fracs: Table with columns site, class, value
        metric: Name of the resulting metric
        order: Canonical class order used for ties
        labels: Optional relabelling of classes in the result
    """
    if fracs is None or fracs.empty:
        return empty_metrics()
    rows = []
    for site, grp in fracs.groupby(SITE, sort=True):
        freqs = dict(zip(grp[CLASS], grp[VALUE]))
        relabelled = {labels.get(k, k) if labels else k: v for k, v in freqs.items()}
        lab_order = [labels.get(k, k) if labels else k for k in order]
        rows.append((site, metric, modal_classes(relabelled, lab_order)))
    return pd.DataFrame(rows, columns=[SITE, METRIC, VALUE]).astype({VALUE: object})


def empty_metrics() -> pd.DataFrame:
    return pd.DataFrame({SITE: pd.Series(dtype=object), METRIC: pd.Series(dtype=object),
                         VALUE: pd.Series(dtype=object)})
