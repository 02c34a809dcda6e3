from __future__ import annotations
from typing import Iterable, Optional, Sequence, Union
import pandas as pd

from ..config import METRIC, METRIC_COLUMNS, SITE, VALUE

# -------------------------------
# Long metric tables
# -------------------------------

def stack_classes(tables: Iterable[Optional[pd.DataFrame]]) -> Optional[pd.DataFrame]:
    """
    Stack per-class observation tables (each already carrying a `class`
    column) into one long table. Absent tables are skipped; returns None when
    nothing is left.
    """
    present = [t for t in tables if t is not None and not t.empty]
    if not present:
        return None
    return pd.concat(present, ignore_index=True)

def combine_metrics(parts: Iterable[Optional[pd.DataFrame]]) -> pd.DataFrame:
    """Concatenate metric tables, check (site, metric) uniqueness, sort by site and metric."""
    present = [p[METRIC_COLUMNS] for p in parts if p is not None and not p.empty]
    if not present:
        return pd.DataFrame({c: pd.Series(dtype=object) for c in METRIC_COLUMNS})
    out = pd.concat(present, ignore_index=True).astype({VALUE: object})
    assert_unique_metrics(out)
    return sort_metrics(out)

def sort_rows(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Sort rows by `columns`; site ids may mix integers and strings (integers first)."""
    cols = [df[c].tolist() for c in columns]
    key = lambda i: tuple((isinstance(col[i], str), col[i]) for col in cols)
    return df.iloc[sorted(range(len(df)), key=key)].reset_index(drop=True)

def sort_metrics(df: pd.DataFrame) -> pd.DataFrame:
    return sort_rows(df, [SITE, METRIC])

def expand_metric_grid(df: pd.DataFrame, metrics: Sequence[str],
                       sites: Optional[Iterable] = None) -> pd.DataFrame:
    """
    Reindex a metric table onto the full (site x metric) grid, filling rows
    that were not calculated with null.
    """
    sites = pd.unique(df[SITE]) if sites is None else list(sites)
    grid = pd.MultiIndex.from_product([list(sites), list(metrics)], names=[SITE, METRIC])
    out = df.set_index([SITE, METRIC])[VALUE].reindex(grid).reset_index()
    return out.astype({VALUE: object})

def rename_metrics(df: pd.DataFrame, prefix: str = "", suffix: str = "") -> pd.DataFrame:
    out = df.copy()
    out[METRIC] = prefix + out[METRIC].astype(str) + suffix
    return out

# -------------------------------
# Wide tables
# -------------------------------

def metrics_to_wide(df: pd.DataFrame, metrics: Optional[Sequence[str]] = None,
                    block: Optional[str] = None) -> pd.DataFrame:
    """
    Pivot a long metric table into one row per site and one column per metric.

    Parameters
    ----------
    df : pd.DataFrame
        Long table with columns site, metric, value.
    metrics : sequence of str | None
        Columns to keep, in order. Metrics absent from `df` become null columns.
    block : str | None
        If given, columns are wrapped into a (block, var) MultiIndex so that
        several families can be joined side by side.

    Returns
    -------
    pd.DataFrame
        Wide table indexed by site.
    """
    assert_unique_metrics(df)
    wide = df.pivot(index=SITE, columns=METRIC, values=VALUE)
    wide.columns.name = None
    if metrics is not None:
        wide = wide.reindex(columns=list(metrics))
    if block is not None:
        wide.columns = pd.MultiIndex.from_product([[str(block)], wide.columns], names=("block", "var"))
    return wide

def wide_to_metrics(df: pd.DataFrame, index: Union[str, Sequence[str]] = SITE) -> pd.DataFrame:
    """Inverse of `metrics_to_wide` for a flat wide table."""
    out = df.reset_index() if index not in df.columns else df.copy()
    long = out.melt(id_vars=[SITE], var_name=METRIC, value_name=VALUE)
    return long.astype({VALUE: object})

def flatten_columns(df: pd.DataFrame, sep: str = "__") -> pd.DataFrame:
    """
    Flatten MultiIndex columns to strings like 'substrate__BSXLDIA'.
    Leaves single-level columns unchanged.
    """
    out = df.copy()
    if isinstance(out.columns, pd.MultiIndex):
        out.columns = [
            sep.join([str(x) for x in tup if x not in ("", None)])
            for tup in out.columns.to_flat_index()
        ]
    return out

# -------------------------------
# Validation / Safety
# -------------------------------

def assert_unique_metrics(df: pd.DataFrame, name: str = "metrics") -> None:
    dups = df[df.duplicated([SITE, METRIC], keep=False)]
    if not dups.empty:
        pairs = list(dups[[SITE, METRIC]].drop_duplicates().itertuples(index=False, name=None))
        raise ValueError(f"{name} has duplicate (site, metric) rows (first 10): {pairs[:10]}")

def coverage_report(results: dict[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Quick availability table: rows=union of sites, cols=family names,
    values=whether the family produced any metric for the site.
    """
    all_sites = pd.Index([])
    for r in results.values():
        all_sites = all_sites.union(pd.Index(pd.unique(r[SITE])))
    rep = {name: all_sites.isin(pd.unique(r[SITE])) for name, r in results.items()}
    out = pd.DataFrame(rep, index=all_sites)
    out.index.name = SITE
    return out
