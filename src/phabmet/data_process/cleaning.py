from __future__ import annotations
import numbers
import numpy as np
import pandas as pd

def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize column names by stripping whitespace, replacing spaces with underscores,
    removing special characters and lower-casing, so that 'SITE' and ' site ' both
    become 'site'.

    Args:
        df: Input DataFrame

    Returns:
        DataFrame with normalized column names
    """
    df = df.copy()
    df.columns = (
        df.columns
        .astype(str)
        .str.strip()
        .str.replace(r"\s+", "_", regex=True)
        .str.replace(r"[^0-9A-Za-z_]", "", regex=True)
        .str.lower()
    )
    return df

def is_kind(value, kind: str) -> bool:
    """
    Return True if a single non-null value is of the named primitive kind.

    Kinds are 'integer', 'double', 'character' and 'logical'. Integral floats
    count as integers, since pandas stores integer columns with gaps as float.
    """
    if kind == "character":
        return isinstance(value, str)
    if kind == "logical":
        return isinstance(value, (bool, np.bool_)) or (
            isinstance(value, numbers.Integral) and value in (0, 1)
        )
    if isinstance(value, (bool, np.bool_)):
        return False
    if kind == "integer":
        if isinstance(value, numbers.Integral):
            return True
        return isinstance(value, numbers.Real) and float(value).is_integer()
    if kind == "double":
        return isinstance(value, numbers.Real)
    raise ValueError(f"Unknown column kind: {kind}")

def as_character(value):
    """Cast a scalar to its string code; integral floats lose the trailing '.0'."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, str):
        value = value.strip()
        return value if value != "" else None
    if isinstance(value, (bool, np.bool_)):
        return str(bool(value))
    if isinstance(value, numbers.Real) and float(value).is_integer():
        return str(int(value))
    return str(value)

def cast_kinds(df: pd.DataFrame, spec: dict[str, tuple[str, ...]]) -> pd.DataFrame:
    """
    Cast columns towards their accepted kinds without losing information.

    - 'character' columns: numbers become their string codes, blanks become null.
    - 'integer' id columns holding integral floats become Python ints.
    - 'logical' columns holding 0/1 become booleans.
    Values of other kinds are left untouched so that validation reports them.

    Args:
        df: Input DataFrame
        spec: Dictionary mapping column names to accepted kinds

    Returns:
        DataFrame with columns cast where possible
    """
    df = df.copy()
    for col, kinds in spec.items():
        if col not in df.columns:
            continue
        s = df[col]
        if "character" in kinds and "integer" in kinds:
            # opaque ids: integers stay int, strings are stripped
            df[col] = _map_object(s, _as_id)
        elif "character" in kinds:
            df[col] = _map_object(s, as_character)
        elif "logical" in kinds:
            df[col] = _map_object(s, _as_logical)
    return df

def _as_logical(value):
    if value is None or isinstance(value, str):
        return value
    if pd.isna(value):
        return None
    if is_kind(value, "logical"):
        return bool(value)
    return value

def _as_id(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, str):
        return value.strip()
    if is_kind(value, "integer"):
        return int(value)
    return value

def coerce_numeric(df: pd.DataFrame, cols: list[str]) -> pd.DataFrame:
    """
    Convert columns to float, turning unparseable entries into NaN ("NA by coercion").

    Args:
        df: Input DataFrame
        cols: Columns to convert

    Returns:
        DataFrame with numeric columns
    """
    df = df.copy()
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    return df

def _map_object(s: pd.Series, func) -> pd.Series:
    # Series.map would re-infer [1, None] as float64
    return pd.Series([func(v) for v in s], index=s.index, dtype=object)
