from __future__ import annotations
from pathlib import Path
import pandas as pd
from .config import INTERIM

def save_argument(df: pd.DataFrame, name: str, directory: str | Path | None = None) -> Path:
    """
    Save a standardized argument table as a Parquet file.

    Object columns holding a mix of integers and strings (e.g. site ids) are
    written as strings, since Parquet columns must have a single type.

    Args:
        df: The DataFrame to save
        name: The argument name, used as the file stem
        directory: Target directory (default: the interim data directory)

    Returns:
        Path: The full path to the saved file
    """
    directory = Path(directory) if directory is not None else INTERIM
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.parquet"
    out = df.copy()
    for col in out.columns:
        if out[col].dtype == object:
            kinds = {type(v) for v in out[col].dropna()}
            if len(kinds) > 1:
                out[col] = out[col].map(lambda v: v if pd.isna(v) else str(v))
    out.to_parquet(path, index=False)
    return path

def load_argument(name: str, directory: str | Path | None = None) -> pd.DataFrame:
    """
    Load an argument table previously written by `save_argument`.

    Args:
        name: The argument name (file stem)
        directory: Source directory (default: the interim data directory)

    Returns:
        pd.DataFrame: The loaded DataFrame
    """
    directory = Path(directory) if directory is not None else INTERIM
    return pd.read_parquet(directory / f"{name}.parquet")
