"""Dataset ingestion and cleaning.

Turns a raw trial table into the frame the optimiser expects: complete rows
only, categorical columns typed as pandas ``category`` with levels fixed at
load time, and an optional ``DECADE`` factor derived from ``YEAR``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

DECADE_LABELS = ["Before 1980s", "1980s", "1990s", "2000s", "2010s", "2020s"]


def load_table(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"Unsupported extension: {path.suffix}")


def year_to_decade(years: pd.Series) -> pd.Series:
    """Bucket years into decade labels; anything before 1980 shares one level."""
    edges = [-np.inf, 1980, 1990, 2000, 2010, 2020, np.inf]
    return pd.cut(years, bins=edges, labels=DECADE_LABELS, right=False)


def process_data(
    raw: pd.DataFrame,
    categorical: Sequence[str] = (),
    *,
    derive_decade: bool = True,
    drop: Iterable[str] = ("SYST", "YEAR"),
    verbose: bool = False,
) -> pd.DataFrame:
    """Clean a raw table for feature selection.

    Parameters
    ----------
    raw : pd.DataFrame
        Table as read from disk.
    categorical : Sequence[str]
        Columns to type as factors even if they are stored as numbers
        (ordinal scores). Text columns always become factors.
    derive_decade : bool
        Add a ``DECADE`` factor right after ``YEAR`` when ``YEAR`` exists.
    drop : Iterable[str]
        Columns removed after derivation (missing ones are ignored).

    Returns
    -------
    pd.DataFrame
        Cleaned copy with a fresh ``RangeIndex``.
    """
    df = raw.dropna(how="any").reset_index(drop=True)
    n_dropped = len(raw) - len(df)
    if verbose and n_dropped:
        print(f"[info] dropped {n_dropped} incomplete rows")

    for col in categorical:
        if col in df.columns:
            df[col] = df[col].astype(str).astype("category")
    for col in df.columns:
        if pd.api.types.is_object_dtype(df[col]) or pd.api.types.is_string_dtype(df[col]):
            df[col] = df[col].astype("category")

    if derive_decade and "YEAR" in df.columns:
        decade = year_to_decade(df["YEAR"])
        df.insert(df.columns.get_loc("YEAR") + 1, "DECADE", decade)

    columns_to_drop = [c for c in drop if c in df.columns]
    if columns_to_drop:
        df = df.drop(columns=columns_to_drop)
    return df
