from __future__ import annotations
from typing import List, Optional

import numpy as np
import pandas as pd

from ..config import AnalysisWindow
from .contracts import IntegrityError

def expand_spells(
    spells: pd.DataFrame,
    *,
    entity_cols: List[str],
    start_col: str,
    end_col: Optional[str] = None,
    open_end: Optional[int] = None,
) -> pd.DataFrame:
    """Expand interval records into one row per entity per year.

    Each spell covers ``[start, end]`` inclusive. Overlapping spells of the same
    entity are unioned, so every ``(entity..., year)`` appears once. ``open_end``
    supplies the end year when ``end_col`` is None or a row's end is missing
    (alliances are assumed to persist). No windowing is applied here.

    Raises IntegrityError when a spell starts after it ends or has no usable bounds.
    """
    out_cols = list(entity_cols) + ["year"]
    if spells is None or len(spells) == 0:
        return pd.DataFrame({c: pd.Series(dtype="int64") for c in out_cols})

    start = pd.to_numeric(spells[start_col], errors="coerce")
    if end_col is not None:
        end = pd.to_numeric(spells[end_col], errors="coerce")
    else:
        end = pd.Series(np.nan, index=spells.index)
    if open_end is not None:
        end = end.fillna(float(open_end))

    if start.isna().any() or end.isna().any():
        bad = spells[start.isna() | end.isna()]
        raise IntegrityError(f"spell bounds missing for {len(bad)} rows, e.g.:\n{bad.head(5)}")
    inverted = start > end
    if inverted.any():
        bad = spells[inverted]
        raise IntegrityError(f"{len(bad)} spells start after they end, e.g.:\n{bad.head(5)}")

    start = start.astype("int64")
    end = end.astype("int64")
    lengths = (end - start + 1).to_numpy()

    base = spells[list(entity_cols)].reset_index(drop=True)
    expanded = base.loc[base.index.repeat(lengths)].reset_index(drop=True)
    expanded["year"] = np.repeat(start.to_numpy(), lengths) + _offsets(lengths)

    expanded = expanded.drop_duplicates(subset=out_cols)
    return expanded.sort_values(out_cols).reset_index(drop=True)

def _offsets(lengths: np.ndarray) -> np.ndarray:
    # 0..len-1 for each spell, concatenated
    total = int(lengths.sum())
    if total == 0:
        return np.zeros(0, dtype="int64")
    starts = np.repeat(np.cumsum(lengths) - lengths, lengths)
    return np.arange(total, dtype="int64") - starts

def restrict_to_window(df: pd.DataFrame, window: AnalysisWindow, year_col: str = "year") -> pd.DataFrame:
    return df[window.mask(df[year_col])].reset_index(drop=True)
