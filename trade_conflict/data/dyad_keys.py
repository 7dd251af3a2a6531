from __future__ import annotations

import numpy as np
import pandas as pd

def directed_key(ccode1: int, ccode2: int, year: int) -> str:
    """Order-sensitive dyad-year key: A→B and B→A differ."""
    return f"{int(ccode1)}_{int(ccode2)}_{int(year)}"

def undirected_key(ccode1: int, ccode2: int, year: int) -> str:
    """Order-insensitive dyad-year key, used for conflict history and unique-dyad counts."""
    lo, hi = sorted((int(ccode1), int(ccode2)))
    return f"{lo}_{hi}_{int(year)}"

def dyad_id(ccode1: int, ccode2: int) -> str:
    lo, hi = sorted((int(ccode1), int(ccode2)))
    return f"{lo}_{hi}"

def _join(*parts: pd.Series) -> pd.Series:
    out = parts[0].astype("int64").astype(str)
    for p in parts[1:]:
        out = out + "_" + p.astype("int64").astype(str)
    return out

def directed_keys(c1: pd.Series, c2: pd.Series, year: pd.Series) -> pd.Series:
    return _join(c1, c2, year)

def dyad_ids(c1: pd.Series, c2: pd.Series) -> pd.Series:
    lo = pd.Series(np.minimum(c1.to_numpy(), c2.to_numpy()), index=c1.index)
    hi = pd.Series(np.maximum(c1.to_numpy(), c2.to_numpy()), index=c1.index)
    return _join(lo, hi)

def undirected_keys(c1: pd.Series, c2: pd.Series, year: pd.Series) -> pd.Series:
    return dyad_ids(c1, c2) + "_" + year.astype("int64").astype(str)

def add_dyad_keys(
    df: pd.DataFrame,
    *,
    c1: str = "ccode1",
    c2: str = "ccode2",
    year: str = "year",
) -> pd.DataFrame:
    """Return a copy with ``directed_key``, ``undirected_key`` and ``dyad_id`` columns."""
    out = df.copy()
    if len(out) == 0:
        out["directed_key"] = pd.Series(dtype=str)
        out["undirected_key"] = pd.Series(dtype=str)
        out["dyad_id"] = pd.Series(dtype=str)
        return out
    out["directed_key"] = directed_keys(out[c1], out[c2], out[year])
    out["dyad_id"] = dyad_ids(out[c1], out[c2])
    out["undirected_key"] = out["dyad_id"] + "_" + out[year].astype("int64").astype(str)
    return out
