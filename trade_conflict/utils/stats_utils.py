from __future__ import annotations
from typing import Iterable
import numpy as np
import pandas as pd

def significance_stars(p: float) -> str:
    """*** p<0.001, ** p<0.01, * p<0.05, † p<0.10."""
    if p is None or not np.isfinite(p):
        return ""
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    if p < 0.05:
        return "*"
    if p < 0.10:
        return "†"
    return ""

def safe_ratio(num: pd.Series, den: pd.Series) -> pd.Series:
    """num/den where den > 0, NaN elsewhere (never inf)."""
    num = pd.to_numeric(num, errors="coerce").astype(float)
    den = pd.to_numeric(den, errors="coerce").astype(float)
    ok = den.notna() & (den > 0) & num.notna()
    out = pd.Series(np.nan, index=num.index, dtype=float)
    out[ok] = num[ok] / den[ok]
    return out

def count_defined(df: pd.DataFrame, cols: Iterable[str]) -> dict:
    return {c: int(df[c].notna().sum()) for c in cols if c in df.columns}

def share(part: int, whole: int) -> float:
    return float(part) / float(whole) if whole else float("nan")

def fmt_int(n: int) -> str:
    return f"{int(n):,}"

def fmt_pct(x: float, digits: int = 1) -> str:
    if x is None or not np.isfinite(x):
        return ""
    return f"{100.0 * x:.{digits}f}"

