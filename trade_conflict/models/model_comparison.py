from __future__ import annotations
from typing import Dict, List, Optional
import math

import numpy as np
import pandas as pd

from .ordered_logit import OrderedLogitResult

def bic_weights(bics: List[float]) -> List[float]:
    bmin = min(bics)
    deltas = [b - bmin for b in bics]
    w = [math.exp(-0.5 * d) for d in deltas]
    s = sum(w) or 1.0
    return [wi / s for wi in w]

def likelihood_ratio_test(restricted: OrderedLogitResult, full: OrderedLogitResult) -> Dict[str, float]:
    """LR test of nested models; only defined when both were fit on the same rows."""
    from scipy.stats import chi2

    df = len(full.params) - len(restricted.params)
    if restricted.n != full.n or df <= 0:
        return {"lr_stat": float("nan"), "df": float(df), "p_value": float("nan")}
    stat = max(0.0, 2.0 * (full.llf - restricted.llf))
    return {"lr_stat": float(stat), "df": float(df), "p_value": float(chi2.sf(stat, df))}

def compare_models(results: Dict[str, Optional[OrderedLogitResult]]) -> pd.DataFrame:
    """Fit statistics of the estimated models with BIC weights among models sharing a sample size.

    Information criteria are only comparable on identical samples, so weights are
    computed within groups of equal N.
    """
    fitted = [r for r in results.values() if r is not None]
    if not fitted:
        return pd.DataFrame(columns=["model", "label", "n", "k", "llf", "aic", "bic", "bic_weight"])
    rows = [{
        "model": r.spec.name,
        "label": r.spec.label,
        "n": r.n,
        "k": int(len(r.params)),
        "llf": r.llf,
        "aic": r.aic,
        "bic": r.bic,
    } for r in fitted]
    df = pd.DataFrame(rows)
    df["bic_weight"] = np.nan
    for _, idx in df.groupby("n").groups.items():
        ws = bic_weights(df.loc[idx, "bic"].astype(float).tolist())
        df.loc[idx, "bic_weight"] = ws
    return df.sort_values(["n", "bic"], ascending=[False, True]).reset_index(drop=True)
