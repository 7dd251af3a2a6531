from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..data.schemas import conflict_label
from ..utils.logging_utils import get_logger
from ..utils.stats_utils import significance_stars

logger = get_logger(__name__)

OUTCOME = "conflict_label"

@dataclass
class OrderedLogitSpec:
    name: str
    label: str
    covariates: List[str]
    interactions: List[Tuple[str, str]] = field(default_factory=list)
    year_fe: bool = False

    def columns(self) -> List[str]:
        cols = list(self.covariates)
        for a, b in self.interactions:
            for c in (a, b):
                if c not in cols:
                    cols.append(c)
        return cols

BASE = ["is_contiguous", "has_major", "cinc_ratio", "alliance"]
# asymmetry = higher - lower; listed first so the aliased dependence term is the one dropped
ASYMMETRY = ["trade_asymmetry", "trade_dep_lower", "trade_dep_higher"]

DEFAULT_SPECS: List[OrderedLogitSpec] = [
    OrderedLogitSpec("model1", "Baseline", BASE),
    OrderedLogitSpec("model2", "+ Bilateral trade", BASE + ["log_trade_total"]),
    OrderedLogitSpec("model3", "+ Trade vulnerability", BASE + ASYMMETRY),
    OrderedLogitSpec(
        "model4", "+ Interactions",
        BASE + ASYMMETRY + ["democracy_min", "joint_democracy"],
        interactions=[("trade_asymmetry", "has_major"), ("trade_asymmetry", "joint_democracy")],
    ),
    OrderedLogitSpec(
        "model5", "Full specification",
        ["is_contiguous", "has_major", "cinc_ratio", "power_parity", "alliance"] + ASYMMETRY
        + ["democracy_min", "joint_democracy", "prev_mid"],
        year_fe=True,
    ),
]

@dataclass
class OrderedLogitResult:
    spec: OrderedLogitSpec
    n: int
    params: pd.Series
    bse: pd.Series
    pvalues: pd.Series
    llf: float
    aic: float
    bic: float
    cov_type: str
    exog_names: List[str]
    year_fe_used: bool
    n_clusters: int
    fitted: Any = None

    def coefficients(self) -> pd.DataFrame:
        rows = []
        for name in self.exog_names:
            if name.startswith("year_"):
                continue
            p = float(self.pvalues[name])
            rows.append({
                "variable": name,
                "coef": float(self.params[name]),
                "se": float(self.bse[name]),
                "p_value": p,
                "stars": significance_stars(p),
            })
        return pd.DataFrame(rows)

    def summary(self) -> Dict[str, Any]:
        return {
            "label": self.spec.label,
            "n": int(self.n),
            "llf": float(self.llf),
            "aic": float(self.aic),
            "bic": float(self.bic),
            "cov_type": self.cov_type,
            "year_fe": bool(self.year_fe_used),
            "n_clusters": int(self.n_clusters),
        }

def prepare_regression_sample(panel: pd.DataFrame) -> pd.DataFrame:
    """Model-ready copy of the panel: numeric flags, log trade, ordered outcome."""
    d = panel.copy()
    for c in ("is_contiguous", "has_major"):
        d[c] = d[c].astype(int)
    d["log_trade_total"] = np.log1p(d["trade_total"].where(d["trade_total"] >= 0))
    if OUTCOME not in d.columns or not isinstance(d[OUTCOME].dtype, pd.CategoricalDtype):
        d[OUTCOME] = conflict_label(d["conflict_intensity"])
    return d

def _aliased_columns(X: pd.DataFrame, tol: float = 1e-8) -> List[str]:
    """Columns lying in the span of an intercept and the columns before them."""
    basis = [np.ones(len(X))]
    aliased = []
    for c in X.columns:
        v = X[c].to_numpy(dtype=float)
        B = np.column_stack(basis)
        coef = np.linalg.lstsq(B, v, rcond=None)[0]
        if np.linalg.norm(v - B @ coef) <= tol * max(np.linalg.norm(v), 1.0):
            aliased.append(c)
        else:
            basis.append(v)
    return aliased

def design_matrix(d: pd.DataFrame, spec: OrderedLogitSpec, *, year_fe: bool) -> pd.DataFrame:
    """Regressors for ``spec``: covariates, interaction products, optional year dummies.

    Ordered models carry no intercept, so constant columns and columns that are linear
    combinations of earlier ones (plus a constant) are dropped in column order, the way
    aliased coefficients are dropped from a rank-deficient fit.
    """
    X = d[spec.columns()].astype(float).copy()
    for a, b in spec.interactions:
        X[f"{a}:{b}"] = X[a] * X[b]
    if year_fe:
        dummies = pd.get_dummies(d["year"].astype(int), prefix="year", drop_first=True, dtype=float)
        X = pd.concat([X, dummies], axis=1)
    aliased = _aliased_columns(X)
    if aliased:
        logger.info("%s: dropping constant or aliased columns %s", spec.name, aliased)
        X = X.drop(columns=aliased)
    return X

def complete_cases(sample: pd.DataFrame, spec: OrderedLogitSpec, cluster_col: str) -> pd.DataFrame:
    cols = [OUTCOME, cluster_col, "year"] + spec.columns()
    return sample.dropna(subset=cols).reset_index(drop=True)

def _cluster_cov(res, groups: np.ndarray) -> Optional[np.ndarray]:
    from statsmodels.stats.sandwich_covariance import cov_cluster
    try:
        return np.asarray(cov_cluster(res, groups))
    except (np.linalg.LinAlgError, ValueError) as e:
        logger.warning("Cluster-robust covariance failed (%s); using model-based standard errors.", e)
        return None

def _fit(y: pd.Series, X: pd.DataFrame, maxiter: int):
    from statsmodels.miscmodels.ordinal_model import OrderedModel
    model = OrderedModel(y, X, distr="logit")
    return model.fit(method="bfgs", maxiter=maxiter, disp=False)

def fit_ordered_logit(
    sample: pd.DataFrame,
    spec: OrderedLogitSpec,
    *,
    cluster_col: str = "dyad_id",
    min_obs: int = 100,
    maxiter: int = 2000,
) -> OrderedLogitResult:
    """Ordered logit of conflict intensity with standard errors clustered by dyad.

    Uses complete cases on the outcome and the spec's covariates; raises ValueError if
    the sample has ``min_obs`` rows or fewer or fewer than two outcome levels. With
    year fixed effects, a failed fit is retried without them.
    """
    from scipy.stats import norm

    d = complete_cases(sample, spec, cluster_col)
    if len(d) <= min_obs:
        raise ValueError(f"{spec.name}: {len(d)} complete cases, need more than {min_obs}.")
    y = d[OUTCOME].cat.remove_unused_categories()
    if len(y.cat.categories) < 2:
        raise ValueError(f"{spec.name}: outcome has a single observed level.")

    year_fe = spec.year_fe
    X = design_matrix(d, spec, year_fe=year_fe)
    try:
        res = _fit(y, X, maxiter)
    except (np.linalg.LinAlgError, ValueError) as e:
        if not year_fe:
            raise
        logger.warning("%s: fit with year fixed effects failed (%s); refitting without them.", spec.name, e)
        year_fe = False
        X = design_matrix(d, spec, year_fe=False)
        res = _fit(y, X, maxiter)

    names = list(res.model.exog_names) + list(res.params.index[len(res.model.exog_names):])
    params = pd.Series(np.asarray(res.params), index=names)
    groups = pd.factorize(d[cluster_col])[0]
    cov = _cluster_cov(res, groups)
    if cov is not None:
        bse = pd.Series(np.sqrt(np.clip(np.diag(cov), 0, None)), index=names)
        cov_type = "cluster"
    else:
        bse = pd.Series(np.asarray(res.bse), index=names)
        cov_type = "nonrobust"
    with np.errstate(divide="ignore", invalid="ignore"):
        z = params / bse
    pvalues = pd.Series(2.0 * norm.sf(np.abs(z)), index=names)

    logger.info("%s fitted: N=%d, logLik=%.2f, %s SEs", spec.name, len(d), float(res.llf), cov_type)
    return OrderedLogitResult(
        spec=spec,
        n=int(len(d)),
        params=params,
        bse=bse,
        pvalues=pvalues,
        llf=float(res.llf),
        aic=float(res.aic),
        bic=float(res.bic),
        cov_type=cov_type,
        exog_names=list(X.columns),
        year_fe_used=year_fe,
        n_clusters=int(len(np.unique(groups))),
        fitted=res,
    )

def run_models(
    panel: pd.DataFrame,
    specs: Optional[List[OrderedLogitSpec]] = None,
    *,
    min_obs: int = 100,
) -> Tuple[Dict[str, Optional[OrderedLogitResult]], Dict[str, str]]:
    """Fit each spec; a failing model is recorded as None with its error message."""
    sample = prepare_regression_sample(panel)
    results: Dict[str, Optional[OrderedLogitResult]] = {}
    errors: Dict[str, str] = {}
    for spec in specs or DEFAULT_SPECS:
        try:
            results[spec.name] = fit_ordered_logit(sample, spec, min_obs=min_obs)
        except Exception as e:
            logger.warning("%s not estimated: %s", spec.name, e)
            results[spec.name] = None
            errors[spec.name] = str(e)
    return results, errors

def coefficient_table(results: Dict[str, Optional[OrderedLogitResult]]) -> pd.DataFrame:
    """Wide regression table: one row per variable, 'coef (se)stars' per model, fit rows at the bottom."""
    fitted = {k: r for k, r in results.items() if r is not None}
    if not fitted:
        return pd.DataFrame()
    variables: List[str] = []
    for r in fitted.values():
        for v in r.coefficients()["variable"]:
            if v not in variables:
                variables.append(v)
    rows = []
    for v in variables:
        row = {"Variable": v}
        for name, r in fitted.items():
            if v in r.exog_names:
                row[name] = f"{r.params[v]:.3f} ({r.bse[v]:.3f}){significance_stars(float(r.pvalues[v]))}"
            else:
                row[name] = ""
        rows.append(row)
    for stat in ("n", "llf", "aic"):
        row = {"Variable": {"n": "N", "llf": "Log-likelihood", "aic": "AIC"}[stat]}
        for name, r in fitted.items():
            val = r.summary()[stat]
            row[name] = f"{val:,}" if stat == "n" else f"{val:.2f}"
        rows.append(row)
    return pd.DataFrame(rows)

def predicted_probabilities(
    result: OrderedLogitResult,
    sample: pd.DataFrame,
    *,
    focal: str = "trade_asymmetry",
    grid_size: int = 50,
    upper_quantile: float = 0.95,
    fixed: Optional[Dict[str, float]] = None,
) -> pd.DataFrame:
    """Outcome probabilities across a grid of ``focal``, other covariates at their medians.

    Defaults describe a contiguous, non-major-power, non-allied dyad. Returns long
    format: focal value, outcome level, probability.
    """
    if focal not in result.exog_names:
        raise ValueError(f"{focal} is not a regressor of {result.spec.name}")
    d = complete_cases(prepare_regression_sample(sample), result.spec, "dyad_id")
    hi = float(d[focal].quantile(upper_quantile)) if len(d) else 1.0
    grid = pd.DataFrame({focal: np.linspace(0.0, hi, grid_size)})
    settings = {"is_contiguous": 1.0, "has_major": 0.0, "alliance": 0.0}
    settings.update(fixed or {})
    for c in result.spec.columns():
        if c == focal:
            continue
        grid[c] = settings.get(c, float(d[c].median()) if c in d.columns and len(d) else 0.0)
    for c in result.exog_names:
        if ":" in c:
            a, b = c.split(":", 1)
            grid[c] = grid[a] * grid[b]
        elif c.startswith("year_"):
            grid[c] = 0.0
    probs = result.fitted.model.predict(np.asarray(result.fitted.params), exog=grid[result.exog_names].to_numpy(dtype=float))
    levels = list(result.fitted.model.labels) if hasattr(result.fitted.model, "labels") else list(range(probs.shape[1]))
    wide = pd.DataFrame(probs, columns=[str(l) for l in levels])
    wide[focal] = grid[focal].to_numpy()
    return wide.melt(id_vars=[focal], var_name="outcome", value_name="probability")
