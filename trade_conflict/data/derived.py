from __future__ import annotations
from typing import List, Optional

import numpy as np
import pandas as pd

from ..config import AnalysisWindow
from ..utils.logging_utils import get_logger
from ..utils.stats_utils import safe_ratio
from .dyad_keys import undirected_keys
from .schemas import ALLIANCE_COLS, CAPABILITY_COLS, DYAD_KEY_COLS, REGIME_COLS, TRADE_COLS
from .spells import expand_spells, restrict_to_window

logger = get_logger(__name__)

def _undefined(df: pd.DataFrame, cols: List[str], label: str) -> pd.DataFrame:
    logger.warning("No %s table supplied; %s left undefined for all rows.", label, ", ".join(cols))
    out = df.copy()
    for c in cols:
        out[c] = np.nan
    return out

def _merge_partner(df: pd.DataFrame, table: pd.DataFrame, var: str, names: tuple) -> pd.DataFrame:
    """Attach ``var`` for state 1 and state 2 of each dyad as ``names[0]`` / ``names[1]``."""
    src = table[["ccode", "year", var]].drop_duplicates(subset=["ccode", "year"])
    for side, name in zip(("ccode1", "ccode2"), names):
        df = df.merge(
            src.rename(columns={"ccode": side, var: name}),
            on=[side, "year"],
            how="left",
        )
    return df

def lag_one_year(df: pd.DataFrame, group_cols: List[str], value_col: str, year_col: str = "year") -> pd.Series:
    """Previous-year value within each group; NaN unless the previous row is exactly year - 1.

    ``df`` must already be sorted by ``group_cols + [year_col]``.
    """
    g = df.groupby(group_cols, sort=False)
    prev_year = g[year_col].shift(1)
    prev_val = g[value_col].shift(1)
    return prev_val.where(prev_year == df[year_col] - 1)

# --------------------------------------------------------------------------- trade

def vulnerability_ratio(lower: pd.Series, higher: pd.Series) -> pd.Series:
    """higher / lower, undefined (NaN) unless lower > 0."""
    return safe_ratio(higher, lower)


def directed_flows(trade: pd.DataFrame) -> pd.DataFrame:
    """Trade records usable for either orientation of a dyad.

    Each record also answers for the reversed pair with flows swapped; a record
    listed in the requested orientation wins over a reversed one.
    """
    direct = trade[["ccode1", "ccode2", "year", "flow1", "flow2"]].copy()
    direct["_rev"] = 0
    reverse = direct.rename(columns={"ccode1": "ccode2", "ccode2": "ccode1", "flow1": "flow2", "flow2": "flow1"})
    reverse["_rev"] = 1
    both = pd.concat([direct, reverse[direct.columns]], ignore_index=True)
    n_direct_dups = int(direct.duplicated(subset=DYAD_KEY_COLS).sum())
    if n_direct_dups:
        logger.warning("Trade table lists %d duplicate dyad-years; first record kept.", n_direct_dups)
    both = both.sort_values(DYAD_KEY_COLS + ["_rev"], kind="mergesort")
    both = both.drop_duplicates(subset=DYAD_KEY_COLS, keep="first").drop(columns=["_rev"])

    # negative flows are data artifacts, missing flows mean no recorded trade
    for c in ("flow1", "flow2"):
        v = pd.to_numeric(both[c], errors="coerce")
        both[c] = v.where(v >= 0, 0.0).fillna(0.0)
    both["trade_total"] = both["flow1"] + both["flow2"]

    both = both.sort_values(DYAD_KEY_COLS).reset_index(drop=True)
    lag = lag_one_year(both, ["ccode1", "ccode2"], "trade_total")
    both["trade_growth"] = safe_ratio((both["trade_total"] - lag) * 100.0, lag)
    return both

def trade_variables(panel: pd.DataFrame, trade: Optional[pd.DataFrame], gdp: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Bilateral trade, dependence, asymmetry and vulnerability for each directed dyad-year.

    dependence_i = 100 * trade_total / gdp_i (undefined unless gdp_i > 0); the
    vulnerability ratio higher/lower is undefined when the lower dependence is 0.
    """
    if trade is None:
        return _undefined(panel, TRADE_COLS, "trade")

    out = panel.merge(directed_flows(trade), on=DYAD_KEY_COLS, how="left")
    n_matched = int(out["trade_total"].notna().sum())
    out["flow1"] = out["flow1"].fillna(0.0)
    out["flow2"] = out["flow2"].fillna(0.0)
    out["trade_total"] = out["flow1"] + out["flow2"]

    if gdp is not None:
        out = _merge_partner(out, gdp, "gdp", ("_gdp1", "_gdp2"))
    else:
        out["_gdp1"] = np.nan
        out["_gdp2"] = np.nan

    out["trade_dep_1"] = safe_ratio(out["trade_total"] * 100.0, out["_gdp1"])
    out["trade_dep_2"] = safe_ratio(out["trade_total"] * 100.0, out["_gdp2"])
    out["trade_dep_lower"] = np.fmin(out["trade_dep_1"], out["trade_dep_2"])
    out["trade_dep_higher"] = np.fmax(out["trade_dep_1"], out["trade_dep_2"])
    out["trade_asymmetry"] = (out["trade_dep_1"] - out["trade_dep_2"]).abs()
    out["trade_vulnerability"] = vulnerability_ratio(out["trade_dep_lower"], out["trade_dep_higher"])
    out["trade_interdependence"] = out["trade_dep_1"] + out["trade_dep_2"]

    logger.info("Trade: %d of %d dyad-years matched a trade record.", n_matched, len(out))
    return out.drop(columns=["flow1", "flow2", "_gdp1", "_gdp2"])

# --------------------------------------------------------------------------- capabilities

def capability_variables(
    panel: pd.DataFrame,
    capabilities: Optional[pd.DataFrame],
    *,
    parity_threshold: float = 2.0,
) -> pd.DataFrame:
    """CINC ratio (stronger/weaker), power parity and GDP size controls.

    ``power_parity`` defaults to 0 where the ratio is undefined. Without a capabilities
    table every column here, ``power_parity`` included, is NaN: nothing is observed.
    """
    if capabilities is None:
        return _undefined(panel, CAPABILITY_COLS, "capabilities")

    out = _merge_partner(panel.copy(), capabilities, "cinc", ("cinc1", "cinc2"))
    out = _merge_partner(out, capabilities, "gdp", ("gdp1", "gdp2"))

    out["cinc_ratio"] = safe_ratio(np.maximum(out["cinc1"], out["cinc2"]), np.minimum(out["cinc1"], out["cinc2"]))
    out["power_parity"] = np.where(out["cinc_ratio"].notna(), (out["cinc_ratio"] <= parity_threshold).astype(int), 0)
    out["power_parity"] = out["power_parity"].astype("int64")

    out["gdp_ratio"] = safe_ratio(np.maximum(out["gdp1"], out["gdp2"]), np.minimum(out["gdp1"], out["gdp2"]))
    total = out["gdp1"] + out["gdp2"]
    out["log_gdp_total"] = np.log(total.where(total > 0))
    return out

# --------------------------------------------------------------------------- regime

def regime_variables(
    panel: pd.DataFrame,
    regime: Optional[pd.DataFrame],
    *,
    democracy_threshold: float = 6.0,
) -> pd.DataFrame:
    if regime is None:
        return _undefined(panel, REGIME_COLS, "regime")

    out = _merge_partner(panel.copy(), regime, "polity2", ("polity1", "polity2"))
    both = out["polity1"].notna() & out["polity2"].notna()
    dem1 = out["polity1"] >= democracy_threshold
    dem2 = out["polity2"] >= democracy_threshold

    out["democracy_min"] = np.fmin(out["polity1"], out["polity2"])
    out["joint_democracy"] = (both & dem1 & dem2).astype("int64")
    out["mixed_regime"] = (both & (dem1 != dem2)).astype("int64")
    return out

# --------------------------------------------------------------------------- alliances

def alliance_years(alliances: pd.DataFrame, window: AnalysisWindow) -> pd.DataFrame:
    """Alliance spells as dyad-years inside the window; spells persist to the window end."""
    spells = alliances[alliances["styear"] <= window.end_year]
    n_late = len(alliances) - len(spells)
    if n_late:
        logger.info("Ignoring %d alliances that start after %d.", n_late, window.end_year)
    end_col = "endyear" if "endyear" in spells.columns else None
    years = expand_spells(
        spells,
        entity_cols=["ccode1", "ccode2"],
        start_col="styear",
        end_col=end_col,
        open_end=window.end_year,
    )
    return restrict_to_window(years, window)

def alliance_variables(panel: pd.DataFrame, alliances: Optional[pd.DataFrame], *, window: AnalysisWindow) -> pd.DataFrame:
    """alliance = 1 when the dyad is allied that year, in either listed orientation."""
    if alliances is None:
        return _undefined(panel, ALLIANCE_COLS, "alliance")

    out = panel.copy()
    years = alliance_years(alliances, window)
    if len(years) == 0:
        out["alliance"] = 0
        return out
    allied = set(undirected_keys(years["ccode1"], years["ccode2"], years["year"]))
    out["alliance"] = out["undirected_key"].isin(allied).astype("int64")
    return out

# --------------------------------------------------------------------------- conflict history

def conflict_history(panel: pd.DataFrame, retained: pd.DataFrame) -> pd.DataFrame:
    """Lagged dispute indicators.

    Rows are ordered by (dyad_id, ccode1, ccode2, year). ``prev_mid`` is 1 only if the
    preceding row is the same ordered pair exactly one year earlier and that undirected
    dyad-year has a retained dispute; it is never carried across a gap.
    ``years_since_mid`` counts years since the latest earlier dispute in the dyad.
    """
    order = ["dyad_id", "ccode1", "ccode2", "year"]
    out = panel.sort_values(order).reset_index(drop=True)

    dispute_keys = set(retained["undirected_key"]) if len(retained) else set()
    prev_year = out.groupby(["ccode1", "ccode2"], sort=False)["year"].shift(1)
    adjacent = prev_year == out["year"] - 1
    prev_key = out["dyad_id"] + "_" + (out["year"] - 1).astype(str)
    out["prev_mid"] = (adjacent & prev_key.isin(dispute_keys)).astype("int64")

    out["years_since_mid"] = np.nan
    if len(retained):
        mids = retained[["dyad_id", "year"]].drop_duplicates().astype({"year": "int64"})
        mids["last_mid_year"] = mids["year"]
        left = out[["dyad_id", "year"]].reset_index().sort_values("year")
        hit = pd.merge_asof(
            left,
            mids.sort_values("year"),
            on="year",
            by="dyad_id",
            direction="backward",
            allow_exact_matches=False,
        ).set_index("index")
        out["years_since_mid"] = (out["year"] - hit["last_mid_year"]).astype(float)
    return out
