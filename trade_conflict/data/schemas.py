from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import pandas as pd

@dataclass(frozen=True)
class DyadYearSchema:
    ccode1: int
    ccode2: int
    year: int
    conttype: int
    is_contiguous: bool
    has_major: bool
    dyad_id: str

@dataclass(frozen=True)
class DisputeOutcomeSchema:
    statea: int
    stateb: int
    year: int
    hihost: int
    disno: str

@dataclass(frozen=True)
class AnalyticalPanelRowSchema:
    ccode1: int
    ccode2: int
    year: int
    conttype: int
    is_contiguous: bool
    has_major: bool
    dyad_id: str
    conflict_intensity: int
    trade_total: Optional[float] = None
    trade_dep_lower: Optional[float] = None
    trade_dep_higher: Optional[float] = None
    trade_asymmetry: Optional[float] = None
    trade_vulnerability: Optional[float] = None
    cinc_ratio: Optional[float] = None
    power_parity: Optional[int] = None
    polity1: Optional[float] = None
    polity2: Optional[float] = None
    joint_democracy: Optional[int] = None
    mixed_regime: Optional[int] = None
    alliance: Optional[int] = None
    prev_mid: int = 0

DYAD_KEY_COLS = ["ccode1", "ccode2", "year"]

RELEVANCE_COLS = ["ccode1", "ccode2", "year", "conttype", "is_contiguous", "has_major"]

# Hostility levels 2..5; 0 marks a dyad-year without a dispute.
HOSTILITY_LABELS = {
    0: "No MID",
    2: "Threat",
    3: "Display",
    4: "Use of Force",
    5: "War",
}

TRADE_COLS = [
    "trade_total", "trade_dep_1", "trade_dep_2", "trade_dep_lower", "trade_dep_higher",
    "trade_asymmetry", "trade_vulnerability", "trade_interdependence", "trade_growth",
]
CAPABILITY_COLS = ["cinc1", "cinc2", "cinc_ratio", "power_parity", "gdp1", "gdp2", "gdp_ratio", "log_gdp_total"]
REGIME_COLS = ["polity1", "polity2", "democracy_min", "joint_democracy", "mixed_regime"]
ALLIANCE_COLS = ["alliance"]
HISTORY_COLS = ["prev_mid", "years_since_mid"]
OUTCOME_COLS = ["conflict_intensity", "conflict_label", "n_disputes", "disno"]

DERIVED_COLS = TRADE_COLS + CAPABILITY_COLS + REGIME_COLS + ALLIANCE_COLS + HISTORY_COLS

PANEL_COLUMNS = (
    RELEVANCE_COLS
    + ["dyad_id", "directed_key", "undirected_key"]
    + OUTCOME_COLS
    + DERIVED_COLS
)

def conflict_label(intensity: pd.Series) -> pd.Series:
    """Ordered categorical label for the conflict-intensity outcome."""
    cats = [HOSTILITY_LABELS[k] for k in sorted(HOSTILITY_LABELS)]
    labels = intensity.map(HOSTILITY_LABELS)
    return pd.Series(pd.Categorical(labels, categories=cats, ordered=True), index=intensity.index)
