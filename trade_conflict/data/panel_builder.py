from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pandas as pd

from ..config import PanelBuildOptions
from ..utils.logging_utils import get_logger
from ..utils.stats_utils import count_defined
from . import contracts as C
from .contracts import IntegrityError, assert_unique_key, conform_table, validate_window
from .derived import alliance_variables, capability_variables, conflict_history, regime_variables, trade_variables
from .dyad_keys import dyad_ids, undirected_keys
from .outcomes import OutcomeMergeResult, attach_outcomes, merge_outcomes
from .relevance import build_relevance_panel
from .schemas import DERIVED_COLS, DYAD_KEY_COLS, PANEL_COLUMNS
from .spells import expand_spells, restrict_to_window

logger = get_logger(__name__)

@dataclass
class PanelInputs:
    """Normalized input tables; optional tables may be None."""
    majors: pd.DataFrame
    contiguity: pd.DataFrame
    disputes: pd.DataFrame
    trade: Optional[pd.DataFrame] = None
    capabilities: Optional[pd.DataFrame] = None
    regime: Optional[pd.DataFrame] = None
    alliances: Optional[pd.DataFrame] = None
    active_states: Optional[pd.DataFrame] = None

    def conformed(self) -> "PanelInputs":
        def opt(df: Optional[pd.DataFrame], contract: C.TableContract) -> Optional[pd.DataFrame]:
            return conform_table(df, contract) if df is not None else None

        return PanelInputs(
            majors=conform_table(self.majors, C.MAJORS),
            contiguity=conform_table(self.contiguity, C.CONTIGUITY),
            disputes=conform_table(self.disputes, C.DISPUTES),
            trade=opt(self.trade, C.TRADE),
            capabilities=opt(self.capabilities, C.CAPABILITIES),
            regime=opt(self.regime, C.REGIME),
            alliances=opt(self.alliances, C.ALLIANCES),
            active_states=opt(self.active_states, C.ACTIVE_STATES),
        )

    def available(self) -> Dict[str, bool]:
        return {
            "trade": self.trade is not None,
            "capabilities": self.capabilities is not None,
            "regime": self.regime is not None,
            "alliances": self.alliances is not None,
            "active_states": self.active_states is not None,
        }

@dataclass
class PanelBuildResult:
    panel: pd.DataFrame
    major_years: pd.DataFrame
    outcomes: OutcomeMergeResult
    diagnostics: Dict[str, Any] = field(default_factory=dict)

def _check_key_consistency(panel: pd.DataFrame) -> None:
    expected_id = dyad_ids(panel["ccode1"], panel["ccode2"])
    expected_key = undirected_keys(panel["ccode1"], panel["ccode2"], panel["year"])
    bad = (panel["dyad_id"] != expected_id) | (panel["undirected_key"] != expected_key)
    if bad.any():
        raise IntegrityError(f"{int(bad.sum())} panel rows carry an inconsistent undirected dyad id.")

def summarize_panel(panel: pd.DataFrame) -> Dict[str, Any]:
    per_year = panel.groupby("year")["dyad_id"].nunique() if len(panel) else pd.Series(dtype=int)
    return {
        "total_dyad_years": int(len(panel)),
        "unique_undirected_dyads": int(panel["dyad_id"].nunique()),
        "unique_directed_dyads": int(panel[["ccode1", "ccode2"]].drop_duplicates().shape[0]),
        "states": int(pd.concat([panel["ccode1"], panel["ccode2"]]).nunique()),
        "years": int(panel["year"].nunique()),
        "dyads_per_year_min": int(per_year.min()) if len(per_year) else 0,
        "dyads_per_year_max": int(per_year.max()) if len(per_year) else 0,
        "dyads_per_year_mean": float(per_year.mean()) if len(per_year) else 0.0,
        "dyad_years_with_mid": int((panel["conflict_intensity"] > 0).sum()),
        "defined_counts": count_defined(panel, DERIVED_COLS),
    }

def build_dyad_year_panel(inputs: PanelInputs, options: Optional[PanelBuildOptions] = None) -> PanelBuildResult:
    """Assemble the directed dyad-year analytical panel.

    Stages run in order, each on a fresh frame: major-power spell expansion,
    politically relevant dyad set, dispute outcome merge, then trade, capability,
    regime, alliance and conflict-history variables. Missing optional tables leave
    their variables undefined; integrity violations raise IntegrityError.
    """
    opt = options or PanelBuildOptions()
    window = opt.window
    validate_window(window)
    src = inputs.conformed()

    major_years = restrict_to_window(
        expand_spells(src.majors, entity_cols=["ccode"], start_col="styear", end_col="endyear"),
        window,
    )
    relevance = build_relevance_panel(src.contiguity, major_years, window=window, active_states=src.active_states)
    panel = relevance.panel

    outcomes = merge_outcomes(src.disputes, panel, window=window)
    panel = attach_outcomes(panel, outcomes.retained)

    panel = trade_variables(panel, src.trade, _gdp_table(src.capabilities))
    panel = capability_variables(panel, src.capabilities, parity_threshold=opt.parity_threshold)
    panel = regime_variables(panel, src.regime, democracy_threshold=opt.democracy_threshold)
    panel = alliance_variables(panel, src.alliances, window=window)
    panel = conflict_history(panel, outcomes.retained)

    panel = panel[PANEL_COLUMNS].sort_values(DYAD_KEY_COLS).reset_index(drop=True)
    assert_unique_key(panel, DYAD_KEY_COLS, "analytical panel")
    _check_key_consistency(panel)

    diagnostics: Dict[str, Any] = {
        "window": [int(window.start_year), int(window.end_year)],
        "inputs_available": src.available(),
        "relevance": relevance.diagnostics,
        "outcomes": outcomes.diagnostics(),
        "panel": summarize_panel(panel),
    }
    logger.info(
        "Panel assembled: %d dyad-years, %d undirected dyads, %d with a MID.",
        diagnostics["panel"]["total_dyad_years"],
        diagnostics["panel"]["unique_undirected_dyads"],
        diagnostics["panel"]["dyad_years_with_mid"],
    )
    return PanelBuildResult(panel=panel, major_years=major_years, outcomes=outcomes, diagnostics=diagnostics)

def _gdp_table(capabilities: Optional[pd.DataFrame]) -> Optional[pd.DataFrame]:
    if capabilities is None:
        return None
    return capabilities[["ccode", "year", "gdp"]]
