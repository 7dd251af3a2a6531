from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from ..config import AnalysisWindow
from ..utils.logging_utils import get_logger
from .contracts import assert_unique_key
from .dyad_keys import add_dyad_keys
from .schemas import DYAD_KEY_COLS, RELEVANCE_COLS
from .spells import restrict_to_window

logger = get_logger(__name__)

@dataclass
class RelevanceResult:
    panel: pd.DataFrame
    diagnostics: Dict[str, int] = field(default_factory=dict)

def _pair_index(df: pd.DataFrame, c: str, year: str = "year") -> pd.MultiIndex:
    return pd.MultiIndex.from_arrays([df[c].to_numpy(), df[year].to_numpy()])

def active_state_years(
    contiguity: pd.DataFrame,
    major_years: pd.DataFrame,
    active_states: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """(ccode, year) universe of dyad-eligible states.

    States seen in the contiguity table that year, the major powers of that year and,
    when given, an explicit membership table.
    """
    parts = [
        contiguity[["ccode1", "year"]].rename(columns={"ccode1": "ccode"}),
        contiguity[["ccode2", "year"]].rename(columns={"ccode2": "ccode"}),
        major_years[["ccode", "year"]],
    ]
    if active_states is not None and len(active_states) > 0:
        parts.append(active_states[["ccode", "year"]])
    out = pd.concat(parts, ignore_index=True).drop_duplicates()
    return out.sort_values(["year", "ccode"]).reset_index(drop=True)

def _major_dyads_for_year(majors_y: pd.Series, states_y: pd.Series, year: int) -> pd.DataFrame:
    m = pd.DataFrame({"ccode1": majors_y.to_numpy()})
    s = pd.DataFrame({"ccode2": states_y.to_numpy()})
    fwd = m.merge(s, how="cross")
    fwd = fwd[fwd["ccode1"] != fwd["ccode2"]]
    rev = fwd.rename(columns={"ccode1": "ccode2", "ccode2": "ccode1"})
    both = pd.concat([fwd, rev[["ccode1", "ccode2"]]], ignore_index=True)
    both["year"] = int(year)
    return both

def build_relevance_panel(
    contiguity: pd.DataFrame,
    major_years: pd.DataFrame,
    *,
    window: AnalysisWindow,
    active_states: Optional[pd.DataFrame] = None,
) -> RelevanceResult:
    """Politically relevant directed dyad-years: contiguous OR containing a major power.

    Contiguity rows are kept as-is (``is_contiguous=True``, true ``conttype``). Every
    major power active in a year is paired in both directions with every other active
    state; such synthetic rows (``conttype=0``) are dropped when a contiguity row with
    the same directed key exists, so a dyad qualifying on both criteria is one row.
    """
    contig = restrict_to_window(contiguity[["ccode1", "ccode2", "year", "conttype"]], window)
    majors = restrict_to_window(major_years[["ccode", "year"]], window).drop_duplicates()
    states = None
    if active_states is not None:
        states = restrict_to_window(active_states[["ccode", "year"]], window)

    self_pairs = contig["ccode1"] == contig["ccode2"]
    n_self = int(self_pairs.sum())
    if n_self:
        logger.warning("Dropping %d contiguity rows pairing a state with itself.", n_self)
        contig = contig[~self_pairs]

    n_raw = len(contig)
    contig = contig.sort_values(DYAD_KEY_COLS + ["conttype"]).drop_duplicates(subset=DYAD_KEY_COLS, keep="first")
    n_collapsed = n_raw - len(contig)
    if n_collapsed:
        logger.warning("Collapsed %d duplicate contiguity rows (closest contiguity type kept).", n_collapsed)

    major_idx = _pair_index(majors, "ccode")
    contig = contig.copy()
    contig["is_contiguous"] = True
    contig["has_major"] = _pair_index(contig, "ccode1").isin(major_idx) | _pair_index(contig, "ccode2").isin(major_idx)

    universe = active_state_years(contig, majors, states)
    majors_by_year = majors.groupby("year")["ccode"]
    states_by_year = universe.groupby("year")["ccode"]
    state_groups = dict(list(states_by_year))

    per_year: List[pd.DataFrame] = []
    for year, majors_y in majors_by_year:
        states_y = state_groups.get(year)
        if states_y is None:
            continue
        per_year.append(_major_dyads_for_year(majors_y, states_y, int(year)))

    if per_year:
        synthetic = pd.concat(per_year, ignore_index=True).drop_duplicates(subset=DYAD_KEY_COLS)
    else:
        synthetic = pd.DataFrame({c: pd.Series(dtype="int64") for c in DYAD_KEY_COLS})
    n_synthetic = len(synthetic)

    contig_keys = pd.MultiIndex.from_frame(contig[DYAD_KEY_COLS])
    already = pd.MultiIndex.from_frame(synthetic[DYAD_KEY_COLS]).isin(contig_keys)
    synthetic = synthetic[~already].copy()
    synthetic["conttype"] = 0
    synthetic["is_contiguous"] = False
    synthetic["has_major"] = True

    panel = pd.concat([contig[RELEVANCE_COLS], synthetic[RELEVANCE_COLS]], ignore_index=True)
    panel = panel.astype({"ccode1": "int64", "ccode2": "int64", "year": "int64", "conttype": "int64",
                          "is_contiguous": bool, "has_major": bool})
    panel = add_dyad_keys(panel)
    panel = panel.sort_values(DYAD_KEY_COLS).reset_index(drop=True)
    assert_unique_key(panel, DYAD_KEY_COLS, "relevance panel")

    diagnostics = {
        "contiguity_rows": int(len(contig)),
        "contiguity_self_pairs_dropped": n_self,
        "contiguity_duplicates_collapsed": int(n_collapsed),
        "major_power_years": int(len(majors)),
        "active_state_years": int(len(universe)),
        "major_dyads_generated": int(n_synthetic),
        "major_dyads_already_contiguous": int(already.sum()),
        "major_dyads_added": int(len(synthetic)),
        "pr_dyad_years": int(len(panel)),
        "both_criteria": int((panel["is_contiguous"] & panel["has_major"]).sum()),
        "contiguous_only": int((panel["is_contiguous"] & ~panel["has_major"]).sum()),
        "major_only": int((~panel["is_contiguous"] & panel["has_major"]).sum()),
    }
    logger.info(
        "Relevance panel: %d dyad-years (%d contiguity, %d major-power only).",
        diagnostics["pr_dyad_years"], diagnostics["contiguity_rows"], diagnostics["major_dyads_added"],
    )
    return RelevanceResult(panel=panel, diagnostics=diagnostics)
