from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

import pandas as pd

from ..config import AnalysisWindow
from ..data.outcomes import OutcomeMergeResult
from ..utils.stats_utils import fmt_int, fmt_pct, share

COW_NAMES = {
    2: "United States",
    200: "United Kingdom",
    220: "France",
    255: "Germany",
    365: "Russia/USSR",
    710: "China",
    740: "Japan",
}

CONTIGUITY_TYPES = {
    1: "1: Land or river border",
    2: "2: ≤12 miles of water",
    3: "3: 13–24 miles of water",
    4: "4: 25–150 miles of water",
    5: "5: 151–400 miles of water",
}

HOSTILITY_DESCRIPTIONS = {
    2: ("Threat to use force", "Verbal threat, ultimatum"),
    3: ("Display of force", "Mobilization, show of force, deployment"),
    4: ("Use of force", "Clash, border violation, seizure, blockade"),
    5: ("Interstate war", "Sustained combat ≥1,000 deaths"),
}

@dataclass
class DescriptiveTable:
    name: str
    title: str
    frame: pd.DataFrame
    note: str = ""

def _pct(part: int, whole: int) -> str:
    return fmt_pct(share(part, whole))

def table_composition(panel: pd.DataFrame, window: AnalysisWindow) -> DescriptiveTable:
    total = len(panel)
    both = int((panel["is_contiguous"] & panel["has_major"]).sum())
    contig_only = int((panel["is_contiguous"] & ~panel["has_major"]).sum())
    major_only = int((~panel["is_contiguous"] & panel["has_major"]).sum())
    frame = pd.DataFrame({
        "Dyad Type": ["Both criteria (contiguous + major power)", "Contiguous only", "Major power only", "Total"],
        "Dyad-Years": [fmt_int(both), fmt_int(contig_only), fmt_int(major_only), fmt_int(total)],
        "%": [_pct(both, total), _pct(contig_only, total), _pct(major_only, total), "100.0"],
    })
    note = (
        f"N = {fmt_int(total)} directed dyad-years representing "
        f"{fmt_int(panel['dyad_id'].nunique())} unique undirected dyads. "
        "A dyad is politically relevant if at least one state is a major power or the "
        "states are directly contiguous."
    )
    return DescriptiveTable("table1_composition", f"Composition of Politically Relevant Dyads, {window.label()}", frame, note)

def _periods(spells: pd.DataFrame, present: int) -> str:
    parts = []
    for _, r in spells.sort_values("styear").iterrows():
        end = "present" if int(r["endyear"]) >= present else str(int(r["endyear"]))
        parts.append(f"{int(r['styear'])}–{end}")
    return ", ".join(parts)

def _year_runs(years: List[int]) -> List[List[int]]:
    runs: List[List[int]] = []
    for y in sorted(years):
        if runs and y == runs[-1][-1] + 1:
            runs[-1].append(y)
        else:
            runs.append([y])
    return runs

def table_major_powers(
    majors: pd.DataFrame,
    major_years: pd.DataFrame,
    window: AnalysisWindow,
    names: Optional[Dict[int, str]] = None,
) -> DescriptiveTable:
    """Major powers active in the window, with their full status periods from the spells."""
    names = {**COW_NAMES, **(names or {})}
    present = int(majors["endyear"].max()) if len(majors) else int(window.end_year)
    n_window = len(window.years())
    rows = []
    for ccode, years in major_years.groupby("ccode")["year"]:
        yrs = sorted(int(y) for y in years)
        if len(yrs) == n_window:
            in_sample = f"{len(yrs)} (full)"
        else:
            in_sample = f"{len(yrs)} (" + ", ".join(
                f"{r[0]}–{r[-1]}" if len(r) > 1 else str(r[0]) for r in _year_runs(yrs)
            ) + ")"
        rows.append({
            "State": names.get(int(ccode), str(int(ccode))),
            "COW Code": str(int(ccode)),
            "Full Major Power Period": _periods(majors[majors["ccode"] == ccode], present),
            f"Years in Sample ({window.label()})": in_sample,
            "_order": (-len(yrs), int(ccode)),
        })
    frame = pd.DataFrame(rows)
    if len(frame):
        frame = frame.sort_values("_order").drop(columns="_order").reset_index(drop=True)
    note = "Major power status per the Correlates of War State System Membership data."
    return DescriptiveTable("table2_major_powers", "Major Powers in Sample Period", frame, note)

def table_contiguity(panel: pd.DataFrame, window: AnalysisWindow) -> DescriptiveTable:
    contig = panel[panel["is_contiguous"]]
    counts = contig["conttype"].value_counts()
    total = int(len(contig))
    rows = []
    for t, label in CONTIGUITY_TYPES.items():
        n = int(counts.get(t, 0))
        rows.append({"Contiguity Type": label, "Dyad-Years": fmt_int(n), "%": _pct(n, total)})
    rows.append({"Contiguity Type": "Total", "Dyad-Years": fmt_int(total), "%": "100.0"})
    note = (
        "Contiguity data from the COW Direct Contiguity dataset. Water distances reflect "
        "territorial waters (12 mi), contiguous zone (24 mi), and EEZ thresholds."
    )
    return DescriptiveTable(
        "table3_contiguity",
        f"Distribution of Contiguity Types Among Contiguous Dyads, {window.label()}",
        pd.DataFrame(rows),
        note,
    )

def table_hostility(outcomes: OutcomeMergeResult, window: AnalysisWindow) -> DescriptiveTable:
    retained = outcomes.retained
    counts = retained["hihost"].value_counts() if len(retained) else pd.Series(dtype=int)
    total = int(len(retained))
    rows = []
    for level, (desc, examples) in HOSTILITY_DESCRIPTIONS.items():
        n = int(counts.get(level, 0))
        rows.append({"Level": str(level), "Description": desc, "Examples": examples,
                     "N": fmt_int(n), "%": _pct(n, total)})
    rows.append({"Level": "Total", "Description": "", "Examples": "", "N": fmt_int(total), "%": "100.0"})
    note = (
        f"N = {fmt_int(total)} MID observations in PR dyads "
        f"({fmt_pct(outcomes.capture_rate)}% of all MIDs {window.label()}). "
        "Hostility level 1 excluded by definition."
    )
    return DescriptiveTable(
        "table4_hostility",
        f"Distribution of MID Hostility Levels (Dependent Variable), {window.label()}",
        pd.DataFrame(rows),
        note,
    )

def table_sample(panel: pd.DataFrame, outcomes: OutcomeMergeResult, window: AnalysisWindow) -> DescriptiveTable:
    per_year = panel.groupby("year")["dyad_id"].nunique()
    retained = outcomes.retained
    mids_per_year = retained.groupby("year")["disno"].nunique() if len(retained) else pd.Series(dtype=float)
    states = pd.concat([panel["ccode1"], panel["ccode2"]]).nunique()
    stats = [
        ("Sample period", window.label()),
        ("Total dyad-years", fmt_int(len(panel))),
        ("Unique undirected dyads", fmt_int(panel["dyad_id"].nunique())),
        ("Unique directed dyads", fmt_int(len(panel[["ccode1", "ccode2"]].drop_duplicates()))),
        ("States in sample", str(int(states))),
        ("Years in sample", str(int(panel["year"].nunique()))),
        ("Mean dyads per year", f"{per_year.mean():.0f}" if len(per_year) else ""),
        ("Dyads per year range", f"{per_year.min()}–{per_year.max()}" if len(per_year) else ""),
        ("", ""),
        ("MID observations", fmt_int(outcomes.n_retained)),
        ("Unique disputes", fmt_int(retained["disno"].nunique() if len(retained) else 0)),
        ("Mean MIDs per year", f"{mids_per_year.mean():.1f}" if len(mids_per_year) else ""),
        ("MID capture rate", f"{fmt_pct(outcomes.capture_rate)}%" if outcomes.n_in_window else ""),
    ]
    frame = pd.DataFrame(stats, columns=["Statistic", "Value"])
    note = (
        "PR dyads = dyads with ≥1 major power OR direct contiguity. "
        "MID capture rate = MIDs in PR dyads / total MIDs in the window."
    )
    return DescriptiveTable("table5_descriptives", "Sample Descriptive Statistics", frame, note)

def build_descriptive_tables(
    panel: pd.DataFrame,
    majors: pd.DataFrame,
    major_years: pd.DataFrame,
    outcomes: OutcomeMergeResult,
    window: AnalysisWindow,
) -> List[DescriptiveTable]:
    return [
        table_composition(panel, window),
        table_major_powers(majors, major_years, window),
        table_contiguity(panel, window),
        table_hostility(outcomes, window),
        table_sample(panel, outcomes, window),
    ]
