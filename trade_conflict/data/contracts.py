from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from ..config import AnalysisWindow

class IntegrityError(ValueError):
    """Fatal data-integrity violation; the run aborts rather than produce wrong values."""

@dataclass(frozen=True)
class TableContract:
    """Required columns of a normalized input table.

    ``int_cols`` must be integer-valued (floats holding whole numbers are accepted and
    cast); ``numeric_cols`` must be coercible to float. ``allowed`` restricts integer
    columns to a closed set of codes.
    """
    name: str
    int_cols: List[str]
    numeric_cols: List[str] = field(default_factory=list)
    other_cols: List[str] = field(default_factory=list)
    allowed: Dict[str, Tuple[int, ...]] = field(default_factory=dict)

    def required(self) -> List[str]:
        return self.int_cols + self.numeric_cols + self.other_cols

MAJORS = TableContract("majors", int_cols=["ccode", "styear", "endyear"])
CONTIGUITY = TableContract(
    "contiguity", int_cols=["ccode1", "ccode2", "year", "conttype"], allowed={"conttype": (1, 2, 3, 4, 5)},
)
DISPUTES = TableContract(
    "disputes", int_cols=["statea", "stateb", "year", "hihost"], other_cols=["disno"],
    allowed={"hihost": (2, 3, 4, 5)},
)
TRADE = TableContract("trade", int_cols=["ccode1", "ccode2", "year"], numeric_cols=["flow1", "flow2"])
CAPABILITIES = TableContract("capabilities", int_cols=["ccode", "year"], numeric_cols=["cinc", "gdp"])
REGIME = TableContract("regime", int_cols=["ccode", "year"], numeric_cols=["polity2"])
ALLIANCES = TableContract("alliances", int_cols=["ccode1", "ccode2", "styear"])
ACTIVE_STATES = TableContract("active_states", int_cols=["ccode", "year"])

def conform_table(df: pd.DataFrame, contract: TableContract) -> pd.DataFrame:
    """Check required columns and key types; return a typed copy.

    Raises IntegrityError for a missing column, a non-numeric key column or a key
    column with missing / fractional values or codes outside its allowed set.
    """
    missing = [c for c in contract.required() if c not in df.columns]
    if missing:
        raise IntegrityError(f"{contract.name}: missing required columns: {missing}")

    out = df.copy()
    for c in contract.int_cols:
        col = pd.to_numeric(out[c], errors="coerce")
        bad = col.isna() | (col % 1 != 0)
        if bad.any():
            sample = out.loc[bad, c].head(5).tolist()
            raise IntegrityError(f"{contract.name}: column {c!r} must hold integers; bad values e.g. {sample}")
        out[c] = col.astype("int64")
        codes = contract.allowed.get(c)
        if codes is not None:
            outside = ~out[c].isin(codes)
            if outside.any():
                sample = sorted(set(out.loc[outside, c].tolist()))[:5]
                raise IntegrityError(
                    f"{contract.name}: column {c!r} must be one of {list(codes)}; found {sample} in {int(outside.sum())} rows"
                )
    for c in contract.numeric_cols:
        out[c] = pd.to_numeric(out[c], errors="coerce").astype(float)
    for c in contract.other_cols:
        out[c] = out[c].astype(str)
    return out

def validate_window(window: AnalysisWindow) -> None:
    if int(window.start_year) > int(window.end_year):
        raise IntegrityError(f"analysis window start {window.start_year} is after end {window.end_year}")

def assert_unique_key(df: pd.DataFrame, keys: List[str], label: str) -> None:
    dups = df[df.duplicated(subset=keys, keep=False)]
    if not dups.empty:
        raise IntegrityError(
            f"{label}: {len(dups)} rows share a duplicated key on {keys}. Example rows:\n{dups[keys].head(10)}"
        )

def validate_panel(df: pd.DataFrame, *, required: Optional[List[str]] = None) -> Dict[str, Any]:
    """Non-fatal contract report for the assembled panel (used by audits and the dashboard)."""
    required = required or ["ccode1", "ccode2", "year", "dyad_id", "conflict_intensity"]
    missing = [c for c in required if c not in df.columns]
    issues: List[str] = []
    if missing:
        issues.append(f"Missing required columns: {missing}")
    else:
        n_dup = int(df.duplicated(subset=["ccode1", "ccode2", "year"]).sum())
        if n_dup:
            issues.append(f"{n_dup} duplicated (ccode1, ccode2, year) rows.")
        bad_outcome = ~df["conflict_intensity"].isin([0, 2, 3, 4, 5])
        if bad_outcome.any():
            issues.append(f"{int(bad_outcome.sum())} rows with conflict_intensity outside {{0,2,3,4,5}}.")
    return {"passed": len(issues) == 0, "missing": missing, "issues": issues, "n_rows": int(len(df))}
