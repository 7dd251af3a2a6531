from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict

import pandas as pd

from ..config import AnalysisWindow
from ..utils.logging_utils import get_logger
from .dyad_keys import add_dyad_keys
from .schemas import conflict_label
from .spells import restrict_to_window

logger = get_logger(__name__)

@dataclass
class OutcomeMergeResult:
    retained: pd.DataFrame
    dropped: pd.DataFrame
    n_outside_window: int

    @property
    def n_in_window(self) -> int:
        return int(len(self.retained) + len(self.dropped))

    @property
    def n_retained(self) -> int:
        return int(len(self.retained))

    @property
    def n_dropped(self) -> int:
        return int(len(self.dropped))

    @property
    def capture_rate(self) -> float:
        return self.n_retained / self.n_in_window if self.n_in_window else float("nan")

    def diagnostics(self) -> Dict[str, Any]:
        return {
            "disputes_outside_window": int(self.n_outside_window),
            "disputes_in_window": self.n_in_window,
            "disputes_retained": self.n_retained,
            "disputes_dropped": self.n_dropped,
            "dispute_capture_rate": float(self.capture_rate),
            "unique_disputes_retained": int(self.retained["disno"].nunique()) if len(self.retained) else 0,
        }

def merge_outcomes(disputes: pd.DataFrame, panel: pd.DataFrame, *, window: AnalysisWindow) -> OutcomeMergeResult:
    """Keep the dispute rows whose directed (statea, stateb, year) key is a panel dyad-year.

    Disputes outside the politically relevant set are dropped from the modeling sample;
    the counts are reported, not raised.
    """
    in_window = restrict_to_window(disputes, window)
    n_outside = int(len(disputes) - len(in_window))

    keyed = add_dyad_keys(in_window, c1="statea", c2="stateb")
    hit = keyed["directed_key"].isin(set(panel["directed_key"]))
    retained = keyed[hit].reset_index(drop=True)
    dropped = keyed[~hit].reset_index(drop=True)

    result = OutcomeMergeResult(retained=retained, dropped=dropped, n_outside_window=n_outside)
    logger.info(
        "Disputes: %d in window, %d retained in PR dyads, %d dropped (capture rate %.3f).",
        result.n_in_window, result.n_retained, result.n_dropped, result.capture_rate,
    )
    return result

def attach_outcomes(panel: pd.DataFrame, retained: pd.DataFrame) -> pd.DataFrame:
    """Add the conflict-intensity outcome to each panel row.

    Several disputes in one directed dyad-year collapse to the highest hostility level;
    ``n_disputes`` counts them and ``disno`` lists their ids.
    """
    out = panel.copy()
    if len(retained):
        agg = retained.groupby("directed_key", as_index=False).agg(
            hihost=("hihost", "max"),
            n_disputes=("disno", "size"),
            disno=("disno", lambda s: ";".join(sorted(set(map(str, s))))),
        )
        n_multi = int((agg["n_disputes"] > 1).sum())
        if n_multi:
            logger.warning("%d directed dyad-years carry several disputes; highest hostility kept.", n_multi)
        out = out.merge(agg, on="directed_key", how="left")
    else:
        out["hihost"] = float("nan")
        out["n_disputes"] = 0
        out["disno"] = None

    out["conflict_intensity"] = out["hihost"].fillna(0).astype("int64")
    out["n_disputes"] = out["n_disputes"].fillna(0).astype("int64")
    out["conflict_label"] = conflict_label(out["conflict_intensity"])
    return out.drop(columns=["hihost"])
