from __future__ import annotations
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import json

import pandas as pd

from ...config import PanelBuildOptions
from ...utils.hashing import fingerprint_paths, sha256_frame
from ...utils.logging_utils import get_logger
from ..contracts import validate_panel
from ..ingest import IngestConfig, frames_summary
from ..panel_builder import PanelBuildResult, PanelInputs, build_dyad_year_panel

logger = get_logger(__name__)

@dataclass
class AuditOptions:
    write_dataset: bool = True
    version_stamp: Optional[str] = None

def _missingness(df: pd.DataFrame) -> pd.DataFrame:
    return pd.DataFrame({
        "column": df.columns,
        "missing_n": [int(df[c].isna().sum()) for c in df.columns],
        "missing_pct": [float(df[c].isna().mean()) if len(df) else 0.0 for c in df.columns],
        "dtype": [str(df[c].dtype) for c in df.columns],
    })

def _sanity_checks(panel: pd.DataFrame) -> list:
    checks = []
    checks.append({"check": "unique_directed_dyad_year",
                   "passed": bool(not panel.duplicated(subset=["ccode1", "ccode2", "year"]).any())})
    checks.append({"check": "relevance_criterion_holds",
                   "passed": bool((panel["is_contiguous"] | panel["has_major"]).all())})
    checks.append({"check": "noncontiguous_rows_have_conttype_0",
                   "passed": bool((panel.loc[~panel["is_contiguous"], "conttype"] == 0).all())})
    checks.append({"check": "outcome_levels",
                   "passed": bool(panel["conflict_intensity"].isin([0, 2, 3, 4, 5]).all())})
    checks.append({"check": "vulnerability_finite",
                   "passed": bool(pd.api.types.is_float_dtype(panel["trade_vulnerability"])
                                  and not panel["trade_vulnerability"].isin([float("inf"), float("-inf")]).any())})
    checks.append({"check": "prev_mid_binary", "passed": bool(panel["prev_mid"].isin([0, 1]).all())})
    return checks

def _input_fingerprint(inputs: PanelInputs, ingest: Optional[IngestConfig]) -> Dict[str, str]:
    if ingest is not None:
        fp = fingerprint_paths(ingest.paths())
        if fp:
            return fp
    # in-memory inputs: hash the frames themselves
    fp: Dict[str, str] = {}
    for name in ("majors", "contiguity", "disputes", "trade", "capabilities", "regime", "alliances", "active_states"):
        df = getattr(inputs, name)
        if df is not None:
            fp[f"{name}_sha256"] = sha256_frame(df)
    return fp

def build_audit_version(
    inputs: PanelInputs,
    *,
    export_dir: Path,
    options: Optional[PanelBuildOptions] = None,
    ingest: Optional[IngestConfig] = None,
    audit: Optional[AuditOptions] = None,
) -> Tuple[PanelBuildResult, Dict[str, Any]]:
    """Build the panel, write an audit trail and a versioned copy of the dataset."""
    opt = options or PanelBuildOptions()
    aud = audit or AuditOptions()
    export_dir = Path(export_dir)
    export_dir.mkdir(parents=True, exist_ok=True)

    result = build_dyad_year_panel(inputs, opt)
    panel = result.panel

    audit_dir = export_dir / "data_audit"
    audit_dir.mkdir(parents=True, exist_ok=True)
    _missingness(panel).to_csv(audit_dir / "panel_missingness.csv", index=False)
    if len(result.outcomes.dropped):
        result.outcomes.dropped.to_csv(audit_dir / "disputes_outside_pr_dyads.csv", index=False)

    checks = _sanity_checks(panel)
    failed = [c["check"] for c in checks if not c["passed"]]
    if failed:
        logger.warning("Panel sanity checks failed: %s", failed)

    fp = _input_fingerprint(inputs, ingest)
    summary: Dict[str, Any] = {
        "fingerprint": fp,
        "input_rows": frames_summary(inputs),
        "panel_shape": [int(panel.shape[0]), int(panel.shape[1])],
        "panel_contract": validate_panel(panel),
        "diagnostics": result.diagnostics,
        "checks": checks,
        "audit_dir": str(audit_dir),
    }

    if aud.write_dataset:
        stamp = aud.version_stamp or pd.Timestamp.now(tz="UTC").strftime("%Y%m%dT%H%M%SZ")
        ds_dir = export_dir / "datasets" / stamp
        ds_dir.mkdir(parents=True, exist_ok=True)
        panel.to_csv(ds_dir / "panel_dyad_year.csv", index=False)
        result.outcomes.retained.to_csv(ds_dir / "disputes_in_pr_dyads.csv", index=False)
        (ds_dir / "fingerprint.json").write_text(json.dumps(fp, indent=2))
        schema = {"columns": {c: str(panel[c].dtype) for c in panel.columns}, "options": _options_dict(opt)}
        (ds_dir / "schema.json").write_text(json.dumps(schema, indent=2))
        summary["version_dir"] = str(ds_dir)

    (audit_dir / "audit_summary.json").write_text(json.dumps(summary, indent=2, default=str))
    return result, summary

def _options_dict(opt: PanelBuildOptions) -> Dict[str, Any]:
    d = asdict(opt)
    d["window"] = [int(opt.window.start_year), int(opt.window.end_year)]
    return d
