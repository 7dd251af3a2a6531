from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from ..models.ordered_logit import OrderedLogitResult
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)

def plot_asymmetry_by_conflict(panel: pd.DataFrame, out_path: Path) -> Optional[Path]:
    d = panel.dropna(subset=["trade_asymmetry"])
    if d.empty:
        return None
    out_path.parent.mkdir(parents=True, exist_ok=True)
    has_mid = d["conflict_intensity"] > 0

    fig = plt.figure(figsize=(8, 5))
    ax = fig.add_subplot(111)
    bins = np.linspace(0.0, max(float(d["trade_asymmetry"].quantile(0.99)), 1e-6), 40)
    ax.hist(d.loc[~has_mid, "trade_asymmetry"], bins=bins, density=True, alpha=0.6, label="No MID")
    if has_mid.any():
        ax.hist(d.loc[has_mid, "trade_asymmetry"], bins=bins, density=True, alpha=0.6, label="MID")
    ax.set_xlabel("Trade asymmetry (|dep1 - dep2|)")
    ax.set_ylabel("Density")
    ax.set_title("Distribution of Trade Asymmetry by Conflict Status")
    ax.legend()
    fig.tight_layout()
    fig.savefig(out_path, dpi=200)
    plt.close(fig)
    return out_path

def plot_predicted_probabilities(pred: pd.DataFrame, out_path: Path, focal: str = "trade_asymmetry") -> Optional[Path]:
    if pred is None or pred.empty:
        return None
    out_path.parent.mkdir(parents=True, exist_ok=True)

    fig = plt.figure(figsize=(8, 6))
    ax = fig.add_subplot(111)
    for outcome, g in pred.groupby("outcome", sort=False):
        ax.plot(g[focal], g["probability"], label=str(outcome))
    ax.set_xlabel("Trade asymmetry")
    ax.set_ylabel("Predicted probability")
    ax.set_title("Predicted Probabilities of Conflict Escalation by Trade Asymmetry")
    ax.legend(title="Outcome")
    fig.tight_layout()
    fig.savefig(out_path, dpi=200)
    plt.close(fig)
    return out_path

def mid_share_by_dyad_type(panel: pd.DataFrame) -> pd.DataFrame:
    dyad_type = np.select(
        [panel["is_contiguous"] & panel["has_major"], panel["is_contiguous"], panel["has_major"]],
        ["Both", "Contiguous only", "Major power only"],
        default="Other",
    )
    d = pd.DataFrame({"dyad_type": dyad_type, "has_mid": (panel["conflict_intensity"] > 0).astype(int)})
    return d.groupby("dyad_type", as_index=False).agg(n=("has_mid", "size"), prop_mid=("has_mid", "mean"))

def plot_mid_share_by_type(panel: pd.DataFrame, out_path: Path) -> Optional[Path]:
    if panel.empty:
        return None
    out_path.parent.mkdir(parents=True, exist_ok=True)
    summary = mid_share_by_dyad_type(panel)

    fig = plt.figure(figsize=(7, 5))
    ax = fig.add_subplot(111)
    ax.bar(summary["dyad_type"], summary["prop_mid"])
    ax.set_ylabel("Share of dyad-years with a MID")
    ax.set_title("Proportion of Dyad-Years with MIDs by Political Relevance Type")
    fig.tight_layout()
    fig.savefig(out_path, dpi=200)
    plt.close(fig)
    return out_path

def plot_trade_trends(panel: pd.DataFrame, out_path: Path) -> Optional[Path]:
    d = panel[panel["trade_total"] > 0]
    if d.empty:
        return None
    out_path.parent.mkdir(parents=True, exist_ok=True)
    trends = d.groupby("year")["trade_total"].agg(["mean", "median"])

    fig = plt.figure(figsize=(8, 5))
    ax = fig.add_subplot(111)
    ax.plot(trends.index, trends["mean"], label="Mean")
    ax.plot(trends.index, trends["median"], linestyle="--", label="Median")
    ax.set_xlabel("Year")
    ax.set_ylabel("Bilateral trade")
    ax.set_title("Bilateral Trade Volume in Politically Relevant Dyads")
    ax.legend()
    fig.tight_layout()
    fig.savefig(out_path, dpi=200)
    plt.close(fig)
    return out_path

def plot_coefficients(result: OrderedLogitResult, out_path: Path) -> Optional[Path]:
    coefs = result.coefficients()
    if coefs.empty:
        return None
    out_path.parent.mkdir(parents=True, exist_ok=True)
    coefs = coefs.sort_values("coef")
    half = 1.96 * coefs["se"].to_numpy()

    fig = plt.figure(figsize=(7, 5))
    ax = fig.add_subplot(111)
    ax.axvline(x=0, linewidth=1, color="grey")
    ax.errorbar(coefs["coef"], range(len(coefs)), xerr=half, fmt="o")
    ax.set_yticks(range(len(coefs)))
    ax.set_yticklabels(coefs["variable"])
    ax.set_xlabel("Coefficient (95% CI)")
    ax.set_title(f"Ordered Logit Coefficients: {result.spec.label}")
    fig.tight_layout()
    fig.savefig(out_path, dpi=200)
    plt.close(fig)
    return out_path

def make_figures(
    panel: pd.DataFrame,
    out_dir: Path,
    *,
    coef_result: Optional[OrderedLogitResult] = None,
    predictions: Optional[pd.DataFrame] = None,
) -> Dict[str, Path]:
    """Render every figure the data supports; skipped figures are absent from the mapping."""
    out: Dict[str, Optional[Path]] = {
        "fig1_trade_asymmetry": plot_asymmetry_by_conflict(panel, out_dir / "fig1_trade_asymmetry.png"),
        "fig2_predicted_probs": plot_predicted_probabilities(predictions, out_dir / "fig2_predicted_probs.png"),
        "fig3_conflict_by_type": plot_mid_share_by_type(panel, out_dir / "fig3_conflict_by_type.png"),
        "fig4_trade_trends": plot_trade_trends(panel, out_dir / "fig4_trade_trends.png"),
    }
    if coef_result is not None:
        out["fig5_coefficients"] = plot_coefficients(coef_result, out_dir / "fig5_coefficients.png")
    skipped: List[str] = [k for k, v in out.items() if v is None]
    if skipped:
        logger.info("Figures skipped (no data): %s", skipped)
    return {k: v for k, v in out.items() if v is not None}
