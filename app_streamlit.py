from __future__ import annotations
from pathlib import Path
import pandas as pd
import streamlit as st

from trade_conflict.assistant.orchestrator import run_analysis
from trade_conflict.config import AnalysisWindow, PanelBuildOptions, RunConfig
from trade_conflict.data.ingest import IngestConfig
from trade_conflict.data.synthetic import make_synthetic_world, write_synthetic_csvs
from trade_conflict.registry.experiment_registry import ExperimentRegistry

st.set_page_config(page_title="Trade Vulnerability & Conflict", layout="wide")

st.title("Trade Vulnerability and Conflict Escalation")
st.caption("Politically relevant dyad-year panel: build, audit, describe, model.")

with st.sidebar:
    st.header("Inputs")
    mode = st.radio("Input mode", ["Synthetic demo world", "Upload CSVs", "Local file paths"], index=0)

    uploads = {}
    paths = {}
    names = ["majors", "contiguity", "disputes", "trade", "capabilities", "regime", "alliances", "system_membership"]
    if mode == "Upload CSVs":
        for n in names:
            label = f"{n} CSV" + ("" if n in ("majors", "contiguity", "disputes") else " (optional)")
            uploads[n] = st.file_uploader(label, type=["csv"])
    elif mode == "Local file paths":
        for n in names:
            paths[n] = st.text_input(f"{n} path", value="")

    st.header("Run configuration")
    start_year = st.number_input("Window start", value=1973, step=1)
    end_year = st.number_input("Window end", value=2014, step=1)
    democracy_threshold = st.slider("Democracy threshold", min_value=0.0, max_value=10.0, value=6.0, step=1.0)
    parity_threshold = st.number_input("Power parity threshold (ratio ≤)", value=2.0, step=0.5)
    min_obs = st.number_input("Minimum model observations", value=100, step=10)
    export_dir = st.text_input("Export directory", value="exports_dashboard")
    run_btn = st.button("Run analysis")

def _persist_upload(upload, target: Path) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "wb") as f:
        f.write(upload.getbuffer())
    return target

def _ingest_config() -> IngestConfig:
    if mode == "Synthetic demo world":
        world = make_synthetic_world(window=AnalysisWindow(int(start_year), int(end_year)))
        return write_synthetic_csvs(world, Path(export_dir) / "sample_data")
    if mode == "Upload CSVs":
        if not all(uploads.get(n) for n in ("majors", "contiguity", "disputes")):
            st.error("Majors, contiguity and disputes CSVs are required.")
            st.stop()
        data_dir = Path("uploads")
        got = {n: _persist_upload(u, data_dir / f"{n}.csv") for n, u in uploads.items() if u is not None}
    else:
        got = {n: Path(p) for n, p in paths.items() if p.strip()}
    return IngestConfig(
        majors_csv=got.get("majors"),
        contiguity_csv=got.get("contiguity"),
        disputes_csv=got.get("disputes"),
        trade_csv=got.get("trade"),
        capabilities_csv=got.get("capabilities"),
        regime_csv=got.get("regime"),
        alliances_csv=got.get("alliances"),
        system_membership_csv=got.get("system_membership"),
    )

if run_btn:
    cfg = _ingest_config()
    exp = Path(export_dir)
    options = PanelBuildOptions(
        window=AnalysisWindow(int(start_year), int(end_year)),
        democracy_threshold=float(democracy_threshold),
        parity_threshold=float(parity_threshold),
    )
    st.info("Building panel, fitting models, writing exports...")
    out = run_analysis(
        cfg, options=options,
        run_config=RunConfig(export_dir=exp, registry_dir=exp / "registry", min_model_obs=int(min_obs)),
    )
    st.success("Run complete.")

    diag = out.audit["diagnostics"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Dyad-years", f"{diag['panel']['total_dyad_years']:,}")
    c2.metric("Undirected dyads", f"{diag['panel']['unique_undirected_dyads']:,}")
    c3.metric("Dyad-years with MID", f"{diag['panel']['dyad_years_with_mid']:,}")
    c4.metric("Dispute capture rate", f"{100 * diag['outcomes']['dispute_capture_rate']:.1f}%")

    tab_tables, tab_models, tab_figs, tab_audit = st.tabs(["Tables", "Models", "Figures", "Audit"])
    with tab_tables:
        for i, t in enumerate(out.tables, start=1):
            st.subheader(f"Table {i}. {t.title}")
            st.dataframe(t.frame, use_container_width=True)
            st.caption(t.note)
    with tab_models:
        st.subheader("Regression table")
        st.dataframe(out.regression_table, use_container_width=True)
        st.subheader("Model fit")
        st.dataframe(out.model_fit, use_container_width=True)
        if out.model_errors:
            st.warning(out.model_errors)
        if out.predictions is not None:
            wide = out.predictions.pivot(index="trade_asymmetry", columns="outcome", values="probability")
            st.line_chart(wide)
    with tab_figs:
        for name, p in out.figures.items():
            st.image(str(p), caption=name)
    with tab_audit:
        st.json(diag["relevance"])
        st.json(diag["outcomes"])
        st.dataframe(pd.DataFrame([c.__dict__ for c in out.checks]), use_container_width=True)
        st.dataframe(out.panel.head(200), use_container_width=True)

    st.subheader("Exports")
    st.json({
        "html": str(out.reports.html_path),
        "excel": str(out.reports.excel_path),
        "word": str(out.reports.word_path),
        "version_dir": out.audit.get("version_dir"),
    })

st.divider()
st.subheader("Run history")
reg_root = Path(export_dir) / "registry"
if reg_root.exists():
    runs = ExperimentRegistry(reg_root).list_runs()
    if runs:
        st.dataframe(pd.DataFrame([{"run_id": r.run_id, "created_utc": r.created_utc, "window": r.window,
                                    "method": r.method} for r in runs]), use_container_width=True)
