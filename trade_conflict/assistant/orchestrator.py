from __future__ import annotations
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from ..config import PanelBuildOptions, RunConfig
from ..data import contracts as C
from ..data.ingest import IngestConfig, Ingestor, SourceSchemas
from ..data.panel_builder import PanelBuildResult, PanelInputs
from ..data.pipelines.build_and_audit import AuditOptions, build_audit_version
from ..models.model_comparison import compare_models, likelihood_ratio_test
from ..models.ordered_logit import (
    OrderedLogitResult,
    coefficient_table,
    predicted_probabilities,
    run_models,
)
from ..registry.experiment_registry import ExperimentRegistry
from ..utils.logging_utils import get_logger
from ..verify.checks import CheckResult, panel_verifier
from .descriptive import DescriptiveTable, build_descriptive_tables
from .figures import make_figures
from .reporting import ReportArtifacts, export_excel, export_html, export_table_csvs, export_word

logger = get_logger(__name__)

@dataclass
class AnalysisOutputs:
    build: PanelBuildResult
    audit: Dict[str, Any]
    tables: List[DescriptiveTable]
    models: Dict[str, Optional[OrderedLogitResult]]
    model_errors: Dict[str, str]
    regression_table: pd.DataFrame
    model_fit: pd.DataFrame
    predictions: Optional[pd.DataFrame]
    reports: ReportArtifacts
    figures: Dict[str, Path] = field(default_factory=dict)
    checks: List[CheckResult] = field(default_factory=list)
    run_id: Optional[str] = None

    @property
    def panel(self) -> pd.DataFrame:
        return self.build.panel

def _check_artifact(build: PanelBuildResult, audit: Dict[str, Any]) -> Dict[str, Any]:
    out = build.outcomes
    return {
        "dispute_capture_rate": out.capture_rate if out.n_in_window else None,
        "disputes_in_window": out.n_in_window,
        "disputes_accounted": out.n_retained + out.n_dropped,
        "dyad_years_with_mid": int((build.panel["conflict_intensity"] > 0).sum()),
        "dyad_years_with_retained_dispute": int(out.retained["directed_key"].nunique()) if out.n_retained else 0,
        "panel_contract_passed": audit["panel_contract"]["passed"],
        "sanity_checks_passed": all(c["passed"] for c in audit["checks"]),
        "total_dyad_years": int(len(build.panel)),
    }

def _nested_lr_tests(models: Dict[str, Optional[OrderedLogitResult]]) -> pd.DataFrame:
    rows = []
    pairs = [("model1", "model2"), ("model1", "model3"), ("model3", "model4")]
    for a, b in pairs:
        ra, rb = models.get(a), models.get(b)
        if ra is None or rb is None:
            continue
        rows.append({"restricted": a, "full": b, **likelihood_ratio_test(ra, rb)})
    return pd.DataFrame(rows)

def run_analysis(
    source: Union[IngestConfig, PanelInputs],
    *,
    options: Optional[PanelBuildOptions] = None,
    run_config: Optional[RunConfig] = None,
    schemas: Optional[SourceSchemas] = None,
    version_stamp: Optional[str] = None,
) -> AnalysisOutputs:
    """End-to-end run: ingest, build and audit the panel, tables, models, reports, figures, registry."""
    opt = options or PanelBuildOptions()
    run = run_config or RunConfig()
    export_dir = Path(run.export_dir)
    export_dir.mkdir(parents=True, exist_ok=True)

    ingest = source if isinstance(source, IngestConfig) else None
    inputs = Ingestor(source, schemas).load_inputs() if ingest is not None else source

    build, audit = build_audit_version(
        inputs, export_dir=export_dir, options=opt, ingest=ingest,
        audit=AuditOptions(version_stamp=version_stamp),
    )
    panel = build.panel

    majors = C.conform_table(inputs.majors, C.MAJORS)
    tables = build_descriptive_tables(panel, majors, build.major_years, build.outcomes, opt.window)
    reports = ReportArtifacts(table_csvs=export_table_csvs(tables, export_dir / "tables"))

    models, model_errors = run_models(panel, min_obs=run.min_model_obs)
    regression = coefficient_table(models)
    model_fit = compare_models(models)
    lr_tests = _nested_lr_tests(models)

    predictions = None
    focal_model = models.get("model3")
    if focal_model is not None:
        try:
            predictions = predicted_probabilities(focal_model, panel)
        except Exception as e:
            logger.warning("Predicted probabilities not computed: %s", e)

    model_dir = export_dir / "models"
    model_dir.mkdir(parents=True, exist_ok=True)
    if not regression.empty:
        regression.to_csv(model_dir / "regression_table.csv", index=False)
        reports.regression_csv = model_dir / "regression_table.csv"
    model_fit.to_csv(model_dir / "model_fit.csv", index=False)
    if predictions is not None:
        predictions.to_csv(model_dir / "predicted_probabilities.csv", index=False)

    reports.html_path = export_html(
        tables, export_dir / "methods_tables.html",
        subtitle=f"Sample: Politically Relevant Dyads, {opt.window.label()}",
        regression=regression,
    )
    sheets: Dict[str, pd.DataFrame] = {t.name: t.frame for t in tables}
    sheets["regression"] = regression
    sheets["model_fit"] = model_fit
    sheets["lr_tests"] = lr_tests
    if predictions is not None:
        sheets["predicted_probabilities"] = predictions
    reports.excel_path = export_excel(sheets, export_dir / "results.xlsx")

    figures: Dict[str, Path] = {}
    if run.make_figures:
        coef_model = focal_model or next((m for m in models.values() if m is not None), None)
        figures = make_figures(panel, export_dir / "figures", coef_result=coef_model, predictions=predictions)

    checks = panel_verifier().run(_check_artifact(build, audit))
    failed = [c.name for c in checks if not c.passed]
    if failed:
        logger.warning("Verification failed: %s", failed)

    summary = {
        "Window": opt.window.label(),
        "Panel": {k: v for k, v in audit["diagnostics"]["panel"].items() if k != "defined_counts"},
        "Disputes": audit["diagnostics"]["outcomes"],
        "Models": {k: (m.summary() if m is not None else f"not estimated: {model_errors.get(k)}")
                   for k, m in models.items()},
        "Checks": {c.name: c.message for c in checks},
    }
    if run.write_word:
        reports.word_path = export_word(summary, export_dir / "run_summary.docx", tables)

    run_id = None
    if run.registry_dir is not None:
        registry = ExperimentRegistry(run.registry_dir)
        previous = registry.same_inputs(audit["fingerprint"])
        if previous:
            logger.info("%d earlier run(s) used identical inputs, latest %s", len(previous), previous[-1].run_id)
        rec = registry.log_run(
            window=opt.window.label(),
            method="ordered_logit",
            inputs={"fingerprint": audit["fingerprint"], "options": {**asdict(opt), "window": opt.window.label()}},
            outputs={
                "version_dir": audit.get("version_dir"),
                "panel": summary["Panel"],
                "models": {k: (m.summary() if m is not None else None) for k, m in models.items()},
                "checks_failed": failed,
                "previous_runs_same_inputs": [r.run_id for r in previous],
            },
            tags=["dyad_year", "pr_dyads"],
        )
        run_id = rec.run_id

    return AnalysisOutputs(
        build=build,
        audit=audit,
        tables=tables,
        models=models,
        model_errors=model_errors,
        regression_table=regression,
        model_fit=model_fit,
        predictions=predictions,
        reports=reports,
        figures=figures,
        checks=checks,
        run_id=run_id,
    )
