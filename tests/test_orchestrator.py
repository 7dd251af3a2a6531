import pandas as pd

from trade_conflict.assistant.orchestrator import run_analysis
from trade_conflict.config import AnalysisWindow, PanelBuildOptions, RunConfig
from trade_conflict.data.synthetic import make_synthetic_world, write_synthetic_csvs
from trade_conflict.registry.experiment_registry import ExperimentRegistry


def test_end_to_end_from_files(tmp_path) -> None:
    window = AnalysisWindow(1990, 2009)
    cfg = write_synthetic_csvs(make_synthetic_world(window=window, n_minor=10, seed=3), tmp_path / "src")
    run = RunConfig(export_dir=tmp_path / "out", registry_dir=tmp_path / "reg", min_model_obs=50)

    out = run_analysis(cfg, options=PanelBuildOptions(window=window), run_config=run, version_stamp="t")

    assert all(c.passed for c in out.checks), [c for c in out.checks if not c.passed]
    assert len(out.tables) == 5
    assert out.models["model1"] is not None
    assert out.reports.html_path.exists()
    assert out.reports.excel_path.exists()
    assert out.reports.word_path.exists()
    assert (tmp_path / "out" / "tables" / "table1_composition.csv").exists()
    assert (tmp_path / "out" / "datasets" / "t" / "panel_dyad_year.csv").exists()
    assert {"fig1_trade_asymmetry", "fig3_conflict_by_type", "fig4_trade_trends"} <= set(out.figures)
    assert all(p.exists() for p in out.figures.values())

    runs = ExperimentRegistry(tmp_path / "reg").list_runs()
    assert [r.run_id for r in runs] == [out.run_id]
    assert "majors_sha256" in runs[0].inputs["fingerprint"]


def test_in_memory_inputs_without_models(tiny_inputs, window, tmp_path) -> None:
    run = RunConfig(export_dir=tmp_path, min_model_obs=100, make_figures=False, write_word=False)
    out = run_analysis(tiny_inputs, options=PanelBuildOptions(window=window), run_config=run)

    assert len(out.panel) == 30
    assert all(m is None for m in out.models.values())
    assert set(out.model_errors) == {"model1", "model2", "model3", "model4", "model5"}
    assert out.regression_table.empty
    assert out.predictions is None
    assert out.reports.word_path is None
    assert out.figures == {}
    assert out.run_id is None
    sheets = pd.ExcelFile(out.reports.excel_path).sheet_names
    assert "table1_composition" in sheets


def test_rerun_on_same_inputs_is_linked(tiny_inputs, window, tmp_path) -> None:
    run = RunConfig(export_dir=tmp_path / "out", registry_dir=tmp_path / "reg", make_figures=False, write_word=False)
    first = run_analysis(tiny_inputs, options=PanelBuildOptions(window=window), run_config=run, version_stamp="a")
    second = run_analysis(tiny_inputs, options=PanelBuildOptions(window=window), run_config=run, version_stamp="b")

    rec = ExperimentRegistry(tmp_path / "reg").get_run(second.run_id)
    assert rec.outputs["previous_runs_same_inputs"] == [first.run_id]
