from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest

from trade_conflict.config import AnalysisWindow, PanelBuildOptions
from trade_conflict.data.panel_builder import build_dyad_year_panel
from trade_conflict.models.model_comparison import bic_weights, compare_models, likelihood_ratio_test
from trade_conflict.models.ordered_logit import (
    DEFAULT_SPECS,
    OrderedLogitSpec,
    coefficient_table,
    complete_cases,
    design_matrix,
    fit_ordered_logit,
    predicted_probabilities,
    prepare_regression_sample,
    run_models,
)


@pytest.fixture(scope="module")
def panel(small_world_inputs):
    return build_dyad_year_panel(small_world_inputs, PanelBuildOptions(window=AnalysisWindow(1990, 2009))).panel


@pytest.fixture(scope="module")
def fitted(panel):
    return run_models(panel, DEFAULT_SPECS[:3], min_obs=50)


def test_default_specs_are_nested() -> None:
    names = [s.name for s in DEFAULT_SPECS]
    assert names == ["model1", "model2", "model3", "model4", "model5"]
    base = set(DEFAULT_SPECS[0].covariates)
    assert base <= set(DEFAULT_SPECS[1].covariates)
    assert base <= set(DEFAULT_SPECS[2].covariates)
    assert DEFAULT_SPECS[3].interactions
    assert DEFAULT_SPECS[4].year_fe


def test_prepare_regression_sample(panel) -> None:
    d = prepare_regression_sample(panel)

    assert d["is_contiguous"].isin([0, 1]).all()
    assert d["log_trade_total"].min() >= 0
    assert d["conflict_label"].cat.ordered


def test_design_matrix_interactions_and_constants() -> None:
    d = pd.DataFrame({
        "a": [1.0, 2.0, 3.0, 4.0, 5.0, 7.0, 6.0, 9.0],
        "b": [0.0, 1.0, 1.0, 0.0, 1.0, 0.0, 1.0, 0.0],
        "k": [1.0] * 8,
        "year": [2000, 2001, 2002, 2000, 2001, 2002, 2000, 2001],
    })
    spec = OrderedLogitSpec("m", "m", ["a", "b", "k"], interactions=[("a", "b")], year_fe=True)
    X = design_matrix(d, spec, year_fe=True)

    assert "k" not in X.columns
    assert X["a:b"].tolist() == [0.0, 2.0, 3.0, 0.0, 5.0, 0.0, 6.0, 0.0]
    assert list(X.columns[-2:]) == ["year_2001", "year_2002"]


def test_design_matrix_drops_aliased_columns() -> None:
    d = pd.DataFrame({
        "asym": [1.0, 0.5, 2.0, 0.0, 3.0, 1.5],
        "lower": [0.2, 1.0, 0.3, 2.0, 0.1, 0.7],
    })
    d["higher"] = d["lower"] + d["asym"]
    X = design_matrix(d, OrderedLogitSpec("m", "m", ["asym", "lower", "higher"]), year_fe=False)

    assert list(X.columns) == ["asym", "lower"]


def test_models_estimate_with_clustered_errors(fitted) -> None:
    results, errors = fitted

    assert errors == {}
    m1 = results["model1"]
    assert m1.n > 50
    assert m1.cov_type in ("cluster", "nonrobust")
    assert m1.n_clusters > 1
    coefs = m1.coefficients()
    assert set(coefs["variable"]) <= set(DEFAULT_SPECS[0].covariates)
    assert np.isfinite(coefs["se"]).all()
    assert coefs["p_value"].between(0, 1).all()
    assert "trade_asymmetry" in results["model3"].exog_names
    assert "trade_dep_higher" not in results["model3"].exog_names


def test_model_below_minimum_is_recorded_not_raised(panel) -> None:
    results, errors = run_models(panel, DEFAULT_SPECS[:1], min_obs=10_000_000)

    assert results["model1"] is None
    assert "complete cases" in errors["model1"]


def test_fit_raises_on_small_sample(panel) -> None:
    with pytest.raises(ValueError):
        fit_ordered_logit(prepare_regression_sample(panel).head(20), DEFAULT_SPECS[0], min_obs=100)


def test_coefficient_table(fitted) -> None:
    results, _ = fitted
    table = coefficient_table(results)

    assert list(table.columns) == ["Variable", "model1", "model2", "model3"]
    assert table["Variable"].tolist()[-3:] == ["N", "Log-likelihood", "AIC"]
    trade_row = table.set_index("Variable").loc["log_trade_total"]
    assert trade_row["model1"] == ""
    assert "(" in trade_row["model2"]


def test_predicted_probabilities_sum_to_one(fitted, panel) -> None:
    results, _ = fitted
    pred = predicted_probabilities(results["model3"], panel, grid_size=10)

    assert pred["trade_asymmetry"].nunique() == 10
    sums = pred.groupby("trade_asymmetry")["probability"].sum()
    assert np.allclose(sums, 1.0)
    with pytest.raises(ValueError):
        predicted_probabilities(results["model1"], panel)


def test_complete_cases_drop_missing(panel) -> None:
    d = prepare_regression_sample(panel)
    cc = complete_cases(d, DEFAULT_SPECS[2], "dyad_id")

    assert cc[DEFAULT_SPECS[2].columns()].notna().all(axis=None)
    assert len(cc) <= len(d)


def test_bic_weights() -> None:
    w = bic_weights([100.0, 100.0, 200.0])

    assert sum(w) == pytest.approx(1.0)
    assert w[0] == pytest.approx(0.5)
    assert w[2] < 1e-10


def test_compare_models_groups_by_sample(fitted) -> None:
    results, _ = fitted
    table = compare_models({**results, "model9": None})

    assert set(table["model"]) == {"model1", "model2", "model3"}
    for _, g in table.groupby("n"):
        assert g["bic_weight"].sum() == pytest.approx(1.0)


def test_likelihood_ratio_test() -> None:
    small = SimpleNamespace(n=100, llf=-60.0, params=pd.Series([0.1, 0.2]))
    big = SimpleNamespace(n=100, llf=-55.0, params=pd.Series([0.1, 0.2, 0.3]))
    other = SimpleNamespace(n=90, llf=-50.0, params=pd.Series([0.1, 0.2, 0.3]))

    lr = likelihood_ratio_test(small, big)
    assert lr["lr_stat"] == pytest.approx(10.0)
    assert lr["df"] == 1.0
    assert 0.0 < lr["p_value"] < 0.01
    assert np.isnan(likelihood_ratio_test(small, other)["lr_stat"])
