from trade_conflict.registry.experiment_registry import ExperimentRegistry
from trade_conflict.verify.checks import (
    Verifier,
    equals_check,
    flag_check,
    min_count_check,
    panel_verifier,
    prob_bounds_check,
)


def test_registry_round_trip(tmp_path) -> None:
    reg = ExperimentRegistry(tmp_path / "reg")
    first = reg.log_run(window="1973–2014", method="ordered_logit", inputs={"a": 1}, outputs={"n": 10})
    reg.log_run(window="1980–1990", method="ordered_logit", inputs={}, outputs={}, tags=["robustness"])

    runs = reg.list_runs()
    assert [r.run_id for r in runs][0] == first.run_id
    assert len(runs) == 2
    assert [r.window for r in reg.find_runs(window="1980–1990")] == ["1980–1990"]
    assert [r.window for r in reg.find_runs(tag="robustness")] == ["1980–1990"]
    assert reg.find_runs(method="other") == []
    assert reg.list_runs(limit=1)[0].outputs == {"n": 10}
    assert reg.get_run(first.run_id).inputs == {"a": 1}
    assert reg.get_run("missing") is None


def test_registry_matches_runs_on_identical_inputs(tmp_path) -> None:
    reg = ExperimentRegistry(tmp_path)
    fp = {"majors_sha256": "abc", "disputes_sha256": "def"}
    a = reg.log_run(window="w", method="m", inputs={"fingerprint": fp}, outputs={})
    reg.log_run(window="w", method="m", inputs={"fingerprint": {"majors_sha256": "zzz"}}, outputs={})
    reg.log_run(window="w", method="m", inputs={}, outputs={})

    assert [r.run_id for r in reg.same_inputs(fp)] == [a.run_id]
    assert reg.same_inputs({}) == []


def test_registry_empty(tmp_path) -> None:
    assert ExperimentRegistry(tmp_path).list_runs() == []


def test_individual_checks() -> None:
    v = Verifier()
    v.add_check(prob_bounds_check("rate"))
    v.add_check(equals_check("a", "b"))
    v.add_check(flag_check("ok"))
    v.add_check(min_count_check("n", 5))
    results = v.run({"rate": 1.2, "a": 3, "b": 3, "ok": False, "n": 5})

    assert [r.passed for r in results] == [False, True, False, True]
    assert "out of bounds" in results[0].message


def test_panel_verifier_passes_consistent_artifact() -> None:
    artifact = {
        "dispute_capture_rate": 0.8,
        "disputes_in_window": 10,
        "disputes_accounted": 10,
        "dyad_years_with_mid": 7,
        "dyad_years_with_retained_dispute": 7,
        "panel_contract_passed": True,
        "sanity_checks_passed": True,
        "total_dyad_years": 100,
    }
    assert all(r.passed for r in panel_verifier().run(artifact))

    artifact["disputes_accounted"] = 9
    assert not all(r.passed for r in panel_verifier().run(artifact))
