import pandas as pd

from trade_conflict.config import AnalysisWindow
from trade_conflict.data.outcomes import attach_outcomes, merge_outcomes
from trade_conflict.data.relevance import build_relevance_panel

A, B, C = 20, 31, 2
W1980 = AnalysisWindow(1980, 1980)


def _panel():
    contiguity = pd.DataFrame([(A, B, 1980, 1), (B, A, 1980, 1)], columns=["ccode1", "ccode2", "year", "conttype"])
    return build_relevance_panel(contiguity, pd.DataFrame({"ccode": [C], "year": [1980]}), window=W1980).panel


def _disputes(rows):
    return pd.DataFrame(rows, columns=["statea", "stateb", "year", "hihost", "disno"])


def test_dispute_in_panel_is_retained() -> None:
    result = merge_outcomes(_disputes([(A, B, 1980, 4, "1")]), _panel(), window=W1980)

    assert result.n_retained == 1
    assert result.n_dropped == 0
    assert result.capture_rate == 1.0


def test_dispute_outside_panel_is_dropped_and_counted() -> None:
    disputes = _disputes([(A, B, 1980, 4, "1"), (A, 99, 1980, 3, "2"), (A, B, 1979, 2, "3")])
    result = merge_outcomes(disputes, _panel(), window=W1980)

    assert result.n_retained == 1
    assert result.n_dropped == 1
    assert result.n_outside_window == 1
    assert result.capture_rate == 0.5
    assert result.diagnostics()["disputes_in_window"] == 2


def test_attach_outcomes_is_directed_and_takes_max() -> None:
    panel = _panel()
    disputes = _disputes([(A, B, 1980, 2, "7"), (A, B, 1980, 4, "8")])
    out = attach_outcomes(panel, merge_outcomes(disputes, panel, window=W1980).retained)
    by_pair = out.set_index(["ccode1", "ccode2"])

    assert by_pair.loc[(A, B), "conflict_intensity"] == 4
    assert by_pair.loc[(A, B), "n_disputes"] == 2
    assert by_pair.loc[(A, B), "disno"] == "7;8"
    assert by_pair.loc[(B, A), "conflict_intensity"] == 0
    assert str(by_pair.loc[(A, B), "conflict_label"]) == "Use of Force"
    assert str(by_pair.loc[(B, A), "conflict_label"]) == "No MID"


def test_attach_outcomes_without_disputes() -> None:
    panel = _panel()
    out = attach_outcomes(panel, merge_outcomes(_disputes([]), panel, window=W1980).retained)

    assert (out["conflict_intensity"] == 0).all()
    assert (out["n_disputes"] == 0).all()
    assert len(out) == len(panel)
