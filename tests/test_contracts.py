import pandas as pd
import pytest

from trade_conflict.config import AnalysisWindow
from trade_conflict.data import contracts as C
from trade_conflict.data.contracts import IntegrityError, assert_unique_key, conform_table, validate_panel, validate_window


def test_conform_table_casts_whole_floats() -> None:
    df = pd.DataFrame({"ccode": [2.0, 200.0], "styear": [1816, 1816], "endyear": ["2016", "2016"]})
    out = conform_table(df, C.MAJORS)

    assert str(out["ccode"].dtype) == "int64"
    assert str(out["endyear"].dtype) == "int64"
    assert df["ccode"].dtype == float


def test_conform_table_missing_column() -> None:
    with pytest.raises(IntegrityError, match="missing required columns"):
        conform_table(pd.DataFrame({"ccode": [2]}), C.MAJORS)


def test_conform_table_rejects_fractional_or_missing_keys() -> None:
    bad = pd.DataFrame({"ccode1": [2], "ccode2": [20.5], "year": [1990], "conttype": [1]})
    with pytest.raises(IntegrityError):
        conform_table(bad, C.CONTIGUITY)

    missing = pd.DataFrame({"ccode1": [2], "ccode2": [None], "year": [1990], "conttype": [1]})
    with pytest.raises(IntegrityError):
        conform_table(missing, C.CONTIGUITY)


def test_conform_table_coerces_numeric_columns() -> None:
    df = pd.DataFrame({"ccode": [2], "year": [1990], "cinc": ["0.1"], "gdp": ["n/a"]})
    out = conform_table(df, C.CAPABILITIES)

    assert out.loc[0, "cinc"] == pytest.approx(0.1)
    assert pd.isna(out.loc[0, "gdp"])


def test_validate_window() -> None:
    validate_window(AnalysisWindow(1973, 1973))
    with pytest.raises(IntegrityError):
        validate_window(AnalysisWindow(2000, 1990))


def test_assert_unique_key() -> None:
    df = pd.DataFrame({"ccode1": [2, 2], "ccode2": [20, 20], "year": [1990, 1990]})
    with pytest.raises(IntegrityError, match="duplicated key"):
        assert_unique_key(df, ["ccode1", "ccode2", "year"], "test")


def test_validate_panel_reports_without_raising() -> None:
    df = pd.DataFrame({
        "ccode1": [2, 2], "ccode2": [20, 20], "year": [1990, 1990],
        "dyad_id": ["2_20", "2_20"], "conflict_intensity": [0, 1],
    })
    report = validate_panel(df)

    assert report["passed"] is False
    assert len(report["issues"]) == 2
    assert validate_panel(df.drop(columns=["dyad_id"]))["missing"] == ["dyad_id"]


def test_conform_table_rejects_hostility_level_outside_dispute_codes() -> None:
    df = pd.DataFrame({"statea": [1, 1], "stateb": [2, 2], "year": [1980, 1981], "hihost": [1, 3], "disno": [7, 8]})
    with pytest.raises(IntegrityError, match="'hihost' must be one of"):
        conform_table(df, C.DISPUTES)

    ok = conform_table(df.iloc[[1]], C.DISPUTES)
    assert ok["hihost"].tolist() == [3]


def test_conform_table_rejects_unknown_contiguity_type() -> None:
    df = pd.DataFrame({"ccode1": [2, 2], "ccode2": [20, 20], "year": [1990, 1991], "conttype": [0, 6]})
    with pytest.raises(IntegrityError, match="'conttype' must be one of"):
        conform_table(df, C.CONTIGUITY)

    out = conform_table(df.assign(conttype=[1, 5]), C.CONTIGUITY)
    assert out["conttype"].tolist() == [1, 5]
