import numpy as np
import pandas as pd
import pytest

from trade_conflict.data.adapters.cow_adapters import (
    AlliancesConfig,
    CapabilitiesConfig,
    ContiguityConfig,
    DisputesConfig,
    RegimeConfig,
    SystemMembershipConfig,
    load_alliances,
    load_capabilities,
    load_contiguity,
    load_disputes,
    load_regime,
    load_system_membership,
    map_columns,
    override_gdp,
    read_table,
)
from trade_conflict.data.contracts import IntegrityError
from trade_conflict.data.ingest import IngestConfig, Ingestor, frames_summary


def _write(tmp_path, name, df):
    p = tmp_path / name
    df.to_csv(p, index=False)
    return p


def test_read_table_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        read_table(tmp_path / "nope.csv")


def test_read_table_excel(tmp_path) -> None:
    p = tmp_path / "majors.xlsx"
    pd.DataFrame({"ccode": [2], "styear": [1898], "endyear": [2016]}).to_excel(p, index=False, engine="openpyxl")

    assert read_table(p)["ccode"].tolist() == [2]


def test_map_columns_reports_missing_sources() -> None:
    raw = pd.DataFrame({"a": [1]})
    with pytest.raises(IntegrityError, match="missing mapped columns"):
        map_columns(raw, {"ccode": "ccode"}, "majors")


def test_contiguity_uses_cow_column_names(tmp_path) -> None:
    p = _write(tmp_path, "contdird.csv", pd.DataFrame({
        "dyad": [2020], "state1no": [2], "state1ab": ["USA"], "state2no": [20], "year": [1990], "conttype": [1],
    }))
    out = load_contiguity(ContiguityConfig(path=p))

    assert list(out.columns) == ["ccode1", "ccode2", "year", "conttype"]
    assert out.iloc[0].tolist() == [2, 20, 1990, 1]


def test_disputes_drop_hostility_level_one(tmp_path) -> None:
    p = _write(tmp_path, "dyadic_mid.csv", pd.DataFrame({
        "statea": [2, 2, 2], "stateb": [20, 20, 365], "year": [1990, 1991, 1992],
        "hihost": [1, 3, 5], "disno": [10, 11, 12],
    }))
    out = load_disputes(DisputesConfig(path=p))

    assert out["hihost"].tolist() == [3, 5]
    assert out["disno"].tolist() == ["11", "12"]


def test_capabilities_gdp_proxy_and_sentinels(tmp_path) -> None:
    p = _write(tmp_path, "nmc.csv", pd.DataFrame({
        "ccode": [2, 20], "year": [1990, 1990], "cinc": [0.2, -9], "milex": [30.0, -9],
    }))
    out = load_capabilities(CapabilitiesConfig(path=p))

    assert out.loc[0, "gdp"] == pytest.approx(1000.0)
    assert np.isnan(out.loc[1, "gdp"])
    assert np.isnan(out.loc[1, "cinc"])


def test_capabilities_direct_gdp_column(tmp_path) -> None:
    p = _write(tmp_path, "nmc.csv", pd.DataFrame({
        "ccode": [2], "year": [1990], "cinc": [0.2], "milex": [30.0], "rgdp": [5000.0],
    }))
    out = load_capabilities(CapabilitiesConfig(path=p, gdp_col="rgdp"))

    assert out.loc[0, "gdp"] == 5000.0


def test_override_gdp_prefers_external_series() -> None:
    caps = pd.DataFrame({"ccode": [2, 20], "year": [1990, 1990], "cinc": [0.2, 0.01], "gdp": [1.0, 2.0]})
    gdp = pd.DataFrame({"ccode": [2], "year": [1990], "gdp": [99.0]})
    out = override_gdp(caps, gdp)

    assert out["gdp"].tolist() == [99.0, 2.0]


def test_regime_special_codes_become_missing(tmp_path) -> None:
    p = _write(tmp_path, "polity.csv", pd.DataFrame({
        "ccode": [2, 20, 31], "year": [1990, 1990, 1990], "polity2": [10, -66, -7],
    }))
    out = load_regime(RegimeConfig(path=p))

    assert out.loc[0, "polity2"] == 10
    assert np.isnan(out.loc[1, "polity2"])
    assert out.loc[2, "polity2"] == -7


def test_alliances_optional_end_year(tmp_path) -> None:
    p = _write(tmp_path, "alliance.csv", pd.DataFrame({
        "ccode1": [2, 2], "ccode2": [20, 20], "dyad_st_year": [1950, 1950], "dyad_end_year": [1990, 1990],
    }))
    plain = load_alliances(AlliancesConfig(path=p))
    ended = load_alliances(AlliancesConfig(path=p, end_col="dyad_end_year"))

    assert len(plain) == 1
    assert "endyear" not in plain.columns
    assert ended["endyear"].tolist() == [1990]


def test_system_membership_expanded(tmp_path) -> None:
    p = _write(tmp_path, "states.csv", pd.DataFrame({"ccode": [20], "styear": [1990], "endyear": [1992]}))
    out = load_system_membership(SystemMembershipConfig(path=p))

    assert out["year"].tolist() == [1990, 1991, 1992]


def test_ingestor_requires_core_files(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        Ingestor(IngestConfig(majors_csv=tmp_path / "m.csv")).load_inputs()


def test_ingestor_missing_optional_files_are_none(tmp_path) -> None:
    cfg = IngestConfig(
        majors_csv=_write(tmp_path, "majors.csv", pd.DataFrame({"ccode": [2], "styear": [1898], "endyear": [2016]})),
        contiguity_csv=_write(tmp_path, "cont.csv", pd.DataFrame({
            "state1no": [2], "state2no": [20], "year": [1990], "conttype": [1],
        })),
        disputes_csv=_write(tmp_path, "mid.csv", pd.DataFrame({
            "statea": [2], "stateb": [20], "year": [1990], "hihost": [3], "disno": [1],
        })),
        trade_csv=tmp_path / "missing_trade.csv",
    )
    inputs = Ingestor(cfg).load_inputs()

    assert inputs.trade is None
    assert inputs.capabilities is None
    assert frames_summary(inputs) == {
        "majors": 1, "contiguity": 1, "disputes": 1, "trade": -1, "capabilities": -1,
        "regime": -1, "alliances": -1, "active_states": -1,
    }
