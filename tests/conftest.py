import numpy as np
import pandas as pd
import pytest

from trade_conflict.config import AnalysisWindow
from trade_conflict.data.panel_builder import PanelInputs
from trade_conflict.data.synthetic import make_synthetic_world

# A and B are minor powers sharing a border; C is a major power.
A, B, C = 20, 31, 2
YEARS = list(range(1980, 1985))

CINC = {A: 0.01, B: 0.015, C: 0.2}
GDP = {A: 1000.0, B: 2000.0, C: 100000.0}
POLITY = {A: 8.0, B: 7.0, C: 10.0}


@pytest.fixture
def window() -> AnalysisWindow:
    return AnalysisWindow(1980, 1984)


@pytest.fixture
def tiny_inputs() -> PanelInputs:
    majors = pd.DataFrame({"ccode": [C], "styear": [1975], "endyear": [2000]})
    contiguity = pd.DataFrame(
        [(A, B, y, 1) for y in range(1979, 1985)] + [(B, A, y, 1) for y in range(1979, 1985)],
        columns=["ccode1", "ccode2", "year", "conttype"],
    )
    disputes = pd.DataFrame(
        [
            (A, B, 1978, 2, "D0"),
            (A, B, 1981, 4, "D1"),
            (B, A, 1981, 4, "D1"),
            (C, A, 1983, 3, "D2"),
            (A, B, 1983, 2, "D3"),
            (A, B, 1983, 5, "D4"),
            (A, 99, 1982, 2, "D5"),
        ],
        columns=["statea", "stateb", "year", "hihost", "disno"],
    )
    trade = pd.DataFrame(
        [(A, B, y, 10.0, 30.0) for y in YEARS if y != 1982]
        + [(A, B, 1982, 20.0, 30.0), (C, A, 1980, 5.0, 15.0)],
        columns=["ccode1", "ccode2", "year", "flow1", "flow2"],
    )
    capabilities = pd.DataFrame(
        [(c, y, CINC[c], GDP[c]) for c in (A, B, C) for y in YEARS],
        columns=["ccode", "year", "cinc", "gdp"],
    )
    regime = pd.DataFrame(
        [(c, y, np.nan if (c == B and y == 1984) else POLITY[c]) for c in (A, B, C) for y in YEARS],
        columns=["ccode", "year", "polity2"],
    )
    alliances = pd.DataFrame({"ccode1": [A, B], "ccode2": [C, C], "styear": [1982, 1990]})
    return PanelInputs(
        majors=majors,
        contiguity=contiguity,
        disputes=disputes,
        trade=trade,
        capabilities=capabilities,
        regime=regime,
        alliances=alliances,
    )


@pytest.fixture(scope="session")
def small_world():
    return make_synthetic_world(window=AnalysisWindow(1990, 2009), n_minor=10, seed=3)


@pytest.fixture(scope="session")
def small_world_inputs(small_world) -> PanelInputs:
    w = small_world
    caps = w.capabilities.rename(columns={"milex": "gdp"})
    caps["gdp"] = caps["gdp"].where(caps["gdp"] >= 0) / 0.03
    regime = w.regime.copy()
    regime["polity2"] = regime["polity2"].where(regime["polity2"].between(-10, 10))
    return PanelInputs(
        majors=w.majors,
        contiguity=w.contiguity.rename(columns={"state1no": "ccode1", "state2no": "ccode2"}),
        disputes=w.disputes,
        trade=w.trade,
        capabilities=caps,
        regime=regime,
        alliances=w.alliances.rename(columns={"dyad_st_year": "styear"}),
        active_states=pd.DataFrame(
            [(int(c), y) for c in w.states["ccode"] for y in range(1990, 2010)], columns=["ccode", "year"]
        ),
    )


@pytest.fixture
def lookup():
    return row


def row(panel: pd.DataFrame, c1: int, c2: int, year: int) -> pd.Series:
    hit = panel[(panel["ccode1"] == c1) & (panel["ccode2"] == c2) & (panel["year"] == year)]
    assert len(hit) == 1, f"expected one row for {(c1, c2, year)}, found {len(hit)}"
    return hit.iloc[0]
