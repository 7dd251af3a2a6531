import pandas as pd

from trade_conflict.data.dyad_keys import add_dyad_keys, directed_key, dyad_id, undirected_key


def test_undirected_key_ignores_order() -> None:
    assert undirected_key(4, 20, 1990) == undirected_key(20, 4, 1990) == "4_20_1990"
    assert dyad_id(20, 4) == "4_20"


def test_directed_keys_differ_by_order() -> None:
    assert directed_key(4, 20, 1990) != directed_key(20, 4, 1990)


def test_add_dyad_keys_matches_scalar_functions() -> None:
    df = pd.DataFrame({"ccode1": [20, 4, 2], "ccode2": [4, 20, 365], "year": [1990, 1990, 2001]})
    out = add_dyad_keys(df)

    assert out["directed_key"].tolist() == [directed_key(*r) for r in df.itertuples(index=False)]
    assert out["undirected_key"].tolist() == [undirected_key(*r) for r in df.itertuples(index=False)]
    assert out.loc[0, "dyad_id"] == out.loc[1, "dyad_id"] == "4_20"
    assert "directed_key" not in df.columns


def test_add_dyad_keys_custom_columns() -> None:
    df = pd.DataFrame({"statea": [365], "stateb": [2], "year": [1980]})
    out = add_dyad_keys(df, c1="statea", c2="stateb")

    assert out.loc[0, "directed_key"] == "365_2_1980"
    assert out.loc[0, "undirected_key"] == "2_365_1980"


def test_add_dyad_keys_empty_frame() -> None:
    out = add_dyad_keys(pd.DataFrame({"ccode1": [], "ccode2": [], "year": []}))

    assert {"directed_key", "undirected_key", "dyad_id"} <= set(out.columns)
    assert out.empty
