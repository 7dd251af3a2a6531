import numpy as np
import pandas as pd

from trade_conflict.utils.hashing import fingerprint_paths, sha256_file, sha256_frame
from trade_conflict.utils.logging_utils import get_logger
from trade_conflict.utils.stats_utils import fmt_pct, safe_ratio, share, significance_stars


def test_significance_stars() -> None:
    assert significance_stars(0.0005) == "***"
    assert significance_stars(0.005) == "**"
    assert significance_stars(0.03) == "*"
    assert significance_stars(0.07) == "†"
    assert significance_stars(0.5) == ""
    assert significance_stars(float("nan")) == ""


def test_safe_ratio_never_infinite() -> None:
    out = safe_ratio(pd.Series([1.0, 1.0, np.nan, 4.0]), pd.Series([0.0, -1.0, 2.0, 2.0]))

    assert out.isna().tolist() == [True, True, True, False]
    assert out.iloc[3] == 2.0


def test_share_and_pct() -> None:
    assert np.isnan(share(1, 0))
    assert fmt_pct(share(1, 3)) == "33.3"
    assert fmt_pct(float("nan")) == ""


def test_frame_hash_ignores_index() -> None:
    df = pd.DataFrame({"a": [1, 2]})

    assert sha256_frame(df) == sha256_frame(df.set_index(pd.Index([5, 6])))
    assert sha256_frame(df) != sha256_frame(pd.DataFrame({"a": [2, 1]}))


def test_fingerprint_paths_skips_missing(tmp_path) -> None:
    p = tmp_path / "x.csv"
    p.write_text("a\n1\n")
    fp = fingerprint_paths({"x": p, "y": None, "z": tmp_path / "missing.csv"})

    assert fp == {"x_sha256": sha256_file(p)}


def test_logger_namespace() -> None:
    assert get_logger("data.spells").name == "trade_conflict.data.spells"
    assert get_logger("trade_conflict.models").name == "trade_conflict.models"
