from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from ..config import AnalysisWindow
from .ingest import IngestConfig
from .panel_builder import PanelInputs

MAJOR_SPELLS = [
    (2, 1898, 2016),
    (200, 1816, 2016),
    (365, 1816, 1917),
    (365, 1922, 2016),
    (710, 1950, 2016),
    (255, 1991, 2016),
]

@dataclass
class SyntheticWorld:
    """Raw source tables in their release column layouts."""
    majors: pd.DataFrame
    contiguity: pd.DataFrame
    disputes: pd.DataFrame
    trade: pd.DataFrame
    capabilities: pd.DataFrame
    regime: pd.DataFrame
    alliances: pd.DataFrame
    states: pd.DataFrame

def make_synthetic_world(
    *,
    window: Optional[AnalysisWindow] = None,
    n_minor: int = 18,
    seed: int = 7,
) -> SyntheticWorld:
    """Deterministic toy state system for demos and tests.

    States sit on a ring: neighbours share a land border, second neighbours a water
    boundary. Disputes are more frequent for contiguous dyads and when the dyad's trade
    is lopsided. Source quirks are present on purpose: COW missing sentinels in trade and
    capabilities, Polity special codes, disputes outside the window and outside the
    politically relevant set, alliances that begin after the window.
    """
    w = window or AnalysisWindow()
    rng = np.random.default_rng(seed)

    majors = pd.DataFrame(MAJOR_SPELLS, columns=["ccode", "styear", "endyear"])
    minors = [40 + 5 * i for i in range(n_minor)]
    codes = sorted(set(majors["ccode"]).union(minors))
    ring = list(rng.permutation(codes))
    n = len(ring)
    years = np.arange(w.start_year - 5, w.end_year + 3)

    # contiguity, both directions
    cont_rows = []
    for i in range(n):
        for step, ctype in ((1, 1), (2, int(rng.integers(2, 6)))):
            a, b = int(ring[i]), int(ring[(i + step) % n])
            for y in years:
                cont_rows.append((a, b, int(y), ctype))
                cont_rows.append((b, a, int(y), ctype))
    contiguity = pd.DataFrame(cont_rows, columns=["state1no", "state2no", "year", "conttype"])

    # trade for every unordered pair
    pairs = [(a, b) for i, a in enumerate(codes) for b in codes[i + 1:]]
    base = dict(zip(pairs, np.exp(rng.normal(3.0, 1.5, size=len(pairs)))))
    skew = dict(zip(pairs, np.exp(rng.normal(0.0, 0.9, size=len(pairs)))))
    tyears = np.arange(w.start_year, w.end_year + 1)
    trade_rows = []
    for (a, b) in pairs:
        growth = np.exp(0.03 * (tyears - w.start_year) + rng.normal(0, 0.2, size=len(tyears)))
        f1 = base[(a, b)] * growth
        f2 = f1 * skew[(a, b)]
        for y, v1, v2 in zip(tyears, f1, f2):
            if rng.random() < 0.05:
                v1 = v2 = -9.0
            trade_rows.append((a, b, int(y), float(v1), float(v2)))
    trade = pd.DataFrame(trade_rows, columns=["ccode1", "ccode2", "year", "flow1", "flow2"])

    # capabilities; milex stands in for GDP
    is_major = set(majors["ccode"])
    cap_rows = []
    for c in codes:
        level = rng.uniform(0.05, 0.2) if c in is_major else rng.uniform(0.001, 0.02)
        for y in tyears:
            cinc = level * np.exp(rng.normal(0, 0.05))
            milex = -9.0 if rng.random() < 0.02 else cinc * 5.0e6
            cap_rows.append((int(c), int(y), float(cinc), float(milex)))
    capabilities = pd.DataFrame(cap_rows, columns=["ccode", "year", "cinc", "milex"])

    # regime scores with occasional interregnum codes
    reg_rows = []
    for c in codes:
        level = int(rng.integers(-10, 11))
        for y in tyears:
            score = int(np.clip(level + rng.integers(-1, 2), -10, 10))
            if rng.random() < 0.02:
                score = -66
            reg_rows.append((int(c), int(y), score))
    regime = pd.DataFrame(reg_rows, columns=["ccode", "year", "polity2"])

    # alliances, a few starting after the window
    idx = rng.choice(len(pairs), size=max(4, len(pairs) // 12), replace=False)
    ally_rows = []
    for k in idx:
        a, b = pairs[int(k)]
        ally_rows.append((a, b, int(rng.integers(w.start_year - 20, w.end_year + 4))))
    alliances = pd.DataFrame(ally_rows, columns=["ccode1", "ccode2", "dyad_st_year"])

    # disputes: undirected candidate pairs, written in both directions
    neighbours = {frozenset((int(ring[i]), int(ring[(i + 1) % n]))) for i in range(n)}
    neighbours |= {frozenset((int(ring[i]), int(ring[(i + 2) % n]))) for i in range(n)}
    dispute_rows: List[tuple] = []
    disno = 1000
    for (a, b) in pairs:
        contiguous = frozenset((a, b)) in neighbours
        relevant = contiguous or a in is_major or b in is_major
        asym = abs(np.log(skew[(a, b)]))
        if relevant:
            p = (0.05 if contiguous else 0.015) * (1.0 + asym)
        else:
            p = 0.004
        for y in range(w.start_year - 3, w.end_year + 1):
            if rng.random() < p:
                disno += 1
                hihost = int(rng.choice([2, 3, 4, 5], p=[0.3, 0.35, 0.3, 0.05]))
                dispute_rows.append((a, b, y, hihost, disno))
                dispute_rows.append((b, a, y, hihost, disno))
    disputes = pd.DataFrame(dispute_rows, columns=["statea", "stateb", "year", "hihost", "disno"])

    states = pd.DataFrame({"ccode": codes, "styear": 1946, "endyear": 2016})
    return SyntheticWorld(
        majors=majors,
        contiguity=contiguity,
        disputes=disputes,
        trade=trade,
        capabilities=capabilities,
        regime=regime,
        alliances=alliances,
        states=states,
    )

def write_synthetic_csvs(world: SyntheticWorld, out_dir: Path) -> IngestConfig:
    """Write the world as source files and return an IngestConfig pointing at them."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    files: Dict[str, Path] = {}
    for name in ("majors", "contiguity", "disputes", "trade", "capabilities", "regime", "alliances", "states"):
        p = out_dir / f"{name}.csv"
        getattr(world, name).to_csv(p, index=False)
        files[name] = p
    return IngestConfig(
        majors_csv=files["majors"],
        contiguity_csv=files["contiguity"],
        disputes_csv=files["disputes"],
        trade_csv=files["trade"],
        capabilities_csv=files["capabilities"],
        regime_csv=files["regime"],
        alliances_csv=files["alliances"],
        system_membership_csv=files["states"],
    )
