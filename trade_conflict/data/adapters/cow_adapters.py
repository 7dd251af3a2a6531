from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

from ...utils.logging_utils import get_logger
from ..contracts import IntegrityError
from ..spells import expand_spells

logger = get_logger(__name__)

# COW releases code missing values as negative sentinels (-9, -8, ...).
COW_MISSING = (-9, -8, -7, -6, -5, -4, -3, -2, -1)

def read_table(path: Path) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))
    if path.suffix.lower() in (".xlsx", ".xls"):
        return pd.read_excel(path, engine="openpyxl")
    return pd.read_csv(path, low_memory=False)

def map_columns(raw: pd.DataFrame, mapping: Dict[str, str], label: str) -> pd.DataFrame:
    """Select and rename source columns: ``mapping`` is target name -> source name."""
    missing = [src for src in mapping.values() if src not in raw.columns]
    if missing:
        raise IntegrityError(f"{label}: source file missing mapped columns {missing}; found {list(raw.columns)[:20]}")
    return raw[list(mapping.values())].rename(columns={v: k for k, v in mapping.items()})

def _cow_numeric(s: pd.Series) -> pd.Series:
    v = pd.to_numeric(s, errors="coerce").astype(float)
    return v.where(~v.isin(COW_MISSING))

@dataclass
class MajorsConfig:
    path: Path
    ccode_col: str = "ccode"
    start_col: str = "styear"
    end_col: str = "endyear"

def load_majors(cfg: MajorsConfig) -> pd.DataFrame:
    """COW major power spells (majors2024.csv)."""
    raw = read_table(cfg.path)
    out = map_columns(raw, {"ccode": cfg.ccode_col, "styear": cfg.start_col, "endyear": cfg.end_col}, "majors")
    logger.info("Loaded %d major-power spells from %s", len(out), cfg.path)
    return out

@dataclass
class ContiguityConfig:
    path: Path
    ccode1_col: str = "state1no"
    ccode2_col: str = "state2no"
    year_col: str = "year"
    conttype_col: str = "conttype"

def load_contiguity(cfg: ContiguityConfig) -> pd.DataFrame:
    """COW direct contiguity, directed dyad-year form (contdird.csv)."""
    raw = read_table(cfg.path)
    out = map_columns(raw, {
        "ccode1": cfg.ccode1_col,
        "ccode2": cfg.ccode2_col,
        "year": cfg.year_col,
        "conttype": cfg.conttype_col,
    }, "contiguity")
    logger.info("Loaded %d contiguity records from %s", len(out), cfg.path)
    return out

@dataclass
class DisputesConfig:
    path: Path
    statea_col: str = "statea"
    stateb_col: str = "stateb"
    year_col: str = "year"
    hihost_col: str = "hihost"
    disno_col: str = "disno"

def load_disputes(cfg: DisputesConfig) -> pd.DataFrame:
    """Dyadic MID records; hostility level 1 (no militarized action) is not a dispute outcome."""
    raw = read_table(cfg.path)
    out = map_columns(raw, {
        "statea": cfg.statea_col,
        "stateb": cfg.stateb_col,
        "year": cfg.year_col,
        "hihost": cfg.hihost_col,
        "disno": cfg.disno_col,
    }, "disputes")
    hihost = pd.to_numeric(out["hihost"], errors="coerce")
    keep = hihost.isin([2, 3, 4, 5])
    n_bad = int((~keep).sum())
    if n_bad:
        logger.warning("Dropping %d dispute rows with hostility level outside 2..5.", n_bad)
    out = out[keep].reset_index(drop=True)
    out["disno"] = out["disno"].astype(str)
    logger.info("Loaded %d dispute rows from %s", len(out), cfg.path)
    return out

@dataclass
class TradeConfig:
    path: Path
    ccode1_col: str = "ccode1"
    ccode2_col: str = "ccode2"
    year_col: str = "year"
    flow1_col: str = "flow1"
    flow2_col: str = "flow2"

def load_trade(cfg: TradeConfig) -> pd.DataFrame:
    """COW dyadic trade: flow1 = imports of ccode1 from ccode2, flow2 = the reverse."""
    raw = read_table(cfg.path)
    out = map_columns(raw, {
        "ccode1": cfg.ccode1_col,
        "ccode2": cfg.ccode2_col,
        "year": cfg.year_col,
        "flow1": cfg.flow1_col,
        "flow2": cfg.flow2_col,
    }, "trade")
    logger.info("Loaded %d trade records from %s", len(out), cfg.path)
    return out

@dataclass
class CapabilitiesConfig:
    path: Path
    ccode_col: str = "ccode"
    year_col: str = "year"
    cinc_col: str = "cinc"
    gdp_col: Optional[str] = None
    milex_col: Optional[str] = "milex"
    # GDP proxy = milex / burden when no GDP column is mapped
    military_burden: float = 0.03

def load_capabilities(cfg: CapabilitiesConfig) -> pd.DataFrame:
    """NMC capabilities with a GDP column (direct, or proxied from military expenditure)."""
    raw = read_table(cfg.path)
    out = map_columns(raw, {"ccode": cfg.ccode_col, "year": cfg.year_col, "cinc": cfg.cinc_col}, "capabilities")
    out["cinc"] = _cow_numeric(out["cinc"])
    if cfg.gdp_col and cfg.gdp_col in raw.columns:
        out["gdp"] = _cow_numeric(raw[cfg.gdp_col]).to_numpy()
    elif cfg.milex_col and cfg.milex_col in raw.columns:
        logger.warning("No GDP column mapped; using military expenditure / %.2f as a GDP proxy.", cfg.military_burden)
        milex = _cow_numeric(raw[cfg.milex_col])
        out["gdp"] = (milex / cfg.military_burden).to_numpy()
    else:
        logger.warning("Capabilities file has no GDP or milex column; GDP left undefined.")
        out["gdp"] = np.nan
    logger.info("Loaded %d capability country-years from %s", len(out), cfg.path)
    return out

@dataclass
class GDPConfig:
    path: Path
    ccode_col: str = "ccode"
    year_col: str = "year"
    gdp_col: str = "gdp"

def load_gdp(cfg: GDPConfig) -> pd.DataFrame:
    raw = read_table(cfg.path)
    out = map_columns(raw, {"ccode": cfg.ccode_col, "year": cfg.year_col, "gdp": cfg.gdp_col}, "gdp")
    out["gdp"] = pd.to_numeric(out["gdp"], errors="coerce")
    out = out.dropna(subset=["ccode", "year"])
    logger.info("Loaded %d GDP country-years from %s", len(out), cfg.path)
    return out

def override_gdp(capabilities: pd.DataFrame, gdp: pd.DataFrame) -> pd.DataFrame:
    """Replace the capabilities GDP with an external series where it has a value."""
    caps = capabilities.copy()
    caps["ccode"] = pd.to_numeric(caps["ccode"], errors="coerce")
    caps["year"] = pd.to_numeric(caps["year"], errors="coerce")
    g = gdp.copy()
    g["ccode"] = pd.to_numeric(g["ccode"], errors="coerce")
    g["year"] = pd.to_numeric(g["year"], errors="coerce")
    g = g.drop_duplicates(subset=["ccode", "year"]).rename(columns={"gdp": "_gdp_ext"})
    merged = caps.merge(g, on=["ccode", "year"], how="left")
    merged["gdp"] = merged["_gdp_ext"].combine_first(merged["gdp"])
    return merged.drop(columns=["_gdp_ext"])

@dataclass
class RegimeConfig:
    path: Path
    ccode_col: str = "ccode"
    year_col: str = "year"
    score_col: str = "polity2"

def load_regime(cfg: RegimeConfig) -> pd.DataFrame:
    """Polity-style scores on [-10, 10]; special codes (-66, -77, -88) become missing."""
    raw = read_table(cfg.path)
    out = map_columns(raw, {"ccode": cfg.ccode_col, "year": cfg.year_col, "polity2": cfg.score_col}, "regime")
    score = pd.to_numeric(out["polity2"], errors="coerce")
    out["polity2"] = score.where(score.between(-10, 10))
    out = out.dropna(subset=["ccode", "year"])
    logger.info("Loaded %d regime country-years from %s", len(out), cfg.path)
    return out

@dataclass
class AlliancesConfig:
    path: Path
    ccode1_col: str = "ccode1"
    ccode2_col: str = "ccode2"
    start_col: str = "dyad_st_year"
    end_col: Optional[str] = None

def load_alliances(cfg: AlliancesConfig) -> pd.DataFrame:
    """Alliance dyads with a start year; an optional end year is kept as ``endyear``."""
    raw = read_table(cfg.path)
    out = map_columns(raw, {"ccode1": cfg.ccode1_col, "ccode2": cfg.ccode2_col, "styear": cfg.start_col}, "alliances")
    if cfg.end_col and cfg.end_col in raw.columns:
        out["endyear"] = pd.to_numeric(raw[cfg.end_col], errors="coerce").to_numpy()
    out = out.drop_duplicates().reset_index(drop=True)
    logger.info("Loaded %d alliance records from %s", len(out), cfg.path)
    return out

@dataclass
class SystemMembershipConfig:
    path: Path
    ccode_col: str = "ccode"
    start_col: str = "styear"
    end_col: str = "endyear"

def load_system_membership(cfg: SystemMembershipConfig) -> pd.DataFrame:
    """State-system membership spells (e.g. states2016.csv) expanded to (ccode, year)."""
    raw = read_table(cfg.path)
    spells = map_columns(raw, {"ccode": cfg.ccode_col, "styear": cfg.start_col, "endyear": cfg.end_col}, "system membership")
    out = expand_spells(spells, entity_cols=["ccode"], start_col="styear", end_col="endyear")
    logger.info("Expanded %d membership spells into %d state-years", len(spells), len(out))
    return out
