from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from ..utils.logging_utils import get_logger
from .adapters.cow_adapters import (
    AlliancesConfig, CapabilitiesConfig, ContiguityConfig, DisputesConfig, GDPConfig, MajorsConfig,
    RegimeConfig, SystemMembershipConfig, TradeConfig,
    load_alliances, load_capabilities, load_contiguity, load_disputes, load_gdp, load_majors,
    load_regime, load_system_membership, load_trade, override_gdp,
)
from .panel_builder import PanelInputs

logger = get_logger(__name__)

@dataclass
class IngestConfig:
    majors_csv: Optional[Path] = None
    contiguity_csv: Optional[Path] = None
    disputes_csv: Optional[Path] = None

    trade_csv: Optional[Path] = None
    capabilities_csv: Optional[Path] = None
    gdp_file: Optional[Path] = None
    regime_csv: Optional[Path] = None
    alliances_csv: Optional[Path] = None
    system_membership_csv: Optional[Path] = None

    def paths(self) -> Dict[str, Optional[Path]]:
        return {
            "majors": self.majors_csv,
            "contiguity": self.contiguity_csv,
            "disputes": self.disputes_csv,
            "trade": self.trade_csv,
            "capabilities": self.capabilities_csv,
            "gdp": self.gdp_file,
            "regime": self.regime_csv,
            "alliances": self.alliances_csv,
            "system_membership": self.system_membership_csv,
        }

@dataclass
class SourceSchemas:
    """Column mappings per source; defaults follow the COW / Polity releases."""
    majors: Optional[MajorsConfig] = None
    contiguity: Optional[ContiguityConfig] = None
    disputes: Optional[DisputesConfig] = None
    trade: Optional[TradeConfig] = None
    capabilities: Optional[CapabilitiesConfig] = None
    gdp: Optional[GDPConfig] = None
    regime: Optional[RegimeConfig] = None
    alliances: Optional[AlliancesConfig] = None
    system_membership: Optional[SystemMembershipConfig] = None

def _with_path(cfg, cls, path: Path):
    if cfg is None:
        return cls(path=Path(path))
    return replace(cfg, path=Path(path))

class Ingestor:
    def __init__(self, config: IngestConfig, schemas: Optional[SourceSchemas] = None):
        self.config = config
        self.schemas = schemas or SourceSchemas()

    def _optional(self, path: Optional[Path], label: str) -> Optional[Path]:
        if not path:
            logger.warning("No %s file configured; related variables will be undefined.", label)
            return None
        if not Path(path).exists():
            logger.warning("%s file %s not found; related variables will be undefined.", label, path)
            return None
        return Path(path)

    def load_inputs(self) -> PanelInputs:
        cfg, sch = self.config, self.schemas
        if not (cfg.majors_csv and cfg.contiguity_csv and cfg.disputes_csv):
            raise FileNotFoundError("Provide majors_csv, contiguity_csv and disputes_csv in IngestConfig.")

        majors = load_majors(_with_path(sch.majors, MajorsConfig, cfg.majors_csv))
        contiguity = load_contiguity(_with_path(sch.contiguity, ContiguityConfig, cfg.contiguity_csv))
        disputes = load_disputes(_with_path(sch.disputes, DisputesConfig, cfg.disputes_csv))

        trade = capabilities = regime = alliances = active = None
        p = self._optional(cfg.trade_csv, "trade")
        if p:
            trade = load_trade(_with_path(sch.trade, TradeConfig, p))
        p = self._optional(cfg.capabilities_csv, "capabilities")
        if p:
            capabilities = load_capabilities(_with_path(sch.capabilities, CapabilitiesConfig, p))
            if cfg.gdp_file:
                g = self._optional(cfg.gdp_file, "GDP")
                if g:
                    capabilities = override_gdp(capabilities, load_gdp(_with_path(sch.gdp, GDPConfig, g)))
        p = self._optional(cfg.regime_csv, "regime")
        if p:
            regime = load_regime(_with_path(sch.regime, RegimeConfig, p))
        p = self._optional(cfg.alliances_csv, "alliance")
        if p:
            alliances = load_alliances(_with_path(sch.alliances, AlliancesConfig, p))
        if cfg.system_membership_csv:
            p = self._optional(cfg.system_membership_csv, "system membership")
            if p:
                active = load_system_membership(_with_path(sch.system_membership, SystemMembershipConfig, p))

        return PanelInputs(
            majors=majors,
            contiguity=contiguity,
            disputes=disputes,
            trade=trade,
            capabilities=capabilities,
            regime=regime,
            alliances=alliances,
            active_states=active,
        )

def frames_summary(inputs: PanelInputs) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for name in ("majors", "contiguity", "disputes", "trade", "capabilities", "regime", "alliances", "active_states"):
        df: Optional[pd.DataFrame] = getattr(inputs, name)
        out[name] = int(len(df)) if df is not None else -1
    return out
