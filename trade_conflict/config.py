from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd

# Post-Bretton Woods window: end of gold convertibility through data cutoff.
DEFAULT_START_YEAR = 1973
DEFAULT_END_YEAR = 2014

@dataclass(frozen=True)
class AnalysisWindow:
    start_year: int = DEFAULT_START_YEAR
    end_year: int = DEFAULT_END_YEAR

    def years(self) -> range:
        return range(int(self.start_year), int(self.end_year) + 1)

    def mask(self, year: pd.Series) -> pd.Series:
        return (year >= self.start_year) & (year <= self.end_year)

    def label(self) -> str:
        return f"{self.start_year}–{self.end_year}"

@dataclass
class PanelBuildOptions:
    window: AnalysisWindow = field(default_factory=AnalysisWindow)
    democracy_threshold: float = 6.0
    parity_threshold: float = 2.0

@dataclass
class RunConfig:
    export_dir: Path = Path("output")
    registry_dir: Optional[Path] = None
    min_model_obs: int = 100
    make_figures: bool = True
    write_word: bool = True
