from __future__ import annotations
import argparse
from pathlib import Path
import json

from trade_conflict.assistant.orchestrator import run_analysis
from trade_conflict.config import AnalysisWindow, PanelBuildOptions, RunConfig
from trade_conflict.data.adapters.cow_adapters import AlliancesConfig, CapabilitiesConfig, ContiguityConfig, RegimeConfig
from trade_conflict.data.ingest import IngestConfig, SourceSchemas

def main() -> int:
    ap = argparse.ArgumentParser(description="Build the politically relevant dyad-year panel, audit it, and fit the conflict models.")
    ap.add_argument("--majors", required=True, type=Path)
    ap.add_argument("--contiguity", required=True, type=Path)
    ap.add_argument("--disputes", required=True, type=Path)
    ap.add_argument("--trade", required=False, type=Path, default=None)
    ap.add_argument("--capabilities", required=False, type=Path, default=None)
    ap.add_argument("--gdp", required=False, type=Path, default=None)
    ap.add_argument("--regime", required=False, type=Path, default=None)
    ap.add_argument("--alliances", required=False, type=Path, default=None)
    ap.add_argument("--system_membership", required=False, type=Path, default=None)
    ap.add_argument("--export_dir", required=True, type=Path)
    ap.add_argument("--registry_dir", required=False, type=Path, default=None)

    ap.add_argument("--start_year", type=int, default=1973)
    ap.add_argument("--end_year", type=int, default=2014)
    ap.add_argument("--democracy_threshold", type=float, default=6.0)
    ap.add_argument("--parity_threshold", type=float, default=2.0)
    ap.add_argument("--min_model_obs", type=int, default=100)
    ap.add_argument("--no_figures", action="store_true")
    ap.add_argument("--no_word", action="store_true")

    # Schema args
    ap.add_argument("--contiguity_ccode1_col", type=str, default="state1no")
    ap.add_argument("--contiguity_ccode2_col", type=str, default="state2no")
    ap.add_argument("--capabilities_gdp_col", type=str, default=None)
    ap.add_argument("--military_burden", type=float, default=0.03)
    ap.add_argument("--regime_score_col", type=str, default="polity2")
    ap.add_argument("--alliance_start_col", type=str, default="dyad_st_year")
    ap.add_argument("--alliance_end_col", type=str, default=None)

    args = ap.parse_args()

    cfg = IngestConfig(
        majors_csv=args.majors,
        contiguity_csv=args.contiguity,
        disputes_csv=args.disputes,
        trade_csv=args.trade,
        capabilities_csv=args.capabilities,
        gdp_file=args.gdp,
        regime_csv=args.regime,
        alliances_csv=args.alliances,
        system_membership_csv=args.system_membership,
    )
    schemas = SourceSchemas(
        contiguity=ContiguityConfig(path=args.contiguity, ccode1_col=args.contiguity_ccode1_col,
                                    ccode2_col=args.contiguity_ccode2_col),
        capabilities=CapabilitiesConfig(path=args.capabilities or Path("."), gdp_col=args.capabilities_gdp_col,
                                        military_burden=args.military_burden),
        regime=RegimeConfig(path=args.regime or Path("."), score_col=args.regime_score_col),
        alliances=AlliancesConfig(path=args.alliances or Path("."), start_col=args.alliance_start_col,
                                  end_col=args.alliance_end_col),
    )
    options = PanelBuildOptions(
        window=AnalysisWindow(args.start_year, args.end_year),
        democracy_threshold=args.democracy_threshold,
        parity_threshold=args.parity_threshold,
    )
    run = RunConfig(
        export_dir=args.export_dir,
        registry_dir=args.registry_dir,
        min_model_obs=args.min_model_obs,
        make_figures=not args.no_figures,
        write_word=not args.no_word,
    )

    out = run_analysis(cfg, options=options, run_config=run, schemas=schemas)

    print(json.dumps(out.audit["diagnostics"], indent=2, default=str))
    print(out.model_fit.to_string(index=False))
    for c in out.checks:
        print(f"[{'PASS' if c.passed else 'FAIL'}] {c.name}: {c.message}")
    return 0 if all(c.passed for c in out.checks) else 1

if __name__ == "__main__":
    raise SystemExit(main())
