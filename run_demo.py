from pathlib import Path
import json

from trade_conflict.assistant.orchestrator import run_analysis
from trade_conflict.config import RunConfig
from trade_conflict.data.synthetic import make_synthetic_world, write_synthetic_csvs

HERE = Path(__file__).resolve().parent
data = HERE / "sample_data"
exports = HERE / "exports_demo"

world = make_synthetic_world(seed=7)
cfg = write_synthetic_csvs(world, data)

out = run_analysis(cfg, run_config=RunConfig(export_dir=exports, registry_dir=exports / "registry"),
                   version_stamp="demo")

print("\n=== Relevance diagnostics ===")
print(json.dumps(out.audit["diagnostics"]["relevance"], indent=2))

print("\n=== Dispute merge ===")
print(json.dumps(out.audit["diagnostics"]["outcomes"], indent=2))

print("\n=== Table 1 ===")
print(out.tables[0].frame.to_string(index=False))

print("\n=== Model fit ===")
print(out.model_fit.to_string(index=False))
if out.model_errors:
    print(json.dumps(out.model_errors, indent=2))

print("\n=== Regression table ===")
print(out.regression_table.to_string(index=False))

print("\n=== Verification ===")
print(json.dumps({c.name: c.passed for c in out.checks}, indent=2))

print("\n=== Exports ===")
print(json.dumps({
    "html": str(out.reports.html_path),
    "excel": str(out.reports.excel_path),
    "word": str(out.reports.word_path),
    "figures": {k: str(v) for k, v in out.figures.items()},
    "run_id": out.run_id,
}, indent=2))
