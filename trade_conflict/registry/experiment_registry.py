from __future__ import annotations
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Any, Iterator, Optional, List
import json
import time
import uuid

@dataclass
class RunRecord:
    run_id: str
    created_utc: str
    window: str
    method: str
    inputs: Dict[str, Any]
    outputs: Dict[str, Any]
    tags: List[str]

    @property
    def fingerprint(self) -> Dict[str, str]:
        return dict(self.inputs.get("fingerprint", {}))

class ExperimentRegistry:
    """Append-only JSONL log of analysis runs: window, input fingerprints, headline outputs.

    Runs on byte-identical inputs share a fingerprint, so a rerun can be matched to
    earlier ones with ``same_inputs``.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.runs_path = self.root / "runs.jsonl"

    def log_run(
        self,
        *,
        window: str,
        method: str,
        inputs: Dict[str, Any],
        outputs: Dict[str, Any],
        tags: Optional[List[str]] = None
    ) -> RunRecord:
        rec = RunRecord(
            run_id=str(uuid.uuid4()),
            created_utc=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            window=str(window),
            method=str(method),
            inputs=inputs or {},
            outputs=outputs or {},
            tags=list(tags or []),
        )
        with open(self.runs_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(rec), default=str) + "\n")
        return rec

    def _records(self) -> Iterator[RunRecord]:
        if not self.runs_path.exists():
            return
        with open(self.runs_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield RunRecord(**json.loads(line))

    def list_runs(self, limit: int = 200) -> List[RunRecord]:
        """Oldest first, at most ``limit`` records."""
        rows: List[RunRecord] = []
        for rec in self._records():
            if len(rows) >= limit:
                break
            rows.append(rec)
        return rows

    def get_run(self, run_id: str) -> Optional[RunRecord]:
        return next((r for r in self._records() if r.run_id == run_id), None)

    def find_runs(
        self,
        *,
        window: Optional[str] = None,
        method: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> List[RunRecord]:
        out = []
        for r in self._records():
            if window and r.window != window:
                continue
            if method and r.method != method:
                continue
            if tag and tag not in r.tags:
                continue
            out.append(r)
        return out

    def same_inputs(self, fingerprint: Dict[str, str]) -> List[RunRecord]:
        """Earlier runs whose input fingerprint matches exactly."""
        return [r for r in self._records() if r.fingerprint and r.fingerprint == dict(fingerprint)]
