from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Any, List, Callable

@dataclass
class CheckResult:
    name: str
    passed: bool
    message: str

class Verifier:
    def __init__(self):
        self.checks: List[Callable[[Dict[str, Any]], CheckResult]] = []

    def add_check(self, fn: Callable[[Dict[str, Any]], CheckResult]) -> None:
        self.checks.append(fn)

    def run(self, artifact: Dict[str, Any]) -> List[CheckResult]:
        return [chk(artifact) for chk in self.checks]

def prob_bounds_check(field: str) -> Callable[[Dict[str, Any]], CheckResult]:
    def _chk(artifact: Dict[str, Any]) -> CheckResult:
        v = artifact.get(field)
        ok = (v is not None) and (0.0 <= float(v) <= 1.0)
        return CheckResult(
            name=f"prob_bounds({field})",
            passed=ok,
            message=f"{field}={v} is within [0,1]" if ok else f"{field}={v} is out of bounds or missing",
        )
    return _chk

def equals_check(left: str, right: str) -> Callable[[Dict[str, Any]], CheckResult]:
    def _chk(artifact: Dict[str, Any]) -> CheckResult:
        a, b = artifact.get(left), artifact.get(right)
        ok = a is not None and a == b
        return CheckResult(
            name=f"equals({left},{right})",
            passed=ok,
            message=f"{left}={a} matches {right}" if ok else f"{left}={a} != {right}={b}",
        )
    return _chk

def flag_check(field: str) -> Callable[[Dict[str, Any]], CheckResult]:
    def _chk(artifact: Dict[str, Any]) -> CheckResult:
        ok = bool(artifact.get(field, False))
        return CheckResult(name=f"flag({field})", passed=ok, message=f"{field}={artifact.get(field)}")
    return _chk

def min_count_check(field: str, minimum: int) -> Callable[[Dict[str, Any]], CheckResult]:
    def _chk(artifact: Dict[str, Any]) -> CheckResult:
        v = artifact.get(field)
        ok = v is not None and int(v) >= minimum
        return CheckResult(
            name=f"min_count({field}>={minimum})",
            passed=ok,
            message=f"{field}={v}",
        )
    return _chk

def panel_verifier() -> Verifier:
    """Checks run on every built panel: capture rate bounds, dispute accounting, contract and sanity flags."""
    v = Verifier()
    v.add_check(prob_bounds_check("dispute_capture_rate"))
    v.add_check(equals_check("disputes_in_window", "disputes_accounted"))
    v.add_check(equals_check("dyad_years_with_mid", "dyad_years_with_retained_dispute"))
    v.add_check(flag_check("panel_contract_passed"))
    v.add_check(flag_check("sanity_checks_passed"))
    v.add_check(min_count_check("total_dyad_years", 1))
    return v
