"""Verification history under ai/verification/.

Layout::

    ai/verification/index.json          latest verdict per feature
    ai/verification/<feature>/001.json  full result of run 1
    ai/verification/<feature>/001.md    human-readable report of run 1
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, ValidationError

from ..core.feature import CamelModel, Verdict, utc_now_iso
from ..utils.atomic_io import atomic_write_model, atomic_write_text

logger = logging.getLogger(__name__)

VERIFICATION_STORE_DIR = Path("ai") / "verification"
INDEX_FILE = "index.json"
INDEX_VERSION = "3.0.0"


class AutomatedCheckRecord(CamelModel):
    type: str
    success: bool
    duration: int = 0  # milliseconds
    command: str = ""
    output: str = ""


class CriterionRecord(CamelModel):
    criterion: str
    index: int
    satisfied: bool
    reasoning: str = ""


class VerificationResult(CamelModel):
    """Full record of one verification run."""
    feature_id: str
    timestamp: str = Field(default_factory=utc_now_iso)
    commit_hash: Optional[str] = None
    changed_files: List[str] = Field(default_factory=list)
    automated_checks: List[AutomatedCheckRecord] = Field(default_factory=list)
    criteria_results: List[CriterionRecord] = Field(default_factory=list)
    verdict: Verdict
    verified_by: str = "agent-foreman"
    overall_reasoning: str = ""
    suggestions: List[str] = Field(default_factory=list)
    missing_tests: List[str] = Field(default_factory=list)
    run: Optional[int] = None


class FeatureSummary(CamelModel):
    latest_run: int
    latest_verdict: Verdict
    latest_timestamp: str
    total_runs: int = 0
    pass_count: int = 0
    fail_count: int = 0


class VerificationIndex(CamelModel):
    version: str = INDEX_VERSION
    updated_at: str = Field(default_factory=utc_now_iso)
    features: Dict[str, FeatureSummary] = Field(default_factory=dict)


def _store_dir(cwd: Path) -> Path:
    return Path(cwd) / VERIFICATION_STORE_DIR


def format_run_number(run: int) -> str:
    return f"{run:03d}"


def load_verification_index(cwd: Path) -> Optional[VerificationIndex]:
    path = _store_dir(cwd) / INDEX_FILE
    if not path.exists():
        return None
    try:
        return VerificationIndex.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring unreadable verification index {path}: {e}")
        return None


def _next_run_number(cwd: Path, feature_id: str) -> int:
    feature_dir = _store_dir(cwd) / feature_id
    runs = [int(p.stem) for p in feature_dir.glob("*.json") if p.stem.isdigit()] if feature_dir.is_dir() else []
    return max(runs, default=0) + 1


def generate_verification_report(result: VerificationResult, run: int) -> str:
    lines = [
        f"# Verification Report: {result.feature_id}",
        "",
        f"- **Run**: {format_run_number(run)}",
        f"- **Timestamp**: {result.timestamp}",
        f"- **Verdict**: {Verdict(result.verdict).value.upper()}",
        f"- **Verified by**: {result.verified_by}",
    ]
    if result.commit_hash:
        lines.append(f"- **Commit**: {result.commit_hash}")

    if result.changed_files:
        lines += ["", "## Changed Files", ""]
        lines += [f"- {f}" for f in result.changed_files]

    if result.automated_checks:
        lines += ["", "## Automated Checks", "", "| Check | Result | Duration |", "|---|---|---|"]
        for check in result.automated_checks:
            status = "pass" if check.success else "FAIL"
            lines.append(f"| {check.type} | {status} | {check.duration / 1000:.1f}s |")

    if result.missing_tests:
        lines += ["", "## Missing Tests", ""]
        lines += [f"- {t}" for t in result.missing_tests]

    if result.criteria_results:
        lines += ["", "## Acceptance Criteria", ""]
        for criterion in result.criteria_results:
            mark = "x" if criterion.satisfied else " "
            lines.append(f"- [{mark}] {criterion.criterion}")
            if criterion.reasoning:
                lines.append(f"  - {criterion.reasoning}")

    if result.overall_reasoning:
        lines += ["", "## Reasoning", "", result.overall_reasoning]

    if result.suggestions:
        lines += ["", "## Suggestions", ""]
        lines += [f"- {s}" for s in result.suggestions]

    return "\n".join(lines) + "\n"


def save_verification_result(cwd: Path, result: VerificationResult) -> int:
    """Persist a run and update the index. Returns the run number."""
    run = _next_run_number(cwd, result.feature_id)
    result = result.model_copy(update={"run": run})
    feature_dir = _store_dir(cwd) / result.feature_id
    run_str = format_run_number(run)

    atomic_write_model(feature_dir / f"{run_str}.json", result)
    atomic_write_text(feature_dir / f"{run_str}.md", generate_verification_report(result, run))

    index = load_verification_index(cwd) or VerificationIndex()
    previous = index.features.get(result.feature_id)
    verdict = Verdict(result.verdict)
    index.features[result.feature_id] = FeatureSummary(
        latest_run=run,
        latest_verdict=verdict,
        latest_timestamp=result.timestamp,
        total_runs=(previous.total_runs if previous else 0) + 1,
        pass_count=(previous.pass_count if previous else 0) + (1 if verdict == Verdict.PASS else 0),
        fail_count=(previous.fail_count if previous else 0) + (1 if verdict == Verdict.FAIL else 0),
    )
    index.updated_at = utc_now_iso()
    atomic_write_model(_store_dir(cwd) / INDEX_FILE, index)

    logger.info(f"Saved verification run {run_str} for {result.feature_id} ({verdict.value})")
    return run


def _load_run(path: Path) -> Optional[VerificationResult]:
    try:
        return VerificationResult.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.debug(f"Skipping unreadable verification run {path}: {e}")
        return None


def get_last_verification(cwd: Path, feature_id: str) -> Optional[VerificationResult]:
    index = load_verification_index(cwd)
    if index is None or feature_id not in index.features:
        return None
    run_str = format_run_number(index.features[feature_id].latest_run)
    return _load_run(_store_dir(cwd) / feature_id / f"{run_str}.json")


def get_verification_history(cwd: Path, feature_id: str) -> List[VerificationResult]:
    """All readable runs for a feature, oldest first."""
    feature_dir = _store_dir(cwd) / feature_id
    if not feature_dir.is_dir():
        return []
    runs = [_load_run(p) for p in sorted(feature_dir.glob("*.json"))]
    return [r for r in runs if r is not None]


def get_verification_stats(cwd: Path) -> Dict[str, int]:
    index = load_verification_index(cwd)
    summaries = list(index.features.values()) if index else []
    return {
        "total": len(summaries),
        "passing": sum(1 for s in summaries if s.latest_verdict == Verdict.PASS),
        "failing": sum(1 for s in summaries if s.latest_verdict == Verdict.FAIL),
        "needs_review": sum(1 for s in summaries if s.latest_verdict == Verdict.NEEDS_REVIEW),
    }
