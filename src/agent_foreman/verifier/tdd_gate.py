"""Require test files before a feature can be verified."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from ..core.feature import Feature, TDDMode
from ..tdd.guidance import suggest_test_files
from ..utils.globs import glob_match

logger = logging.getLogger(__name__)

IGNORED_DIRS = {".git", "node_modules", "dist", "build", ".venv", "venv", "__pycache__", "target", ".next"}


@dataclass
class TDDGateResult:
    passed: bool
    missing_unit_tests: List[str] = field(default_factory=list)
    missing_e2e_tests: List[str] = field(default_factory=list)
    found_test_files: List[str] = field(default_factory=list)


def iter_project_files(cwd: Path) -> Iterator[str]:
    """Repository-relative file paths, skipping vendored and build output directories."""
    root = Path(cwd)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for name in sorted(filenames):
            yield name if rel_dir == "." else f"{rel_dir}/{name}"


def find_matching_files(cwd: Path, pattern: str) -> List[str]:
    return [path for path in iter_project_files(cwd) if glob_match(path, pattern)]


def _check_requirement(cwd: Path, pattern: Optional[str], suggested: List[str]) -> Tuple[List[str], List[str]]:
    """(found files, missing entries) for one requirement; falls back to suggested paths."""
    if pattern:
        matches = find_matching_files(cwd, pattern)
        return matches, ([] if matches else [pattern])
    existing = [p for p in suggested if (Path(cwd) / p).is_file()]
    return existing, ([] if existing else suggested[:1])


def verify_tdd_gate(
    cwd: Path,
    feature: Feature,
    tdd_mode: Optional[TDDMode] = None,
    framework: Optional[str] = None,
) -> TDDGateResult:
    """Check that required unit and E2E test files exist.

    Unit tests are required when the feature says so or the project runs
    in strict mode. E2E tests are required only when the feature says so.
    """
    strict = tdd_mode == TDDMode.STRICT
    requirements = feature.test_requirements
    unit_req = requirements.unit if requirements else None
    e2e_req = requirements.e2e if requirements else None

    found: List[str] = []
    missing_unit: List[str] = []
    missing_e2e: List[str] = []

    unit_suggested, e2e_suggested = suggest_test_files(feature, framework)

    if strict or (unit_req and unit_req.required):
        matches, missing = _check_requirement(cwd, unit_req.pattern if unit_req else None, unit_suggested)
        found.extend(matches)
        missing_unit.extend(missing)

    if e2e_req and e2e_req.required:
        matches, missing = _check_requirement(cwd, e2e_req.pattern, e2e_suggested)
        found.extend(matches)
        missing_e2e.extend(missing)

    passed = not missing_unit and not missing_e2e
    if not passed:
        logger.info(f"TDD gate failed for {feature.id}: missing {missing_unit + missing_e2e}")
    return TDDGateResult(
        passed=passed,
        missing_unit_tests=missing_unit,
        missing_e2e_tests=missing_e2e,
        found_test_files=list(dict.fromkeys(found)),
    )
