"""Fast, diff-driven verification.

Layer 1 runs typecheck, lint and selective tests for the current
ChangeSet. Layer 2 maps the change to features. Layer 3 (opt-in) asks the
AI judge about each impacted feature.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ..core.config import ForemanConfig, load_config
from ..core.feature import Feature, TDDMode
from ..core.feature_list import FeatureListError, load_feature_list
from ..llm import create_backend
from .ai_judge import AIJudge
from .capabilities import detect_capabilities
from .check_executor import CheckOptions, plan_checks, run_checks
from .git_diff import get_changed_files, get_diff_text
from .models import ALL_SKIPPED, LayeredCheckResult, TaskImpact, TaskVerification
from .risk import is_high_risk_change
from .task_impact import get_task_impact
from .test_discovery import (
    discover_tests,
    find_existing_test_files,
    is_test_file,
    map_source_to_test_files,
)

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py", ".go", ".rs")


@dataclass
class LayeredCheckOptions:
    verbose: bool = False
    ai: bool = False
    tdd_mode: Optional[TDDMode] = None
    skip_task_impact: bool = False


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def find_untested_sources(cwd: Path, changed_files: List[str]) -> List[str]:
    """Changed source files with no test file under any known convention."""
    untested = []
    for path in changed_files:
        if is_test_file(path) or not path.endswith(SOURCE_EXTENSIONS):
            continue
        if not (Path(cwd) / path).exists():
            continue  # deleted
        if not find_existing_test_files(cwd, map_source_to_test_files(path)):
            untested.append(path)
    return untested


async def verify_impacted_tasks(
    cwd: Path,
    impacts: List[TaskImpact],
    features: Dict[str, Feature],
    judge: AIJudge,
    changed_files: List[str],
    check_results: list,
    diff: str,
) -> List[TaskVerification]:
    """Judge every impacted feature concurrently.

    Each call is isolated: a failing judge call drops that verdict and the
    remaining calls still complete.
    """

    async def verify_one(impact: TaskImpact) -> Optional[TaskVerification]:
        feature = features.get(impact.task_id)
        if feature is None:
            return None
        try:
            judgement = await judge.judge(cwd, feature, diff, changed_files, check_results)
        except Exception as e:
            logger.warning(f"AI verification failed for {impact.task_id}, skipping: {e}")
            return None
        return TaskVerification(
            task_id=impact.task_id,
            verdict=judgement.verdict,
            reasoning=judgement.reasoning,
        )

    outcomes = await asyncio.gather(*(verify_one(impact) for impact in impacts))
    return [outcome for outcome in outcomes if outcome is not None]


async def run_layered_check(
    cwd: Path,
    options: Optional[LayeredCheckOptions] = None,
    *,
    config: Optional[ForemanConfig] = None,
    judge: Optional[AIJudge] = None,
) -> LayeredCheckResult:
    """Run the fast check pipeline and return its aggregated result.

    Raises:
        GitError: If the working tree state cannot be read
    """
    options = options or LayeredCheckOptions()
    cwd = Path(cwd)
    start = time.monotonic()

    changed_files = get_changed_files(cwd)
    if not changed_files:
        logger.info("No changed files; nothing to verify")
        return LayeredCheckResult(
            changed_files=[],
            passed=True,
            skipped=list(ALL_SKIPPED),
            duration_ms=_elapsed_ms(start),
        )

    config = config or load_config(cwd)
    high_risk = is_high_risk_change(changed_files)
    if high_risk:
        logger.warning("High-risk files changed (config/deps); a full check is recommended")

    tdd_warnings: List[str] = []
    if options.tdd_mode == TDDMode.STRICT:
        tdd_warnings = [f"{path} has no matching test file" for path in find_untested_sources(cwd, changed_files)]

    # Layer 1: fast checks. Build and E2E are reserved for the full check.
    capabilities = detect_capabilities(cwd, config.checks)
    descriptor = Feature(id="fast-check", description="Fast check of the current change")
    discovery = discover_tests(cwd, descriptor, changed_files)
    check_options = CheckOptions(
        test_mode="quick" if discovery.test_files else "full",
        test_discovery=discovery,
        skip_build=True,
        skip_e2e=True,
        checks_config=config.checks,
    )
    _, skipped = plan_checks(capabilities, check_options)
    results = run_checks(cwd, capabilities, check_options)
    checks = {result.kind: result for result in results}
    passed = all(result.success for result in results)

    # Layer 2: task impact
    affected: List[TaskImpact] = []
    if not options.skip_task_impact:
        try:
            affected = get_task_impact(cwd, changed_files)
        except FeatureListError as e:
            logger.warning(f"Task impact skipped: {e}")

    # Layer 3: AI verification
    task_verification: Optional[List[TaskVerification]] = None
    if options.ai and affected:
        try:
            feature_list = load_feature_list(cwd)
        except FeatureListError as e:
            logger.warning(f"AI verification skipped: {e}")
            feature_list = None
        if feature_list is not None:
            judge = judge or AIJudge(create_backend(config.llm), config.llm.max_diff_chars)
            diff = get_diff_text(cwd)
            task_verification = await verify_impacted_tasks(
                cwd,
                affected,
                {f.id: f for f in feature_list.features},
                judge,
                changed_files,
                results,
                diff,
            )
    if task_verification is None:
        skipped.append("ai")

    return LayeredCheckResult(
        changed_files=changed_files,
        checks=checks,
        affected_tasks=affected,
        task_verification=task_verification,
        duration_ms=_elapsed_ms(start),
        passed=passed,
        skipped=skipped,
        high_risk_escalation=high_risk,
        tdd_warnings=tdd_warnings,
        test_discovery=discovery,
    )
