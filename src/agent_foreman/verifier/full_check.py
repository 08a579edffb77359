"""Feature-scoped verification: every tooling step plus the AI judge.

Unlike the layered check this runs build and E2E, applies the TDD gate
and persists the outcome to the verification store.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..core.config import ForemanConfig, load_config
from ..core.feature import Feature, TDDMode, Verdict
from ..llm import create_backend
from ..utils.rich_logging import get_feature_logger
from .ai_judge import AIJudge, AIJudgement
from .capabilities import detect_capabilities
from .check_executor import CheckOptions, run_checks
from .git_diff import get_changed_files, get_diff_text, get_head_commit
from .models import CheckKind, CheckResult
from .store import AutomatedCheckRecord, CriterionRecord, VerificationResult, save_verification_result
from .tdd_gate import verify_tdd_gate
from .test_discovery import discover_tests


@dataclass
class FullCheckOptions:
    test_mode: str = "full"  # full | quick | skip
    skip_build: bool = False
    skip_e2e: bool = False
    ai: bool = True
    tdd_mode: Optional[TDDMode] = None
    save: bool = True


def _automated_verdict(results: List[CheckResult]) -> str:
    return Verdict.PASS.value if all(r.success for r in results) else Verdict.FAIL.value


def _check_records(results: List[CheckResult]) -> List[AutomatedCheckRecord]:
    return [
        AutomatedCheckRecord(
            type=r.kind.value,
            success=r.success,
            duration=r.duration_ms,
            command=r.command,
            output=r.output,
        )
        for r in results
    ]


async def run_full_check(
    cwd: Path,
    feature: Feature,
    options: Optional[FullCheckOptions] = None,
    *,
    config: Optional[ForemanConfig] = None,
    judge: Optional[AIJudge] = None,
) -> VerificationResult:
    """Verify one feature end to end and record the run.

    A failing TDD gate short-circuits with verdict ``fail`` before any
    tooling runs. A failing judge degrades the verdict to
    ``needs_review``; it never raises.

    Raises:
        GitError: If the working tree state cannot be read
    """
    options = options or FullCheckOptions()
    cwd = Path(cwd)
    log = get_feature_logger(__name__, feature.id)
    config = config or load_config(cwd)
    capabilities = detect_capabilities(cwd, config.checks)
    test_capability = capabilities.get(CheckKind.TEST)
    framework = test_capability.framework if test_capability else None

    changed_files = get_changed_files(cwd)
    commit_hash = get_head_commit(cwd)

    if options.tdd_mode == TDDMode.STRICT or feature.test_requirements is not None:
        gate = verify_tdd_gate(cwd, feature, options.tdd_mode, framework)
        if not gate.passed:
            missing = gate.missing_unit_tests + gate.missing_e2e_tests
            log.info(f"TDD gate failed: {len(missing)} required test file(s) missing")
            result = VerificationResult(
                feature_id=feature.id,
                commit_hash=commit_hash,
                changed_files=changed_files,
                verdict=Verdict.FAIL,
                overall_reasoning="Required test files are missing; write them before implementing.",
                missing_tests=missing,
            )
            return _persist(cwd, result, options.save)

    discovery = None
    if options.test_mode == "quick":
        discovery = discover_tests(cwd, feature, changed_files)

    e2e_tags = list(feature.e2e_tags or [])
    if feature.test_requirements and feature.test_requirements.e2e:
        e2e_tags.extend(t for t in feature.test_requirements.e2e.tags if t not in e2e_tags)

    check_options = CheckOptions(
        test_mode=options.test_mode,
        test_discovery=discovery,
        skip_build=options.skip_build,
        skip_e2e=options.skip_e2e or not e2e_tags,
        e2e_tags=e2e_tags,
        checks_config=config.checks,
    )
    results = run_checks(cwd, capabilities, check_options)

    judgement: Optional[AIJudgement] = None
    verdict = _automated_verdict(results)
    reasoning = ""
    if options.ai:
        try:
            judge = judge or AIJudge(create_backend(config.llm), config.llm.max_diff_chars)
            judgement = await judge.judge(cwd, feature, get_diff_text(cwd), changed_files, results)
        except Exception as e:
            log.warning(f"AI verification failed: {e}")
            verdict = Verdict.NEEDS_REVIEW.value
            reasoning = f"AI verification unavailable: {e}"
        else:
            verdict = judgement.verdict
            reasoning = judgement.reasoning
            if verdict == Verdict.PASS.value and not all(r.success for r in results):
                verdict = Verdict.FAIL.value
                reasoning += " (automated checks failed)"
    log.info(f"Verdict: {verdict}")

    result = VerificationResult(
        feature_id=feature.id,
        commit_hash=commit_hash,
        changed_files=changed_files,
        automated_checks=_check_records(results),
        criteria_results=[
            CriterionRecord(criterion=c.criterion, index=i, satisfied=c.satisfied, reasoning=c.reasoning)
            for i, c in enumerate(judgement.criteria if judgement else [])
        ],
        verdict=verdict,
        verified_by="ai" if judgement else "agent-foreman",
        overall_reasoning=reasoning,
        suggestions=judgement.suggestions if judgement else [],
    )
    return _persist(cwd, result, options.save)


def _persist(cwd: Path, result: VerificationResult, save: bool) -> VerificationResult:
    if not save:
        return result
    run = save_verification_result(cwd, result)
    return result.model_copy(update={"run": run})
