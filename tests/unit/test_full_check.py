"""Tests for the task-scoped full check and the TDD gate."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agent_foreman.core.config import ForemanConfig
from agent_foreman.core.feature import E2ETestRequirement, TestRequirements, UnitTestRequirement
from agent_foreman.verifier.ai_judge import AIJudgeError, AIJudgement, CriterionResult
from agent_foreman.verifier.capabilities import Capability
from agent_foreman.verifier.full_check import FullCheckOptions, run_full_check
from agent_foreman.verifier.models import CHECK_ORDER, CheckKind, CheckResult
from agent_foreman.verifier.store import get_last_verification, load_verification_index
from agent_foreman.verifier.tdd_gate import verify_tdd_gate
from tests.unit.helpers import make_feature, touch

MODULE = "agent_foreman.verifier.full_check"


def _caps():
    caps = {kind: Capability(kind) for kind in CHECK_ORDER}
    caps[CheckKind.TEST] = Capability(CheckKind.TEST, True, "npm test", "vitest", "detected")
    caps[CheckKind.E2E] = Capability(CheckKind.E2E, True, "npx playwright test", "playwright", "detected")
    return caps


def _judge(verdict="pass", criteria=None, error=None):
    judge = MagicMock()
    if error is not None:
        judge.judge = AsyncMock(side_effect=error)
    else:
        judge.judge = AsyncMock(return_value=AIJudgement(
            verdict=verdict,
            reasoning="looks right",
            criteria=criteria or [],
            suggestions=["add edge-case test"],
        ))
    return judge


@pytest.fixture
def tooling():
    with patch(f"{MODULE}.detect_capabilities", return_value=_caps()) as caps, \
            patch(f"{MODULE}.get_changed_files", return_value=["src/auth/login.ts"]), \
            patch(f"{MODULE}.get_head_commit", return_value="abc123"), \
            patch(f"{MODULE}.get_diff_text", return_value="diff"), \
            patch(f"{MODULE}.run_checks") as checks:
        checks.return_value = [CheckResult(kind=CheckKind.TEST, success=True, duration_ms=20, command="npm test")]
        yield MagicMock(caps=caps, checks=checks)


class TestRunFullCheck:
    @pytest.mark.asyncio
    async def test_ai_pass_is_recorded_and_saved(self, project, tooling):
        criteria = [CriterionResult(criterion="User can log in", satisfied=True, reasoning="form posts")]
        feature = make_feature("auth.login", acceptance=["User can log in"])

        result = await run_full_check(project, feature, config=ForemanConfig(), judge=_judge("pass", criteria))

        assert result.verdict == "pass"
        assert result.verified_by == "ai"
        assert result.commit_hash == "abc123"
        assert result.run == 1
        assert result.criteria_results[0].index == 0
        assert result.suggestions == ["add edge-case test"]
        assert load_verification_index(project).features["auth.login"].latest_verdict == "pass"
        assert get_last_verification(project, "auth.login").run == 1

    @pytest.mark.asyncio
    async def test_ai_pass_downgraded_when_checks_fail(self, project, tooling):
        tooling.checks.return_value = [CheckResult(kind=CheckKind.TEST, success=False, duration_ms=5)]

        result = await run_full_check(project, make_feature("a.b"), config=ForemanConfig(), judge=_judge("pass"))

        assert result.verdict == "fail"
        assert "automated checks failed" in result.overall_reasoning

    @pytest.mark.asyncio
    async def test_judge_failure_degrades_to_needs_review(self, project, tooling):
        judge = _judge(error=AIJudgeError("rate limited"))

        result = await run_full_check(project, make_feature("a.b"), config=ForemanConfig(), judge=judge)

        assert result.verdict == "needs_review"
        assert result.verified_by == "agent-foreman"
        assert "rate limited" in result.overall_reasoning

    @pytest.mark.asyncio
    async def test_without_ai_verdict_follows_checks(self, project, tooling):
        options = FullCheckOptions(ai=False, save=False)

        result = await run_full_check(project, make_feature("a.b"), options, config=ForemanConfig())

        assert result.verdict == "pass"
        assert result.run is None
        assert load_verification_index(project) is None

    @pytest.mark.asyncio
    async def test_e2e_skipped_without_tags(self, project, tooling):
        await run_full_check(project, make_feature("a.b"), FullCheckOptions(ai=False), config=ForemanConfig())

        options = tooling.checks.call_args[0][2]
        assert options.skip_e2e

    @pytest.mark.asyncio
    async def test_e2e_tags_merge_feature_and_requirements(self, project, tooling):
        feature = make_feature(
            "a.b",
            e2e_tags=["@auth"],
            test_requirements=TestRequirements(e2e=E2ETestRequirement(tags=["@auth", "@login"])),
        )

        await run_full_check(project, feature, FullCheckOptions(ai=False), config=ForemanConfig())

        options = tooling.checks.call_args[0][2]
        assert not options.skip_e2e
        assert options.e2e_tags == ["@auth", "@login"]

    @pytest.mark.asyncio
    async def test_quick_mode_discovers_tests(self, project, tooling):
        touch(project, "src/auth/login.ts", "src/auth/login.test.ts")

        await run_full_check(
            project, make_feature("auth.login"), FullCheckOptions(ai=False, test_mode="quick"), config=ForemanConfig()
        )

        options = tooling.checks.call_args[0][2]
        assert options.test_discovery.test_files == ["src/auth/login.test.ts"]

    @pytest.mark.asyncio
    async def test_tdd_gate_failure_short_circuits(self, project, tooling):
        feature = make_feature(
            "auth.login",
            test_requirements=TestRequirements(unit=UnitTestRequirement(required=True, pattern="tests/auth/**/*.test.ts")),
        )
        judge = _judge()

        result = await run_full_check(project, feature, config=ForemanConfig(), judge=judge)

        assert result.verdict == "fail"
        assert result.missing_tests == ["tests/auth/**/*.test.ts"]
        tooling.checks.assert_not_called()
        judge.judge.assert_not_called()


class TestTDDGate:
    def test_no_requirements_passes(self, project):
        assert verify_tdd_gate(project, make_feature("a.b")).passed

    def test_required_unit_pattern_found(self, project):
        touch(project, "tests/auth/login.test.ts")
        feature = make_feature(
            "auth.login",
            test_requirements=TestRequirements(unit=UnitTestRequirement(required=True, pattern="tests/auth/**/*.test.ts")),
        )

        result = verify_tdd_gate(project, feature)

        assert result.passed
        assert result.found_test_files == ["tests/auth/login.test.ts"]

    def test_strict_mode_falls_back_to_suggested_paths(self, project):
        feature = make_feature("auth.login", module="auth")

        result = verify_tdd_gate(project, feature, "strict", "pytest")

        assert not result.passed
        assert result.missing_unit_tests == ["tests/auth/test_login.py"]

        touch(project, "tests/auth/test_login.py")
        assert verify_tdd_gate(project, feature, "strict", "pytest").passed

    def test_required_e2e_missing(self, project):
        feature = make_feature(
            "auth.login",
            test_requirements=TestRequirements(e2e=E2ETestRequirement(required=True, pattern="e2e/**/*.spec.ts")),
        )

        result = verify_tdd_gate(project, feature)

        assert not result.passed
        assert result.missing_e2e_tests == ["e2e/**/*.spec.ts"]
        assert result.missing_unit_tests == []

    def test_ignored_directories_are_not_searched(self, project):
        touch(project, "node_modules/pkg/tests/a.test.ts")
        feature = make_feature(
            "a.b",
            test_requirements=TestRequirements(unit=UnitTestRequirement(required=True, pattern="**/*.test.ts")),
        )

        assert not verify_tdd_gate(project, feature).passed
