"""Tests for check planning and execution."""

from unittest.mock import patch

from agent_foreman.core.config import ChecksConfig
from agent_foreman.utils.subprocess_utils import SubprocessError
from agent_foreman.verifier.capabilities import Capability
from agent_foreman.verifier.check_executor import (
    CheckOptions,
    PlannedCheck,
    plan_checks,
    run_check,
    run_checks,
)
from agent_foreman.verifier.models import CHECK_ORDER, CheckKind, TestDiscoveryResult
from tests.unit.helpers import completed

RUN = "agent_foreman.verifier.check_executor.run_command"


def _caps(**commands):
    caps = {kind: Capability(kind) for kind in CHECK_ORDER}
    for name, command in commands.items():
        kind = CheckKind(name)
        framework = "playwright" if kind == CheckKind.E2E else None
        caps[kind] = Capability(kind, True, command, framework, "detected")
    return caps


class TestPlanChecks:
    def test_plan_follows_fixed_order(self):
        caps = _caps(e2e="npx playwright test", test="npm test", typecheck="tsc", lint="eslint .", build="vite build")

        planned, skipped = plan_checks(caps, CheckOptions())

        assert [p.kind for p in planned] == CHECK_ORDER
        assert skipped == []

    def test_unavailable_steps_are_skipped_with_labels(self):
        planned, skipped = plan_checks(_caps(lint="eslint ."), CheckOptions())

        assert [p.kind for p in planned] == [CheckKind.LINT]
        assert skipped == ["typecheck", "tests", "build", "e2e"]

    def test_skip_flags(self):
        caps = _caps(test="npm test", build="vite build", e2e="npx playwright test")

        planned, skipped = plan_checks(caps, CheckOptions(test_mode="skip", skip_build=True, skip_e2e=True))

        assert planned == []
        assert "tests" in skipped and "build" in skipped and "e2e" in skipped

    def test_quick_mode_uses_selective_command(self):
        caps = _caps(test="npm test")
        caps[CheckKind.TEST].framework = "vitest"
        discovery = TestDiscoveryResult(pattern="a.test.ts", source="auto-detected", test_files=["a.test.ts"])

        planned, _ = plan_checks(caps, CheckOptions(test_mode="quick", test_discovery=discovery))

        assert planned[0].command == "npx vitest run a.test.ts"

    def test_e2e_tags_in_quick_mode(self):
        caps = _caps(e2e="npx playwright test")

        planned, _ = plan_checks(caps, CheckOptions(test_mode="quick", e2e_tags=["@auth"]))

        assert planned[0].command == 'npx playwright test --grep "@auth"'


class TestRunCheck:
    def test_success(self, tmp_path):
        with patch(RUN, return_value=completed("ok\n")):
            result = run_check(tmp_path, PlannedCheck(CheckKind.LINT, "eslint ."), timeout=10)

        assert result.success
        assert result.exit_code == 0
        assert result.output == "ok\n"
        assert result.command == "eslint ."

    def test_non_zero_exit_is_failure(self, tmp_path):
        with patch(RUN, return_value=completed("", returncode=1, stderr="2 errors")):
            result = run_check(tmp_path, PlannedCheck(CheckKind.TEST, "npm test"), timeout=10)

        assert not result.success
        assert result.exit_code == 1
        assert "2 errors" in result.output
        assert result.summary.startswith("tests failed")

    def test_timeout_is_failure(self, tmp_path):
        error = SubprocessError("npm test", -1, "", stdout="partial", timed_out=True)
        with patch(RUN, side_effect=error):
            result = run_check(tmp_path, PlannedCheck(CheckKind.TEST, "npm test"), timeout=1)

        assert not result.success
        assert result.timed_out
        assert result.exit_code is None
        assert "timed out" in result.summary

    def test_spawn_error_is_failure(self, tmp_path):
        with patch(RUN, side_effect=OSError("no such shell")):
            result = run_check(tmp_path, PlannedCheck(CheckKind.BUILD, "make"), timeout=1)

        assert not result.success
        assert "Failed to start command" in result.output

    def test_output_tail_is_truncated(self, tmp_path):
        with patch(RUN, return_value=completed("x" * 50 + "END")):
            result = run_check(tmp_path, PlannedCheck(CheckKind.LINT, "eslint ."), timeout=10, output_tail_chars=3)

        assert result.output == "...END"


class TestRunChecks:
    def test_failure_does_not_stop_later_steps(self, tmp_path):
        caps = _caps(typecheck="tsc", lint="eslint .", test="npm test")
        outcomes = [completed(returncode=1), completed(), completed()]

        with patch(RUN, side_effect=outcomes) as mock_run:
            results = run_checks(tmp_path, caps, CheckOptions())

        assert mock_run.call_count == 3
        assert [r.success for r in results] == [False, True, True]

    def test_uses_configured_timeout(self, tmp_path):
        caps = _caps(lint="eslint .")
        with patch(RUN, return_value=completed()) as mock_run:
            run_checks(tmp_path, caps, CheckOptions(checks_config=ChecksConfig(timeout=42)))

        assert mock_run.call_args.kwargs["timeout"] == 42
        assert mock_run.call_args.kwargs["shell"] is True
