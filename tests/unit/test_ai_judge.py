"""Tests for the AI judge prompt, parsing and backend handling."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from agent_foreman.llm.base import LLMResponse
from agent_foreman.verifier.ai_judge import AIJudge, AIJudgeError, build_prompt, parse_judgement
from agent_foreman.verifier.models import CheckKind, CheckResult
from tests.unit.helpers import make_feature


def _response(content: str, success: bool = True, error=None) -> LLMResponse:
    return LLMResponse(
        content=content,
        model_used="sonnet",
        input_tokens=0,
        output_tokens=0,
        finish_reason="stop" if success else "error",
        latency_ms=1.0,
        success=success,
        error=error,
    )


class TestBuildPrompt:
    def test_includes_feature_checks_and_diff(self):
        feature = make_feature("auth.login", acceptance=["User can log in", "Bad password shows error"])
        checks = [CheckResult(kind=CheckKind.TEST, success=True, duration_ms=1500)]

        prompt = build_prompt(feature, "+ added line", ["src/auth/login.ts"], checks)

        assert "ID: auth.login" in prompt
        assert "1. User can log in" in prompt
        assert "2. Bad password shows error" in prompt
        assert "- src/auth/login.ts" in prompt
        assert "tests passed (1.5s)" in prompt
        assert "+ added line" in prompt

    def test_truncates_diff(self):
        prompt = build_prompt(make_feature("a.b"), "x" * 50, [], [], max_diff_chars=10)

        assert "x" * 11 not in prompt
        assert "[truncated]" in prompt

    def test_placeholders_for_missing_evidence(self):
        prompt = build_prompt(make_feature("a.b"), "", [], [])

        assert "(none listed)" in prompt
        assert "(diff unavailable)" in prompt
        assert "(no automated checks ran)" in prompt


class TestParseJudgement:
    def test_plain_json(self):
        text = json.dumps({
            "verdict": "pass",
            "criteriaResults": [{"criterion": "c1", "satisfied": True, "reasoning": "ok"}],
            "overallReasoning": "All good",
            "suggestions": ["Add a test"],
        })

        judgement = parse_judgement(text)

        assert judgement.verdict == "pass"
        assert judgement.reasoning == "All good"
        assert judgement.criteria[0].satisfied
        assert judgement.suggestions == ["Add a test"]

    def test_fenced_json_with_prose(self):
        text = 'Here is my answer:\n```json\n{"verdict": "needs-review", "overallReasoning": "unclear"}\n```'

        assert parse_judgement(text).verdict == "needs_review"

    def test_no_json(self):
        with pytest.raises(AIJudgeError):
            parse_judgement("I could not decide")

    def test_unknown_verdict(self):
        with pytest.raises(AIJudgeError):
            parse_judgement('{"verdict": "maybe"}')

    def test_invalid_json(self):
        with pytest.raises(AIJudgeError):
            parse_judgement('{"verdict": pass}')


class TestAIJudge:
    @pytest.mark.asyncio
    async def test_judge_passes_prompt_to_backend(self, tmp_path):
        backend = MagicMock()
        backend.complete = AsyncMock(return_value=_response('{"verdict": "fail", "overallReasoning": "missing"}'))
        judge = AIJudge(backend)

        judgement = await judge.judge(tmp_path, make_feature("a.b"), "diff", ["a.ts"], [])

        assert judgement.verdict == "fail"
        request = backend.complete.call_args[0][0]
        assert request.working_dir == str(tmp_path)
        assert "ID: a.b" in request.prompt
        assert request.system_prompt

    @pytest.mark.asyncio
    async def test_backend_failure_raises(self, tmp_path):
        backend = MagicMock()
        backend.complete = AsyncMock(return_value=_response("", success=False, error="rate limited"))

        with pytest.raises(AIJudgeError, match="rate limited"):
            await AIJudge(backend).judge(tmp_path, make_feature("a.b"), "", [], [])
