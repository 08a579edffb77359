"""Ask an LLM whether a feature's acceptance criteria are met."""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..core.feature import Feature, Verdict
from ..llm.base import LLMBackend, LLMRequest
from .models import CheckResult

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a strict code reviewer verifying that a change implements a feature. "
    "Judge only from the evidence given. Respond with a single JSON object and nothing else."
)

_FENCE_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


class AIJudgeError(Exception):
    """Raised when the judge call fails or returns an unusable answer."""


@dataclass
class CriterionResult:
    criterion: str
    satisfied: bool
    reasoning: str = ""


@dataclass
class AIJudgement:
    verdict: str
    reasoning: str
    criteria: List[CriterionResult] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


def build_prompt(
    feature: Feature,
    diff: str,
    changed_files: List[str],
    check_results: List[CheckResult],
    max_diff_chars: int = 60_000,
) -> str:
    acceptance = "\n".join(f"{i}. {c}" for i, c in enumerate(feature.acceptance, 1)) or "(none listed)"
    files = "\n".join(f"- {f}" for f in changed_files[:200]) or "(none)"
    checks = "\n".join(f"- {r.summary}" for r in check_results) or "(no automated checks ran)"
    if len(diff) > max_diff_chars:
        diff = diff[:max_diff_chars] + "\n... [truncated]"

    return f"""## Feature
ID: {feature.id}
Module: {feature.module}
Description: {feature.description}

## Acceptance criteria
{acceptance}

## Changed files
{files}

## Automated checks
{checks}

## Diff
```diff
{diff or "(diff unavailable)"}
```

## Task
Decide whether the change satisfies every acceptance criterion.
Return JSON:
{{
  "verdict": "pass" | "fail" | "needs_review",
  "criteriaResults": [{{"criterion": "...", "satisfied": true, "reasoning": "..."}}],
  "overallReasoning": "...",
  "suggestions": ["..."]
}}
Use "needs_review" when the evidence is insufficient to decide."""


def parse_judgement(text: str) -> AIJudgement:
    """Parse the judge's JSON answer.

    Raises:
        AIJudgeError: If no valid JSON object with a known verdict is found
    """
    fenced = _FENCE_RE.search(text)
    candidate = fenced.group(1) if fenced else text[text.find("{"):text.rfind("}") + 1]
    if not candidate:
        raise AIJudgeError("AI response contained no JSON object")
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise AIJudgeError(f"AI response was not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise AIJudgeError("AI response JSON was not an object")

    verdict = str(payload.get("verdict", "")).lower().replace("-", "_")
    if verdict not in {v.value for v in Verdict}:
        raise AIJudgeError(f"AI returned unknown verdict: {payload.get('verdict')!r}")

    criteria = [
        CriterionResult(
            criterion=str(item.get("criterion", "")),
            satisfied=bool(item.get("satisfied", False)),
            reasoning=str(item.get("reasoning", "")),
        )
        for item in payload.get("criteriaResults") or []
        if isinstance(item, dict)
    ]
    return AIJudgement(
        verdict=verdict,
        reasoning=str(payload.get("overallReasoning") or payload.get("reasoning") or ""),
        criteria=criteria,
        suggestions=[str(s) for s in payload.get("suggestions") or []],
    )


class AIJudge:
    """Verdict-producing collaborator backed by an LLM."""

    def __init__(self, backend: LLMBackend, max_diff_chars: int = 60_000):
        self.backend = backend
        self.max_diff_chars = max_diff_chars

    async def judge(
        self,
        cwd: Path,
        feature: Feature,
        diff: str,
        changed_files: List[str],
        check_results: List[CheckResult],
        model: Optional[str] = None,
    ) -> AIJudgement:
        """Return the verdict for one feature.

        Raises:
            AIJudgeError: If the backend fails or the answer cannot be parsed
        """
        request = LLMRequest(
            prompt=build_prompt(feature, diff, changed_files, check_results, self.max_diff_chars),
            system_prompt=SYSTEM_PROMPT,
            model=model,
            working_dir=str(cwd),
        )
        response = await self.backend.complete(request)
        if not response.success:
            raise AIJudgeError(f"AI judge call failed for {feature.id}: {response.error}")

        judgement = parse_judgement(response.content)
        logger.info(f"AI verdict for {feature.id}: {judgement.verdict}")
        return judgement
