"""Suggest test files and test cases for a feature before it is implemented."""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.feature import Feature

UI_KEYWORDS = (
    "page", "button", "click", "form", "display", "screen", "modal", "navigate",
    "redirect", "ui", "view", "render", "visible", "shows", "input", "dialog",
)


@dataclass
class AcceptanceTestMapping:
    criterion: str
    unit_test_case: str
    e2e_scenario: Optional[str] = None


@dataclass
class TDDGuidance:
    feature_id: str
    unit_test_files: List[str] = field(default_factory=list)
    e2e_test_files: List[str] = field(default_factory=list)
    unit_test_cases: List[str] = field(default_factory=list)
    e2e_scenarios: List[str] = field(default_factory=list)
    acceptance_mapping: List[AcceptanceTestMapping] = field(default_factory=list)


def sanitize_module_name(module: str) -> str:
    cleaned = re.sub(r"[^a-z0-9-]", "-", (module or "").lower())
    cleaned = re.sub(r"-+", "-", cleaned).strip("-")
    return cleaned or "core"


def _slug(feature_id: str) -> str:
    tail = feature_id.split(".")[-1] or feature_id
    return re.sub(r"[^A-Za-z0-9_-]", "-", tail)


def criterion_to_test_case(criterion: str) -> str:
    text = criterion.strip().rstrip(".")
    if not text:
        return "should work"
    lowered = text[0].lower() + text[1:]
    return lowered if lowered.startswith("should ") else f"should {lowered}"


def criterion_to_e2e_scenario(criterion: str) -> str:
    text = criterion.strip().rstrip(".")
    return f"user can verify: {text[0].lower() + text[1:]}" if text else "user flow works"


def needs_e2e(criterion: str) -> bool:
    words = set(re.findall(r"[a-z]+", criterion.lower()))
    return any(keyword in words for keyword in UI_KEYWORDS)


def suggest_test_files(feature: Feature, framework: Optional[str]) -> tuple:
    """(unit paths, e2e paths) following the framework's naming convention."""
    module = sanitize_module_name(feature.module)
    slug = _slug(feature.id)

    if framework == "pytest":
        unit = [f"tests/{module}/test_{slug.replace('-', '_')}.py", f"tests/test_{module.replace('-', '_')}_{slug.replace('-', '_')}.py"]
    elif framework == "go":
        unit = [f"{module}/{slug}_test.go"]
    elif framework == "cargo":
        unit = [f"tests/{module}_{slug}.rs"]
    else:
        unit = [f"tests/{module}/{slug}.test.ts", f"tests/{module}.{slug}.test.ts"]

    e2e = [f"e2e/{module}/{slug}.spec.ts", f"e2e/{slug}.spec.ts"]
    return unit, e2e


def generate_tdd_guidance(feature: Feature, framework: Optional[str] = None) -> TDDGuidance:
    """Map each acceptance criterion to a unit test case, plus an E2E scenario for UI criteria."""
    unit_files, e2e_files = suggest_test_files(feature, framework)
    if feature.unit_test_pattern:
        unit_files = [feature.unit_test_pattern] + unit_files
    if feature.e2e_test_pattern:
        e2e_files = [feature.e2e_test_pattern] + e2e_files

    mapping = [
        AcceptanceTestMapping(
            criterion=criterion,
            unit_test_case=criterion_to_test_case(criterion),
            e2e_scenario=criterion_to_e2e_scenario(criterion) if needs_e2e(criterion) else None,
        )
        for criterion in feature.acceptance
    ]
    return TDDGuidance(
        feature_id=feature.id,
        unit_test_files=unit_files,
        e2e_test_files=e2e_files,
        unit_test_cases=[m.unit_test_case for m in mapping],
        e2e_scenarios=[m.e2e_scenario for m in mapping if m.e2e_scenario],
        acceptance_mapping=mapping,
    )
