"""Result types for the verification pipeline."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class CheckKind(str, Enum):
    """Tooling steps, in execution order."""
    TYPECHECK = "typecheck"
    LINT = "lint"
    TEST = "test"
    BUILD = "build"
    E2E = "e2e"

    @property
    def label(self) -> str:
        """Name used in ``skipped`` lists and CLI output."""
        return "tests" if self is CheckKind.TEST else self.value


CHECK_ORDER = [CheckKind.TYPECHECK, CheckKind.LINT, CheckKind.TEST, CheckKind.BUILD, CheckKind.E2E]

# Reported when a layered check has nothing to verify
ALL_SKIPPED = ["tests", "typecheck", "lint", "build", "e2e", "ai"]


class ImpactConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class CheckResult:
    """Outcome of one tooling step."""
    kind: CheckKind
    success: bool
    duration_ms: int
    command: str = ""
    output: str = ""
    exit_code: Optional[int] = None
    timed_out: bool = False

    @property
    def summary(self) -> str:
        status = "passed" if self.success else ("timed out" if self.timed_out else "failed")
        return f"{self.kind.label} {status} ({self.duration_ms / 1000:.1f}s)"


@dataclass
class TaskImpact:
    """A heuristic link between changed files and a tracked feature."""
    task_id: str
    reason: str
    confidence: ImpactConfidence = ImpactConfidence.LOW
    matched_files: List[str] = field(default_factory=list)


@dataclass
class TaskVerification:
    task_id: str
    verdict: str
    reasoning: str


@dataclass
class TestDiscoveryResult:
    """Tests presumed relevant to a change.

    An empty ``test_files`` with no ``pattern`` means "run the full suite".
    """
    __test__ = False  # not a pytest class

    pattern: Optional[str] = None
    source: str = "none"  # explicit | auto-detected | module-based | none
    test_files: List[str] = field(default_factory=list)
    confidence: float = 0.0


@dataclass
class LayeredCheckResult:
    """Everything a fast check produced, handed back to the CLI."""
    changed_files: List[str]
    checks: Dict[CheckKind, CheckResult] = field(default_factory=dict)
    affected_tasks: List[TaskImpact] = field(default_factory=list)
    task_verification: Optional[List[TaskVerification]] = None
    duration_ms: int = 0
    passed: bool = True
    skipped: List[str] = field(default_factory=list)
    high_risk_escalation: bool = False
    tdd_warnings: List[str] = field(default_factory=list)
    test_discovery: Optional[TestDiscoveryResult] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["checks"] = {kind.label: asdict(result) for kind, result in self.checks.items()}
        return data
