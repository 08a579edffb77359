"""Feature (task record) models persisted in ai/feature_list.json."""

from datetime import UTC, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class FeatureStatus(str, Enum):
    """Feature lifecycle states."""
    FAILING = "failing"
    PASSING = "passing"
    BLOCKED = "blocked"
    NEEDS_REVIEW = "needs_review"
    FAILED = "failed"
    DEPRECATED = "deprecated"


class FeatureOrigin(str, Enum):
    """How a feature entered the list."""
    INIT_AUTO = "init-auto"
    INIT_FROM_ROUTES = "init-from-routes"
    INIT_FROM_TESTS = "init-from-tests"
    MANUAL = "manual"
    REPLAN = "replan"


class TDDMode(str, Enum):
    """Project-wide test-driven development enforcement."""
    STRICT = "strict"
    RECOMMENDED = "recommended"
    DISABLED = "disabled"


class Verdict(str, Enum):
    """Verification outcome."""
    PASS = "pass"
    FAIL = "fail"
    NEEDS_REVIEW = "needs_review"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on disk."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class UnitTestRequirement(CamelModel):
    required: bool = False
    pattern: Optional[str] = None
    cases: List[str] = Field(default_factory=list)


class E2ETestRequirement(CamelModel):
    required: bool = False
    pattern: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class TestRequirements(CamelModel):
    __test__ = False  # not a pytest class

    unit: Optional[UnitTestRequirement] = None
    e2e: Optional[E2ETestRequirement] = None


class FeatureVerificationSummary(CamelModel):
    """Latest verification outcome, stored inline on the feature."""
    verified_at: str
    verdict: Verdict
    verified_by: str = "agent-foreman"
    commit_hash: Optional[str] = None
    summary: str = ""


class Feature(CamelModel):
    """A tracked feature/task record."""
    id: str
    description: str
    module: str = ""
    priority: int = 10  # Lower runs sooner
    status: FeatureStatus = FeatureStatus.FAILING
    acceptance: List[str] = Field(default_factory=list)
    depends_on: List[str] = Field(default_factory=list)
    supersedes: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    notes: str = ""
    version: int = 1
    origin: FeatureOrigin = FeatureOrigin.MANUAL
    verification: Optional[FeatureVerificationSummary] = None
    test_requirements: Optional[TestRequirements] = None
    affected_by: Optional[List[str]] = None
    e2e_tags: Optional[List[str]] = None

    @property
    def unit_test_pattern(self) -> Optional[str]:
        if self.test_requirements and self.test_requirements.unit:
            return self.test_requirements.unit.pattern
        return None

    @property
    def e2e_test_pattern(self) -> Optional[str]:
        if self.test_requirements and self.test_requirements.e2e:
            return self.test_requirements.e2e.pattern
        return None


class FeatureListMetadata(CamelModel):
    project_goal: str = ""
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
    version: str = "1.0.0"
    tdd_mode: TDDMode = TDDMode.RECOMMENDED


class FeatureList(CamelModel):
    """Root document of ai/feature_list.json."""
    features: List[Feature] = Field(default_factory=list)
    metadata: FeatureListMetadata = Field(default_factory=FeatureListMetadata)
