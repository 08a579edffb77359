"""Tests for mapping changed files to features."""

from agent_foreman.core.feature import TestRequirements, UnitTestRequirement
from agent_foreman.verifier.models import ImpactConfidence
from agent_foreman.verifier.task_impact import (
    get_task_impact,
    map_files_to_tasks,
    match_feature_to_files,
    source_glob_for_test_pattern,
)
from tests.unit.helpers import make_feature


def _with_test_pattern(feature_id, pattern, **kwargs):
    return make_feature(
        feature_id,
        test_requirements=TestRequirements(unit=UnitTestRequirement(pattern=pattern)),
        **kwargs,
    )


class TestSourceGlob:
    def test_typescript_test_glob(self):
        assert source_glob_for_test_pattern("tests/auth/**/*.test.ts") == "src/auth/**/*.ts"

    def test_python_test_glob(self):
        assert source_glob_for_test_pattern("tests/billing/test_invoice.py") == "src/billing/invoice.py"

    def test_empty(self):
        assert source_glob_for_test_pattern("") is None


class TestMatchFeature:
    def test_affected_by_is_high_confidence(self):
        feature = make_feature("auth.login", affected_by=["src/auth/**"], module="other")

        impact = match_feature_to_files(feature, ["README.md", "src/auth/login.ts"])

        assert impact.confidence == ImpactConfidence.HIGH
        assert impact.matched_files == ["src/auth/login.ts"]
        assert "affectedBy" in impact.reason

    def test_test_pattern_is_medium_confidence(self):
        feature = _with_test_pattern("auth.login", "tests/auth/**/*.test.ts", module="x")

        impact = match_feature_to_files(feature, ["src/auth/session/token.ts"])

        assert impact.confidence == ImpactConfidence.MEDIUM

    def test_module_is_low_confidence(self):
        feature = make_feature("billing.invoice", module="billing")

        impact = match_feature_to_files(feature, ["src/billing/invoice.ts"])

        assert impact.confidence == ImpactConfidence.LOW
        assert "module billing" in impact.reason

    def test_module_requires_directory_segment(self):
        feature = make_feature("auth.login", module="auth", description="Sign in")

        assert match_feature_to_files(feature, ["src/authentication.ts"]) is None

    def test_keyword_strategy(self):
        feature = make_feature("feat-1", module="", description="Export invoices as PDF")

        impact = match_feature_to_files(feature, ["src/reports/invoices.ts"])

        assert impact is not None
        assert "invoices" in impact.reason

    def test_stopwords_and_short_words_are_ignored(self):
        feature = make_feature("feat-1", module="", description="User should be able to do it")

        assert match_feature_to_files(feature, ["src/user/should.ts"]) is None


class TestMapFilesToTasks:
    def test_ranked_by_confidence_stable_within_rank(self):
        features = [
            make_feature("a.low", module="a"),
            make_feature("b.high", module="zzz", affected_by=["src/b/**"]),
            make_feature("c.low", module="c"),
            _with_test_pattern("d.medium", "tests/d/**/*.test.ts", module="zzz"),
        ]
        changed = ["src/a/x.ts", "src/b/x.ts", "src/c/x.ts", "src/d/x.ts"]

        impacts = map_files_to_tasks(features, changed)

        assert [i.task_id for i in impacts] == ["b.high", "d.medium", "a.low", "c.low"]

    def test_status_is_not_filtered(self):
        features = [
            make_feature("a.done", module="a", status="passing"),
            make_feature("a.old", module="a", status="deprecated"),
        ]

        assert len(map_files_to_tasks(features, ["src/a/x.ts"])) == 2

    def test_duplicate_ids_reported_once(self):
        features = [make_feature("a.x", module="a"), make_feature("a.x", module="a")]

        assert len(map_files_to_tasks(features, ["src/a/x.ts"])) == 1

    def test_no_changed_files(self):
        assert map_files_to_tasks([make_feature("a.x", module="a")], []) == []


class TestGetTaskImpact:
    def test_missing_feature_list(self, project):
        assert get_task_impact(project, ["src/a/x.ts"]) == []

    def test_reads_feature_list(self, project, write_features):
        write_features([make_feature("a.x", module="a")])

        impacts = get_task_impact(project, ["src/a/x.ts"])

        assert [i.task_id for i in impacts] == ["a.x"]
