"""Tests for TDD guidance generation."""

from agent_foreman.core.feature import TestRequirements, UnitTestRequirement
from agent_foreman.tdd.guidance import (
    criterion_to_test_case,
    generate_tdd_guidance,
    needs_e2e,
    sanitize_module_name,
    suggest_test_files,
)
from tests.unit.helpers import make_feature


class TestHelpers:
    def test_sanitize_module_name(self):
        assert sanitize_module_name("Auth Service!") == "auth-service"
        assert sanitize_module_name("") == "core"

    def test_criterion_to_test_case(self):
        assert criterion_to_test_case("Returns 401 on bad password.") == "should returns 401 on bad password"
        assert criterion_to_test_case("Should reject empty input") == "should reject empty input"
        assert criterion_to_test_case("   ") == "should work"

    def test_needs_e2e_matches_whole_words(self):
        assert needs_e2e("User sees an error on the login page")
        assert not needs_e2e("Token expires after an hour")

    def test_framework_conventions(self):
        feature = make_feature("auth.login")

        assert suggest_test_files(feature, "pytest")[0][0] == "tests/auth/test_login.py"
        assert suggest_test_files(feature, "go")[0] == ["auth/login_test.go"]
        assert suggest_test_files(feature, None)[0][0] == "tests/auth/login.test.ts"
        assert suggest_test_files(feature, None)[1][0] == "e2e/auth/login.spec.ts"


class TestGenerateGuidance:
    def test_maps_each_criterion(self):
        feature = make_feature(
            "auth.login",
            acceptance=["Shows an error message on the form", "Password is hashed"],
        )

        guidance = generate_tdd_guidance(feature, "vitest")

        assert guidance.feature_id == "auth.login"
        assert len(guidance.acceptance_mapping) == 2
        assert guidance.e2e_scenarios == ["user can verify: shows an error message on the form"]
        assert guidance.acceptance_mapping[1].e2e_scenario is None
        assert guidance.unit_test_cases[1] == "should password is hashed"

    def test_declared_patterns_come_first(self):
        feature = make_feature(
            "auth.login",
            test_requirements=TestRequirements(unit=UnitTestRequirement(pattern="spec/auth/**/*.spec.ts")),
        )

        guidance = generate_tdd_guidance(feature)

        assert guidance.unit_test_files[0] == "spec/auth/**/*.spec.ts"
