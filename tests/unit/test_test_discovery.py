"""Tests for test discovery and selective command building."""

import pytest

from agent_foreman.core.config import ChecksConfig
from agent_foreman.core.feature import TestRequirements, UnitTestRequirement
from agent_foreman.verifier.models import TestDiscoveryResult
from agent_foreman.verifier.test_discovery import (
    E2EMode,
    build_e2e_command,
    build_selective_test_command,
    determine_e2e_mode,
    discover_tests,
    extract_module_from_path,
    is_test_file,
    map_source_to_test_files,
)
from tests.unit.helpers import make_feature, touch


class TestMapping:
    def test_typescript_conventions(self):
        candidates = map_source_to_test_files("src/auth/login.ts")

        assert "src/auth/login.test.ts" in candidates
        assert "src/auth/login.spec.ts" in candidates
        assert "src/auth/__tests__/login.test.ts" in candidates
        assert "tests/auth/login.test.ts" in candidates

    def test_python_conventions(self):
        candidates = map_source_to_test_files("src/pkg/core/config.py")

        assert "tests/test_config.py" in candidates
        assert "tests/core/test_config.py" in candidates

    def test_go_convention(self):
        assert map_source_to_test_files("pkg/server/http.go") == ["pkg/server/http_test.go"]

    @pytest.mark.parametrize("path,module", [
        ("src/auth/login.ts", "auth"),
        ("lib/billing/invoice.py", "billing"),
        ("api/users.go", "api"),
        (".github/workflows/ci.yml", None),
        ("README.md", None),
    ])
    def test_extract_module(self, path, module):
        assert extract_module_from_path(path) == module

    @pytest.mark.parametrize("path", [
        "src/a.test.ts", "e2e/login.spec.ts", "src/__tests__/a.ts", "tests/test_a.py", "pkg/a_test.go",
    ])
    def test_is_test_file(self, path):
        assert is_test_file(path)

    def test_source_is_not_test_file(self):
        assert not is_test_file("src/auth/login.ts")


class TestDiscoverTests:
    def test_explicit_pattern_wins(self, project):
        feature = make_feature(
            "auth.login",
            test_requirements=TestRequirements(unit=UnitTestRequirement(pattern="tests/auth/**/*.test.ts")),
        )

        result = discover_tests(project, feature, ["src/auth/login.ts"])

        assert result.source == "explicit"
        assert result.pattern == "tests/auth/**/*.test.ts"
        assert result.confidence == 1.0

    def test_existing_tests_for_changed_sources(self, project):
        touch(project, "src/auth/login.ts", "src/auth/login.test.ts", "tests/other.test.ts")
        feature = make_feature("fast-check", module="")

        result = discover_tests(project, feature, ["src/auth/login.ts", "tests/other.test.ts"])

        assert result.source == "auto-detected"
        assert result.test_files == ["src/auth/login.test.ts", "tests/other.test.ts"]
        assert result.pattern == "src/auth/login.test.ts tests/other.test.ts"

    def test_module_fallback(self, project):
        touch(project, "src/auth/login.ts")
        feature = make_feature("fast-check", module="")

        result = discover_tests(project, feature, ["src/auth/login.ts"])

        assert result.source == "module-based"
        assert result.pattern == "**/auth/**/*.test.*"
        assert result.test_files == []

    def test_nothing_to_go_on(self, project):
        result = discover_tests(project, make_feature("fast-check", module=""), ["README.md"])

        assert result.source == "none"
        assert result.pattern is None


class TestSelectiveCommand:
    def test_full_command_without_pattern(self):
        assert build_selective_test_command("npm test", "vitest", TestDiscoveryResult()) == "npm test"

    def test_no_command(self):
        assert build_selective_test_command(None, "vitest", TestDiscoveryResult(pattern="x")) is None

    def test_vitest_files(self):
        discovery = TestDiscoveryResult(pattern="a.test.ts", source="auto-detected", test_files=["a.test.ts"])

        assert build_selective_test_command("npm test", "vitest", discovery) == "npx vitest run a.test.ts"

    def test_pytest_name_filter_from_glob(self):
        discovery = TestDiscoveryResult(pattern="**/auth/**/*.test.*", source="module-based")

        assert build_selective_test_command("pytest", "pytest", discovery) == 'pytest -k "auth"'

    def test_configured_templates_win(self):
        config = ChecksConfig(selective_file_template="make test FILES='{files}'")
        discovery = TestDiscoveryResult(pattern="a.py", test_files=["a.py"])

        assert build_selective_test_command("pytest", "pytest", discovery, config) == "make test FILES='a.py'"

    def test_npm_passthrough_for_unknown_framework(self):
        discovery = TestDiscoveryResult(pattern="login")

        assert build_selective_test_command("npm test", None, discovery) == 'npm test -- "login"'


class TestE2E:
    @pytest.mark.parametrize("test_mode,has_tags,expected", [
        ("skip", True, E2EMode.SKIP),
        ("full", False, E2EMode.FULL),
        ("quick", True, E2EMode.TAGS),
        ("quick", False, E2EMode.SMOKE),
    ])
    def test_determine_mode(self, test_mode, has_tags, expected):
        assert determine_e2e_mode(test_mode, has_tags) == expected

    def test_playwright_tags(self):
        command = build_e2e_command("npx playwright test", "playwright", ["@auth", "@login"], E2EMode.TAGS)

        assert command == 'npx playwright test --grep "@auth|@login"'

    def test_smoke_mode_uses_smoke_tag(self):
        command = build_e2e_command("npx playwright test", "playwright", [], E2EMode.SMOKE)

        assert command == 'npx playwright test --grep "@smoke"'

    def test_full_and_skip(self):
        assert build_e2e_command("npx cypress run", "cypress", ["@a"], E2EMode.FULL) == "npx cypress run"
        assert build_e2e_command("npx cypress run", "cypress", ["@a"], E2EMode.SKIP) is None
        assert build_e2e_command(None, "cypress", ["@a"], E2EMode.TAGS) is None
