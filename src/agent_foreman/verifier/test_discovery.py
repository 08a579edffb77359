"""Find tests related to a change and build selective test commands."""

import logging
import posixpath
import re
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from ..core.config import ChecksConfig
from ..core.feature import Feature
from .models import TestDiscoveryResult

logger = logging.getLogger(__name__)

_MODULE_ROOT_RE = re.compile(r"^(?:src|lib|app|pkg)/([^/]+)")
_TEST_DIRS = ("tests/", "test/", "__tests__/", "spec/")


class E2EMode(str, Enum):
    FULL = "full"
    SMOKE = "smoke"
    TAGS = "tags"
    SKIP = "skip"


def _join(*parts: str) -> str:
    return posixpath.normpath(posixpath.join(*parts))


def is_test_file(path: str) -> bool:
    name = posixpath.basename(path)
    return (
        ".test." in name
        or ".spec." in name
        or "__tests__/" in path
        or path.startswith(_TEST_DIRS)
        or (name.startswith("test_") and name.endswith(".py"))
        or name.endswith("_test.py")
        or name.endswith("_test.go")
    )


def map_source_to_test_files(source_file: str) -> List[str]:
    """Candidate test paths for a source file under common conventions.

    ``src/auth/login.ts`` yields e.g. ``src/auth/login.test.ts``,
    ``src/auth/__tests__/login.test.ts`` and ``tests/auth/login.test.ts``.
    """
    source_file = source_file.replace("\\", "/")
    dir_name = posixpath.dirname(source_file) or "."
    base, ext = posixpath.splitext(posixpath.basename(source_file))
    candidates: List[str] = []

    if ext == ".py":
        candidates.append(_join(dir_name, f"test_{base}.py"))
        for test_dir in ("tests", "test", "tests/unit"):
            candidates.append(_join(test_dir, f"test_{base}.py"))
        if source_file.startswith("src/"):
            relative_dir = posixpath.dirname(source_file[len("src/"):])
            # Drop the top-level package: src/pkg/sub/x.py -> tests/sub/test_x.py
            sub_dir = relative_dir.split("/", 1)[1] if "/" in relative_dir else ""
            if sub_dir:
                candidates.append(_join("tests", sub_dir, f"test_{base}.py"))
        return _dedupe(candidates)

    if ext == ".go":
        return [_join(dir_name, f"{base}_test.go")]

    candidates.append(_join(dir_name, f"{base}.test{ext}"))
    candidates.append(_join(dir_name, f"{base}.spec{ext}"))
    candidates.append(_join(dir_name, "__tests__", f"{base}.test{ext}"))
    candidates.append(_join(dir_name, "__tests__", f"{base}{ext}"))

    if source_file.startswith("src/"):
        relative_dir = posixpath.dirname(source_file[len("src/"):]) or "."
        for test_root in ("tests", "test", "__tests__"):
            candidates.append(_join(test_root, relative_dir, f"{base}.test{ext}"))

    return _dedupe(candidates)


def _dedupe(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


def extract_module_from_path(file_path: str) -> Optional[str]:
    """Module token for a path: ``src/auth/login.ts`` -> ``auth``."""
    file_path = file_path.replace("\\", "/")
    match = _MODULE_ROOT_RE.match(file_path)
    if match:
        return match.group(1)
    parts = file_path.split("/")
    if len(parts) >= 2 and parts[0] and not parts[0].startswith("."):
        return parts[0]
    return None


def find_existing_test_files(cwd: Path, candidates: Iterable[str]) -> List[str]:
    cwd = Path(cwd)
    return [c for c in _dedupe(candidates) if (cwd / c).is_file()]


def discover_tests(
    cwd: Path,
    feature: Feature,
    changed_files: List[str],
) -> TestDiscoveryResult:
    """Select tests for a change.

    Priority: the feature's explicit unit-test pattern, then existing test
    files for the changed sources (plus changed test files), then a
    module-based glob, then nothing (run the full suite).
    """
    explicit = feature.unit_test_pattern
    if explicit:
        return TestDiscoveryResult(pattern=explicit, source="explicit", confidence=1.0)

    if not changed_files:
        return TestDiscoveryResult()

    candidates: List[str] = []
    changed_tests: List[str] = []
    for path in changed_files:
        if is_test_file(path):
            changed_tests.append(path)
        else:
            candidates.extend(map_source_to_test_files(path))

    existing = find_existing_test_files(cwd, candidates + changed_tests)
    if existing:
        return TestDiscoveryResult(
            pattern=" ".join(existing),
            source="auto-detected",
            test_files=existing,
            confidence=0.9,
        )

    modules = _dedupe(m for m in (extract_module_from_path(p) for p in changed_files) if m)
    if modules:
        module = feature.module or modules[0]
        return TestDiscoveryResult(
            pattern=f"**/{module}/**/*.test.*",
            source="module-based",
            confidence=0.6,
        )

    return TestDiscoveryResult()


def _name_filter(pattern: str) -> str:
    """Reduce a path glob to a plain name usable by -k / -run style filters."""
    if "*" not in pattern and "/" not in pattern:
        return pattern
    segments = [s for s in re.split(r"[/\s]+", pattern) if s and "*" not in s]
    if not segments:
        return pattern
    name = segments[-1]
    return name.split(".", 1)[0]


def build_selective_test_command(
    command: Optional[str],
    framework: Optional[str],
    discovery: TestDiscoveryResult,
    checks_config: Optional[ChecksConfig] = None,
) -> Optional[str]:
    """Command that runs only the discovered tests, or the full command."""
    if not command:
        return None
    pattern = discovery.pattern
    if not pattern:
        return command

    files = " ".join(discovery.test_files)
    if checks_config is not None:
        if discovery.test_files and checks_config.selective_file_template:
            return checks_config.selective_file_template.replace("{files}", files)
        if checks_config.selective_name_template:
            return checks_config.selective_name_template.replace("{pattern}", pattern)

    if framework == "vitest":
        return f"npx vitest run {files}" if files else f'npx vitest run --testNamePattern "{pattern}"'
    if framework == "jest":
        return f"npx jest {files}" if files else f'npx jest --testPathPattern "{pattern}"'
    if framework == "mocha":
        return f"npx mocha {files}" if files else f'npx mocha --grep "{pattern}"'
    if framework == "pytest":
        return f"pytest {files}" if files else f'pytest -k "{_name_filter(pattern)}"'
    if framework == "go":
        return f'go test -run "{_name_filter(pattern)}" ./...'
    if framework == "cargo":
        return f'cargo test "{_name_filter(pattern)}"'

    if command.startswith(("npm ", "pnpm ")):
        return f'{command} -- "{pattern}"'
    if command.startswith(("yarn ", "bun ")):
        return f'{command} "{pattern}"'
    return command


def determine_e2e_mode(test_mode: str, has_e2e_tags: bool) -> E2EMode:
    if test_mode == "skip":
        return E2EMode.SKIP
    if test_mode == "full":
        return E2EMode.FULL
    return E2EMode.TAGS if has_e2e_tags else E2EMode.SMOKE


def build_e2e_command(
    command: Optional[str],
    framework: Optional[str],
    tags: Optional[List[str]] = None,
    mode: E2EMode = E2EMode.TAGS,
    grep_template: Optional[str] = None,
) -> Optional[str]:
    """E2E command for a mode; None when E2E is unavailable or skipped."""
    tags = tags or []
    if not command or mode == E2EMode.SKIP:
        return None
    if mode == E2EMode.FULL or tags == ["*"]:
        return command
    if mode == E2EMode.SMOKE or not tags:
        tags = ["@smoke"]

    tag_pattern = "|".join(tags)
    if grep_template:
        return grep_template.replace("{tags}", f'"{tag_pattern}"')
    if framework == "playwright":
        return f'npx playwright test --grep "{tag_pattern}"'
    if framework == "cypress":
        return f'npx cypress run --spec "**/*" --env grep="{tag_pattern}"'
    if framework == "puppeteer":
        return f'npx jest --testPathPattern "e2e" --testNamePattern "{tag_pattern}"'
    return f'{command} --grep "{tag_pattern}"'
