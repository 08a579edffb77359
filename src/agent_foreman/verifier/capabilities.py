"""Detect which verification commands a project supports."""

import json
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..core.config import ChecksConfig
from .models import CHECK_ORDER, CheckKind

logger = logging.getLogger(__name__)

NPM_DEFAULT_TEST = 'echo "Error: no test specified" && exit 1'


@dataclass
class Capability:
    """How (and whether) one check kind can be run."""
    kind: CheckKind
    available: bool = False
    command: Optional[str] = None
    framework: Optional[str] = None
    source: str = "none"  # detected | config | none


CapabilityMap = Dict[CheckKind, Capability]


def _read_json(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, dict) else {}


def _node_package_manager(cwd: Path) -> str:
    if (cwd / "pnpm-lock.yaml").exists():
        return "pnpm"
    if (cwd / "yarn.lock").exists():
        return "yarn"
    if (cwd / "bun.lockb").exists() or (cwd / "bun.lock").exists():
        return "bun"
    return "npm"


def _run_script(pm: str, script: str) -> str:
    if pm == "yarn":
        return f"yarn {script}"
    if pm == "npm" and script == "test":
        return "npm test"
    return f"{pm} run {script}"


def detect_node(cwd: Path) -> Dict[CheckKind, Capability]:
    manifest = cwd / "package.json"
    if not manifest.exists():
        return {}

    pkg = _read_json(manifest)
    scripts = pkg.get("scripts") or {}
    deps = {**(pkg.get("dependencies") or {}), **(pkg.get("devDependencies") or {})}
    pm = _node_package_manager(cwd)
    found: Dict[CheckKind, Capability] = {}

    for script in ("typecheck", "type-check", "tsc"):
        if script in scripts:
            found[CheckKind.TYPECHECK] = Capability(CheckKind.TYPECHECK, True, _run_script(pm, script), "tsc", "detected")
            break
    else:
        if (cwd / "tsconfig.json").exists() and "typescript" in deps:
            found[CheckKind.TYPECHECK] = Capability(CheckKind.TYPECHECK, True, "npx tsc --noEmit", "tsc", "detected")

    if "lint" in scripts:
        found[CheckKind.LINT] = Capability(CheckKind.LINT, True, _run_script(pm, "lint"), "eslint" if "eslint" in deps else None, "detected")
    elif "eslint" in deps:
        found[CheckKind.LINT] = Capability(CheckKind.LINT, True, "npx eslint .", "eslint", "detected")

    framework = next((name for name in ("vitest", "jest", "mocha") if name in deps), None)
    test_script = scripts.get("test")
    if test_script and test_script.strip() != NPM_DEFAULT_TEST:
        found[CheckKind.TEST] = Capability(CheckKind.TEST, True, _run_script(pm, "test"), framework, "detected")
    elif framework == "vitest":
        found[CheckKind.TEST] = Capability(CheckKind.TEST, True, "npx vitest run", framework, "detected")
    elif framework:
        found[CheckKind.TEST] = Capability(CheckKind.TEST, True, f"npx {framework}", framework, "detected")

    if "build" in scripts:
        found[CheckKind.BUILD] = Capability(CheckKind.BUILD, True, _run_script(pm, "build"), None, "detected")

    has_playwright_config = any(cwd.glob("playwright.config.*"))
    if "@playwright/test" in deps or has_playwright_config:
        found[CheckKind.E2E] = Capability(CheckKind.E2E, True, "npx playwright test", "playwright", "detected")
    elif "cypress" in deps:
        found[CheckKind.E2E] = Capability(CheckKind.E2E, True, "npx cypress run", "cypress", "detected")
    elif "test:e2e" in scripts:
        found[CheckKind.E2E] = Capability(CheckKind.E2E, True, _run_script(pm, "test:e2e"), "puppeteer" if "puppeteer" in deps else None, "detected")

    return found


def _python_tooling_text(cwd: Path) -> str:
    """Concatenate declared dependencies and tool sections to search for tool names."""
    chunks: List[str] = []
    pyproject = cwd / "pyproject.toml"
    if pyproject.exists():
        with open(pyproject, "rb") as f:
            data = tomllib.load(f)
        project = data.get("project") or {}
        chunks.extend(project.get("dependencies") or [])
        for extra in (project.get("optional-dependencies") or {}).values():
            chunks.extend(extra)
        chunks.extend((data.get("tool") or {}).keys())
        for group in (data.get("dependency-groups") or {}).values():
            chunks.extend(str(item) for item in group)
    for name in ("requirements.txt", "requirements-dev.txt", "setup.cfg", "tox.ini"):
        path = cwd / name
        if path.exists():
            chunks.append(path.read_text(encoding="utf-8", errors="replace"))
    return "\n".join(chunks).lower()


def detect_python(cwd: Path) -> Dict[CheckKind, Capability]:
    markers = ("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt", "pytest.ini")
    if not any((cwd / m).exists() for m in markers):
        return {}

    text = _python_tooling_text(cwd)
    found: Dict[CheckKind, Capability] = {}

    if "mypy" in text or (cwd / "mypy.ini").exists():
        found[CheckKind.TYPECHECK] = Capability(CheckKind.TYPECHECK, True, "mypy .", "mypy", "detected")
    elif "pyright" in text or (cwd / "pyrightconfig.json").exists():
        found[CheckKind.TYPECHECK] = Capability(CheckKind.TYPECHECK, True, "pyright", "pyright", "detected")

    if "ruff" in text or (cwd / "ruff.toml").exists():
        found[CheckKind.LINT] = Capability(CheckKind.LINT, True, "ruff check .", "ruff", "detected")
    elif "flake8" in text or (cwd / ".flake8").exists():
        found[CheckKind.LINT] = Capability(CheckKind.LINT, True, "flake8", "flake8", "detected")

    if "pytest" in text or (cwd / "pytest.ini").exists() or (cwd / "conftest.py").exists() or (cwd / "tests").is_dir():
        found[CheckKind.TEST] = Capability(CheckKind.TEST, True, "pytest", "pytest", "detected")

    return found


def detect_go(cwd: Path) -> Dict[CheckKind, Capability]:
    if not (cwd / "go.mod").exists():
        return {}
    found = {
        CheckKind.TYPECHECK: Capability(CheckKind.TYPECHECK, True, "go vet ./...", "go", "detected"),
        CheckKind.TEST: Capability(CheckKind.TEST, True, "go test ./...", "go", "detected"),
        CheckKind.BUILD: Capability(CheckKind.BUILD, True, "go build ./...", "go", "detected"),
    }
    if any((cwd / name).exists() for name in (".golangci.yml", ".golangci.yaml", ".golangci.toml")):
        found[CheckKind.LINT] = Capability(CheckKind.LINT, True, "golangci-lint run", "golangci-lint", "detected")
    return found


def detect_rust(cwd: Path) -> Dict[CheckKind, Capability]:
    if not (cwd / "Cargo.toml").exists():
        return {}
    return {
        CheckKind.TYPECHECK: Capability(CheckKind.TYPECHECK, True, "cargo check", "cargo", "detected"),
        CheckKind.LINT: Capability(CheckKind.LINT, True, "cargo clippy -- -D warnings", "clippy", "detected"),
        CheckKind.TEST: Capability(CheckKind.TEST, True, "cargo test", "cargo", "detected"),
        CheckKind.BUILD: Capability(CheckKind.BUILD, True, "cargo build", "cargo", "detected"),
    }


DETECTORS: List[Callable[[Path], Dict[CheckKind, Capability]]] = [
    detect_node,
    detect_python,
    detect_go,
    detect_rust,
]


def detect_capabilities(cwd: Path, checks_config: Optional[ChecksConfig] = None) -> CapabilityMap:
    """Best-effort capability map with one entry per check kind.

    Each ecosystem detector runs in isolation: one that raises is logged
    and contributes nothing. The first detector to claim a kind wins.
    Commands configured in ``checks.commands`` always win over detection.
    """
    cwd = Path(cwd)
    capabilities: CapabilityMap = {kind: Capability(kind) for kind in CHECK_ORDER}

    for detector in DETECTORS:
        try:
            found = detector(cwd)
        except Exception as e:
            logger.warning(f"Capability detector {detector.__name__} failed, skipping: {e}")
            continue
        for kind, capability in found.items():
            if not capabilities[kind].available:
                capabilities[kind] = capability

    if checks_config is not None:
        for kind_name, command in checks_config.commands.items():
            kind = CheckKind(kind_name)
            capabilities[kind] = Capability(
                kind=kind,
                available=True,
                command=command,
                framework=capabilities[kind].framework,
                source="config",
            )

    available = [k.value for k, c in capabilities.items() if c.available]
    logger.debug(f"Detected capabilities in {cwd}: {available or 'none'}")
    return capabilities
