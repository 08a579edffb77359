"""Build and maintain a project's .gitignore from language templates."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..utils.atomic_io import atomic_write_text
from .bundled import get_bundled_template
from .github_api import GitignoreTemplateClient, GitignoreTemplateError

logger = logging.getLogger(__name__)

CONFIG_TO_TEMPLATE: Dict[str, str] = {
    "package.json": "Node",
    "tsconfig.json": "Node",
    "next.config.js": "Nextjs",
    "next.config.mjs": "Nextjs",
    "next.config.ts": "Nextjs",
    "go.mod": "Go",
    "Cargo.toml": "Rust",
    "pyproject.toml": "Python",
    "requirements.txt": "Python",
    "setup.py": "Python",
    "Pipfile": "Python",
    "pom.xml": "Java",
    "build.gradle": "Java",
    "build.gradle.kts": "Java",
}

SECTION_TITLES = {"Node": "Node.js", "Nextjs": "Next.js"}

# Always ignored, whatever the stack
FOREMAN_PATTERNS = ["ai/capabilities.json", "ai/logs/"]

ESSENTIAL_PATTERNS: Dict[str, List[str]] = {
    "Node": ["node_modules/"],
    "Nextjs": ["node_modules/", ".next/"],
    "Python": ["__pycache__/", ".venv/"],
    "Go": ["vendor/"],
    "Rust": ["target/"],
    "Java": ["*.class"],
}
ENV_PATTERNS = [".env", ".env.local"]


@dataclass
class GitignoreResult:
    success: bool
    action: str  # created | updated | skipped | error
    reason: str = ""
    templates: List[str] = field(default_factory=list)


def _section(title: str, lines: Iterable[str]) -> str:
    return f"# === {title} ===\n" + "\n".join(lines).rstrip() + "\n"


def detect_templates_from_config_files(config_files: Iterable[str]) -> List[str]:
    """Templates implied by manifest names; full paths are reduced to basenames."""
    templates = [CONFIG_TO_TEMPLATE.get(Path(f).name) for f in config_files]
    return list(dict.fromkeys(t for t in templates if t))


def detect_templates(cwd: Path) -> List[str]:
    cwd = Path(cwd)
    return detect_templates_from_config_files(name for name in CONFIG_TO_TEMPLATE if (cwd / name).exists())


def get_template(
    name: str,
    client: Optional[GitignoreTemplateClient] = None,
    bundled_only: bool = False,
) -> Optional[str]:
    if bundled_only:
        return get_bundled_template(name)
    client = client or GitignoreTemplateClient()
    try:
        return client.fetch_template(name).source
    except GitignoreTemplateError as e:
        logger.warning(str(e))
        return None


def generate_gitignore_content(
    templates: List[str],
    client: Optional[GitignoreTemplateClient] = None,
    bundled_only: bool = False,
    custom_patterns: Optional[List[str]] = None,
) -> str:
    sections = [_section("agent-foreman", FOREMAN_PATTERNS)]
    for name in dict.fromkeys(templates):
        content = get_template(name, client, bundled_only)
        if content:
            sections.append(_section(SECTION_TITLES.get(name, name), content.splitlines()))
    if custom_patterns:
        sections.append(_section("Custom", custom_patterns))
    return "\n".join(sections)


def _existing_patterns(content: str) -> set:
    return {line.strip() for line in content.splitlines() if line.strip() and not line.startswith("#")}


def ensure_gitignore(
    cwd: Path,
    templates: Optional[List[str]] = None,
    client: Optional[GitignoreTemplateClient] = None,
    bundled_only: bool = False,
) -> GitignoreResult:
    """Create a .gitignore, or append the essential patterns it lacks.

    Existing content is never rewritten and patterns already present are
    never added twice.
    """
    cwd = Path(cwd)
    path = cwd / ".gitignore"
    templates = templates or detect_templates(cwd) or ["Node"]

    try:
        if not path.exists():
            atomic_write_text(path, generate_gitignore_content(templates, client, bundled_only))
            logger.info(f"Created .gitignore from templates: {', '.join(templates)}")
            return GitignoreResult(success=True, action="created",
                                   reason="Created .gitignore", templates=templates)

        content = path.read_text(encoding="utf-8")
        present = _existing_patterns(content)
        wanted = FOREMAN_PATTERNS + [p for t in templates for p in ESSENTIAL_PATTERNS.get(t, [])] + ENV_PATTERNS
        missing = [p for p in dict.fromkeys(wanted) if p not in present]
        if not missing:
            return GitignoreResult(success=True, action="skipped",
                                   reason=".gitignore already has essential patterns", templates=templates)

        separator = "" if content.endswith("\n") or not content else "\n"
        atomic_write_text(path, content + separator + "\n" + _section("agent-foreman (added)", missing))
        logger.info(f"Added {len(missing)} patterns to .gitignore")
        return GitignoreResult(success=True, action="updated",
                               reason=f"Added {', '.join(missing)}", templates=templates)
    except OSError as e:
        return GitignoreResult(success=False, action="error", reason=str(e), templates=templates)
