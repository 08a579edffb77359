"""Gitignore templates shipped with the package for offline use."""

from pathlib import Path
from typing import Dict, List, Optional

TEMPLATES_DIR = Path(__file__).parent / "templates"

BUNDLED_TEMPLATES = ("Node", "Python", "Go", "Rust", "Java", "Nextjs")


def is_bundled_template(name: str) -> bool:
    """Case-sensitive, matching GitHub's template names."""
    return name in BUNDLED_TEMPLATES


def get_bundled_template(name: str) -> Optional[str]:
    if not is_bundled_template(name):
        return None
    try:
        return (TEMPLATES_DIR / f"{name}.gitignore").read_text(encoding="utf-8")
    except OSError:
        return None


def verify_bundled_templates() -> Dict[str, List[str]]:
    """Which bundled templates are present on disk, for packaging checks."""
    available = [n for n in BUNDLED_TEMPLATES if (TEMPLATES_DIR / f"{n}.gitignore").is_file()]
    return {
        "available": available,
        "missing": [n for n in BUNDLED_TEMPLATES if n not in available],
    }
