"""Classify changes to dependency manifests and tool configs as high risk."""

import re
from typing import Iterable, List, Pattern

HIGH_RISK_PATTERNS: List[Pattern] = [
    # Package manifests and lockfiles
    re.compile(r"^package\.json$"),
    re.compile(r"^package-lock\.json$"),
    re.compile(r"^pnpm-lock\.yaml$"),
    re.compile(r"^yarn\.lock$"),
    re.compile(r"^bun\.lockb?$"),
    # Compiler and lint config
    re.compile(r"^tsconfig.*\.json$"),
    re.compile(r"^\.eslintrc"),
    re.compile(r"^eslint\.config\."),
    # Bundler, test runner and E2E runner config
    re.compile(r"^vite\.config\."),
    re.compile(r"^vitest\.config\."),
    re.compile(r"^jest\.config\."),
    re.compile(r"^playwright\.config\."),
    # Environment files
    re.compile(r"^\.env"),
    # Other ecosystems
    re.compile(r"^Cargo\.(toml|lock)$"),
    re.compile(r"^go\.(mod|sum)$"),
    re.compile(r"^requirements.*\.txt$"),
    re.compile(r"^pyproject\.toml$"),
]


def is_high_risk_change(paths: Iterable[str]) -> bool:
    """True if any path's basename or full path matches a high-risk pattern."""
    for path in paths or ():
        if not isinstance(path, str) or not path:
            continue
        normalized = path.replace("\\", "/")
        basename = normalized.rstrip("/").rsplit("/", 1)[-1]
        if any(p.search(basename) or p.search(normalized) for p in HIGH_RISK_PATTERNS):
            return True
    return False
