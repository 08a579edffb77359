"""Glob matching for repository-relative paths.

Supports ``*``, ``**``, ``?``, character classes and ``{a,b}`` alternation.
Patterns without a slash are matched against the basename only, the way
``.gitignore``-style globs behave.
"""

import re
from functools import lru_cache
from typing import List, Pattern


def expand_braces(pattern: str) -> List[str]:
    """Expand the first ``{a,b}`` group recursively."""
    depth = 0
    start = -1
    for i, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                body = pattern[start + 1:i]
                options = _split_top_level(body)
                if len(options) < 2:
                    continue
                prefix, suffix = pattern[:start], pattern[i + 1:]
                expanded: List[str] = []
                for option in options:
                    expanded.extend(expand_braces(prefix + option + suffix))
                return expanded
    return [pattern]


def _split_top_level(body: str) -> List[str]:
    parts = []
    depth = 0
    current = ""
    for ch in body:
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current += ch
    parts.append(current)
    return parts


def _translate(pattern: str) -> str:
    out = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "*":
            if i + 1 < n and pattern[i + 1] == "*":
                i += 2
                if i < n and pattern[i] == "/":
                    out.append("(?:.*/)?")
                    i += 1
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(ch))
            else:
                body = pattern[i + 1:end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end
        else:
            out.append(re.escape(ch))
        i += 1
    return "".join(out)


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> Pattern:
    alternatives = [_translate(p) for p in expand_braces(pattern)]
    return re.compile(r"\A(?:" + "|".join(alternatives) + r")\Z")


def glob_match(path: str, pattern: str, match_base: bool = True) -> bool:
    """Return True if ``path`` matches ``pattern``. Never raises."""
    if not path or not pattern:
        return False
    path = path.replace("\\", "/")
    if path.startswith("./"):
        path = path[2:]
    try:
        regex = compile_glob(pattern)
    except re.error:
        return False
    if regex.match(path):
        return True
    if match_base and "/" not in pattern:
        return bool(regex.match(path.rsplit("/", 1)[-1]))
    return False
