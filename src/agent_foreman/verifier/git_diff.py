"""Read changed files and diff text from git."""

import logging
from pathlib import Path
from typing import List, Optional

from ..utils.subprocess_utils import SubprocessError, run_git_command

logger = logging.getLogger(__name__)

NOT_A_REPO_MARKERS = ("not a git repository", "not a git repo")


class GitError(Exception):
    """Raised when git state cannot be read for reasons other than 'no repository'."""


def _split_names(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def is_git_repository(cwd: Path) -> bool:
    """True if ``cwd`` is inside a git work tree.

    Raises:
        GitError: If git cannot be executed or the directory is unreadable
    """
    if not Path(cwd).is_dir():
        raise GitError(f"unable to read working tree: {cwd} is not a directory")
    try:
        result = run_git_command(["rev-parse", "--is-inside-work-tree"], cwd=cwd, check=False)
    except FileNotFoundError as e:
        raise GitError("git executable not found on PATH") from e
    except (SubprocessError, OSError) as e:
        raise GitError(f"unable to read working tree at {cwd}: {e}") from e

    if result.returncode == 0:
        return result.stdout.strip() == "true"
    stderr = (result.stderr or "").lower()
    if any(marker in stderr for marker in NOT_A_REPO_MARKERS):
        return False
    raise GitError(f"git rev-parse failed in {cwd}: {result.stderr.strip()}")


def get_changed_files(cwd: Path) -> List[str]:
    """Changed paths relative to the last commit.

    Merges staged, unstaged and last-commit changes, keeping first-seen
    order without duplicates. Returns ``[]`` when ``cwd`` is not a
    repository or nothing changed.

    Raises:
        GitError: If git fails for any other reason
    """
    if not is_git_repository(cwd):
        logger.debug(f"{cwd} is not a git repository; no changed files")
        return []

    seen = {}
    try:
        staged = run_git_command(["diff", "--cached", "--name-only"], cwd=cwd).stdout
        unstaged = run_git_command(["diff", "--name-only"], cwd=cwd).stdout
        # A repository with a single commit has no HEAD~1
        last_commit = run_git_command(["diff", "HEAD~1", "HEAD", "--name-only"], cwd=cwd, check=False)
    except SubprocessError as e:
        raise GitError(f"unable to read working tree changes: {e}") from e
    committed = last_commit.stdout if last_commit.returncode == 0 else ""

    for output in (staged, unstaged, committed):
        for name in _split_names(output):
            seen.setdefault(name, None)

    files = list(seen)
    logger.debug(f"Detected {len(files)} changed file(s)")
    return files


def get_diff_text(cwd: Path, max_chars: Optional[int] = None) -> str:
    """Diff of the working tree against HEAD. Best-effort: returns "" on failure."""
    try:
        result = run_git_command(["diff", "HEAD"], cwd=cwd, timeout=60)
    except (SubprocessError, OSError) as e:
        logger.debug(f"Diff unavailable, continuing with empty diff: {e}")
        return ""
    diff = result.stdout or ""
    if max_chars is not None and len(diff) > max_chars:
        diff = diff[:max_chars] + f"\n... [diff truncated, {len(diff) - max_chars} more characters]"
    return diff


def get_head_commit(cwd: Path) -> Optional[str]:
    try:
        result = run_git_command(["rev-parse", "HEAD"], cwd=cwd, check=False)
    except (SubprocessError, OSError):
        return None
    return result.stdout.strip() if result.returncode == 0 else None
