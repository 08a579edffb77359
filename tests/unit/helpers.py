"""Builders shared across unit tests."""

import subprocess
from pathlib import Path

from agent_foreman.core.feature import Feature


def make_feature(feature_id: str, **kwargs) -> Feature:
    """Build a Feature with sensible defaults for tests."""
    kwargs.setdefault("description", f"Feature {feature_id}")
    kwargs.setdefault("module", feature_id.split(".")[0])
    return Feature(id=feature_id, **kwargs)


def completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    """Fake subprocess result."""
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def touch(root: Path, *paths: str) -> None:
    for rel in paths:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")
