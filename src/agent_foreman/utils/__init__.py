"""Shared utility functions for agent-foreman."""

from .atomic_io import atomic_write_json, atomic_write_model, atomic_write_text
from .globs import glob_match
from .subprocess_utils import (
    SubprocessError,
    run_command,
    run_git_command,
)

__all__ = [
    # Atomic I/O
    "atomic_write_json",
    "atomic_write_model",
    "atomic_write_text",
    # Glob matching
    "glob_match",
    # Subprocess utilities
    "SubprocessError",
    "run_command",
    "run_git_command",
]
