"""Verification pipeline: fast layered checks and feature-scoped full checks."""

from .full_check import FullCheckOptions, run_full_check
from .git_diff import GitError
from .layered_check import LayeredCheckOptions, run_layered_check
from .models import CheckKind, CheckResult, LayeredCheckResult, TaskImpact, TaskVerification

__all__ = [
    "CheckKind",
    "CheckResult",
    "FullCheckOptions",
    "GitError",
    "LayeredCheckOptions",
    "LayeredCheckResult",
    "TaskImpact",
    "TaskVerification",
    "run_full_check",
    "run_layered_check",
]
