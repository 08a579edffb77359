"""Run verification steps sequentially and record per-step outcomes."""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.config import ChecksConfig
from ..utils.subprocess_utils import SubprocessError, run_command
from .capabilities import CapabilityMap
from .models import CHECK_ORDER, CheckKind, CheckResult, TestDiscoveryResult
from .test_discovery import (
    E2EMode,
    build_e2e_command,
    build_selective_test_command,
    determine_e2e_mode,
)

logger = logging.getLogger(__name__)


@dataclass
class CheckOptions:
    """What to run and how."""
    test_mode: str = "full"  # full | quick | skip
    test_discovery: Optional[TestDiscoveryResult] = None
    skip_build: bool = False
    skip_e2e: bool = False
    e2e_tags: List[str] = field(default_factory=list)
    e2e_mode: Optional[E2EMode] = None
    checks_config: ChecksConfig = field(default_factory=ChecksConfig)


@dataclass
class PlannedCheck:
    kind: CheckKind
    command: str


def plan_checks(capabilities: CapabilityMap, options: CheckOptions) -> Tuple[List[PlannedCheck], List[str]]:
    """Resolve the command for each step.

    Returns planned steps in execution order and the labels of steps that
    will not run, either because they were skipped or are unavailable.
    """
    planned: List[PlannedCheck] = []
    skipped: List[str] = []
    config = options.checks_config

    for kind in CHECK_ORDER:
        capability = capabilities.get(kind)
        command: Optional[str] = None

        if kind == CheckKind.BUILD and options.skip_build:
            command = None
        elif kind == CheckKind.E2E:
            if not options.skip_e2e and capability is not None and capability.available:
                mode = options.e2e_mode or determine_e2e_mode(options.test_mode, bool(options.e2e_tags))
                command = build_e2e_command(
                    capability.command,
                    capability.framework,
                    options.e2e_tags,
                    mode,
                    config.e2e_grep_template,
                )
        elif kind == CheckKind.TEST:
            if options.test_mode != "skip" and capability is not None and capability.available:
                command = capability.command
                if options.test_mode == "quick" and options.test_discovery is not None:
                    command = build_selective_test_command(
                        capability.command,
                        capability.framework,
                        options.test_discovery,
                        config,
                    )
        elif capability is not None and capability.available:
            command = capability.command

        if command:
            planned.append(PlannedCheck(kind=kind, command=command))
        else:
            skipped.append(kind.label)

    return planned, skipped


def _tail(text: str, limit: int) -> str:
    if limit <= 0 or len(text) <= limit:
        return text
    return "..." + text[-limit:]


def run_check(cwd: Path, planned: PlannedCheck, timeout: int, output_tail_chars: int = 4000) -> CheckResult:
    """Run one step. Non-zero exit, timeout or a spawn error all count as failure."""
    logger.info(f"Running {planned.kind.value}: {planned.command}")
    start = time.monotonic()
    try:
        result = run_command(planned.command, cwd=cwd, check=False, timeout=timeout, shell=True)
        success = result.returncode == 0
        output = (result.stdout or "") + (result.stderr or "")
        exit_code = result.returncode
        timed_out = False
    except SubprocessError as e:
        success = False
        output = (e.stdout or "") + (e.stderr or "") + f"\n{e}"
        exit_code = None
        timed_out = e.timed_out
    except OSError as e:
        success = False
        output = f"Failed to start command: {e}"
        exit_code = None
        timed_out = False
    duration_ms = int((time.monotonic() - start) * 1000)

    if success:
        logger.info(f"{planned.kind.value} passed in {duration_ms}ms")
    else:
        logger.warning(f"{planned.kind.value} failed in {duration_ms}ms (exit={exit_code}, timed_out={timed_out})")

    return CheckResult(
        kind=planned.kind,
        success=success,
        duration_ms=duration_ms,
        command=planned.command,
        output=_tail(output, output_tail_chars),
        exit_code=exit_code,
        timed_out=timed_out,
    )


def run_checks(
    cwd: Path,
    capabilities: CapabilityMap,
    options: Optional[CheckOptions] = None,
) -> List[CheckResult]:
    """Run every planned step in order: typecheck, lint, test, build, e2e.

    A failing step never stops later steps. Steps share build caches and
    toolchains, so they run one at a time.
    """
    options = options or CheckOptions()
    planned, skipped = plan_checks(capabilities, options)
    if skipped:
        logger.debug(f"Not running: {', '.join(skipped)}")

    config = options.checks_config
    return [run_check(Path(cwd), step, config.timeout, config.output_tail_chars) for step in planned]
