"""Run role analyzers over one requirement and fan their results back in."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel

from ..utils.atomic_io import atomic_write_model, atomic_write_text
from .aggregator import ALL_ROLES, RoleAggregator, UnifiedDocument
from .backend_engineer import BackendEngineerRole
from .frontend_engineer import FrontendEngineerRole
from .product_manager import ProductManagerRole
from .tester import TesterRole

logger = logging.getLogger(__name__)

ROLE_NAMES = {
    "pm": "Product Manager",
    "frontend": "Frontend Engineer",
    "backend": "Backend Engineer",
    "qa": "QA/Tester",
}

ANALYZERS = {
    "pm": ProductManagerRole,
    "frontend": FrontendEngineerRole,
    "backend": BackendEngineerRole,
    "qa": TesterRole,
}


@dataclass
class RoleOutcome:
    role: str
    success: bool
    output: Optional[BaseModel] = None
    error: Optional[str] = None


@dataclass
class MultiRoleResult:
    success: bool
    outcomes: List[RoleOutcome] = field(default_factory=list)
    unified_document: Optional[UnifiedDocument] = None
    error: Optional[str] = None

    @property
    def outputs(self) -> Dict[str, BaseModel]:
        return {o.role: o.output for o in self.outcomes if o.success}


def parse_roles_option(value: Optional[str]) -> List[str]:
    """``"all"`` or a comma list like ``"pm,qa"``; unknown names are dropped.

    Falls back to every role when nothing valid remains.
    """
    if not value or value == "all":
        return list(ALL_ROLES)
    requested = [r.strip().lower() for r in value.split(",")]
    roles = [r for r in dict.fromkeys(requested) if r in ALL_ROLES]
    return roles or list(ALL_ROLES)


async def _analyze_role(role: str, requirement: str) -> RoleOutcome:
    logger.debug(f"Analyzing as {ROLE_NAMES[role]}")
    try:
        output = await ANALYZERS[role]().analyze(requirement)
    except Exception as e:
        logger.warning(f"{ROLE_NAMES[role]} analysis failed: {e}")
        return RoleOutcome(role=role, success=False, error=str(e))
    return RoleOutcome(role=role, success=True, output=output)


async def run_multi_role_analysis(
    requirement: str,
    roles: Optional[List[str]] = None,
    parallel: bool = True,
) -> MultiRoleResult:
    """Analyze a requirement from each requested perspective.

    Every branch reports its own outcome; one failing role never cancels
    the others. The unified document is built only when all four roles
    succeed.
    """
    if not requirement or not requirement.strip():
        return MultiRoleResult(success=False, error="Requirement cannot be empty")

    roles = roles or list(ALL_ROLES)
    if parallel:
        outcomes = list(await asyncio.gather(*(_analyze_role(r, requirement) for r in roles)))
    else:
        outcomes = [await _analyze_role(r, requirement) for r in roles]

    failures = [o for o in outcomes if not o.success]
    result = MultiRoleResult(
        success=not failures,
        outcomes=outcomes,
        error="; ".join(f"{o.role}: {o.error}" for o in failures) or None,
    )

    outputs = result.outputs
    if all(role in outputs for role in ALL_ROLES):
        result.unified_document = RoleAggregator().aggregate(
            requirement,
            pm=outputs["pm"],
            frontend=outputs["frontend"],
            backend=outputs["backend"],
            qa=outputs["qa"],
        )
    return result


def save_analysis(result: MultiRoleResult, output_dir: Path) -> List[Path]:
    """Write each role's JSON plus the unified document. Returns written paths."""
    output_dir = Path(output_dir)
    written = []
    for role, output in result.outputs.items():
        path = output_dir / f"{role}.json"
        atomic_write_model(path, output)
        written.append(path)

    if result.unified_document is not None:
        json_path = output_dir / "unified.json"
        md_path = output_dir / "unified.md"
        atomic_write_model(json_path, result.unified_document)
        atomic_write_text(md_path, RoleAggregator.to_markdown(result.unified_document))
        written += [json_path, md_path]

    logger.info(f"Wrote {len(written)} requirement analysis files to {output_dir}")
    return written
