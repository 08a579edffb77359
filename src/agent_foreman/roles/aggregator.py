"""Merge the four role analyses into one requirement document.

Conflicts are detected between what the frontend expects to call and what
the backend defines; traceability links connect user stories to page and
container components, frontend calls to backend endpoints, and acceptance
criteria to unit test cases.
"""

import re
from typing import List, Optional

from pydantic import Field

from ..core.feature import CamelModel, utc_now_iso
from .backend_engineer import BackendAnalysisResult
from .frontend_engineer import FrontendAnalysisResult
from .product_manager import PMAnalysisResult
from .tester import QAAnalysisResult

ALL_ROLES = ["pm", "frontend", "backend", "qa"]

_SEGMENT_RE = re.compile(r"/:?\w+")


class Conflict(CamelModel):
    roles: List[str]
    description: str
    resolution: Optional[str] = None


class ArtifactRef(CamelModel):
    type: str
    id: str


class TraceabilityLink(CamelModel):
    source: ArtifactRef
    target: ArtifactRef
    relationship: str


class UnifiedMetadata(CamelModel):
    generated_at: str = Field(default_factory=utc_now_iso)
    roles_included: List[str] = Field(default_factory=lambda: list(ALL_ROLES))
    version: str = "1.0.0"


class UnifiedDocument(CamelModel):
    original_requirement: str
    pm: PMAnalysisResult
    frontend: FrontendAnalysisResult
    backend: BackendAnalysisResult
    qa: QAAnalysisResult
    conflicts: List[Conflict] = Field(default_factory=list)
    traceability: List[TraceabilityLink] = Field(default_factory=list)
    metadata: UnifiedMetadata = Field(default_factory=UnifiedMetadata)
    summary: str = ""


def _normalize_endpoint(path: str) -> str:
    return _SEGMENT_RE.sub("/:id", path)


class RoleAggregator:
    """Combines role outputs into a UnifiedDocument."""

    def aggregate(
        self,
        requirement: str,
        pm: PMAnalysisResult,
        frontend: FrontendAnalysisResult,
        backend: BackendAnalysisResult,
        qa: QAAnalysisResult,
    ) -> UnifiedDocument:
        return UnifiedDocument(
            original_requirement=requirement,
            pm=pm,
            frontend=frontend,
            backend=backend,
            qa=qa,
            conflicts=self.detect_conflicts(frontend, backend),
            traceability=self.build_traceability(pm, frontend, backend, qa),
            summary=(
                f'Unified requirement analysis for: "{requirement}". '
                "This document contains specifications from Product Manager, Frontend Engineer, "
                "Backend Engineer, and QA perspectives."
            ),
        )

    def update_role(self, document: UnifiedDocument, role: str, output: CamelModel) -> UnifiedDocument:
        """Swap one role's output and refresh the generation timestamp."""
        if role not in ALL_ROLES:
            raise ValueError(f"Invalid role: {role}")
        metadata = document.metadata.model_copy(update={"generated_at": utc_now_iso()})
        return document.model_copy(update={role: output, "metadata": metadata})

    @staticmethod
    def detect_conflicts(frontend: FrontendAnalysisResult, backend: BackendAnalysisResult) -> List[Conflict]:
        backend_paths = {_normalize_endpoint(e.path) for e in backend.api_design.endpoints}
        conflicts = []
        for endpoint in frontend.api_integration.endpoints:
            if _normalize_endpoint(endpoint.path) not in backend_paths:
                conflicts.append(Conflict(
                    roles=["frontend", "backend"],
                    description=f"Frontend expects endpoint {endpoint.path} but backend doesn't define it",
                    resolution="Add endpoint to backend API design",
                ))
        return conflicts

    @staticmethod
    def build_traceability(
        pm: PMAnalysisResult,
        frontend: FrontendAnalysisResult,
        backend: BackendAnalysisResult,
        qa: QAAnalysisResult,
    ) -> List[TraceabilityLink]:
        links = []
        entry_points = [c for c in frontend.component_architecture.hierarchy if c.type in ("page", "container")]
        for story in pm.user_stories:
            for comp in entry_points:
                links.append(TraceabilityLink(
                    source=ArtifactRef(type="user_story", id=story.id),
                    target=ArtifactRef(type="component", id=comp.name),
                    relationship="implemented_by",
                ))

        backend_paths = {e.path for e in backend.api_design.endpoints}
        for endpoint in frontend.api_integration.endpoints:
            if endpoint.path in backend_paths:
                links.append(TraceabilityLink(
                    source=ArtifactRef(type="frontend_endpoint", id=endpoint.path),
                    target=ArtifactRef(type="backend_endpoint", id=endpoint.path),
                    relationship="calls",
                ))

        if qa.unit_test_cases:
            first_case = qa.unit_test_cases[0].description
            for criterion in pm.acceptance_criteria:
                links.append(TraceabilityLink(
                    source=ArtifactRef(type="criterion", id=criterion[:30]),
                    target=ArtifactRef(type="test", id=first_case),
                    relationship="verified_by",
                ))
        return links

    @staticmethod
    def to_markdown(document: UnifiedDocument) -> str:
        lines = [
            "# Unified Requirement Document",
            "",
            f"**Requirement:** {document.original_requirement}",
            "",
            f"**Generated:** {document.metadata.generated_at}",
            "",
            "---",
            "",
            "## Product Manager Analysis",
            "",
            "### User Stories",
        ]
        lines += [f"- As a {s.as_a}, I want {s.i_want}, so that {s.so_that}" for s in document.pm.user_stories]
        lines += ["", f"### Priority: {document.pm.priority.level}", ""]

        lines += ["## Frontend Engineer Analysis", "", "### Components"]
        lines += [f"- **{c.name}** ({c.type})" for c in document.frontend.component_architecture.hierarchy]
        lines.append("")

        lines += ["## Backend Engineer Analysis", "", "### API Endpoints"]
        lines += [f"- `{e.method} {e.path}`" for e in document.backend.api_design.endpoints]
        lines.append("")

        lines += ["## QA Analysis", "", "### Test Cases"]
        lines += [f"- {t.description}" for t in document.qa.unit_test_cases]
        lines.append("")

        if document.conflicts:
            lines += ["## Conflicts Detected", ""]
            lines += [f"- {c.description}" for c in document.conflicts]
            lines.append("")

        return "\n".join(lines)
