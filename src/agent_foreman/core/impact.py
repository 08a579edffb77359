"""Dependency impact analysis between features."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from .feature import Feature, FeatureStatus


class ImpactAction(str, Enum):
    MARK_NEEDS_REVIEW = "mark_needs_review"
    MARK_DEPRECATED = "mark_deprecated"
    UPDATE_NOTES = "update_notes"


@dataclass
class ImpactRecommendation:
    feature_id: str
    action: ImpactAction
    reason: str


@dataclass
class ImpactResult:
    directly_affected: List[Feature] = field(default_factory=list)
    potentially_affected: List[Feature] = field(default_factory=list)
    recommendations: List[ImpactRecommendation] = field(default_factory=list)


def analyze_impact(features: List[Feature], changed_id: str, changed_module: str) -> ImpactResult:
    """Find features affected by a change to ``changed_id``.

    Passing direct dependents are flagged for review. Passing features in
    the same module only get a note.
    """
    directly = [
        f for f in features
        if changed_id in f.depends_on and f.status != FeatureStatus.DEPRECATED
    ]
    direct_ids = {f.id for f in directly}
    potentially = [
        f for f in features
        if f.module == changed_module
        and f.id != changed_id
        and f.status != FeatureStatus.DEPRECATED
        and f.id not in direct_ids
    ]

    recommendations = []
    for feature in directly:
        if feature.status == FeatureStatus.PASSING:
            recommendations.append(ImpactRecommendation(
                feature_id=feature.id,
                action=ImpactAction.MARK_NEEDS_REVIEW,
                reason=f"Depends on changed feature {changed_id}",
            ))
    for feature in potentially:
        if feature.status == FeatureStatus.PASSING:
            recommendations.append(ImpactRecommendation(
                feature_id=feature.id,
                action=ImpactAction.UPDATE_NOTES,
                reason=f"Same module as changed feature {changed_id}",
            ))

    return ImpactResult(
        directly_affected=directly,
        potentially_affected=potentially,
        recommendations=recommendations,
    )


def _append_note(existing: str, note: str) -> str:
    return f"{existing}; {note}" if existing else note


def apply_impact_recommendations(
    features: List[Feature],
    recommendations: List[ImpactRecommendation],
) -> List[Feature]:
    by_id: Dict[str, ImpactRecommendation] = {}
    for rec in recommendations:
        by_id.setdefault(rec.feature_id, rec)

    updated = []
    for feature in features:
        rec = by_id.get(feature.id)
        if rec is None:
            updated.append(feature)
            continue
        changes = {"notes": _append_note(feature.notes, rec.reason)}
        if rec.action == ImpactAction.MARK_NEEDS_REVIEW:
            changes["status"] = FeatureStatus.NEEDS_REVIEW.value
        elif rec.action == ImpactAction.MARK_DEPRECATED:
            changes["status"] = FeatureStatus.DEPRECATED.value
        updated.append(feature.model_copy(update=changes))
    return updated


def build_dependency_graph(features: List[Feature]) -> Dict[str, List[str]]:
    """Map each feature id to the ids of features that depend on it."""
    graph: Dict[str, List[str]] = {}
    for feature in features:
        graph.setdefault(feature.id, [])
        for dep_id in feature.depends_on:
            graph.setdefault(dep_id, []).append(feature.id)
    return graph


def find_affected_chain(
    graph: Dict[str, List[str]],
    start_id: str,
    visited: Optional[Set[str]] = None,
) -> List[str]:
    """Transitive dependents of ``start_id``; safe on cycles."""
    if visited is None:
        visited = set()
    if start_id in visited:
        return []
    visited.add(start_id)

    dependents = graph.get(start_id, [])
    chain = list(dependents)
    for dep in dependents:
        chain.extend(find_affected_chain(graph, dep, visited))
    return chain


def get_full_impact_chain(features: List[Feature], feature_id: str) -> List[str]:
    return find_affected_chain(build_dependency_graph(features), feature_id)


def would_create_circular_dependency(features: List[Feature], feature_id: str, new_dependency: str) -> bool:
    if feature_id == new_dependency:
        return True
    return new_dependency in get_full_impact_chain(features, feature_id)


def get_blocking_features(features: List[Feature], feature_id: str) -> List[Feature]:
    """Dependencies of ``feature_id`` that are not passing yet."""
    by_id = {f.id: f for f in features}
    feature = by_id.get(feature_id)
    if feature is None:
        return []
    return [
        by_id[dep_id] for dep_id in feature.depends_on
        if dep_id in by_id and by_id[dep_id].status != FeatureStatus.PASSING
    ]


def are_dependencies_satisfied(features: List[Feature], feature_id: str) -> bool:
    return not get_blocking_features(features, feature_id)


def get_ready_features(features: List[Feature]) -> List[Feature]:
    return [
        f for f in features
        if f.status == FeatureStatus.FAILING and are_dependencies_satisfied(features, f.id)
    ]


def sort_by_dependency_order(features: List[Feature]) -> List[Feature]:
    """Topological order, dependencies first. Cycles are broken where found."""
    by_id = {f.id: f for f in features}
    ordered: List[Feature] = []
    visited: Set[str] = set()
    visiting: Set[str] = set()

    def visit(feature: Feature) -> None:
        if feature.id in visited or feature.id in visiting:
            return
        visiting.add(feature.id)
        for dep_id in feature.depends_on:
            dep = by_id.get(dep_id)
            if dep is not None:
                visit(dep)
        visiting.discard(feature.id)
        visited.add(feature.id)
        ordered.append(feature)

    for feature in features:
        visit(feature)
    return ordered


def get_dependency_depth(features: List[Feature], feature_id: str) -> int:
    by_id = {f.id: f for f in features}
    cache: Dict[str, int] = {}

    def depth(fid: str, path: Set[str]) -> int:
        if fid in cache:
            return cache[fid]
        if fid in path:
            return 0
        feature = by_id.get(fid)
        if feature is None or not feature.depends_on:
            cache[fid] = 0
            return 0
        result = 1 + max(depth(dep, path | {fid}) for dep in feature.depends_on)
        cache[fid] = result
        return result

    return depth(feature_id, set())
