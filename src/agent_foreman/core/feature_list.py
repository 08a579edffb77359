"""Load, query and update ai/feature_list.json."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from ..utils.atomic_io import atomic_write_model
from .feature import (
    Feature,
    FeatureList,
    FeatureListMetadata,
    FeatureStatus,
    FeatureVerificationSummary,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

FEATURE_LIST_PATH = Path("ai") / "feature_list.json"


class FeatureListError(Exception):
    """Raised when the feature list file cannot be parsed."""


class FeatureNotFoundError(KeyError):
    """Raised when a feature id is not present in the list."""

    def __init__(self, feature_id: str):
        self.feature_id = feature_id
        super().__init__(f"Feature not found: {feature_id}")

    def __str__(self) -> str:
        return self.args[0]


def feature_list_path(cwd: Path) -> Path:
    return Path(cwd) / FEATURE_LIST_PATH


def load_feature_list(cwd: Path) -> Optional[FeatureList]:
    """Read the feature list, returning None when the project has none yet.

    Raises:
        FeatureListError: If the file exists but is malformed
    """
    path = feature_list_path(cwd)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return FeatureList.model_validate(data)
    except (UnicodeDecodeError, OSError) as e:
        raise FeatureListError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise FeatureListError(f"Invalid JSON in {path}: {e}") from e
    except ValidationError as e:
        raise FeatureListError(f"Invalid feature list in {path}: {e}") from e


def save_feature_list(cwd: Path, feature_list: FeatureList) -> None:
    """Write the feature list atomically and bump ``updatedAt``."""
    feature_list.metadata.updated_at = utc_now_iso()
    atomic_write_model(feature_list_path(cwd), feature_list)
    logger.debug(f"Saved {len(feature_list.features)} features to {feature_list_path(cwd)}")


def create_empty_feature_list(goal: str) -> FeatureList:
    return FeatureList(features=[], metadata=FeatureListMetadata(project_goal=goal))


def find_feature_by_id(features: List[Feature], feature_id: str) -> Optional[Feature]:
    return next((f for f in features if f.id == feature_id), None)


def select_next_feature(features: List[Feature]) -> Optional[Feature]:
    """Pick the next feature to work on.

    ``needs_review`` outranks ``failing``; within a status, lower priority
    numbers come first and ties keep file order.
    """
    status_rank = {FeatureStatus.NEEDS_REVIEW.value: 0, FeatureStatus.FAILING.value: 1}
    candidates = [
        (status_rank[f.status], f.priority, index, f)
        for index, f in enumerate(features)
        if f.status in status_rank
    ]
    if not candidates:
        return None
    candidates.sort(key=lambda item: item[:3])
    return candidates[0][3]


def update_feature_status(
    features: List[Feature],
    feature_id: str,
    status: FeatureStatus,
    notes: Optional[str] = None,
) -> List[Feature]:
    """Return a new list with one feature's status (and optionally notes) changed."""
    if find_feature_by_id(features, feature_id) is None:
        raise FeatureNotFoundError(feature_id)
    updated = []
    for feature in features:
        if feature.id == feature_id:
            changes = {"status": FeatureStatus(status).value}
            if notes is not None:
                changes["notes"] = notes
            feature = feature.model_copy(update=changes)
        updated.append(feature)
    return updated


def update_feature_verification(
    features: List[Feature],
    feature_id: str,
    verification: FeatureVerificationSummary,
) -> List[Feature]:
    if find_feature_by_id(features, feature_id) is None:
        raise FeatureNotFoundError(feature_id)
    return [
        f.model_copy(update={"verification": verification}) if f.id == feature_id else f
        for f in features
    ]


def add_feature(feature_list: FeatureList, feature: Feature) -> FeatureList:
    if find_feature_by_id(feature_list.features, feature.id) is not None:
        raise ValueError(f"Feature already exists: {feature.id}")
    feature_list.features.append(feature)
    return feature_list


def merge_features(existing: List[Feature], discovered: List[Feature]) -> List[Feature]:
    """Append discovered features whose ids are not already tracked."""
    known = {f.id for f in existing}
    merged = list(existing)
    for feature in discovered:
        if feature.id not in known:
            merged.append(feature)
            known.add(feature.id)
    return merged


def get_feature_stats(features: List[Feature]) -> Dict[str, int]:
    """Count features per status; every status is present in the result."""
    stats = {status.value: 0 for status in FeatureStatus}
    for feature in features:
        stats[FeatureStatus(feature.status).value] += 1
    return stats


def get_completion_percentage(features: List[Feature]) -> int:
    """Percentage of non-deprecated features that are passing."""
    active = [f for f in features if f.status != FeatureStatus.DEPRECATED]
    if not active:
        return 0
    passing = sum(1 for f in active if f.status == FeatureStatus.PASSING)
    return round(passing / len(active) * 100)
