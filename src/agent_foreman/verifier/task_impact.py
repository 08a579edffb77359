"""Map changed files to the features they probably affect.

Matching is heuristic and only informs: false positives and misses are
acceptable, and every status (including passing and deprecated) is
considered.
"""

import logging
import posixpath
import re
from pathlib import Path
from typing import List, Optional, Set

from ..core.feature import Feature
from ..core.feature_list import load_feature_list
from ..utils.globs import glob_match
from .models import ImpactConfidence, TaskImpact

logger = logging.getLogger(__name__)

_TEST_PREFIXES = ("tests/", "test/", "__tests__/", "spec/")
_TEST_SUFFIX_RE = re.compile(r"\.(test|spec)(\.[^./]+|\.\*)$")

_WORD_RE = re.compile(r"[a-z0-9]+")
_MIN_KEYWORD_LEN = 4
_STOPWORDS = {
    "able", "add", "adds", "allow", "allows", "also", "from", "have", "into",
    "should", "support", "that", "their", "them", "then", "there", "this",
    "user", "users", "when", "which", "will", "with", "without",
}
_GENERIC_SEGMENTS = {"src", "lib", "app", "pkg", "test", "tests", "spec", "index", "main", "utils"}

_CONFIDENCE_ORDER = {
    ImpactConfidence.HIGH: 0,
    ImpactConfidence.MEDIUM: 1,
    ImpactConfidence.LOW: 2,
}


def source_glob_for_test_pattern(test_pattern: str) -> Optional[str]:
    """Guess the source glob a test glob covers.

    ``tests/auth/**/*.test.ts`` -> ``src/auth/**/*.ts``
    """
    if not test_pattern:
        return None
    pattern = test_pattern.replace("\\", "/")
    for prefix in _TEST_PREFIXES:
        if pattern.startswith(prefix):
            pattern = pattern[len(prefix):]
            break
    pattern = _TEST_SUFFIX_RE.sub(lambda m: m.group(2), pattern)
    base = posixpath.basename(pattern)
    if base.startswith("test_") and base.endswith(".py"):
        pattern = posixpath.join(posixpath.dirname(pattern), base[len("test_"):])
    return f"src/{pattern}"


def _path_segments(path: str) -> Set[str]:
    stem, _ = posixpath.splitext(path.lower())
    return {seg for seg in re.split(r"[/._\-]+", stem) if seg} - _GENERIC_SEGMENTS


def _description_keywords(description: str) -> List[str]:
    words = _WORD_RE.findall((description or "").lower())
    return [w for w in dict.fromkeys(words) if len(w) >= _MIN_KEYWORD_LEN and w not in _STOPWORDS]


def _in_module(path: str, module: str) -> bool:
    if glob_match(path, f"**/{module}/**/*", match_base=False):
        return True
    directories = path.split("/")[:-1]
    return module in directories


def match_feature_to_files(feature: Feature, changed_files: List[str]) -> Optional[TaskImpact]:
    """First matching strategy wins: affectedBy, test pattern, module, keyword."""
    if feature.affected_by:
        matched = []
        first_pattern = None
        for path in changed_files:
            for pattern in feature.affected_by:
                if glob_match(path, pattern):
                    matched.append(path)
                    first_pattern = first_pattern or pattern
                    break
        if matched:
            return TaskImpact(
                task_id=feature.id,
                reason=f"changed file {matched[0]} matches affectedBy pattern {first_pattern}",
                confidence=ImpactConfidence.HIGH,
                matched_files=matched,
            )

    test_pattern = feature.unit_test_pattern
    source_pattern = source_glob_for_test_pattern(test_pattern) if test_pattern else None
    if source_pattern:
        matched = [p for p in changed_files if glob_match(p, source_pattern)]
        if matched:
            return TaskImpact(
                task_id=feature.id,
                reason=f"changed file {matched[0]} matches test pattern {test_pattern}",
                confidence=ImpactConfidence.MEDIUM,
                matched_files=matched,
            )

    module = (feature.module or "").strip("/")
    if module:
        matched = [p for p in changed_files if _in_module(p, module)]
        if matched:
            return TaskImpact(
                task_id=feature.id,
                reason=f"changed file {matched[0]} is under module {module}",
                confidence=ImpactConfidence.LOW,
                matched_files=matched,
            )

    keywords = _description_keywords(feature.description)
    if keywords:
        matched = []
        first_keyword = None
        for path in changed_files:
            segments = _path_segments(path)
            hit = next((k for k in keywords if k in segments), None)
            if hit:
                matched.append(path)
                first_keyword = first_keyword or hit
        if matched:
            return TaskImpact(
                task_id=feature.id,
                reason=f"path {matched[0]} matches keyword '{first_keyword}' in description",
                confidence=ImpactConfidence.LOW,
                matched_files=matched,
            )

    return None


def map_files_to_tasks(features: List[Feature], changed_files: List[str]) -> List[TaskImpact]:
    """One impact per feature id, ranked high -> medium -> low, stable within a rank."""
    impacts: List[TaskImpact] = []
    seen: Set[str] = set()
    if not changed_files:
        return impacts

    for feature in features:
        if feature.id in seen:
            continue
        impact = match_feature_to_files(feature, changed_files)
        if impact is not None:
            seen.add(feature.id)
            impacts.append(impact)

    impacts.sort(key=lambda i: _CONFIDENCE_ORDER[ImpactConfidence(i.confidence)])
    return impacts


def get_task_impact(cwd: Path, changed_files: List[str]) -> List[TaskImpact]:
    """Impacted features for a ChangeSet, read from ai/feature_list.json."""
    feature_list = load_feature_list(cwd)
    if feature_list is None or not feature_list.features:
        return []
    impacts = map_files_to_tasks(feature_list.features, changed_files)
    logger.debug(f"{len(impacts)} feature(s) impacted by {len(changed_files)} changed file(s)")
    return impacts
