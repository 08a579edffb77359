"""Tests for feature list persistence and queries."""

import json

import pytest

from agent_foreman.core.feature import FeatureStatus, FeatureVerificationSummary
from agent_foreman.core.feature_list import (
    FeatureListError,
    FeatureNotFoundError,
    add_feature,
    create_empty_feature_list,
    find_feature_by_id,
    get_completion_percentage,
    get_feature_stats,
    load_feature_list,
    merge_features,
    save_feature_list,
    select_next_feature,
    update_feature_status,
    update_feature_verification,
)
from tests.unit.helpers import make_feature


class TestPersistence:
    def test_missing_file_returns_none(self, project):
        assert load_feature_list(project) is None

    def test_round_trip_uses_camel_case_on_disk(self, project):
        feature_list = create_empty_feature_list("Ship it")
        add_feature(feature_list, make_feature("auth.login", depends_on=["core.setup"], e2e_tags=["@auth"]))

        save_feature_list(project, feature_list)

        raw = json.loads((project / "ai" / "feature_list.json").read_text())
        assert raw["metadata"]["projectGoal"] == "Ship it"
        assert raw["metadata"]["tddMode"] == "recommended"
        assert raw["features"][0]["dependsOn"] == ["core.setup"]
        assert raw["features"][0]["e2eTags"] == ["@auth"]
        assert load_feature_list(project).features[0].depends_on == ["core.setup"]

    def test_save_bumps_updated_at(self, project):
        feature_list = create_empty_feature_list("goal")
        feature_list.metadata.updated_at = "2000-01-01T00:00:00Z"

        save_feature_list(project, feature_list)

        assert load_feature_list(project).metadata.updated_at != "2000-01-01T00:00:00Z"

    def test_invalid_json_raises(self, project):
        (project / "ai" / "feature_list.json").write_text("{")

        with pytest.raises(FeatureListError):
            load_feature_list(project)

    def test_undecodable_bytes_raise(self, project):
        (project / "ai" / "feature_list.json").write_bytes(b'{"features": [], "metadata": {"projectGoal": "\xff"}}')

        with pytest.raises(FeatureListError, match="Cannot read"):
            load_feature_list(project)

    def test_invalid_shape_raises(self, project):
        (project / "ai" / "feature_list.json").write_text(json.dumps({"features": [{"id": "x"}]}))

        with pytest.raises(FeatureListError):
            load_feature_list(project)


class TestSelectNextFeature:
    def test_needs_review_before_failing(self):
        features = [
            make_feature("a", priority=1, status="failing"),
            make_feature("b", priority=5, status="needs_review"),
        ]

        assert select_next_feature(features).id == "b"

    def test_priority_then_file_order(self):
        features = [
            make_feature("a", priority=3),
            make_feature("b", priority=1),
            make_feature("c", priority=1),
        ]

        assert select_next_feature(features).id == "b"

    def test_nothing_left(self):
        features = [make_feature("a", status="passing"), make_feature("b", status="blocked")]

        assert select_next_feature(features) is None


class TestUpdates:
    def test_update_status_returns_new_list(self):
        features = [make_feature("a"), make_feature("b")]

        updated = update_feature_status(features, "a", FeatureStatus.PASSING, notes="done")

        assert updated[0].status == "passing"
        assert updated[0].notes == "done"
        assert features[0].status == "failing"

    def test_update_unknown_feature(self):
        with pytest.raises(FeatureNotFoundError, match="Feature not found: zzz"):
            update_feature_status([make_feature("a")], "zzz", FeatureStatus.PASSING)

    def test_update_verification(self):
        summary = FeatureVerificationSummary(verified_at="2025-01-01T00:00:00Z", verdict="pass")

        updated = update_feature_verification([make_feature("a")], "a", summary)

        assert updated[0].verification.verdict == "pass"

    def test_add_duplicate_raises(self):
        feature_list = create_empty_feature_list("goal")
        add_feature(feature_list, make_feature("a"))

        with pytest.raises(ValueError):
            add_feature(feature_list, make_feature("a"))

    def test_merge_keeps_existing(self):
        existing = [make_feature("a", description="original")]
        discovered = [make_feature("a", description="new"), make_feature("b")]

        merged = merge_features(existing, discovered)

        assert [f.id for f in merged] == ["a", "b"]
        assert merged[0].description == "original"

    def test_find_feature_by_id(self):
        features = [make_feature("a"), make_feature("b")]

        assert find_feature_by_id(features, "b").id == "b"
        assert find_feature_by_id(features, "c") is None


class TestStats:
    def test_stats_include_every_status(self):
        stats = get_feature_stats([make_feature("a", status="passing"), make_feature("b")])

        assert stats["passing"] == 1
        assert stats["failing"] == 1
        assert stats["deprecated"] == 0
        assert set(stats) == {s.value for s in FeatureStatus}

    def test_completion_ignores_deprecated(self):
        features = [
            make_feature("a", status="passing"),
            make_feature("b"),
            make_feature("c", status="deprecated"),
        ]

        assert get_completion_percentage(features) == 50

    def test_completion_empty(self):
        assert get_completion_percentage([]) == 0
