"""Shared test fixtures for unit tests."""

import json
from pathlib import Path

import pytest

from agent_foreman.core.feature import FeatureList, FeatureListMetadata
from agent_foreman.core.feature_list import save_feature_list


@pytest.fixture
def project(tmp_path) -> Path:
    """Empty project with an ai/ directory."""
    (tmp_path / "ai").mkdir()
    return tmp_path


@pytest.fixture
def write_features(project):
    """Write ai/feature_list.json from a list of Features."""

    def _write(features, goal="Test project", tdd_mode="recommended") -> FeatureList:
        feature_list = FeatureList(
            features=list(features),
            metadata=FeatureListMetadata(project_goal=goal, tdd_mode=tdd_mode),
        )
        save_feature_list(project, feature_list)
        return feature_list

    return _write


@pytest.fixture
def write_package_json(project):
    def _write(scripts=None, dev_dependencies=None):
        data = {"name": "demo", "scripts": scripts or {}, "devDependencies": dev_dependencies or {}}
        (project / "package.json").write_text(json.dumps(data))

    return _write
