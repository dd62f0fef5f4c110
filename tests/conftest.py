"""Shared fixtures for all tests."""

import os
from unittest.mock import MagicMock

import pytest

from immutable_guard.github import Release, ReleaseNotFound
from immutable_guard.parser import extract_references


FIXTURES_WORKSPACE = os.path.join(os.path.dirname(__file__), "fixtures")
FIXTURES_DIR = os.path.join(FIXTURES_WORKSPACE, ".github/workflows")


@pytest.fixture(autouse=True)
def clean_actions_env(monkeypatch):
    """Keep the real GitHub Actions environment out of the tests."""
    for name in list(os.environ):
        if name.startswith("INPUT_"):
            monkeypatch.delenv(name, raising=False)
    for name in ("GITHUB_OUTPUT", "GITHUB_STEP_SUMMARY", "GITHUB_ACTIONS", "GITHUB_WORKSPACE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fixtures_workspace():
    """Workspace root containing .github/workflows fixtures."""
    return FIXTURES_WORKSPACE


@pytest.fixture
def fixtures_dir():
    """Path to the fixtures workflow directory."""
    return FIXTURES_DIR


@pytest.fixture
def ci_references():
    """References parsed from the ci.yml fixture."""
    return extract_references(os.path.join(FIXTURES_DIR, "ci.yml"))


@pytest.fixture
def lookup():
    """A release lookup that finds no releases unless told otherwise."""
    mock = MagicMock()
    mock.get_release_by_tag.return_value = ReleaseNotFound()
    return mock


@pytest.fixture
def immutable_lookup():
    """A release lookup where every tag has an immutable release."""
    mock = MagicMock()
    mock.get_release_by_tag.side_effect = lambda owner, repo, tag: Release(tag=tag, immutable=True)
    return mock

