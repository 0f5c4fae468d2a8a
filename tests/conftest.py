"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration). Git runs with
the system and global configuration disabled so that hooks, signing or
templates from the developer's machine cannot leak into test repositories.
"""

import pytest

from tests.helpers.git_test_utils import TEST_AUTHOR_EMAIL, TEST_AUTHOR_NAME
from wikistore.pages.store import PageStore
from wikistore.repository.git_repository import GitRepository


@pytest.fixture(autouse=True)
def isolated_git_config(monkeypatch, tmp_path_factory):
    """Run git without the user's system/global configuration."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    for var in ("WIKIPATH", "GIT_USERNAME", "GIT_EMAIL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def wiki_root(tmp_path):
    """Path of a not yet initialized wiki directory."""
    return tmp_path / "wiki"


@pytest.fixture
def repo(wiki_root):
    """Freshly initialized, empty wiki repository."""
    return GitRepository.initialize(str(wiki_root))


@pytest.fixture
def store():
    """Page store committing as the test identity."""
    return PageStore(TEST_AUTHOR_NAME, TEST_AUTHOR_EMAIL)
