"""Shared test configuration and fixtures for repoast_core tests.

Provides:
- An autouse fixture that removes fixture temp directories after every
  test, the way test suites using the harness are expected to.
- Common fixtures reused across test modules.
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from repoast_core import test_util
from repoast_core.repository import Repository


@pytest.fixture(autouse=True)
def cleanup_fixture_dirs():
    """Release temp directories created through test_util."""
    yield
    test_util.cleanup()


@pytest.fixture
def temp_dir() -> Path:
    """Create temporary directory for repository tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def initialized_repo(temp_dir: Path) -> Repository:
    """Create and initialize a repository."""
    repo = Repository(temp_dir / "repo")
    repo.init(user_name="Test User")
    return repo


@pytest.fixture
def repo_with_commit(initialized_repo: Repository) -> Repository:
    """Create repository with one commit on master."""
    initialized_repo.write_file("README.md", "hello world")
    initialized_repo.stage("README.md")
    initialized_repo.create_commit("Initial commit")
    return initialized_repo
