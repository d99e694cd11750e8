"""Tests for data models module.

Tests the storage data structures: Commit and RepoConfig. Covers
content ids, serialization, file I/O (save/load), and factory
methods.

Execution Context:
    Test module - run via pytest

Dependencies:
    - pytest: Test framework
    - repoast_core.models: Module under test
"""
from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

import pytest

from repoast_core.models import COMMIT_ID_LENGTH, Commit, Remote, RepoConfig


# ---- Fixtures ------------------------------------------------------------------------------------------------


@pytest.fixture
def sample_commit() -> Commit:
    """Create a sample commit for testing."""
    return Commit(
        id="abc123def456",
        message="Initial commit",
        author="Test User",
        timestamp="2026-01-30T12:00:00",
        parents=["000111222333"],
        tree={"README.md": "hello world"},
    )


@pytest.fixture
def sample_config() -> RepoConfig:
    """Create a sample config for testing."""
    return RepoConfig(
        user_name="Test User",
        user_email="test@example.com",
        remotes={"origin": Remote(name="origin", url="/repos/a")},
    )


# ---- Commit Tests --------------------------------------------------------------------------------------------


class TestCommit:
    """Tests for Commit model."""

    def test_create_sets_timestamp(self) -> None:
        """Test factory fills in an ISO timestamp and computes the id."""
        commit = Commit.create(message="msg", author="me")

        datetime.fromisoformat(commit.timestamp)
        assert commit.parents == []
        assert commit.tree == {}
        assert commit.id == Commit.content_id("msg", {}, [])
        assert len(commit.id) == COMMIT_ID_LENGTH

    def test_create_copies_inputs(self) -> None:
        """Test factory does not share caller's containers."""
        parents = ["p1"]
        tree = {"a": "1"}

        commit = Commit.create("msg", "me", parents=parents, tree=tree)
        parents.append("p2")
        tree["b"] = "2"

        assert commit.parents == ["p1"]
        assert commit.tree == {"a": "1"}

    def test_content_id_ignores_author(self) -> None:
        """Test author and timestamp do not change the id."""
        first = Commit.create("msg", "me", tree={"a": "1"})
        second = Commit.create("msg", "you", tree={"a": "1"})

        assert first.id == second.id

    def test_salt_changes_id(self) -> None:
        """Test identical content with different salts gets different ids."""
        plain = Commit.content_id("msg", {"a": "1"}, [])
        salted = Commit.content_id("msg", {"a": "1"}, [], salt="2")

        assert plain != salted
        assert salted == Commit.content_id("msg", {"a": "1"}, [], salt="2")
        assert salted != Commit.content_id("msg", {"a": "1"}, [], salt="3")

    def test_round_trip_dict(self, sample_commit: Commit) -> None:
        """Test asdict/from_dict round trip."""
        data = asdict(sample_commit)

        assert data["parents"] == ["000111222333"]
        assert Commit.from_dict(data) == sample_commit

    def test_from_dict_without_salt(self, sample_commit: Commit) -> None:
        """Test commit files without a salt load with an empty one."""
        data = asdict(sample_commit)
        del data["salt"]

        assert Commit.from_dict(data).salt == ""

    def test_save_and_load(self, sample_commit: Commit, temp_dir: Path) -> None:
        """Test saving to and loading from a commits directory."""
        path = sample_commit.save(temp_dir)

        assert path == temp_dir / "abc123def456.json"
        assert Commit.load(path) == sample_commit

    def test_load_invalid_file(self, temp_dir: Path) -> None:
        """Test loading a corrupt commit raises RuntimeError."""
        path = temp_dir / "bad.json"
        path.write_text("not json")

        with pytest.raises(RuntimeError, match="Failed to load commit"):
            Commit.load(path)


# ---- RepoConfig Tests ----------------------------------------------------------------------------------------


class TestRepoConfig:
    """Tests for RepoConfig model."""

    def test_defaults(self) -> None:
        """Test default configuration."""
        config = RepoConfig()

        assert config.version == "1.0"
        assert config.user_name == ""
        assert config.remotes == {}

    def test_to_dict_nests_remotes(self, sample_config: RepoConfig) -> None:
        """Test remotes are serialized by name."""
        data = sample_config.to_dict()

        assert data["remotes"] == {"origin": {"name": "origin", "url": "/repos/a"}}

    def test_from_dict_tolerates_missing_fields(self) -> None:
        """Test older configs without remotes load."""
        config = RepoConfig.from_dict({"user_name": "x"})

        assert config.user_name == "x"
        assert config.remotes == {}

    def test_save_and_load(self, sample_config: RepoConfig, temp_dir: Path) -> None:
        """Test saving and loading config.json."""
        path = temp_dir / "config.json"
        sample_config.save(path)

        assert json.loads(path.read_text())["user_email"] == "test@example.com"
        assert RepoConfig.load(path) == sample_config

    def test_load_missing_file(self, temp_dir: Path) -> None:
        """Test loading a missing config raises RuntimeError."""
        with pytest.raises(RuntimeError, match="Failed to load config"):
            RepoConfig.load(temp_dir / "missing.json")
