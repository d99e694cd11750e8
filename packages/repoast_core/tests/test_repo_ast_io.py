"""Tests for writing RepoASTs to disk and reading them back.

Execution Context:
    Test module - run via pytest

Dependencies:
    - pytest: Test framework
    - repoast_core.repo_ast_io: Module under test
"""
from __future__ import annotations

from pathlib import Path

import pytest

from repoast_core import test_util
from repoast_core.identity import UrlMap
from repoast_core.repo_ast import AstCommit
from repoast_core.repo_ast import RepoAST
from repoast_core.repo_ast_io import apply_changes
from repoast_core.repo_ast_io import diff_trees
from repoast_core.repo_ast_io import read_rast
from repoast_core.repo_ast_io import write_multi_rast
from repoast_core.repo_ast_io import write_rast
from repoast_core.repo_ast_util import map_commits_and_urls
from repoast_core.shorthand import parse_multi_repo_shorthand
from repoast_core.shorthand import parse_repo_shorthand


def _round_trip(text: str, path: Path) -> tuple[RepoAST, RepoAST]:
    expected = parse_repo_shorthand(text)
    written = write_rast(expected, path)
    actual = map_commits_and_urls(read_rast(written.repo), written.commit_map, UrlMap())
    return actual, expected


# ---- Tree Helper Tests --------------------------------------------------------------------------------------


class TestTreeHelpers:
    """Tests for apply_changes and diff_trees."""

    def test_apply_changes(self) -> None:
        """Test additions, modifications and deletions."""
        tree = {"a": "1", "b": "2"}

        result = apply_changes(tree, {"a": "9", "b": None, "c": "3"})

        assert result == {"a": "9", "c": "3"}
        assert tree == {"a": "1", "b": "2"}

    def test_delete_missing_path(self) -> None:
        """Test deleting an absent path is a no-op."""
        assert apply_changes({}, {"a": None}) == {}

    def test_diff_trees(self) -> None:
        """Test the delta between two trees."""
        changes = diff_trees({"a": "1", "b": "2", "c": "3"}, {"a": "1", "b": "x", "d": "4"})

        assert changes == {"b": "x", "c": None, "d": "4"}


# ---- Single Repository Tests --------------------------------------------------------------------------------


class TestWriteRast:
    """Tests for write_rast and read_rast."""

    @pytest.mark.parametrize(
        "text",
        [
            "S",
            "N",
            "S:C2-1;Br master=2",
            "S:C2-1;C3-1 README.md,x=y;C4-2,3;Bmaster=4;Bside=3",
            "S:C2-1;H=2",
            "S:H=",
            "S:Ftags/v1=1",
            "S:Rorigin=/elsewhere master=1",
            "S:I a=1,README.md;W b=2",
            "S:W README.md",
            "N:Cx;Bother=x",
        ],
    )
    def test_round_trip(self, text: str, temp_dir: Path) -> None:
        """Test reading a written repository gives back its description."""
        actual, expected = _round_trip(text, temp_dir / "repo")

        assert actual == expected

    def test_commit_map_covers_every_commit(self, temp_dir: Path) -> None:
        """Test each logical commit gets a physical id."""
        written = write_rast(parse_repo_shorthand("S:C2-1;Bmaster=2"), temp_dir / "repo")

        assert sorted(written.commit_map.values()) == ["1", "2"]
        assert all(written.repo.has_commit(physical) for physical in written.commit_map)

    def test_physical_ids_are_not_logical(self, temp_dir: Path) -> None:
        """Test reading back yields physical ids."""
        written = write_rast(parse_repo_shorthand("S"), temp_dir / "repo")

        ast = read_rast(written.repo)

        assert "1" not in ast.commits
        assert written.commit_map[ast.head] == "1"

    def test_files_on_disk(self, temp_dir: Path) -> None:
        """Test the working tree reflects index and workdir changes."""
        written = write_rast(parse_repo_shorthand("S:I a=1;W b=2"), temp_dir / "repo")

        assert (written.repo.root / "README.md").read_text() == "hello world"
        assert (written.repo.root / "a").read_text() == "1"
        assert (written.repo.root / "b").read_text() == "2"
        assert written.repo.get_index() == {"README.md": "hello world", "a": "1"}

    def test_identical_commits_stay_distinct(self, temp_dir: Path) -> None:
        """Test logical commits with identical content get their own physical ids."""
        ast = RepoAST(
            commits={"a": AstCommit(changes={"x": "1"}), "b": AstCommit(changes={"x": "1"})},
            branches={"m": "a", "n": "b"},
        )

        written = write_rast(ast, temp_dir / "repo")

        assert sorted(written.commit_map.values()) == ["a", "b"]
        assert written.repo.get_branch_commit("m") != written.repo.get_branch_commit("n")

    def test_identical_children_round_trip(self, temp_dir: Path) -> None:
        """Test sibling commits with identical content survive a round trip."""
        actual, expected = _round_trip("S:C2-1 x=y;C3-1 x=y;Bb=2;Bc=3", temp_dir / "repo")

        assert actual == expected

    def test_existing_repository(self, temp_dir: Path) -> None:
        """Test writing over an existing repository fails."""
        write_rast(parse_repo_shorthand("S"), temp_dir / "repo")

        with pytest.raises(RuntimeError, match="already exists"):
            write_rast(parse_repo_shorthand("S"), temp_dir / "repo")


# ---- Multi Repository Tests ---------------------------------------------------------------------------------


class TestWriteMultiRast:
    """Tests for write_multi_rast."""

    def test_repositories_under_root(self, temp_dir: Path) -> None:
        """Test each repository is written at root/name."""
        written = write_multi_rast(parse_multi_repo_shorthand("a=S|b=N"), temp_dir)

        assert set(written.repos) == {"a", "b"}
        assert written.repos["a"].root == temp_dir / "a"
        assert dict(written.url_map) == {str(temp_dir / "a"): "a", str(temp_dir / "b"): "b"}

    def test_default_root_is_temp_dir(self) -> None:
        """Test an omitted root creates a tracked temp directory."""
        written = write_multi_rast(parse_multi_repo_shorthand("a=S"))

        assert written.repos["a"].root.parent in test_util.pending_temp_dirs()

    def test_shared_commits(self, temp_dir: Path) -> None:
        """Test a commit present in several repositories is mapped once."""
        written = write_multi_rast(parse_multi_repo_shorthand("a=S|b=S"), temp_dir)

        assert list(written.commit_map.values()) == ["1"]

    def test_identical_content_across_repositories(self, temp_dir: Path) -> None:
        """Test different logical commits with the same content in two repositories."""
        written = write_multi_rast(
            parse_multi_repo_shorthand("a=S:C2-1 x=y;Bm=2|b=S:C3-1 x=y;Bm=3"),
            temp_dir,
        )

        assert sorted(written.commit_map.values()) == ["1", "2", "3"]

    def test_clone_round_trip(self, temp_dir: Path) -> None:
        """Test remote urls are written physically and read back logically."""
        expected = parse_multi_repo_shorthand("a=S:C2-1;Bdev=2|b=Ca")
        written = write_multi_rast(expected, temp_dir)

        clone = read_rast(written.repos["b"])
        assert clone.remotes["origin"].url == str(temp_dir / "a")

        actual = map_commits_and_urls(clone, written.commit_map, written.url_map)
        assert actual == expected["b"]

    def test_inconsistent_commit_definitions(self, temp_dir: Path) -> None:
        """Test one logical id must describe the same commit everywhere."""
        asts = {
            "a": parse_repo_shorthand("S"),
            "b": parse_repo_shorthand("N:C1 x=y;Bmaster=1"),
        }

        with pytest.raises(ValueError, match="differs from another definition"):
            write_multi_rast(asts, temp_dir)
