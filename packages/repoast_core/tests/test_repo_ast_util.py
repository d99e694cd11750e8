"""Tests for identity remapping and RepoAST comparison.

Execution Context:
    Test module - run via pytest

Dependencies:
    - pytest: Test framework
    - repoast_core.repo_ast_util: Module under test
"""
from __future__ import annotations

import pytest

from repoast_core.errors import AstMismatchError
from repoast_core.errors import DuplicateIdentifierError
from repoast_core.repo_ast import AstCommit
from repoast_core.repo_ast import AstRemote
from repoast_core.repo_ast import RepoAST
from repoast_core.repo_ast_util import assert_equal_asts
from repoast_core.repo_ast_util import assert_equal_repo_maps
from repoast_core.repo_ast_util import map_commits_and_urls
from repoast_core.shorthand import parse_repo_shorthand


@pytest.fixture
def physical_ast() -> RepoAST:
    """Two commits with hash-like ids and a remote."""
    return RepoAST(
        commits={
            "aaaa": AstCommit(changes={"README.md": "hello world"}, message="the first commit"),
            "bbbb": AstCommit(parents=("aaaa",), changes={"2": "2"}),
        },
        branches={"master": "bbbb"},
        refs={"tags/v1": "aaaa"},
        head="bbbb",
        current_branch_name="master",
        remotes={"origin": AstRemote(url="/tmp/x/a", branches={"master": "aaaa"})},
    )


# ---- Remapping Tests ----------------------------------------------------------------------------------------


class TestMapCommitsAndUrls:
    """Tests for map_commits_and_urls."""

    def test_translates_everything(self, physical_ast: RepoAST) -> None:
        """Test ids in commits, parents, refs, HEAD and remotes are mapped."""
        mapped = map_commits_and_urls(physical_ast, {"aaaa": "1", "bbbb": "2"}, {"/tmp/x/a": "a"})

        assert mapped == parse_repo_shorthand("S:C2-1;Bmaster=2;Ftags/v1=1;Rorigin=a master=1")

    def test_unknown_ids_are_kept(self, physical_ast: RepoAST) -> None:
        """Test unmapped ids and urls pass through unchanged."""
        mapped = map_commits_and_urls(physical_ast, {"aaaa": "1"}, {})

        assert set(mapped.commits) == {"1", "bbbb"}
        assert mapped.commits["bbbb"].parents == ("1",)
        assert mapped.remotes["origin"].url == "/tmp/x/a"

    def test_input_is_not_modified(self, physical_ast: RepoAST) -> None:
        """Test remapping returns a new value."""
        map_commits_and_urls(physical_ast, {"aaaa": "1", "bbbb": "2"}, {})

        assert set(physical_ast.commits) == {"aaaa", "bbbb"}

    def test_two_commits_same_logical_id(self, physical_ast: RepoAST) -> None:
        """Test aliasing two commits onto one id is a collision."""
        with pytest.raises(DuplicateIdentifierError, match="both map to '1'"):
            map_commits_and_urls(physical_ast, {"aaaa": "1", "bbbb": "1"}, {})

    def test_detached_and_empty_head(self) -> None:
        """Test HEAD is mapped when detached and left alone when absent."""
        detached = RepoAST(commits={"aaaa": AstCommit()}, head="aaaa")
        empty = RepoAST()

        assert map_commits_and_urls(detached, {"aaaa": "1"}, {}).head == "1"
        assert map_commits_and_urls(empty, {"aaaa": "1"}, {}).head is None


# ---- Comparison Tests ---------------------------------------------------------------------------------------


class TestAssertEqualAsts:
    """Tests for assert_equal_asts."""

    def test_equal(self) -> None:
        """Test equal descriptions pass."""
        assert_equal_asts(parse_repo_shorthand("S"), parse_repo_shorthand("S"))

    def test_mismatch_reports_diff(self) -> None:
        """Test a mismatch fails with a readable diff."""
        with pytest.raises(AstMismatchError) as exc_info:
            assert_equal_asts(
                parse_repo_shorthand("S:C2-1 a=1;Bmaster=2;Bdev=1"),
                parse_repo_shorthand("S:C2-1 a=2;Bmaster=2"),
            )

        assert "branches:" in exc_info.value.diff
        assert "+ dev" in exc_info.value.diff
        assert "values_changed: root['changes']['a']" in exc_info.value.diff
        assert "Repository state differs" in str(exc_info.value)

    def test_mismatch_is_assertion_error(self) -> None:
        """Test mismatches are reported as test failures."""
        with pytest.raises(AssertionError):
            assert_equal_asts(parse_repo_shorthand("N"), parse_repo_shorthand("S"))


class TestAssertEqualRepoMaps:
    """Tests for assert_equal_repo_maps."""

    def test_equal(self) -> None:
        """Test equal maps pass."""
        repos = {"a": parse_repo_shorthand("S"), "b": parse_repo_shorthand("N")}

        assert_equal_repo_maps(repos, dict(repos))

    def test_reports_every_difference(self) -> None:
        """Test all mismatching repositories are reported together."""
        actual = {"a": parse_repo_shorthand("S:Bdev=1"), "x": parse_repo_shorthand("N")}
        expected = {"a": parse_repo_shorthand("S"), "y": parse_repo_shorthand("N")}

        with pytest.raises(AstMismatchError) as exc_info:
            assert_equal_repo_maps(actual, expected)

        diff = exc_info.value.diff
        assert "[x] unexpected repository" in diff
        assert "[y] missing repository" in diff
        assert "[a]" in diff
        assert "+ dev" in diff
