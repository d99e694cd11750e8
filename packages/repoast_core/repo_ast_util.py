"""Identity remapping and comparison of RepoAST values.

Execution Context:
    Library module - imported by the fixture harness

Dependencies:
    - repoast_core.diff: Structural diff rendering
    - repoast_core.errors: Harness error types

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

from collections.abc import Mapping

from repoast_core.diff import diff_asts
from repoast_core.diff import format_diff_summary
from repoast_core.errors import AstMismatchError
from repoast_core.errors import DuplicateIdentifierError
from repoast_core.repo_ast import AstCommit
from repoast_core.repo_ast import AstRemote
from repoast_core.repo_ast import RepoAST


# ---- Remapping ----------------------------------------------------------------------------------------------


def map_commits_and_urls(
        ast: RepoAST,
        commit_map: Mapping[str, str],
        url_map: Mapping[str, str],
) -> RepoAST:
    """Return a copy of ``ast`` with commit ids and remote urls translated.

    Ids and urls that are not in the maps are kept as they are, so they
    show up verbatim in mismatch reports.

    Args:
        ast: Description carrying physical identifiers.
        commit_map: Physical commit id -> logical commit id.
        url_map: Physical url -> logical repository name.

    Returns:
        New RepoAST carrying logical identifiers.

    Raises:
        DuplicateIdentifierError: If two commits translate to the same id.
    """
    def map_commit(commit_id: str) -> str:
        return commit_map.get(commit_id, commit_id)

    def map_targets(targets: Mapping[str, str]) -> dict[str, str]:
        return {name: map_commit(commit_id) for name, commit_id in targets.items()}

    commits: dict[str, AstCommit] = {}
    sources: dict[str, str] = {}
    for commit_id, commit in ast.commits.items():
        logical = map_commit(commit_id)
        if logical in sources:
            msg = f"Commits {sources[logical]} and {commit_id} both map to '{logical}'"
            raise DuplicateIdentifierError(msg)
        sources[logical] = commit_id
        commits[logical] = AstCommit(
            parents=tuple(map_commit(parent) for parent in commit.parents),
            changes=commit.changes,
            message=commit.message,
        )

    remotes = {
        name: AstRemote(
            url=url_map.get(remote.url, remote.url),
            branches=map_targets(remote.branches),
        )
        for name, remote in ast.remotes.items()
    }

    return ast.copy(
        commits=commits,
        branches=map_targets(ast.branches),
        refs=map_targets(ast.refs),
        head=map_commit(ast.head) if ast.head is not None else None,
        remotes=remotes,
    )


# ---- Comparison ---------------------------------------------------------------------------------------------


def assert_equal_asts(
        actual: RepoAST,
        expected: RepoAST,
) -> None:
    """Fail with a structural diff unless two descriptions are equal.

    Raises:
        AstMismatchError: If they differ.
    """
    if actual == expected:
        return
    ast_diff = diff_asts(actual, expected)
    raise AstMismatchError("Repository state differs from expectation", format_diff_summary(ast_diff))


def assert_equal_repo_maps(
        actual: Mapping[str, RepoAST],
        expected: Mapping[str, RepoAST],
) -> None:
    """Fail with a per-repository diff unless two maps are equal.

    The maps are compared as a whole: every mismatching repository, and
    every repository present on only one side, is reported together.

    Raises:
        AstMismatchError: If they differ.
    """
    sections = []
    for name in sorted(set(actual) - set(expected)):
        sections.append(f"[{name}] unexpected repository")
    for name in sorted(set(expected) - set(actual)):
        sections.append(f"[{name}] missing repository")
    for name in sorted(set(actual) & set(expected)):
        if actual[name] != expected[name]:
            summary = format_diff_summary(diff_asts(actual[name], expected[name]))
            sections.append(f"[{name}]\n{summary}")

    if sections:
        raise AstMismatchError("Repository states differ from expectation", "\n".join(sections))
