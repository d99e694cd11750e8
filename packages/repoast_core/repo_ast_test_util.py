"""Fixture-and-verify helpers for tests built on RepoAST.

A test describes repositories as shorthand strings or RepoAST values,
lets a manipulator change the live repositories, and checks the result
against an expected description. Commit ids and repository urls are
translated between the logical names used in the descriptions and the
physical ids found on disk.

Every function here creates temp directories; callers must call
``test_util.cleanup()`` after the test (typically from an autouse
fixture). Nothing is cleaned up on failure.

Execution Context:
    Library module - imported by test suites

Dependencies:
    - repoast_core.shorthand: Shorthand parsing
    - repoast_core.repo_ast_io: Writing and reading repositories
    - repoast_core.repo_ast_util: Remapping and comparison

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from typing import Union

from repoast_core import test_util
from repoast_core.errors import MalformedInputError
from repoast_core.errors import UnknownRepositoryError
from repoast_core.identity import CommitMap
from repoast_core.identity import RepoPathMap
from repoast_core.identity import UrlMap
from repoast_core.repo_ast import RepoAST
from repoast_core.repo_ast_io import WrittenRepo
from repoast_core.repo_ast_io import WrittenRepos
from repoast_core.repo_ast_io import read_rast
from repoast_core.repo_ast_io import write_multi_rast
from repoast_core.repo_ast_io import write_rast
from repoast_core.repo_ast_util import assert_equal_asts
from repoast_core.repo_ast_util import assert_equal_repo_maps
from repoast_core.repo_ast_util import map_commits_and_urls
from repoast_core.repository import Repository
from repoast_core.repository import open_repository
from repoast_core.shorthand import parse_multi_repo_shorthand
from repoast_core.shorthand import parse_repo_shorthand

logger = logging.getLogger(__name__)


# ---- Input Types --------------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Shorthand:
    """A repository given as shorthand text."""

    text: str

    def to_ast(self) -> RepoAST:
        return parse_repo_shorthand(self.text)


@dataclass(frozen=True)
class Prebuilt:
    """A repository given as an already built RepoAST."""

    ast: RepoAST

    def to_ast(self) -> RepoAST:
        return self.ast


RepoInput = Union[str, RepoAST, Shorthand, Prebuilt]
MultiRepoInput = Union[str, Mapping[str, RepoInput]]


@dataclass
class ManipulatorResult:
    """Identities a multi-repo manipulator introduced.

    Attributes:
        commit_map: Physical id -> logical id of new commits.
        url_map: Repository name -> physical url of new repositories.
            This is the reverse of the direction used for remapping.
    """

    commit_map: Mapping[str, str] | None = None
    url_map: Mapping[str, str] | None = None


SingleManipulator = Callable[[Repository], Union[Awaitable[Any], Any]]
MultiManipulator = Callable[[dict[str, Repository]], Union[Awaitable[Any], Any]]

_RESULT_KEYS = {"commit_map", "url_map"}


# ---- Normalization ------------------------------------------------------------------------------------------


def classify_input(
        value: object,
) -> Shorthand | Prebuilt:
    """Resolve a repository input to its tagged form.

    Raises:
        MalformedInputError: If the value is neither a string nor a RepoAST.
    """
    if isinstance(value, (Shorthand, Prebuilt)):
        return value
    if isinstance(value, str):
        return Shorthand(value)
    if isinstance(value, RepoAST):
        return Prebuilt(value)
    msg = f"Expected shorthand string or RepoAST, got {type(value).__name__}"
    raise MalformedInputError(msg)


def create_multi_repo_ast_map(
        input: MultiRepoInput,
) -> dict[str, RepoAST]:
    """Translate ``input`` into a map from repository name to RepoAST.

    Args:
        input: Multi-repo shorthand, or a mapping from name to single-repo
            shorthand or RepoAST.

    Returns:
        Map from repository name to RepoAST.

    Raises:
        MalformedInputError: If the input or one of its values has the wrong type.
    """
    if isinstance(input, str):
        return parse_multi_repo_shorthand(input)
    if not isinstance(input, Mapping):
        msg = f"Expected shorthand string or mapping, got {type(input).__name__}"
        raise MalformedInputError(msg)
    return {name: classify_input(value).to_ast() for name, value in input.items()}


# ---- Fixture Creation ---------------------------------------------------------------------------------------


def create_repo(
        input: RepoInput,
) -> WrittenRepo:
    """Create the repository described by ``input`` in a temp directory.

    Returns:
        The live repository and its physical -> logical commit map.
    """
    ast = classify_input(input).to_ast()
    path = test_util.make_temp_dir()
    return write_rast(ast, path)


def create_multi_repos(
        input: MultiRepoInput,
) -> WrittenRepos:
    """Create the repositories described by ``input`` in a temp directory.

    Returns:
        Live repositories, commit map and url map.
    """
    return write_multi_rast(create_multi_repo_ast_map(input))


# ---- Manipulation -------------------------------------------------------------------------------------------


async def _run_manipulator(
        manipulator: Callable[[Any], Any],
        argument: Any,
) -> Any:
    result = manipulator(argument)
    if inspect.isawaitable(result):
        result = await result
    return result


def _unpack_result(
        manipulated: Any,
) -> ManipulatorResult:
    if isinstance(manipulated, ManipulatorResult):
        return manipulated
    if not isinstance(manipulated, Mapping):
        msg = f"Manipulator must return None, a mapping or ManipulatorResult, got {type(manipulated).__name__}"
        raise MalformedInputError(msg)
    unknown = set(manipulated) - _RESULT_KEYS
    if unknown:
        msg = f"Unknown manipulator result key(s): {', '.join(sorted(map(str, unknown)))}"
        raise MalformedInputError(msg)
    return ManipulatorResult(
        commit_map=manipulated.get("commit_map"),
        url_map=manipulated.get("url_map"),
    )


def _merge_reported(
        result: ManipulatorResult,
        commit_map: CommitMap,
        url_map: UrlMap,
) -> RepoPathMap:
    """Register what a manipulator reported, or nothing at all.

    Both maps are checked before either is changed.

    Returns:
        Repository name -> physical url of the reported new repositories.

    Raises:
        MalformedInputError: If a reported map is badly typed.
        DuplicateIdentifierError: If a reported commit id or url is known.
    """
    new_paths = RepoPathMap()
    if result.url_map is not None:
        new_paths.merge(result.url_map)
    new_commits = result.commit_map if result.commit_map is not None else {}
    commit_map.check_merge(new_commits)
    url_map.check_merge_paths(new_paths)

    commit_map.merge(new_commits)
    url_map.merge_paths(new_paths)
    return new_paths


async def test_repo_manipulator(
        input: RepoInput,
        expected: RepoInput,
        manipulator: SingleManipulator,
) -> None:
    """Create a repository, manipulate it and verify its final state.

    ``manipulator`` receives the live repository. It may be a plain or an
    async function and returns either None or a map from the physical ids
    of commits it created to the logical ids used in ``expected``.

    Args:
        input: Initial state, as shorthand or RepoAST.
        expected: Expected final state, as shorthand or RepoAST.
        manipulator: Change to apply.

    Raises:
        MalformedInputError: On badly typed input or manipulator result.
        DuplicateIdentifierError: If the manipulator reports a known commit id.
        AstMismatchError: If the final state differs from ``expected``.
    """
    expected_ast = classify_input(expected).to_ast()
    written = create_repo(input)
    commit_map = written.commit_map

    user_map = await _run_manipulator(manipulator, written.repo)
    if user_map is not None:
        commit_map.merge(user_map)
        logger.debug(f"Manipulator reported {len(user_map)} commit(s)")

    ast = read_rast(written.repo)
    actual = map_commits_and_urls(ast, commit_map, UrlMap())
    assert_equal_asts(actual, expected_ast)


async def test_multi_repo_manipulator(
        input: MultiRepoInput,
        expected: MultiRepoInput,
        manipulator: MultiManipulator,
) -> None:
    """Create repositories, manipulate them and verify their final states.

    A repository missing from ``expected`` must still be in its ``input``
    state. ``expected`` may also describe repositories the manipulator
    created, provided it reports their location.

    ``manipulator`` receives a map from repository name to live repository
    and returns None, a ManipulatorResult, or a mapping with the optional
    keys ``commit_map`` (physical id -> logical id of new commits) and
    ``url_map`` (repository name -> physical url of new repositories).

    Args:
        input: Multi-repo shorthand or map of name to shorthand / RepoAST.
        expected: Same forms as ``input``.
        manipulator: Change to apply.

    Raises:
        MalformedInputError: On badly typed input or manipulator result.
        DuplicateIdentifierError: If a reported commit id or url is known.
        UnknownRepositoryError: If an expected repository cannot be found.
        AstMismatchError: If the final states differ from ``expected``.
    """
    input_asts = create_multi_repo_ast_map(input)
    expected_asts = create_multi_repo_ast_map(expected)

    # Repositories not mentioned in `expected` must be unchanged.

    for name, ast in input_asts.items():
        expected_asts.setdefault(name, ast)

    written = write_multi_rast(input_asts)
    commit_map = written.commit_map
    url_map = written.url_map

    manipulated = await _run_manipulator(manipulator, dict(written.repos))

    new_paths = RepoPathMap()
    if manipulated is not None:
        result = _unpack_result(manipulated)
        new_paths = _merge_reported(result, commit_map, url_map)
        logger.debug(
            f"Manipulator reported {len(result.commit_map or {})} commit(s) "
            f"and {len(new_paths)} new repositories"
        )

    actual_asts = {}
    for name in expected_asts:
        repo = written.repos.get(name)
        if repo is None:
            if name not in new_paths:
                msg = f"Expected repository '{name}' was neither created nor reported"
                raise UnknownRepositoryError(msg)
            repo = open_repository(new_paths[name])
        actual_asts[name] = map_commits_and_urls(read_rast(repo), commit_map, url_map)

    assert_equal_repo_maps(actual_asts, expected_asts)


# These are helpers, not tests.
test_repo_manipulator.__test__ = False  # type: ignore[attr-defined]
test_multi_repo_manipulator.__test__ = False  # type: ignore[attr-defined]
