"""Write RepoAST descriptions to disk and read them back.

Writing turns logical commit ids into physical ones and reports the
physical -> logical mapping. A physical id is derived from the commit's
content salted with its logical id, so distinct logical commits never
share a physical id and one logical commit gets the same physical id in
every repository it is written to. Reading produces a RepoAST
that still carries physical ids and urls.

Execution Context:
    Library module - imported by the fixture harness and the CLI

Dependencies:
    - repoast_core.repository: Storage engine
    - repoast_core.identity: Identity maps

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from repoast_core import test_util
from repoast_core.identity import CommitMap
from repoast_core.identity import UrlMap
from repoast_core.repo_ast import AstCommit
from repoast_core.repo_ast import AstRemote
from repoast_core.repo_ast import RepoAST
from repoast_core.repository import Repository
from repoast_core.repository import init_repository

logger = logging.getLogger(__name__)


# ---- Result Classes -----------------------------------------------------------------------------------------


@dataclass
class WrittenRepo:
    """A repository written from a RepoAST.

    Attributes:
        repo: The live repository.
        commit_map: Physical commit id -> logical commit id.
    """

    repo: Repository
    commit_map: CommitMap


@dataclass
class WrittenRepos:
    """Repositories written from a map of RepoASTs.

    Attributes:
        repos: Repository name -> live repository.
        commit_map: Physical commit id -> logical commit id, for all repos.
        url_map: Physical repository url -> repository name.
    """

    repos: dict[str, Repository]
    commit_map: CommitMap
    url_map: UrlMap


# ---- Tree Helpers -------------------------------------------------------------------------------------------


def apply_changes(
        tree: Mapping[str, str],
        changes: Mapping[str, str | None],
) -> dict[str, str]:
    """Return a copy of a tree with changes applied; None deletes a path."""
    result = dict(tree)
    for path, content in changes.items():
        if content is None:
            result.pop(path, None)
        else:
            result[path] = content
    return result


def diff_trees(
        old: Mapping[str, str],
        new: Mapping[str, str],
) -> dict[str, str | None]:
    """Return the changes that turn ``old`` into ``new``."""
    changes: dict[str, str | None] = {}
    for path in sorted(set(old) | set(new)):
        if path not in new:
            changes[path] = None
        elif old.get(path) != new[path]:
            changes[path] = new[path]
    return changes


def _commit_order(
        commits: Mapping[str, AstCommit],
) -> list[str]:
    """Order commit ids so that parents come before children."""
    ordered: list[str] = []
    done: set[str] = set()
    for start in sorted(commits):
        stack = [(start, False)]
        while stack:
            commit_id, expanded = stack.pop()
            if commit_id in done:
                continue
            if expanded:
                done.add(commit_id)
                ordered.append(commit_id)
                continue
            stack.append((commit_id, True))
            for parent in reversed(commits[commit_id].parents):
                if parent not in done:
                    stack.append((parent, False))
    return ordered


# ---- Writing ------------------------------------------------------------------------------------------------


def _record_commit(
        commit_map: CommitMap,
        physical: str,
        logical: str,
) -> None:
    # A logical commit shared by several repositories is written once per repository.
    if commit_map.get(physical) != logical:
        commit_map.insert_if_absent(physical, logical)


def _write_repo(
        ast: RepoAST,
        path: Path,
        commit_map: CommitMap,
        remote_urls: Mapping[str, str],
) -> Repository:
    """Write one RepoAST, registering its commits in ``commit_map``.

    Args:
        ast: Logical description.
        path: Root of the new repository.
        commit_map: Running physical -> logical map, extended in place.
        remote_urls: Logical repository name -> physical url for remotes.
    """
    repo = init_repository(path)

    physical: dict[str, str] = {}
    trees: dict[str, dict[str, str]] = {}
    for logical in _commit_order(ast.commits):
        commit = ast.commits[logical]
        base = trees[commit.parents[0]] if commit.parents else {}
        trees[logical] = apply_changes(base, commit.changes)
        written = repo.write_commit(
            commit.message,
            trees[logical],
            parents=[physical[parent] for parent in commit.parents],
            salt=logical,
        )
        physical[logical] = written.id
        _record_commit(commit_map, written.id, logical)

    for name, commit_id in ast.branches.items():
        repo.create_branch(name, physical[commit_id])
    for name, commit_id in ast.refs.items():
        repo.set_ref(name, physical[commit_id])
    for name, remote in ast.remotes.items():
        repo.add_remote(name, remote_urls.get(remote.url, remote.url))
        for branch, commit_id in remote.branches.items():
            repo.set_remote_branch(name, branch, physical[commit_id])

    if ast.current_branch_name is not None:
        repo.set_head(ast.current_branch_name)
    elif ast.head is not None:
        repo.set_head_detached(physical[ast.head])
    else:
        repo.clear_head()

    head_tree = trees[ast.head] if ast.head is not None else {}
    index_tree = apply_changes(head_tree, ast.index)
    repo.update_index(index_tree)
    repo.replace_working_tree(apply_changes(index_tree, ast.workdir))

    return repo


def write_rast(
        ast: RepoAST,
        path: Path | str,
) -> WrittenRepo:
    """Create a repository at ``path`` described by ``ast``.

    Args:
        ast: Logical description.
        path: Root of the new repository.

    Returns:
        The live repository and its physical -> logical commit map.
    """
    commit_map = CommitMap()
    repo = _write_repo(ast, Path(path), commit_map, {})
    logger.debug(f"Wrote repository with {len(commit_map)} commit(s) at {repo.root}")
    return WrittenRepo(repo=repo, commit_map=commit_map)


def write_multi_rast(
        asts: Mapping[str, RepoAST],
        root: Path | str | None = None,
) -> WrittenRepos:
    """Create one repository per entry of ``asts`` under a common root.

    Remote urls naming another repository of the map are written as that
    repository's physical url. A logical commit id used in more than one
    repository must be described identically everywhere.

    Args:
        asts: Repository name -> logical description.
        root: Parent directory; a fresh temp directory when omitted.

    Returns:
        Live repositories, the shared commit map and the url map.

    Raises:
        ValueError: If a logical commit is described inconsistently.
    """
    definitions: dict[str, AstCommit] = {}
    for name, ast in asts.items():
        for commit_id, commit in ast.commits.items():
            known = definitions.setdefault(commit_id, commit)
            if known != commit:
                msg = f"Commit '{commit_id}' in repository '{name}' differs from another definition"
                raise ValueError(msg)

    root_path = Path(root) if root is not None else test_util.make_temp_dir()
    paths = {name: (root_path / name).resolve() for name in asts}
    remote_urls = {name: str(path) for name, path in paths.items()}

    commit_map = CommitMap()
    url_map = UrlMap()
    repos = {}
    for name, ast in asts.items():
        repos[name] = _write_repo(ast, paths[name], commit_map, remote_urls)
        url_map.insert_if_absent(str(repos[name].root), name)

    logger.debug(f"Wrote {len(repos)} repositories under {root_path}")
    return WrittenRepos(repos=repos, commit_map=commit_map, url_map=url_map)


# ---- Reading ------------------------------------------------------------------------------------------------


def read_rast(
        repo: Repository,
) -> RepoAST:
    """Describe the current state of a repository.

    Only commits reachable from HEAD, branches, refs or remote-tracking
    branches are included. Ids and urls are physical.

    Args:
        repo: Repository to read.

    Returns:
        RepoAST with physical identifiers.
    """
    branches = {}
    for name in repo.list_branches():
        commit_id = repo.get_branch_commit(name)
        if commit_id:
            branches[name] = commit_id

    refs = repo.list_refs()
    remotes = {
        name: AstRemote(url=remote.url, branches=repo.list_remote_branches(name))
        for name, remote in repo.list_remotes().items()
    }

    current_branch = repo.get_current_branch()
    if current_branch not in branches:
        current_branch = None
    head = repo.get_head_commit()

    starts = list(branches.values()) + list(refs.values())
    for remote in remotes.values():
        starts.extend(remote.branches.values())
    if head:
        starts.append(head)
    stored = repo.reachable_commits(starts)

    commits = {}
    for commit_id, commit in stored.items():
        parent_tree = stored[commit.parents[0]].tree if commit.parents else {}
        commits[commit_id] = AstCommit(
            parents=tuple(commit.parents),
            changes=diff_trees(parent_tree, commit.tree),
            message=commit.message,
        )

    head_tree = stored[head].tree if head else {}
    index_tree = repo.get_index()

    return RepoAST(
        commits=commits,
        branches=branches,
        refs=refs,
        head=head,
        current_branch_name=current_branch,
        remotes=remotes,
        index=diff_trees(head_tree, index_tree),
        workdir=diff_trees(index_tree, repo.read_working_tree()),
    )
