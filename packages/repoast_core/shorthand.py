"""Compact shorthand syntax for describing repositories.

A single repository is written as a base type optionally followed by
overrides::

    S:C2-1;Br master=2

Base types:
    S       one commit '1' (README.md = hello world) on current branch master
    N       empty repository without HEAD
    C<name> clone of another repository of the same multi-repo shorthand

Overrides, separated by ';':
    C<id>[-<parent>[,<parent>...]] [<change>,...]   commit (default change: <id>=<id>)
    B[r ]<name>=[<commit>]                          branch (empty commit deletes)
    F<ref>=[<commit>]                               other ref, e.g. Ftags/v1=2
    R<name>=[<url> [<branch>=<commit>,...]]         remote (empty url deletes)
    H=[<commit>]                                    detached HEAD (empty: no HEAD)
    *=<branch>                                      current branch
    I <change>,...                                  staged changes
    W <change>,...                                  working tree changes

A change is ``path=content`` or a bare ``path`` to delete the file.

Several repositories are joined with '|' as ``name=repo``::

    a=S|b=Ca

Execution Context:
    Library module - imported by the fixture harness and the CLI

Dependencies:
    - repoast_core.repo_ast: Target value types

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field

from repoast_core.repo_ast import AstCommit
from repoast_core.repo_ast import AstRemote
from repoast_core.repo_ast import RepoAST


# ---- Constants ----------------------------------------------------------------------------------------------


SIMPLE_COMMIT_ID = "1"
SIMPLE_COMMIT_MESSAGE = "the first commit"
SIMPLE_FILE = "README.md"
SIMPLE_CONTENT = "hello world"
DEFAULT_MESSAGE = "message"
DEFAULT_BRANCH = "master"
CLONE_REMOTE = "origin"


# ---- Builder ------------------------------------------------------------------------------------------------


@dataclass
class _RepoBuilder:
    """Mutable scratch state while overrides are applied."""

    commits: dict[str, AstCommit] = field(default_factory=dict)
    branches: dict[str, str] = field(default_factory=dict)
    refs: dict[str, str] = field(default_factory=dict)
    remotes: dict[str, AstRemote] = field(default_factory=dict)
    current_branch: str | None = None
    detached_head: str | None = None
    index: dict[str, str | None] = field(default_factory=dict)
    workdir: dict[str, str | None] = field(default_factory=dict)

    def build(self) -> RepoAST:
        head = self.detached_head
        if self.current_branch is not None:
            if self.current_branch not in self.branches:
                msg = f"Current branch '{self.current_branch}' does not exist"
                raise ValueError(msg)
            head = self.branches[self.current_branch]
        return RepoAST(
            commits=self.commits,
            branches=self.branches,
            refs=self.refs,
            head=head,
            current_branch_name=self.current_branch,
            remotes=self.remotes,
            index=self.index,
            workdir=self.workdir,
        )


def _simple_builder() -> _RepoBuilder:
    return _RepoBuilder(
        commits={
            SIMPLE_COMMIT_ID: AstCommit(
                changes={SIMPLE_FILE: SIMPLE_CONTENT},
                message=SIMPLE_COMMIT_MESSAGE,
            ),
        },
        branches={DEFAULT_BRANCH: SIMPLE_COMMIT_ID},
        current_branch=DEFAULT_BRANCH,
    )


def _clone_builder(
        source_name: str,
        source: RepoAST,
) -> _RepoBuilder:
    reachable = source.reachable_commits(list(source.branches.values()))
    builder = _RepoBuilder(
        commits={commit_id: source.commits[commit_id] for commit_id in sorted(reachable)},
        remotes={CLONE_REMOTE: AstRemote(url=source_name, branches=source.branches)},
    )
    branch = source.current_branch_name
    if branch is not None:
        builder.branches[branch] = source.branches[branch]
        builder.current_branch = branch
    return builder


# ---- Parsing Helpers ----------------------------------------------------------------------------------------


def _parse_changes(
        text: str,
) -> dict[str, str | None]:
    changes: dict[str, str | None] = {}
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        path, has_content, content = item.partition("=")
        path = path.strip()
        if not path:
            msg = f"Missing path in change '{item}'"
            raise ValueError(msg)
        changes[path] = content if has_content else None
    return changes


def _parse_assignment(
        text: str,
        what: str,
) -> tuple[str, str]:
    name, has_value, value = text.partition("=")
    name = name.strip()
    if not has_value or not name:
        msg = f"Expected '<{what}>=<value>', got '{text}'"
        raise ValueError(msg)
    return name, value.strip()


def _parse_commit(
        text: str,
) -> tuple[str, AstCommit]:
    header, _, changes_text = text.partition(" ")
    commit_id, has_parents, parents_text = header.partition("-")
    if not commit_id:
        msg = f"Missing commit id in 'C{text}'"
        raise ValueError(msg)

    parents = []
    if has_parents:
        parents = [parent.strip() for parent in parents_text.split(",")]
        if not all(parents):
            msg = f"Empty parent in 'C{text}'"
            raise ValueError(msg)

    changes = _parse_changes(changes_text) if changes_text.strip() else {commit_id: commit_id}
    return commit_id, AstCommit(parents=tuple(parents), changes=changes, message=DEFAULT_MESSAGE)


def _parse_remote(
        builder: _RepoBuilder,
        text: str,
) -> None:
    name, value = _parse_assignment(text, "remote")
    if not value:
        builder.remotes.pop(name, None)
        return

    url, _, branches_text = value.partition(" ")
    branches = {}
    for item in branches_text.split(","):
        if item.strip():
            branch, commit_id = _parse_assignment(item, "branch")
            if not commit_id:
                msg = f"Missing commit for remote branch '{name}/{branch}'"
                raise ValueError(msg)
            branches[branch] = commit_id
    builder.remotes[name] = AstRemote(url=url, branches=branches)


def _set_or_delete(
        target: dict[str, str],
        text: str,
        what: str,
) -> None:
    name, commit_id = _parse_assignment(text, what)
    if commit_id:
        target[name] = commit_id
    else:
        target.pop(name, None)


def _apply_override(
        builder: _RepoBuilder,
        entry: str,
) -> None:
    kind, body = entry[0], entry[1:]

    if kind == "C":
        commit_id, commit = _parse_commit(body)
        builder.commits[commit_id] = commit
    elif kind == "B":
        if body.startswith("r "):
            body = body[2:]
        _set_or_delete(builder.branches, body, "branch")
    elif kind == "F":
        _set_or_delete(builder.refs, body, "ref")
    elif kind == "R":
        _parse_remote(builder, body)
    elif kind == "H":
        _, commit_id = _parse_assignment(f"HEAD{body}", "HEAD")
        builder.current_branch = None
        builder.detached_head = commit_id or None
    elif kind == "*":
        _, branch = _parse_assignment(f"HEAD{body}", "HEAD")
        if not branch:
            msg = "Missing branch name in '*='"
            raise ValueError(msg)
        builder.current_branch = branch
        builder.detached_head = None
    elif kind == "I":
        builder.index.update(_parse_changes(body))
    elif kind == "W":
        builder.workdir.update(_parse_changes(body))
    else:
        msg = f"Unknown override '{entry}'"
        raise ValueError(msg)


def _parse(
        text: str,
        resolve_clone: Callable[[str], RepoAST] | None,
) -> RepoAST:
    text = text.strip()
    if not text:
        msg = "Empty repository shorthand"
        raise ValueError(msg)

    base, _, overrides = text.partition(":")
    base = base.strip()
    if base == "S":
        builder = _simple_builder()
    elif base == "N":
        builder = _RepoBuilder()
    elif base.startswith("C") and len(base) > 1:
        if resolve_clone is None:
            msg = f"Clone base '{base}' is only valid in multi-repo shorthand"
            raise ValueError(msg)
        builder = _clone_builder(base[1:], resolve_clone(base[1:]))
    else:
        msg = f"Unknown base repository type '{base}'"
        raise ValueError(msg)

    for entry in overrides.split(";"):
        entry = entry.strip()
        if entry:
            _apply_override(builder, entry)

    try:
        return builder.build()
    except ValueError as build_error:
        msg = f"Invalid repository shorthand '{text}': {build_error}"
        raise ValueError(msg) from build_error


# ---- Public Functions ---------------------------------------------------------------------------------------


def parse_repo_shorthand(
        text: str,
) -> RepoAST:
    """Parse the shorthand for a single repository.

    Args:
        text: Shorthand such as ``"S:C2-1;Br master=2"``.

    Returns:
        The described RepoAST.

    Raises:
        ValueError: If the text cannot be parsed or describes an invalid repository.
    """
    return _parse(text, None)


def parse_multi_repo_shorthand(
        text: str,
) -> dict[str, RepoAST]:
    """Parse the shorthand for several named repositories.

    Args:
        text: Shorthand such as ``"a=S|b=Ca"``.

    Returns:
        Map from repository name to RepoAST, in the order written.

    Raises:
        ValueError: On syntax errors, duplicate names, unknown or cyclic clones.
    """
    definitions: dict[str, str] = {}
    for part in text.split("|"):
        if not part.strip():
            continue
        name, repo_text = _parse_assignment(part, "name")
        if name in definitions:
            msg = f"Repository '{name}' is defined twice"
            raise ValueError(msg)
        definitions[name] = repo_text

    if not definitions:
        msg = "Empty multi-repository shorthand"
        raise ValueError(msg)

    results: dict[str, RepoAST] = {}
    resolving: set[str] = set()

    def resolve(name: str) -> RepoAST:
        if name in results:
            return results[name]
        if name not in definitions:
            msg = f"Cannot clone unknown repository '{name}'"
            raise ValueError(msg)
        if name in resolving:
            msg = f"Repository '{name}' clones itself"
            raise ValueError(msg)
        resolving.add(name)
        results[name] = _parse(definitions[name], resolve)
        resolving.discard(name)
        return results[name]

    return {name: resolve(name) for name in definitions}
