"""Declarative description of a repository's state.

A RepoAST names commits by identifier and describes branches, refs,
HEAD, remotes, staged changes and working tree changes in terms of
those identifiers. The same type carries logical identifiers (chosen
by a test author) and physical identifiers (read back from disk).

Execution Context:
    Library module - imported by shorthand, repo_ast_io, repo_ast_util
    and the fixture harness

Dependencies:
    - dataclasses: Frozen value types

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any


# ---- Value Classes ------------------------------------------------------------------------------------------


def _frozen_mapping(value: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value))


@dataclass(frozen=True)
class AstCommit:
    """A commit described by its delta against its first parent.

    Values are immutable but not hashable: ``changes`` is a read-only
    mapping.

    Attributes:
        parents: Parent commit IDs, first parent first.
        changes: Map from file path to new content; None deletes the file.
        message: Commit message.
    """

    parents: tuple[str, ...] = ()
    changes: Mapping[str, str | None] = field(default_factory=dict)
    message: str = "message"

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "parents", tuple(self.parents))
        object.__setattr__(self, "changes", _frozen_mapping(self.changes))

    def to_dict(
            self,
    ) -> dict[str, Any]:
        """Convert commit to a plain dictionary."""
        return {
            "parents": list(self.parents),
            "changes": dict(sorted(self.changes.items())),
            "message": self.message,
        }


@dataclass(frozen=True)
class AstRemote:
    """A remote and the remote-tracking branches fetched from it.

    Attributes:
        url: Remote location; a repository name when logical.
        branches: Read-only map from branch name to commit ID.
    """

    url: str
    branches: Mapping[str, str] = field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "branches", _frozen_mapping(self.branches))

    def to_dict(
            self,
    ) -> dict[str, Any]:
        """Convert remote to a plain dictionary."""
        return {"url": self.url, "branches": dict(sorted(self.branches.items()))}


@dataclass(frozen=True)
class RepoAST:
    """Complete state of one repository.

    Every mapping field is stored as a read-only copy of what was passed
    in, so a RepoAST cannot change after construction. Instances compare
    by value and are not hashable.

    Attributes:
        commits: Map from commit ID to AstCommit.
        branches: Map from local branch name to commit ID.
        refs: Map from other ref names (e.g. 'tags/v1') to commit ID.
        head: Commit ID HEAD resolves to, or None.
        current_branch_name: Branch HEAD refers to, or None when detached.
        remotes: Map from remote name to AstRemote.
        index: Staged changes relative to the HEAD tree.
        workdir: Unstaged changes relative to the index.

    Raises:
        ValueError: If the description is inconsistent (see _validate).
    """

    commits: Mapping[str, AstCommit] = field(default_factory=dict)
    branches: Mapping[str, str] = field(default_factory=dict)
    refs: Mapping[str, str] = field(default_factory=dict)
    head: str | None = None
    current_branch_name: str | None = None
    remotes: Mapping[str, AstRemote] = field(default_factory=dict)
    index: Mapping[str, str | None] = field(default_factory=dict)
    workdir: Mapping[str, str | None] = field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        for name in ("commits", "branches", "refs", "remotes", "index", "workdir"):
            value = getattr(self, name)
            if not isinstance(value, Mapping):
                msg = f"RepoAST.{name} must be a mapping, got {type(value).__name__}"
                raise ValueError(msg)
            object.__setattr__(self, name, _frozen_mapping(value))
        self._validate()

    def _validate(self) -> None:
        for commit_id, commit in self.commits.items():
            if not isinstance(commit, AstCommit):
                msg = f"Commit '{commit_id}' is not an AstCommit"
                raise ValueError(msg)
            for parent in commit.parents:
                if parent not in self.commits:
                    msg = f"Commit '{commit_id}' has unknown parent '{parent}'"
                    raise ValueError(msg)

        def check_target(what: str, commit_id: str) -> None:
            if commit_id not in self.commits:
                msg = f"{what} refers to unknown commit '{commit_id}'"
                raise ValueError(msg)

        for name, commit_id in self.branches.items():
            check_target(f"Branch '{name}'", commit_id)
        for name, commit_id in self.refs.items():
            check_target(f"Ref '{name}'", commit_id)
        for remote_name, remote in self.remotes.items():
            if not isinstance(remote, AstRemote):
                msg = f"Remote '{remote_name}' is not an AstRemote"
                raise ValueError(msg)
            for name, commit_id in remote.branches.items():
                check_target(f"Remote branch '{remote_name}/{name}'", commit_id)
        if self.head is not None:
            check_target("HEAD", self.head)

        if self.current_branch_name is not None:
            if self.current_branch_name not in self.branches:
                msg = f"Current branch '{self.current_branch_name}' is not a branch"
                raise ValueError(msg)
            if self.head != self.branches[self.current_branch_name]:
                msg = (
                    f"HEAD '{self.head}' does not match current branch "
                    f"'{self.current_branch_name}'"
                )
                raise ValueError(msg)

        unreachable = set(self.commits) - self.reachable_commits()
        if unreachable:
            msg = f"Commit(s) not reachable from any ref: {', '.join(sorted(unreachable))}"
            raise ValueError(msg)

    def ref_targets(
            self,
    ) -> list[str]:
        """Return every commit ID referenced by HEAD, branches, refs or remotes."""
        targets = list(self.branches.values()) + list(self.refs.values())
        for remote in self.remotes.values():
            targets.extend(remote.branches.values())
        if self.head is not None:
            targets.append(self.head)
        return targets

    def reachable_commits(
            self,
            starts: list[str] | None = None,
    ) -> set[str]:
        """Return the IDs of commits reachable from the given commits.

        Args:
            starts: Commit IDs to walk from; defaults to every ref target.
        """
        found: set[str] = set()
        pending = list(self.ref_targets() if starts is None else starts)
        while pending:
            commit_id = pending.pop()
            if commit_id in found or commit_id not in self.commits:
                continue
            found.add(commit_id)
            pending.extend(self.commits[commit_id].parents)
        return found

    def copy(
            self,
            **changes: Any,
    ) -> RepoAST:
        """Return a new RepoAST with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def to_dict(
            self,
    ) -> dict[str, Any]:
        """Convert to plain, sorted dictionaries for diffing and display."""
        return {
            "commits": {
                commit_id: commit.to_dict()
                for commit_id, commit in sorted(self.commits.items())
            },
            "branches": dict(sorted(self.branches.items())),
            "refs": dict(sorted(self.refs.items())),
            "head": self.head,
            "current_branch_name": self.current_branch_name,
            "remotes": {
                name: remote.to_dict() for name, remote in sorted(self.remotes.items())
            },
            "index": dict(sorted(self.index.items())),
            "workdir": dict(sorted(self.workdir.items())),
        }
