"""Insert-only identity maps between logical and physical identifiers.

Three directions are modelled as distinct types so that one cannot be
passed where another is expected:

    - CommitMap: physical commit id -> logical commit id
    - UrlMap: physical repository url -> logical repository name
    - RepoPathMap: logical repository name -> physical repository url

Maps only grow. Registering a key twice raises DuplicateIdentifierError
instead of overwriting, and bulk merges are all-or-nothing. The
check_* methods run the same validation without registering anything.

Execution Context:
    Library module - imported by repo_ast_io and repo_ast_test_util

Dependencies:
    - repoast_core.errors: DuplicateIdentifierError

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

import os
from collections.abc import Iterator
from collections.abc import Mapping
from typing import Any

from repoast_core.errors import DuplicateIdentifierError
from repoast_core.errors import MalformedInputError


# ---- Base Class ---------------------------------------------------------------------------------------------


class IdentityMap(Mapping[str, str]):
    """Read-only mapping that can only be extended, never overwritten."""

    kind = "identifier"

    def __init__(
            self,
            entries: Mapping[str, str] | None = None,
    ) -> None:
        self._entries: dict[str, str] = {}
        if entries:
            self.merge(entries)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._entries!r})"

    def _normalize(
            self,
            key: Any,
            value: Any,
    ) -> tuple[str, str]:
        if not isinstance(key, str) or not isinstance(value, str):
            msg = f"{self.kind} map entries must be strings, got {key!r} -> {value!r}"
            raise MalformedInputError(msg)
        return key, value

    def insert_if_absent(
            self,
            key: str,
            value: str,
    ) -> None:
        """Register a single entry.

        Raises:
            DuplicateIdentifierError: If the key is already registered.
        """
        key, value = self._normalize(key, value)
        if key in self._entries:
            msg = (
                f"Duplicate {self.kind} '{key}': already mapped to "
                f"'{self._entries[key]}', cannot map to '{value}'"
            )
            raise DuplicateIdentifierError(msg)
        self._entries[key] = value

    def check_merge(
            self,
            entries: Mapping[str, str],
    ) -> list[tuple[str, str]]:
        """Validate a merge without changing the map.

        Returns:
            The normalized entries merge() would register.

        Raises:
            MalformedInputError: If entries is not a mapping of strings.
            DuplicateIdentifierError: If any key is already registered.
        """
        if not isinstance(entries, Mapping):
            msg = f"Expected a mapping of {self.kind}s, got {type(entries).__name__}"
            raise MalformedInputError(msg)
        normalized = [self._normalize(key, value) for key, value in entries.items()]
        collisions = sorted(key for key, _ in normalized if key in self._entries)
        if collisions:
            msg = f"Duplicate {self.kind}(s) {', '.join(collisions)}"
            raise DuplicateIdentifierError(msg)
        return normalized

    def merge(
            self,
            entries: Mapping[str, str],
    ) -> None:
        """Register every entry of a mapping, or none of them.

        Raises:
            DuplicateIdentifierError: If any key is already registered.
        """
        self._entries.update(self.check_merge(entries))


# ---- Concrete Maps ------------------------------------------------------------------------------------------


class CommitMap(IdentityMap):
    """Physical commit id -> logical commit id."""

    kind = "commit id"


class RepoPathMap(IdentityMap):
    """Logical repository name -> physical repository url.

    Values may be given as path-like objects; they are stored as strings.
    """

    kind = "repository name"

    def _normalize(
            self,
            key: Any,
            value: Any,
    ) -> tuple[str, str]:
        if isinstance(value, os.PathLike):
            value = os.fspath(value)
        return super()._normalize(key, value)


class UrlMap(IdentityMap):
    """Physical repository url -> logical repository name."""

    kind = "repository url"

    def _flip(
            self,
            paths: RepoPathMap,
    ) -> dict[str, str]:
        if not isinstance(paths, RepoPathMap):
            msg = f"Expected a RepoPathMap, got {type(paths).__name__}"
            raise TypeError(msg)
        flipped: dict[str, str] = {}
        for name, url in paths.items():
            if url in flipped:
                msg = f"Duplicate {self.kind} '{url}' reported for '{flipped[url]}' and '{name}'"
                raise DuplicateIdentifierError(msg)
            flipped[url] = name
        return flipped

    def check_merge_paths(
            self,
            paths: RepoPathMap,
    ) -> None:
        """Validate merge_paths() without changing the map."""
        self.check_merge(self._flip(paths))

    def merge_paths(
            self,
            paths: RepoPathMap,
    ) -> None:
        """Register name -> url entries under their url.

        This is the one place the name -> url direction reported for new
        repositories is flipped into the url -> name direction used for
        remapping. All-or-nothing, like merge().

        Raises:
            DuplicateIdentifierError: If a url is already registered.
        """
        self.merge(self._flip(paths))
