"""Objects persisted by the repoast storage engine.

A repository stores commits as JSON files named by their id, branch and
ref files holding a commit id, and a config file with the default author
and the configured remotes.

Commit ids are derived from commit content plus a salt. Commits written
with the same salt and content share an id, which lets the same logical
commit be written into several repositories. Commits made through the
working tree get a fresh salt each time, so no two of them collide.

Execution Context:
    Library module - imported by repository

Dependencies:
    - json, hashlib: Serialization and content hashing

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from pathlib import Path
from typing import Any


# ---- Constants ----------------------------------------------------------------------------------------------


COMMIT_ID_LENGTH = 12
CONFIG_VERSION = "1.0"


# ---- Commits ------------------------------------------------------------------------------------------------


@dataclass
class Commit:
    """A full snapshot of the working files plus history metadata.

    Attributes:
        id: Content-derived identifier (see content_id).
        message: Commit message.
        author: Author name.
        timestamp: Creation time, ISO 8601.
        parents: Parent commit IDs, first parent first.
        tree: Map from file path to file content.
        salt: Extra input to the id hash; empty for plain content ids.
    """

    id: str
    message: str
    author: str
    timestamp: str
    parents: list[str] = field(default_factory=list)
    tree: dict[str, str] = field(default_factory=dict)
    salt: str = ""

    @staticmethod
    def content_id(
            message: str,
            tree: dict[str, str],
            parents: list[str],
            salt: str = "",
    ) -> str:
        """Hash the parts of a commit that make up its identity.

        Author and timestamp are not part of the id.
        """
        payload = {"message": message, "tree": tree, "parents": parents}
        if salt:
            payload["salt"] = salt
        digest = hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()
        return digest[:COMMIT_ID_LENGTH]

    @classmethod
    def create(
            cls,
            message: str,
            author: str,
            parents: list[str] | None = None,
            tree: dict[str, str] | None = None,
            salt: str = "",
    ) -> Commit:
        """Build a commit stamped with the current time; its id is computed here."""
        parents = list(parents or [])
        tree = dict(tree or {})
        return cls(
            id=cls.content_id(message, tree, parents, salt),
            message=message,
            author=author,
            timestamp=datetime.now().isoformat(),
            parents=parents,
            tree=tree,
            salt=salt,
        )

    @classmethod
    def from_dict(
            cls,
            data: dict[str, Any],
    ) -> Commit:
        # Commit files written without a salt predate salted ids.
        return cls(
            id=data["id"],
            message=data["message"],
            author=data["author"],
            timestamp=data["timestamp"],
            parents=list(data.get("parents", [])),
            tree=dict(data.get("tree", {})),
            salt=data.get("salt", ""),
        )

    def save(
            self,
            commits_dir: Path,
    ) -> Path:
        """Write the commit as ``<commits_dir>/<id>.json`` and return that path."""
        path = commits_dir / f"{self.id}.json"
        path.write_text(json.dumps(asdict(self), indent=2))
        return path

    @classmethod
    def load(
            cls,
            path: Path,
    ) -> Commit:
        """Read a commit file.

        Raises:
            RuntimeError: If the file is missing or malformed.
        """
        try:
            return cls.from_dict(json.loads(path.read_text()))
        except Exception as file_error:
            msg = f"Failed to load commit from {path}: {file_error}"
            raise RuntimeError(msg) from file_error


# ---- Refs and Remotes ---------------------------------------------------------------------------------------


@dataclass
class Branch:
    """A local branch and the commit it points at."""

    name: str
    commit_id: str


@dataclass
class Remote:
    """Another repository this one fetches from.

    Attributes:
        name: Remote name, e.g. 'origin'.
        url: Root path of the other repository, as given when added.
    """

    name: str
    url: str


# ---- Configuration ------------------------------------------------------------------------------------------


@dataclass
class RepoConfig:
    """Contents of .repoast/config.json.

    Attributes:
        version: Storage format version.
        user_name: Author used when a commit names none.
        user_email: Author email.
        remotes: Configured remotes keyed by name.
    """

    version: str = CONFIG_VERSION
    user_name: str = ""
    user_email: str = ""
    remotes: dict[str, Remote] = field(default_factory=dict)

    def to_dict(
            self,
    ) -> dict[str, Any]:
        return {
            "version": self.version,
            "user_name": self.user_name,
            "user_email": self.user_email,
            "remotes": {name: asdict(remote) for name, remote in self.remotes.items()},
        }

    @classmethod
    def from_dict(
            cls,
            data: dict[str, Any],
    ) -> RepoConfig:
        """Build a config, filling in defaults for absent keys."""
        remotes = data.get("remotes") or {}
        return cls(
            version=data.get("version", CONFIG_VERSION),
            user_name=data.get("user_name", ""),
            user_email=data.get("user_email", ""),
            remotes={name: Remote(**remote) for name, remote in remotes.items()},
        )

    def save(
            self,
            config_path: Path,
    ) -> None:
        config_path.write_text(json.dumps(self.to_dict(), indent=2))

    @classmethod
    def load(
            cls,
            config_path: Path,
    ) -> RepoConfig:
        """Read config.json.

        Raises:
            RuntimeError: If the file is missing or malformed.
        """
        try:
            return cls.from_dict(json.loads(config_path.read_text()))
        except Exception as file_error:
            msg = f"Failed to load config from {config_path}: {file_error}"
            raise RuntimeError(msg) from file_error
