"""Local repository storage engine for repoast.

Handles creation, validation, and manipulation of the .repoast
directory structure including refs, commit objects, the index and
the working tree. Commits written with write_commit get ids derived from
their content and salt, so the same history written twice yields the
same ids. Commits made with create_commit are always distinct.

Execution Context:
    Library module - imported by repo_ast_io, the fixture harness and
    test manipulators

Dependencies:
    - repoast_core.models: Data models

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

import json
import logging
import shutil
import uuid
from collections.abc import Iterable
from pathlib import Path

from repoast_core.models import Branch
from repoast_core.models import Commit
from repoast_core.models import Remote
from repoast_core.models import RepoConfig

logger = logging.getLogger(__name__)


# ---- Constants ----------------------------------------------------------------------------------------------


REPO_DIR = ".repoast"
CONFIG_FILE = "config.json"
HEAD_FILE = "HEAD"
INDEX_FILE = "index.json"
REFS_DIR = "refs"
HEADS_DIR = "heads"
REMOTES_DIR = "remotes"
OBJECTS_DIR = "objects"
COMMITS_DIR = "commits"
DEFAULT_BRANCH = "master"
HEAD_REF_PREFIX = "ref: refs/heads/"


# ---- Repository Class ---------------------------------------------------------------------------------------


class Repository:
    """Manages a local repoast repository.

    Provides methods for creating, reading, and manipulating the
    .repoast directory structure and the working tree around it.

    Attributes:
        root: Working tree root containing the .repoast folder.
        repo_dir: Path to .repoast directory.
    """

    def __init__(
            self,
            root: Path | str,
    ) -> None:
        """Initialize repository at given root path.

        Args:
            root: Directory containing or to contain .repoast folder.
        """
        self.root = Path(root).resolve()
        self.repo_dir = self.root / REPO_DIR

    def __repr__(self) -> str:
        return f"Repository({str(self.root)!r})"

    # ---- Path Properties ------------------------------------------------------------------------------------

    @property
    def config_path(
            self,
    ) -> Path:
        """Path to config.json."""
        return self.repo_dir / CONFIG_FILE

    @property
    def head_path(
            self,
    ) -> Path:
        """Path to HEAD file."""
        return self.repo_dir / HEAD_FILE

    @property
    def index_path(
            self,
    ) -> Path:
        """Path to index.json staging area."""
        return self.repo_dir / INDEX_FILE

    @property
    def refs_dir(
            self,
    ) -> Path:
        """Path to refs directory."""
        return self.repo_dir / REFS_DIR

    @property
    def heads_dir(
            self,
    ) -> Path:
        """Path to refs/heads directory (local branches)."""
        return self.refs_dir / HEADS_DIR

    @property
    def remotes_dir(
            self,
    ) -> Path:
        """Path to refs/remotes directory."""
        return self.refs_dir / REMOTES_DIR

    @property
    def objects_dir(
            self,
    ) -> Path:
        """Path to objects directory."""
        return self.repo_dir / OBJECTS_DIR

    @property
    def commits_dir(
            self,
    ) -> Path:
        """Path to objects/commits directory."""
        return self.objects_dir / COMMITS_DIR

    # ---- Repository State -----------------------------------------------------------------------------------

    def exists(
            self,
    ) -> bool:
        """Check if repository exists.

        Returns:
            True if .repoast directory exists.
        """
        return self.repo_dir.is_dir()

    # ---- Initialization -------------------------------------------------------------------------------------

    def init(
            self,
            user_name: str = "",
            user_email: str = "",
            default_branch: str = DEFAULT_BRANCH,
    ) -> None:
        """Initialize a new repository.

        Creates the .repoast directory structure with initial config,
        an empty index and HEAD referring to the (not yet existing)
        default branch.

        Args:
            user_name: Default commit author name.
            user_email: Default commit author email.
            default_branch: Branch HEAD refers to before the first commit.

        Raises:
            RuntimeError: If repository already exists.
        """
        if self.exists():
            msg = f"Repository already exists at {self.repo_dir}"
            raise RuntimeError(msg)

        try:
            self.repo_dir.mkdir(parents=True)
            self.heads_dir.mkdir(parents=True)
            self.remotes_dir.mkdir(parents=True)
            self.commits_dir.mkdir(parents=True)

            config = RepoConfig(
                user_name=user_name,
                user_email=user_email,
            )
            config.save(self.config_path)

            self._write_head(default_branch)
            self._write_index({})

        except Exception as init_error:
            msg = f"Failed to initialize repository: {init_error}"
            raise RuntimeError(msg) from init_error

    # ---- HEAD Operations ------------------------------------------------------------------------------------

    def get_current_branch(
            self,
    ) -> str | None:
        """Get name of the branch HEAD refers to.

        The branch may not exist yet (e.g. before the first commit).

        Returns:
            Branch name or None if HEAD is detached or empty.
        """
        if not self.head_path.exists():
            return None

        head_content = self.head_path.read_text().strip()
        if head_content.startswith(HEAD_REF_PREFIX):
            return head_content[len(HEAD_REF_PREFIX):]
        return None

    def get_head_commit(
            self,
    ) -> str | None:
        """Get commit ID that HEAD points to.

        Returns:
            Commit ID or None if there is no HEAD commit.
        """
        if not self.head_path.exists():
            return None

        branch = self.get_current_branch()
        if branch:
            return self.get_branch_commit(branch)

        # Detached HEAD - contains commit ID directly
        head_content = self.head_path.read_text().strip()
        if not head_content.startswith("ref:"):
            return head_content if head_content else None
        return None

    def set_head(
            self,
            branch: str,
    ) -> None:
        """Point HEAD at a branch without touching index or working tree."""
        self._write_head(branch)

    def set_head_detached(
            self,
            commit_id: str,
    ) -> None:
        """Point HEAD directly at a commit.

        Raises:
            RuntimeError: If the commit does not exist.
        """
        if not self.has_commit(commit_id):
            msg = f"Commit '{commit_id}' not found"
            raise RuntimeError(msg)
        self.head_path.write_text(commit_id)

    def clear_head(
            self,
    ) -> None:
        """Leave the repository without a HEAD."""
        self.head_path.write_text("")

    def _write_head(
            self,
            branch: str,
    ) -> None:
        """Write branch reference to HEAD.

        Args:
            branch: Branch name to reference.
        """
        self.head_path.write_text(f"{HEAD_REF_PREFIX}{branch}")

    # ---- Branch Operations ----------------------------------------------------------------------------------

    def list_branches(
            self,
    ) -> list[str]:
        """List all local branches.

        Returns:
            List of branch names.
        """
        if not self.heads_dir.exists():
            return []

        branches = []
        for path in self.heads_dir.rglob("*"):
            if path.is_file():
                rel_path = path.relative_to(self.heads_dir)
                branches.append(rel_path.as_posix())
        return sorted(branches)

    def get_branch_commit(
            self,
            branch: str,
    ) -> str | None:
        """Get commit ID for a branch.

        Args:
            branch: Branch name.

        Returns:
            Commit ID or None if the branch does not exist.
        """
        branch_path = self.heads_dir / branch
        if not branch_path.is_file():
            return None

        content = branch_path.read_text().strip()
        return content if content else None

    def create_branch(
            self,
            name: str,
            commit_id: str | None = None,
    ) -> Branch:
        """Create a new branch.

        Args:
            name: Branch name.
            commit_id: Commit to point to (defaults to HEAD).

        Returns:
            Created Branch object.

        Raises:
            RuntimeError: If branch already exists or commit not found.
        """
        branch_path = self.heads_dir / name

        if branch_path.exists():
            msg = f"Branch '{name}' already exists"
            raise RuntimeError(msg)

        if commit_id is None:
            commit_id = self.get_head_commit()

        if not commit_id or not self.has_commit(commit_id):
            msg = f"Cannot create branch '{name}': commit '{commit_id}' not found"
            raise RuntimeError(msg)

        # Create parent directories for nested branch names
        branch_path.parent.mkdir(parents=True, exist_ok=True)
        branch_path.write_text(commit_id)

        return Branch(name=name, commit_id=commit_id)

    def update_branch(
            self,
            name: str,
            commit_id: str,
    ) -> None:
        """Update branch to point to new commit.

        Args:
            name: Branch name.
            commit_id: New commit ID.

        Raises:
            RuntimeError: If branch doesn't exist.
        """
        branch_path = self.heads_dir / name
        if not branch_path.exists():
            msg = f"Branch '{name}' does not exist"
            raise RuntimeError(msg)

        branch_path.write_text(commit_id)

    def delete_branch(
            self,
            name: str,
    ) -> None:
        """Delete a branch.

        Args:
            name: Branch name to delete.

        Raises:
            RuntimeError: If branch is current or doesn't exist.
        """
        if name == self.get_current_branch():
            msg = f"Cannot delete current branch '{name}'"
            raise RuntimeError(msg)

        branch_path = self.heads_dir / name
        if not branch_path.exists():
            msg = f"Branch '{name}' does not exist"
            raise RuntimeError(msg)

        branch_path.unlink()

    def checkout_branch(
            self,
            name: str,
    ) -> None:
        """Switch to a different branch.

        Resets the index and the working tree to the branch's commit.

        Args:
            name: Branch name to checkout.

        Raises:
            RuntimeError: If branch doesn't exist.
        """
        commit_id = self.get_branch_commit(name)
        if commit_id is None:
            msg = f"Branch '{name}' does not exist"
            raise RuntimeError(msg)

        self._write_head(name)

        commit = self.get_commit(commit_id)
        tree = commit.tree if commit else {}
        self._write_index(tree)
        self.replace_working_tree(tree)

    # ---- Ref Operations -------------------------------------------------------------------------------------

    def list_refs(
            self,
    ) -> dict[str, str]:
        """List refs that are neither local nor remote branches.

        Returns:
            Map from ref name relative to refs/ (e.g. 'tags/v1') to commit ID.
        """
        if not self.refs_dir.exists():
            return {}

        refs = {}
        for path in self.refs_dir.rglob("*"):
            if not path.is_file():
                continue
            rel_path = path.relative_to(self.refs_dir)
            if rel_path.parts[0] in (HEADS_DIR, REMOTES_DIR):
                continue
            content = path.read_text().strip()
            if content:
                refs[rel_path.as_posix()] = content
        return dict(sorted(refs.items()))

    def _ref_path(
            self,
            name: str,
    ) -> Path:
        if name.split("/", 1)[0] in (HEADS_DIR, REMOTES_DIR):
            msg = f"Ref '{name}' is reserved for branches"
            raise RuntimeError(msg)
        return self.refs_dir / name

    def get_ref(
            self,
            name: str,
    ) -> str | None:
        """Get commit ID for a ref such as 'tags/v1'."""
        ref_path = self._ref_path(name)
        if not ref_path.is_file():
            return None
        content = ref_path.read_text().strip()
        return content if content else None

    def set_ref(
            self,
            name: str,
            commit_id: str,
    ) -> None:
        """Create or move a ref.

        Raises:
            RuntimeError: If the commit does not exist or the name is reserved.
        """
        ref_path = self._ref_path(name)
        if not self.has_commit(commit_id):
            msg = f"Cannot set ref '{name}': commit '{commit_id}' not found"
            raise RuntimeError(msg)
        ref_path.parent.mkdir(parents=True, exist_ok=True)
        ref_path.write_text(commit_id)

    def delete_ref(
            self,
            name: str,
    ) -> None:
        """Delete a ref.

        Raises:
            RuntimeError: If the ref doesn't exist.
        """
        ref_path = self._ref_path(name)
        if not ref_path.is_file():
            msg = f"Ref '{name}' does not exist"
            raise RuntimeError(msg)
        ref_path.unlink()

    # ---- Index Operations -----------------------------------------------------------------------------------

    def get_index(
            self,
    ) -> dict[str, str]:
        """Get current staging area (index) contents.

        Returns:
            Staged tree mapping file path to content.
        """
        if not self.index_path.exists():
            return {}

        try:
            return json.loads(self.index_path.read_text())
        except json.JSONDecodeError:
            return {}

    def _write_index(
            self,
            tree: dict[str, str],
    ) -> None:
        self.index_path.write_text(json.dumps(tree, indent=2, sort_keys=True))

    def update_index(
            self,
            tree: dict[str, str],
    ) -> None:
        """Replace the staging area with a full tree.

        Args:
            tree: Tree to stage.
        """
        self._write_index(tree)

    def stage(
            self,
            path: str,
    ) -> None:
        """Stage the working tree state of a single file.

        A file missing from the working tree is removed from the index.

        Args:
            path: File path relative to the repository root.
        """
        index = self.get_index()
        file_path = self.root / path
        if file_path.is_file():
            index[path] = file_path.read_text()
        else:
            index.pop(path, None)
        self._write_index(index)

    # ---- Working Tree Operations ----------------------------------------------------------------------------

    def read_working_tree(
            self,
    ) -> dict[str, str]:
        """Read every file of the working tree.

        Returns:
            Map from path relative to the root to file content.
        """
        tree = {}
        for path in self.root.rglob("*"):
            rel_path = path.relative_to(self.root)
            if rel_path.parts[0] == REPO_DIR or not path.is_file():
                continue
            tree[rel_path.as_posix()] = path.read_text()
        return dict(sorted(tree.items()))

    def write_file(
            self,
            path: str,
            content: str,
    ) -> None:
        """Write a file into the working tree."""
        file_path = self.root / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)

    def remove_file(
            self,
            path: str,
    ) -> None:
        """Remove a file from the working tree if present."""
        (self.root / path).unlink(missing_ok=True)

    def replace_working_tree(
            self,
            tree: dict[str, str],
    ) -> None:
        """Make the working tree contain exactly the given files.

        Args:
            tree: Map from path to content.
        """
        for child in self.root.iterdir():
            if child.name == REPO_DIR:
                continue
            if child.is_dir():
                shutil.rmtree(child)
            else:
                child.unlink()
        for path, content in tree.items():
            self.write_file(path, content)

    # ---- Commit Operations ----------------------------------------------------------------------------------

    def get_commit(
            self,
            commit_id: str,
    ) -> Commit | None:
        """Load a commit by ID.

        Args:
            commit_id: Commit identifier.

        Returns:
            Commit object or None if not found.
        """
        commit_path = self.commits_dir / f"{commit_id}.json"
        if not commit_path.exists():
            return None

        return Commit.load(commit_path)

    def has_commit(
            self,
            commit_id: str,
    ) -> bool:
        """Check if a commit object exists."""
        return (self.commits_dir / f"{commit_id}.json").exists()

    def write_commit(
            self,
            message: str,
            tree: dict[str, str],
            parents: list[str] | None = None,
            author: str | None = None,
            salt: str = "",
    ) -> Commit:
        """Store a commit object without moving any ref.

        The id depends only on message, tree, parents and salt. Writing a
        commit whose id already exists returns the stored commit unchanged.

        Args:
            message: Commit message.
            tree: Full file tree of the commit.
            parents: Parent commit IDs, first parent first.
            author: Author name (uses config if not provided).
            salt: Distinguishes commits whose content is identical.

        Returns:
            The stored Commit.

        Raises:
            RuntimeError: If a parent commit is missing.
        """
        parents = list(parents or [])
        missing = [parent for parent in parents if not self.has_commit(parent)]
        if missing:
            msg = f"Parent commit(s) not found: {', '.join(missing)}"
            raise RuntimeError(msg)

        existing = self.get_commit(Commit.content_id(message, tree, parents, salt))
        if existing:
            return existing

        if not author:
            author = self.get_config().user_name or "Unknown"

        commit = Commit.create(
            message=message,
            author=author,
            parents=parents,
            tree=tree,
            salt=salt,
        )
        commit.save(self.commits_dir)
        logger.debug(f"Wrote commit {commit.id} in {self.root}")
        return commit

    def create_commit(
            self,
            message: str,
            author: str | None = None,
    ) -> Commit:
        """Create a new commit from current index.

        The new commit's parent is the HEAD commit. The current branch is
        created or advanced; a detached HEAD moves to the new commit.
        Every call makes a distinct commit, even for identical content.

        Args:
            message: Commit message.
            author: Author name (uses config if not provided).

        Returns:
            Created Commit object.

        Raises:
            RuntimeError: If commit creation fails.
        """
        try:
            parent = self.get_head_commit()
            commit = self.write_commit(
                message,
                self.get_index(),
                parents=[parent] if parent else [],
                author=author,
                salt=uuid.uuid4().hex,
            )

            branch = self.get_current_branch()
            if branch:
                branch_path = self.heads_dir / branch
                branch_path.parent.mkdir(parents=True, exist_ok=True)
                branch_path.write_text(commit.id)
            else:
                self.set_head_detached(commit.id)

            return commit

        except Exception as commit_error:
            msg = f"Failed to create commit: {commit_error}"
            raise RuntimeError(msg) from commit_error

    def reachable_commits(
            self,
            starts: Iterable[str],
    ) -> dict[str, Commit]:
        """Collect every commit reachable from the given commits.

        Args:
            starts: Commit IDs to walk from.

        Returns:
            Map from commit ID to Commit.

        Raises:
            RuntimeError: If a reachable commit object is missing.
        """
        found: dict[str, Commit] = {}
        pending = list(starts)
        while pending:
            commit_id = pending.pop()
            if commit_id in found:
                continue
            commit = self.get_commit(commit_id)
            if commit is None:
                msg = f"Commit '{commit_id}' not found in {self.root}"
                raise RuntimeError(msg)
            found[commit_id] = commit
            pending.extend(commit.parents)
        return found

    # ---- Config Operations ----------------------------------------------------------------------------------

    def get_config(
            self,
    ) -> RepoConfig:
        """Load repository configuration.

        Returns:
            RepoConfig object.

        Raises:
            RuntimeError: If config cannot be loaded.
        """
        if not self.config_path.exists():
            msg = f"Config file not found at {self.config_path}"
            raise RuntimeError(msg)

        return RepoConfig.load(self.config_path)

    def update_config(
            self,
            config: RepoConfig,
    ) -> None:
        """Save updated configuration.

        Args:
            config: RepoConfig to save.
        """
        config.save(self.config_path)

    # ---- Remote Operations ----------------------------------------------------------------------------------

    def add_remote(
            self,
            name: str,
            url: str,
    ) -> Remote:
        """Configure a new remote.

        Args:
            name: Remote name.
            url: Location of the remote repository.

        Returns:
            Created Remote.

        Raises:
            RuntimeError: If a remote with that name exists.
        """
        config = self.get_config()
        if name in config.remotes:
            msg = f"Remote '{name}' already exists"
            raise RuntimeError(msg)

        remote = Remote(name=name, url=str(url))
        config.remotes[name] = remote
        self.update_config(config)
        return remote

    def get_remote(
            self,
            name: str,
    ) -> Remote | None:
        """Get a configured remote by name."""
        return self.get_config().remotes.get(name)

    def list_remotes(
            self,
    ) -> dict[str, Remote]:
        """Get all configured remotes keyed by name."""
        return dict(sorted(self.get_config().remotes.items()))

    def list_remote_branches(
            self,
            remote: str,
    ) -> dict[str, str]:
        """List the remote-tracking branches of a remote.

        Returns:
            Map from branch name to commit ID.
        """
        remote_dir = self.remotes_dir / remote
        if not remote_dir.is_dir():
            return {}

        branches = {}
        for path in remote_dir.rglob("*"):
            if path.is_file():
                content = path.read_text().strip()
                if content:
                    branches[path.relative_to(remote_dir).as_posix()] = content
        return dict(sorted(branches.items()))

    def set_remote_branch(
            self,
            remote: str,
            branch: str,
            commit_id: str,
    ) -> None:
        """Create or move a remote-tracking branch.

        Raises:
            RuntimeError: If the commit does not exist.
        """
        if not self.has_commit(commit_id):
            msg = f"Cannot set '{remote}/{branch}': commit '{commit_id}' not found"
            raise RuntimeError(msg)
        branch_path = self.remotes_dir / remote / branch
        branch_path.parent.mkdir(parents=True, exist_ok=True)
        branch_path.write_text(commit_id)

    def fetch(
            self,
            remote_name: str = "origin",
    ) -> list[str]:
        """Copy the branches of a remote into remote-tracking branches.

        Args:
            remote_name: Remote to fetch from.

        Returns:
            IDs of commits that were not present before.

        Raises:
            RuntimeError: If the remote is unknown or unreachable.
        """
        remote = self.get_remote(remote_name)
        if remote is None:
            msg = f"Remote '{remote_name}' does not exist"
            raise RuntimeError(msg)

        source = open_repository(remote.url)
        source_branches = {
            name: source.get_branch_commit(name) for name in source.list_branches()
        }
        source_branches = {name: commit for name, commit in source_branches.items() if commit}

        fetched = []
        for commit_id, commit in source.reachable_commits(source_branches.values()).items():
            if not self.has_commit(commit_id):
                commit.save(self.commits_dir)
                fetched.append(commit_id)

        remote_dir = self.remotes_dir / remote_name
        if remote_dir.exists():
            shutil.rmtree(remote_dir)
        for name, commit_id in source_branches.items():
            self.set_remote_branch(remote_name, name, commit_id)

        logger.debug(f"Fetched {len(fetched)} commit(s) from {remote.url} into {self.root}")
        return fetched


# ---- Module Functions ---------------------------------------------------------------------------------------


def find_repository(
        start_path: Path | str | None = None,
) -> Repository | None:
    """Find repository in current or parent directories.

    Args:
        start_path: Directory to start searching from.

    Returns:
        Repository if found, None otherwise.
    """
    current = Path(start_path or Path.cwd()).resolve()

    while current != current.parent:
        repo = Repository(current)
        if repo.exists():
            return repo
        current = current.parent

    return None


def init_repository(
        path: Path | str | None = None,
        user_name: str = "",
        user_email: str = "",
) -> Repository:
    """Initialize a new repository.

    Args:
        path: Directory for new repository (defaults to cwd).
        user_name: Default author name.
        user_email: Default author email.

    Returns:
        Initialized Repository.
    """
    repo = Repository(path or Path.cwd())
    repo.init(
        user_name=user_name,
        user_email=user_email,
    )
    return repo


def open_repository(
        path: Path | str,
) -> Repository:
    """Open an existing repository.

    Args:
        path: Repository root.

    Returns:
        Repository at that path.

    Raises:
        RuntimeError: If no repository exists there.
    """
    repo = Repository(path)
    if not repo.exists():
        msg = f"No repository found at {repo.root}"
        raise RuntimeError(msg)
    return repo


def clone_repository(
        url: Path | str,
        path: Path | str,
        remote_name: str = "origin",
) -> Repository:
    """Clone a repository.

    The clone gets a remote pointing at ``url``, remote-tracking branches
    for every source branch and, if the source has a current branch, a
    checked-out local branch of the same name. Otherwise it has no HEAD.

    Args:
        url: Root of the source repository.
        path: Root of the new repository.
        remote_name: Name of the remote to create.

    Returns:
        The cloned Repository.
    """
    source = open_repository(url)
    repo = init_repository(path)
    repo.add_remote(remote_name, str(url))
    repo.fetch(remote_name)

    branch = source.get_current_branch()
    commit_id = source.get_branch_commit(branch) if branch else None
    if branch and commit_id:
        repo.create_branch(branch, commit_id)
        repo.checkout_branch(branch)
    else:
        repo.clear_head()

    logger.debug(f"Cloned {url} into {repo.root}")
    return repo
