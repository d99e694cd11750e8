"""repoast Core Library.

Declarative repository fixtures for tests: describe repositories as
shorthand or RepoAST values, materialize them on disk, apply a change,
and verify the resulting state with logical identifiers.

Execution Context:
    Library package - imported by test suites and the CLI

Dependencies:
    - deepdiff: Structural comparison

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

from repoast_core.errors import AstMismatchError
from repoast_core.errors import DuplicateIdentifierError
from repoast_core.errors import HarnessError
from repoast_core.errors import MalformedInputError
from repoast_core.errors import UnknownRepositoryError
from repoast_core.identity import CommitMap
from repoast_core.identity import RepoPathMap
from repoast_core.identity import UrlMap
from repoast_core.repo_ast import AstCommit
from repoast_core.repo_ast import AstRemote
from repoast_core.repo_ast import RepoAST
from repoast_core.shorthand import parse_multi_repo_shorthand
from repoast_core.shorthand import parse_repo_shorthand

__version__ = "0.1.0"

__all__ = [
    "AstCommit",
    "AstMismatchError",
    "AstRemote",
    "CommitMap",
    "DuplicateIdentifierError",
    "HarnessError",
    "MalformedInputError",
    "RepoAST",
    "RepoPathMap",
    "UnknownRepositoryError",
    "UrlMap",
    "parse_multi_repo_shorthand",
    "parse_repo_shorthand",
    "__version__",
]
