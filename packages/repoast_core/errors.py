"""Error types raised by the repoast fixture harness.

All harness errors derive from AssertionError so that test runners
report them as test failures rather than errors in the harness.

Execution Context:
    Library module - imported by identity, repo_ast_util and
    repo_ast_test_util

Dependencies:
    - None

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations


# ---- Error Classes ------------------------------------------------------------------------------------------


class HarnessError(AssertionError):
    """Base class for fixture harness failures."""


class MalformedInputError(HarnessError):
    """Input is neither a shorthand string nor a well-typed value."""


class DuplicateIdentifierError(HarnessError):
    """An identifier collides with one that is already registered."""


class UnknownRepositoryError(HarnessError):
    """An expected repository was neither created nor reported."""


class AstMismatchError(HarnessError):
    """Actual repository state differs from the expected state.

    Attributes:
        diff: Human-readable structural diff of the mismatch.
    """

    def __init__(
            self,
            message: str,
            diff: str = "",
    ) -> None:
        super().__init__(f"{message}\n{diff}" if diff else message)
        self.diff = diff
