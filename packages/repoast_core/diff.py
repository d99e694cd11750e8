"""Structural diffing of repository descriptions.

Compares an actual RepoAST against an expected one section by section
and renders the differences for test failure messages.

Execution Context:
    Library module - imported by repo_ast_util

Dependencies:
    - deepdiff: Deep dictionary comparison

Metadata:
    Version: 0.1.0
    Author: repoast Team
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from deepdiff import DeepDiff

from repoast_core.repo_ast import RepoAST


# ---- Constants ----------------------------------------------------------------------------------------------


KEYED_SECTIONS = ("commits", "branches", "refs", "remotes", "index", "workdir")
SCALAR_SECTIONS = ("head", "current_branch_name")


# ---- Data Classes -------------------------------------------------------------------------------------------


@dataclass
class EntryChange:
    """A difference in one entry of a RepoAST section.

    Attributes:
        section: Section name (e.g. 'commits', 'branches', 'head').
        key: Entry key within the section.
        change_type: 'unexpected', 'missing' or 'modified'.
        actual: Actual value, None when missing.
        expected: Expected value, None when unexpected.
        details: DeepDiff output for modified entries.
    """

    section: str
    key: str
    change_type: str  # 'unexpected', 'missing', 'modified'
    actual: Any = None
    expected: Any = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class AstDiff:
    """Differences between an actual and an expected RepoAST."""

    changes: list[EntryChange] = field(default_factory=list)

    @property
    def has_changes(
            self,
    ) -> bool:
        """Check if any changes exist."""
        return bool(self.changes)

    @property
    def unexpected(
            self,
    ) -> list[EntryChange]:
        """Entries present only in the actual state."""
        return [c for c in self.changes if c.change_type == "unexpected"]

    @property
    def missing(
            self,
    ) -> list[EntryChange]:
        """Entries present only in the expected state."""
        return [c for c in self.changes if c.change_type == "missing"]

    @property
    def modified(
            self,
    ) -> list[EntryChange]:
        """Entries present in both with different values."""
        return [c for c in self.changes if c.change_type == "modified"]

    def for_section(
            self,
            section: str,
    ) -> list[EntryChange]:
        """Changes within one section."""
        return [c for c in self.changes if c.section == section]


# ---- Diff Functions -----------------------------------------------------------------------------------------


def diff_entries(
        section: str,
        actual: Mapping[str, Any],
        expected: Mapping[str, Any],
) -> list[EntryChange]:
    """Compare two keyed sections.

    Args:
        section: Section name recorded on each change.
        actual: Actual entries.
        expected: Expected entries.

    Returns:
        List of EntryChange objects.
    """
    changes = []

    for key in sorted(actual):
        if key not in expected:
            changes.append(EntryChange(
                section=section,
                key=key,
                change_type="unexpected",
                actual=actual[key],
            ))

    for key in sorted(expected):
        if key not in actual:
            changes.append(EntryChange(
                section=section,
                key=key,
                change_type="missing",
                expected=expected[key],
            ))

    for key in sorted(set(actual) & set(expected)):
        if actual[key] != expected[key]:
            changes.append(EntryChange(
                section=section,
                key=key,
                change_type="modified",
                actual=actual[key],
                expected=expected[key],
                details=diff_json(actual[key], expected[key], ignore_order=False),
            ))

    return changes


def diff_asts(
        actual: RepoAST,
        expected: RepoAST,
) -> AstDiff:
    """Compare two repository descriptions.

    Args:
        actual: State read back from disk (already remapped).
        expected: Expected state.

    Returns:
        AstDiff describing all differences.
    """
    result = AstDiff()
    actual_dict = actual.to_dict()
    expected_dict = expected.to_dict()

    for section in KEYED_SECTIONS:
        result.changes.extend(diff_entries(section, actual_dict[section], expected_dict[section]))

    for section in SCALAR_SECTIONS:
        if actual_dict[section] != expected_dict[section]:
            result.changes.append(EntryChange(
                section=section,
                key=section,
                change_type="modified",
                actual=actual_dict[section],
                expected=expected_dict[section],
            ))

    return result


def diff_json(
        obj1: Any,
        obj2: Any,
        ignore_order: bool = True,
) -> dict[str, Any]:
    """Generic JSON diff using DeepDiff.

    Args:
        obj1: Actual object.
        obj2: Expected object.
        ignore_order: Whether to ignore list ordering.

    Returns:
        Dictionary of differences, phrased as changes from obj2 to obj1.
    """
    deep_diff = DeepDiff(obj2, obj1, ignore_order=ignore_order)
    return deep_diff.to_dict() if deep_diff else {}


# ---- Formatting Functions -----------------------------------------------------------------------------------


def _render(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _detail_lines(
        change: EntryChange,
) -> list[str]:
    """One line per DeepDiff report type, listing the paths it touched."""
    indent = f"    {' ' * len(change.key)}  "
    lines = []
    for report_type in sorted(change.details):
        paths = sorted(str(path) for path in change.details[report_type] if str(path) != "root")
        if paths:
            lines.append(f"{indent}{report_type}: {', '.join(paths)}")
    return lines


def format_diff_summary(
        ast_diff: AstDiff,
) -> str:
    """Format AstDiff as human-readable summary.

    Modified entries list the paths DeepDiff found changed below the
    expected and actual values.

    Args:
        ast_diff: AstDiff object.

    Returns:
        Formatted string summary.
    """
    if not ast_diff.has_changes:
        return "No changes detected."

    lines = []
    for section in KEYED_SECTIONS + SCALAR_SECTIONS:
        section_changes = ast_diff.for_section(section)
        if not section_changes:
            continue

        lines.append(f"{section}:")
        for change in section_changes:
            if change.change_type == "unexpected":
                lines.append(f"  + {change.key}: {_render(change.actual)} (unexpected)")
            elif change.change_type == "missing":
                lines.append(f"  - {change.key}: {_render(change.expected)} (missing)")
            else:
                lines.append(f"  ~ {change.key}: expected {_render(change.expected)}")
                lines.append(f"    {' ' * len(change.key)}  actual   {_render(change.actual)}")
                lines.extend(_detail_lines(change))

    return "\n".join(lines)
