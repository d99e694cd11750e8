"""Tests for fixture temp directory management.

Execution Context:
    Test module - run via pytest

Dependencies:
    - pytest: Test framework
    - repoast_core.test_util: Module under test
"""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from repoast_core import test_util


class TestMakeTempDir:
    """Tests for make_temp_dir."""

    def test_creates_tracked_directory(self) -> None:
        """Test a new directory is created and tracked."""
        path = test_util.make_temp_dir()

        assert path.is_dir()
        assert path.name.startswith(test_util.TEMP_PREFIX)
        assert path in test_util.pending_temp_dirs()

    def test_parent_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test REPOAST_TMPDIR selects the parent directory."""
        parent = tmp_path / "fixtures"
        monkeypatch.setenv(test_util.TMPDIR_ENV, str(parent))

        path = test_util.make_temp_dir()

        assert path.parent == parent.resolve()


class TestCleanup:
    """Tests for cleanup."""

    def test_removes_directories(self) -> None:
        """Test every tracked directory is removed."""
        first = test_util.make_temp_dir()
        second = test_util.make_temp_dir()
        (first / "file").write_text("x")

        test_util.cleanup()

        assert not first.exists()
        assert not second.exists()
        assert test_util.pending_temp_dirs() == []

    def test_keep_temp(
            self,
            tmp_path: Path,
            monkeypatch: pytest.MonkeyPatch,
            caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test REPOAST_KEEP_TEMP leaves directories for inspection."""
        monkeypatch.setenv(test_util.TMPDIR_ENV, str(tmp_path))
        monkeypatch.setenv(test_util.KEEP_TEMP_ENV, "1")
        path = test_util.make_temp_dir()

        with caplog.at_level(logging.WARNING, logger="repoast_core.test_util"):
            test_util.cleanup()

        assert path.exists()
        assert test_util.pending_temp_dirs() == []
        assert str(path) in caplog.text

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("1", True), ("true", True), ("YES", True), ("0", False), ("", False)],
    )
    def test_keep_temp_values(self, value: str, expected: bool, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test accepted spellings of REPOAST_KEEP_TEMP."""
        monkeypatch.setenv(test_util.KEEP_TEMP_ENV, value)

        assert test_util.keep_temp_dirs() is expected
