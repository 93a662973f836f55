"""Tests for doxsearch_common.fs helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from doxsearch_common.fs import atomic_write_text, ensure_dir, read_text

if TYPE_CHECKING:
    from pathlib import Path


def test_atomic_write_creates_parents(tmp_path: Path) -> None:
    """Parent directories are created and no temporary file is left behind."""
    target = tmp_path / "html" / "search" / "all_0.js"
    atomic_write_text(target, "var searchData=\n[]\n;\n")
    assert read_text(target) == "var searchData=\n[]\n;\n"
    assert [path.name for path in target.parent.iterdir()] == ["all_0.js"]


def test_atomic_write_replaces_existing(tmp_path: Path) -> None:
    """An existing file is replaced as a whole."""
    target = tmp_path / "all_0.js"
    target.write_text("old contents that are longer", encoding="utf-8")
    atomic_write_text(target, "new")
    assert read_text(target) == "new"


def test_ensure_dir_is_idempotent(tmp_path: Path) -> None:
    """ensure_dir returns the directory and tolerates an existing one."""
    directory = tmp_path / "a" / "b"
    assert ensure_dir(directory) == directory
    assert ensure_dir(directory).is_dir()
