"""Shared pytest fixtures for doxsearch tests.

This module provides reusable fixtures for:
- Generator search data fixtures (a real ``all_16.js`` shard and a small search directory)
- Isolation from ``DOXSEARCH_*`` environment variables
- Restoring root logging configuration changed by the CLI
- Grouping captured log records by operation
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from search_index.parser import load_search_file

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from _pytest.logging import LogCaptureFixture

    from search_index.models import SearchEntry

FIXTURES_DIR = Path(__file__).parent / "fixtures"
SEARCH_DIR = FIXTURES_DIR / "search"


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.upper().startswith("DOXSEARCH_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def search_dir() -> Path:
    """Directory laid out like a generated ``html/search`` folder."""
    return SEARCH_DIR


@pytest.fixture
def all_16_path() -> Path:
    """Real generator shard holding the entries that start with ``u``."""
    return SEARCH_DIR / "all_16.js"


@pytest.fixture
def all_16_text(all_16_path: Path) -> str:
    return all_16_path.read_text(encoding="utf-8")


@pytest.fixture
def all_16_entries(all_16_path: Path) -> tuple[SearchEntry, ...]:
    return load_search_file(all_16_path)


@pytest.fixture
def caplog_records(
    caplog: LogCaptureFixture,
) -> Callable[[], dict[str, list[logging.LogRecord]]]:
    """Group captured log records by their structured ``operation`` field.

    Returns
    -------
    Callable[[], dict[str, list[logging.LogRecord]]]
        Function returning the records captured so far, keyed by operation.
    """

    def _collect() -> dict[str, list[logging.LogRecord]]:
        records_by_op: dict[str, list[logging.LogRecord]] = {}
        for record in caplog.records:
            operation = getattr(record, "operation", "unknown")
            key = operation if isinstance(operation, str) else "unknown"
            records_by_op.setdefault(key, []).append(record)
        return records_by_op

    return _collect
