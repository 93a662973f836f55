"""Tests for search_index.catalog module."""

from __future__ import annotations

import shutil
from typing import TYPE_CHECKING

import pytest

from doxsearch_common.errors import (
    SearchIndexFormatError,
    SearchIndexNotFoundError,
    SearchQueryError,
)
from search_index.catalog import SearchCatalog, discover_shards
from search_index.models import SearchEntry, SearchTarget

if TYPE_CHECKING:
    from pathlib import Path


class TestDiscoverShards:
    """Tests for discover_shards."""

    def test_orders_shards_as_hex(self, search_dir: Path) -> None:
        """all_2 < all_a < all_16 once suffixes are read as hex."""
        shards = discover_shards(search_dir)
        assert [shard.path.name for shard in shards["all"]] == ["all_2.js", "all_a.js", "all_16.js"]
        assert [shard.shard for shard in shards["all"]] == [2, 10, 22]

    def test_ignores_non_shard_files(self, search_dir: Path) -> None:
        """search.js and searchdata.js are not shards."""
        assert list(discover_shards(search_dir)) == ["all", "classes"]

    def test_skips_unknown_sections(self, tmp_path: Path, search_dir: Path) -> None:
        """Files that look like shards of an unknown section are skipped."""
        shutil.copy(search_dir / "classes_0.js", tmp_path / "classes_0.js")
        (tmp_path / "notes_0.js").write_text("not search data", encoding="utf-8")
        (tmp_path / "all_0.js.bak").write_text("backup", encoding="utf-8")
        assert list(discover_shards(tmp_path)) == ["classes"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A missing directory raises SearchIndexNotFoundError."""
        with pytest.raises(SearchIndexNotFoundError, match="Search directory not found"):
            discover_shards(tmp_path / "html" / "search")


class TestSearchCatalog:
    """Tests for SearchCatalog."""

    def test_load_concatenates_shards(self, search_dir: Path) -> None:
        """Each section index holds its shards' entries in shard order."""
        catalog = SearchCatalog.load(search_dir)
        assert catalog.sections == ("all", "classes")
        all_index = catalog.index("all")
        assert len(all_index) == 78
        assert all_index.entries[0].key == "binary_5fsearch_5ftree_165"
        assert all_index.entries[2].key == "kadane_1034"
        assert all_index.entries[-1].key == "util_5ffunctions_2269"
        assert [shard.shard for shard in catalog.shards("classes")] == [0]

    def test_search_and_find_by_section(self, search_dir: Path) -> None:
        """Queries run against the requested section."""
        catalog = SearchCatalog.load(search_dir)
        assert [entry.key for entry in catalog.search("uint128", section="classes")] == [
            "uint128_5ft_0"
        ]
        assert len(catalog.search("uint128")) == 3
        assert [entry.key for entry in catalog.find("kadane.cpp")] == ["kadane_2ecpp_1035"]

    def test_unknown_section(self, search_dir: Path) -> None:
        """Sections that were not loaded raise SearchQueryError."""
        catalog = SearchCatalog.load(search_dir)
        assert "functions" not in catalog
        with pytest.raises(SearchQueryError, match="Unknown search section 'functions'") as excinfo:
            catalog.search("u", section="functions")
        assert excinfo.value.context["available"] == ["all", "classes"]

    def test_empty_directory(self, tmp_path: Path) -> None:
        """A directory without shards raises SearchIndexNotFoundError."""
        with pytest.raises(SearchIndexNotFoundError, match="No search data files"):
            SearchCatalog.load(tmp_path)

    def test_malformed_shard(self, tmp_path: Path) -> None:
        """A broken shard stops the load with its file name in the message."""
        (tmp_path / "all_0.js").write_text("var searchData=[['a_1',['a']]];", encoding="utf-8")
        with pytest.raises(SearchIndexFormatError, match="all_0.js:1:17"):
            SearchCatalog.load(tmp_path)

    def test_from_entries(self) -> None:
        """Catalogs can be built from in-memory entries."""
        entry = SearchEntry("abs_1", "abs", (SearchTarget("a.html", True, ""),))
        catalog = SearchCatalog.from_entries({"functions": [entry]})
        assert len(catalog) == 1
        assert catalog.index("functions").section == "functions"
        assert catalog.shards("functions") == ()
        assert catalog.search("abs", section="functions") == (entry,)
