"""Load every search data shard from a generated ``search/`` directory.

The generator splits each section of its index into one file per initial character:
``all_0.js`` ... ``all_1f.js``, ``classes_0.js`` and so on. The number after the section
name is a hex shard id. :class:`SearchCatalog` groups the shards by section, orders them
numerically and exposes one :class:`~search_index.index.SearchIndex` per section.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

from doxsearch_common.errors import SearchIndexNotFoundError, SearchQueryError
from doxsearch_common.logging import get_logger
from search_index.index import MatchMode, SearchIndex
from search_index.parser import load_search_file

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from search_index.models import SearchEntry

__all__ = [
    "KNOWN_SECTIONS",
    "SearchCatalog",
    "ShardFile",
    "discover_shards",
]

logger = get_logger(__name__)

KNOWN_SECTIONS: Final = (
    "all",
    "classes",
    "namespaces",
    "files",
    "functions",
    "variables",
    "typedefs",
    "enums",
    "enumvalues",
    "related",
    "defines",
    "groups",
    "pages",
    "concepts",
)

_SHARD_RE: Final = re.compile(r"^(?P<section>[a-z]+)_(?P<shard>[0-9a-f]+)\.js$")


@dataclass(frozen=True, slots=True)
class ShardFile:
    """One ``<section>_<shard>.js`` file."""

    section: str
    shard: int
    path: Path


def discover_shards(directory: Path) -> dict[str, tuple[ShardFile, ...]]:
    """Find search data shards in ``directory``, grouped by section.

    Parameters
    ----------
    directory : Path
        Generated ``search/`` directory.

    Returns
    -------
    dict[str, tuple[ShardFile, ...]]
        Shards per section, ordered by shard number. Sections keep the generator's
        order. Files that are not shards of a known section are skipped.

    Raises
    ------
    SearchIndexNotFoundError
        If ``directory`` does not exist or is not a directory.
    """
    if not directory.is_dir():
        msg = f"Search directory not found: {directory}"
        raise SearchIndexNotFoundError(msg, context={"path": str(directory)})
    grouped: dict[str, list[ShardFile]] = {}
    for path in directory.iterdir():
        match = _SHARD_RE.match(path.name)
        if match is None or not path.is_file():
            continue
        section = match.group("section")
        if section not in KNOWN_SECTIONS:
            logger.debug(
                "Skipping file with unknown section",
                extra={"operation": "discover_shards", "path": str(path), "section": section},
            )
            continue
        grouped.setdefault(section, []).append(
            ShardFile(section=section, shard=int(match.group("shard"), 16), path=path)
        )
    return {
        section: tuple(sorted(grouped[section], key=lambda shard: shard.shard))
        for section in KNOWN_SECTIONS
        if section in grouped
    }


class SearchCatalog:
    """Per-section search indexes loaded from a search directory.

    Parameters
    ----------
    indexes : Mapping[str, SearchIndex]
        Index per section name.
    shards : Mapping[str, tuple[ShardFile, ...]] | None, optional
        Files each index was loaded from. Defaults to None.
    """

    def __init__(
        self,
        indexes: Mapping[str, SearchIndex],
        shards: Mapping[str, tuple[ShardFile, ...]] | None = None,
    ) -> None:
        self._indexes = dict(indexes)
        self._shards = dict(shards or {})

    @classmethod
    def load(cls, directory: Path | str) -> SearchCatalog:
        """Discover and parse every shard under ``directory``.

        Raises
        ------
        SearchIndexNotFoundError
            If the directory is missing or holds no search data shards.
        SearchIndexFormatError
            If any shard is malformed.
        """
        start = time.perf_counter()
        root = Path(directory)
        shards = discover_shards(root)
        if not shards:
            msg = f"No search data files found in {root}"
            raise SearchIndexNotFoundError(msg, context={"path": str(root)})
        indexes: dict[str, SearchIndex] = {}
        for section, files in shards.items():
            entries: list[SearchEntry] = []
            for shard in files:
                entries.extend(load_search_file(shard.path))
            indexes[section] = SearchIndex(entries, section=section)
        logger.log_success(
            "Search catalog loaded",
            operation="load_catalog",
            duration_ms=(time.perf_counter() - start) * 1000,
            path=str(root),
            sections=len(indexes),
            files=sum(len(files) for files in shards.values()),
        )
        return cls(indexes, shards)

    @classmethod
    def from_entries(cls, sections: Mapping[str, Iterable[SearchEntry]]) -> SearchCatalog:
        """Build a catalog from in-memory entries per section."""
        return cls(
            {name: SearchIndex(entries, section=name) for name, entries in sections.items()}
        )

    def __contains__(self, section: object) -> bool:
        return section in self._indexes

    def __len__(self) -> int:
        return len(self._indexes)

    @property
    def sections(self) -> tuple[str, ...]:
        """Return the loaded section names."""
        return tuple(self._indexes)

    def shards(self, section: str) -> tuple[ShardFile, ...]:
        """Return the files ``section`` was loaded from, in shard order."""
        self.index(section)
        return self._shards.get(section, ())

    def index(self, section: str = "all") -> SearchIndex:
        """Return the index for ``section``.

        Raises
        ------
        SearchQueryError
            If the section was not loaded.
        """
        try:
            return self._indexes[section]
        except KeyError as exc:
            available = ", ".join(self._indexes) or "none"
            msg = f"Unknown search section {section!r}; available: {available}"
            raise SearchQueryError(
                msg, cause=exc, context={"section": section, "available": list(self._indexes)}
            ) from exc

    def search(
        self,
        query: str,
        *,
        section: str = "all",
        mode: MatchMode | str = MatchMode.PREFIX,
        limit: int | None = None,
    ) -> tuple[SearchEntry, ...]:
        """Run :meth:`SearchIndex.search` against one section."""
        return self.index(section).search(query, mode=mode, limit=limit)

    def find(self, symbol: str, *, section: str = "all") -> tuple[SearchEntry, ...]:
        """Run :meth:`SearchIndex.find` against one section."""
        return self.index(section).find(symbol)
