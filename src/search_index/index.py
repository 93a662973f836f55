"""Query an ordered sequence of search entries the way the documentation widget does.

The widget encodes the typed text with the same conversion used for keys and keeps the
entries whose search id starts with it. :class:`SearchIndex` performs that single pass
over the entries and returns matches in their original order.

Examples
--------
>>> from search_index.models import SearchEntry, SearchTarget
>>> index = SearchIndex(
...     [
...         SearchEntry("uint128_5ft_2201", "uint128_t", (SearchTarget("u.html", True, ""),)),
...         SearchEntry("uint16_5ft_2204", "uint16_t", (SearchTarget("v.html", False, "std"),)),
...     ]
... )
>>> [entry.label for entry in index.search("UINT128")]
['uint128_t']
>>> index.search("missing")
()
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from doxsearch_common.errors import SearchQueryError
from doxsearch_common.logging import get_logger
from search_index.keys import encode_search_id, normalize_query

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from search_index.models import SearchEntry, SearchHit

__all__ = [
    "MatchMode",
    "SearchIndex",
]

logger = get_logger(__name__)


class MatchMode(StrEnum):
    """How an encoded query is compared with an entry's search id."""

    PREFIX = "prefix"
    """Search id starts with the query (the widget's behaviour)."""
    CONTAINS = "contains"
    """Query occurs anywhere in the search id."""


class SearchIndex:
    """Immutable, ordered view over the entries of one search section.

    Parameters
    ----------
    entries : Iterable[SearchEntry]
        Entries in the order they appear in the search data.
    section : str, optional
        Section name attached to hits. Defaults to ``"all"``.
    """

    def __init__(self, entries: Iterable[SearchEntry], *, section: str = "all") -> None:
        self._entries: tuple[SearchEntry, ...] = tuple(entries)
        self._section = section

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SearchEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"SearchIndex(section={self._section!r}, entries={len(self._entries)})"

    @property
    def entries(self) -> tuple[SearchEntry, ...]:
        """Return the entries in original order."""
        return self._entries

    @property
    def section(self) -> str:
        """Return the section name."""
        return self._section

    def search(
        self,
        query: str,
        *,
        mode: MatchMode | str = MatchMode.PREFIX,
        limit: int | None = None,
    ) -> tuple[SearchEntry, ...]:
        """Return entries whose search id matches ``query``, in original order.

        Parameters
        ----------
        query : str
            Text typed by the user. Matching is case-insensitive; surrounding spaces are
            ignored.
        mode : MatchMode | str, optional
            ``prefix`` or ``contains``. Defaults to ``MatchMode.PREFIX``.
        limit : int | None, optional
            Maximum number of entries to return. Defaults to None (no limit).

        Returns
        -------
        tuple[SearchEntry, ...]
            Matching entries. Empty for a blank query or when nothing matches.

        Raises
        ------
        SearchQueryError
            If ``mode`` is unknown or ``limit`` is not positive.
        """
        match_mode = _coerce_mode(mode)
        if limit is not None and limit <= 0:
            msg = f"limit must be a positive integer, got {limit}"
            raise SearchQueryError(msg, context={"limit": limit})
        needle = normalize_query(query)
        if not needle:
            return ()
        matches: list[SearchEntry] = []
        for entry in self._entries:
            search_id = entry.search_id.lower()
            hit = (
                search_id.startswith(needle)
                if match_mode is MatchMode.PREFIX
                else needle in search_id
            )
            if hit:
                matches.append(entry)
                if limit is not None and len(matches) >= limit:
                    break
        logger.debug(
            "Search index queried",
            extra={
                "operation": "search",
                "section": self._section,
                "query": query,
                "mode": match_mode.value,
                "matches": len(matches),
            },
        )
        return tuple(matches)

    def find(self, symbol: str) -> tuple[SearchEntry, ...]:
        """Return every entry whose search id is exactly ``symbol``, in original order.

        ``symbol`` is compared in encoded form, so ``find("uint128_t")`` returns the
        entries keyed ``uint128_5ft_<serial>``.
        """
        target = encode_search_id(symbol)
        return tuple(entry for entry in self._entries if entry.search_id.lower() == target)

    def by_key(self, key: str) -> tuple[SearchEntry, ...]:
        """Return every entry stored under the raw ``key``, in original order."""
        return tuple(entry for entry in self._entries if entry.key == key)

    def hits(
        self,
        query: str,
        *,
        mode: MatchMode | str = MatchMode.PREFIX,
        limit: int | None = None,
    ) -> tuple[SearchHit, ...]:
        """Return one row per target of each matching entry.

        ``limit`` counts entries, not rows, so an entry's targets are never split.
        """
        return tuple(
            hit
            for entry in self.search(query, mode=mode, limit=limit)
            for hit in entry.hits(self._section)
        )


def _coerce_mode(mode: MatchMode | str) -> MatchMode:
    try:
        return MatchMode(mode)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in MatchMode)
        msg = f"Unknown match mode {mode!r}; expected one of: {allowed}"
        raise SearchQueryError(msg, cause=exc, context={"mode": str(mode)}) from exc
