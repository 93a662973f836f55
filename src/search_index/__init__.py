"""Read, query and rewrite Doxygen-style documentation search data.

Examples
--------
>>> from search_index import SearchCatalog
>>> catalog = SearchCatalog.load("html/search")  # doctest: +SKIP
>>> [entry.label for entry in catalog.search("uint128")]  # doctest: +SKIP
['uint128_t', 'uint128_t', 'uint128_t']
"""

from __future__ import annotations

from search_index.catalog import SearchCatalog
from search_index.index import MatchMode, SearchIndex
from search_index.keys import decode_search_id, encode_search_id, normalize_query, split_serial
from search_index.models import SearchEntry, SearchHit, SearchTarget
from search_index.parser import load_search_file, parse_search_data
from search_index.serializer import (
    entries_from_payload,
    entries_to_payload,
    export_json,
    import_json,
    render_search_data,
    write_search_file,
)
from search_index.validation import ValidationIssue, ValidationReport, validate_entries

__all__ = [
    "MatchMode",
    "SearchCatalog",
    "SearchEntry",
    "SearchHit",
    "SearchIndex",
    "SearchTarget",
    "ValidationIssue",
    "ValidationReport",
    "decode_search_id",
    "encode_search_id",
    "entries_from_payload",
    "entries_to_payload",
    "export_json",
    "import_json",
    "load_search_file",
    "normalize_query",
    "parse_search_data",
    "render_search_data",
    "split_serial",
    "validate_entries",
    "write_search_file",
]
