"""Error code registry and type URIs for Problem Details.

Codes and URIs are stable identifiers: clients match on them, so existing values
never change meaning.

Examples
--------
>>> from doxsearch_common.errors.codes import ErrorCode, get_type_uri
>>> get_type_uri(ErrorCode.SEARCH_INDEX_FORMAT)
'https://doxsearch.dev/problems/search-index-format'
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

__all__ = [
    "BASE_TYPE_URI",
    "ErrorCode",
    "get_type_uri",
]

BASE_TYPE_URI: Final[str] = "https://doxsearch.dev/problems"


class ErrorCode(StrEnum):
    """Stable error codes for doxsearch exceptions.

    Attributes
    ----------
    SEARCH_INDEX_FORMAT
        A search data file is not a well-formed record array.
    SEARCH_INDEX_INVALID
        Parsed entries fail index checks or an export fails its schema.
    SEARCH_INDEX_MISSING
        A search data file or directory does not exist.
    SEARCH_QUERY_INVALID
        A query, section or limit is not acceptable.
    SERIALIZATION_ERROR
        Rendering or encoding an index artifact failed.
    CONFIGURATION_ERROR
        Settings failed validation.
    RUNTIME_ERROR
        Any other failure.
    """

    SEARCH_INDEX_FORMAT = "search-index-format"
    SEARCH_INDEX_INVALID = "search-index-invalid"
    SEARCH_INDEX_MISSING = "search-index-missing"
    SEARCH_QUERY_INVALID = "search-query-invalid"
    SERIALIZATION_ERROR = "serialization-error"
    CONFIGURATION_ERROR = "configuration-error"
    RUNTIME_ERROR = "runtime-error"


def get_type_uri(code: ErrorCode) -> str:
    """Return the Problem Details ``type`` URI for ``code``.

    Parameters
    ----------
    code : ErrorCode
        Error code.

    Returns
    -------
    str
        Absolute type URI.
    """
    return f"{BASE_TYPE_URI}/{code.value}"
