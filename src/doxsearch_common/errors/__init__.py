"""Exception hierarchy and Problem Details support.

Examples
--------
>>> from doxsearch_common.errors import DoxSearchError, ErrorCode
>>> try:
...     raise DoxSearchError("Operation failed", code=ErrorCode.RUNTIME_ERROR)
... except DoxSearchError as e:
...     details = e.to_problem_details(instance="urn:doxsearch:query")
...     assert details["type"] == "https://doxsearch.dev/problems/runtime-error"
"""

from __future__ import annotations

from doxsearch_common.errors.codes import BASE_TYPE_URI, ErrorCode, get_type_uri
from doxsearch_common.errors.exceptions import (
    ConfigurationError,
    DoxSearchError,
    SearchIndexFormatError,
    SearchIndexNotFoundError,
    SearchIndexValidationError,
    SearchQueryError,
    SerializationError,
    SettingsError,
)

__all__ = [
    "BASE_TYPE_URI",
    "ConfigurationError",
    "DoxSearchError",
    "ErrorCode",
    "SearchIndexFormatError",
    "SearchIndexNotFoundError",
    "SearchIndexValidationError",
    "SearchQueryError",
    "SerializationError",
    "SettingsError",
    "get_type_uri",
]
