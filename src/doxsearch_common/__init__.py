"""Shared infrastructure for doxsearch: logging, errors, settings and filesystem helpers."""

from __future__ import annotations

from doxsearch_common.errors import DoxSearchError, ErrorCode
from doxsearch_common.logging import get_logger, setup_logging

__all__ = [
    "DoxSearchError",
    "ErrorCode",
    "get_logger",
    "setup_logging",
]
