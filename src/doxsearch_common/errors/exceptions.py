"""Typed exception hierarchy with Problem Details support.

All doxsearch exceptions inherit from :class:`DoxSearchError`, which carries a stable
error code, an HTTP-style status, a log level and a context mapping.

Examples
--------
>>> from doxsearch_common.errors import SearchIndexFormatError, ErrorCode
>>> try:
...     raise SearchIndexFormatError("Expected ']'", context={"line": 3, "column": 7})
... except SearchIndexFormatError as e:
...     assert e.code == ErrorCode.SEARCH_INDEX_FORMAT
...     assert e.http_status == 422
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from doxsearch_common.errors.codes import ErrorCode, get_type_uri
from doxsearch_common.problem_details import build_problem_details, coerce_json_value

if TYPE_CHECKING:
    from collections.abc import Mapping

    from doxsearch_common.problem_details import ProblemDetails

__all__ = [
    "ConfigurationError",
    "DoxSearchError",
    "SearchIndexFormatError",
    "SearchIndexNotFoundError",
    "SearchIndexValidationError",
    "SearchQueryError",
    "SerializationError",
    "SettingsError",
]


class DoxSearchError(Exception):
    """Base exception for all doxsearch errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode, optional
        Stable error code. Defaults to ``ErrorCode.RUNTIME_ERROR``.
    http_status : int, optional
        Status used in Problem Details payloads. Defaults to 500.
    log_level : int, optional
        Level at which callers should log this error. Defaults to ``logging.ERROR``.
    cause : Exception | None, optional
        Underlying exception, exposed as ``__cause__``. Defaults to None.
    context : Mapping[str, object] | None, optional
        Structured details copied into Problem Details extensions. Defaults to None.

    Examples
    --------
    >>> error = DoxSearchError("Operation failed")
    >>> error.to_problem_details(instance="urn:doxsearch:query")["status"]
    500
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.RUNTIME_ERROR,
        http_status: int = 500,
        log_level: int = logging.ERROR,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status
        self.log_level = log_level
        self.context: dict[str, object] = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def to_problem_details(
        self,
        instance: str | None = None,
        title: str | None = None,
    ) -> ProblemDetails:
        """Convert to an RFC 9457 Problem Details payload.

        Parameters
        ----------
        instance : str | None, optional
            URI identifying this occurrence. Defaults to ``"urn:doxsearch:error"``.
        title : str | None, optional
            Short summary. Defaults to the exception class name.

        Returns
        -------
        ProblemDetails
            Payload with ``type``, ``title``, ``status``, ``detail``, ``instance``,
            ``code`` and, when context is present, ``extensions``.
        """
        extensions = {str(key): coerce_json_value(value) for key, value in self.context.items()}
        return build_problem_details(
            problem_type=get_type_uri(self.code),
            title=title or self.__class__.__name__,
            status=self.http_status,
            detail=self.message,
            instance=instance or "urn:doxsearch:error",
            code=self.code.value,
            extensions=extensions or None,
        )

    def __str__(self) -> str:
        """Return ``Class[code]: message`` plus the cause type when chained."""
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


class SearchIndexFormatError(DoxSearchError):
    """A search data file is not a well-formed record array.

    The context usually carries ``source``, ``line``, ``column`` and, once the literal
    parsed, the ``record`` index that failed shape checks.
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.SEARCH_INDEX_FORMAT,
            http_status=422,
            cause=cause,
            context=context,
        )


class SearchIndexValidationError(DoxSearchError):
    """Entries fail index checks, or an export does not match its schema."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.SEARCH_INDEX_INVALID,
            http_status=422,
            cause=cause,
            context=context,
        )


class SearchIndexNotFoundError(DoxSearchError):
    """A search data file or search directory does not exist."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.SEARCH_INDEX_MISSING,
            http_status=404,
            log_level=logging.WARNING,
            cause=cause,
            context=context,
        )


class SearchQueryError(DoxSearchError):
    """A query argument (section, limit, mode) is not acceptable."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.SEARCH_QUERY_INVALID,
            http_status=400,
            log_level=logging.WARNING,
            cause=cause,
            context=context,
        )


class SerializationError(DoxSearchError):
    """Rendering or encoding an index artifact failed."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.SERIALIZATION_ERROR,
            http_status=500,
            cause=cause,
            context=context,
        )


class ConfigurationError(DoxSearchError):
    """Configuration validation or loading failed.

    Logged at CRITICAL because nothing useful can run without valid configuration.

    Examples
    --------
    >>> error = ConfigurationError.with_details(field="limit", issue="Must be > 0")
    >>> error.context["field"]
    'limit'
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            http_status=500,
            log_level=logging.CRITICAL,
            cause=cause,
            context=context,
        )

    @classmethod
    def with_details(
        cls,
        *,
        field: str,
        issue: str,
        hint: str | None = None,
    ) -> ConfigurationError:
        """Create a ConfigurationError with structured validation details.

        Parameters
        ----------
        field : str
            Name of the configuration field that failed validation.
        issue : str
            Description of the validation issue.
        hint : str | None, optional
            Suggestion for resolving the issue. Defaults to None.

        Returns
        -------
        ConfigurationError
            New instance with ``field``, ``issue`` and ``hint`` in its context.
        """
        details: dict[str, object] = {"field": field, "issue": issue}
        if hint is not None:
            details["hint"] = hint
        message = f"Configuration validation failed for field '{field}': {issue}"
        return cls(message, context=details)


class SettingsError(DoxSearchError):
    """Runtime settings failed validation.

    Parameters
    ----------
    message : str
        Human-readable error message.
    errors : list[dict[str, object]] | None, optional
        Per-field validation errors, stored as ``validation_errors`` in the context.
    cause : Exception | None, optional
        Underlying exception. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context. Defaults to None.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, object]] | None = None,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        combined_context: dict[str, object] = dict(context or {})
        if errors:
            combined_context.setdefault("validation_errors", [dict(error) for error in errors])
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            http_status=500,
            cause=cause,
            context=combined_context,
        )
