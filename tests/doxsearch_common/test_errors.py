"""Tests for doxsearch_common.errors package."""

from __future__ import annotations

import logging

import pytest

from doxsearch_common.errors import (
    BASE_TYPE_URI,
    ConfigurationError,
    DoxSearchError,
    ErrorCode,
    SearchIndexFormatError,
    SearchIndexNotFoundError,
    SearchIndexValidationError,
    SearchQueryError,
    SerializationError,
    SettingsError,
    get_type_uri,
)


class TestErrorCode:
    """Tests for ErrorCode values."""

    def test_codes_are_kebab_case(self) -> None:
        """Every code is lower-case words joined by hyphens."""
        for code in ErrorCode:
            assert code.value == code.value.lower()
            assert "_" not in code.value

    def test_type_uri(self) -> None:
        """Type URIs live under the project problem namespace."""
        assert get_type_uri(ErrorCode.SEARCH_QUERY_INVALID) == (
            f"{BASE_TYPE_URI}/search-query-invalid"
        )


class TestExceptionTaxonomy:
    """Tests for the concrete exception classes."""

    @pytest.mark.parametrize(
        ("error_type", "code", "status"),
        [
            (SearchIndexFormatError, ErrorCode.SEARCH_INDEX_FORMAT, 422),
            (SearchIndexValidationError, ErrorCode.SEARCH_INDEX_INVALID, 422),
            (SearchIndexNotFoundError, ErrorCode.SEARCH_INDEX_MISSING, 404),
            (SearchQueryError, ErrorCode.SEARCH_QUERY_INVALID, 400),
            (SerializationError, ErrorCode.SERIALIZATION_ERROR, 500),
            (ConfigurationError, ErrorCode.CONFIGURATION_ERROR, 500),
        ],
    )
    def test_code_and_status(
        self, error_type: type[DoxSearchError], code: ErrorCode, status: int
    ) -> None:
        """Each subclass carries its code and HTTP status."""
        error = error_type("failed")
        assert isinstance(error, DoxSearchError)
        assert error.code is code
        assert error.http_status == status

    def test_str_includes_code_and_cause(self) -> None:
        """str() shows the class, code and chained cause type."""
        cause = FileNotFoundError("all_16.js")
        error = SearchIndexNotFoundError("Search data file not found", cause=cause)
        assert str(error) == (
            "SearchIndexNotFoundError[search-index-missing]: Search data file not found "
            "(caused by: FileNotFoundError)"
        )
        assert error.__cause__ is cause

    def test_log_levels(self) -> None:
        """Client-side failures log at WARNING and configuration failures at CRITICAL."""
        assert SearchQueryError("bad").log_level == logging.WARNING
        assert ConfigurationError("bad").log_level == logging.CRITICAL
        assert SearchIndexFormatError("bad").log_level == logging.ERROR


class TestProblemDetailsConversion:
    """Tests for DoxSearchError.to_problem_details."""

    def test_payload_fields(self) -> None:
        """The payload carries the code, status and context extensions."""
        error = SearchIndexFormatError(
            "all_16.js:3:7: expected ']'", context={"line": 3, "column": 7}
        )
        problem = error.to_problem_details(instance="urn:doxsearch:cli:validate")
        assert problem["type"] == get_type_uri(ErrorCode.SEARCH_INDEX_FORMAT)
        assert problem["title"] == "SearchIndexFormatError"
        assert problem["status"] == 422
        assert problem["detail"] == "all_16.js:3:7: expected ']'"
        assert problem["instance"] == "urn:doxsearch:cli:validate"
        assert problem["code"] == "search-index-format"
        assert problem["extensions"] == {"line": 3, "column": 7}

    def test_defaults(self) -> None:
        """Missing instance and empty context fall back to defaults."""
        problem = DoxSearchError("Operation failed").to_problem_details()
        assert problem["instance"] == "urn:doxsearch:error"
        assert problem["code"] == "runtime-error"
        assert "extensions" not in problem


class TestConfigurationErrors:
    """Tests for ConfigurationError and SettingsError."""

    def test_with_details(self) -> None:
        """with_details stores field, issue and hint in the context."""
        error = ConfigurationError.with_details(
            field="search.limit", issue="Must be > 0", hint="Use a positive integer"
        )
        assert error.context == {
            "field": "search.limit",
            "issue": "Must be > 0",
            "hint": "Use a positive integer",
        }
        assert "search.limit" in error.message

    def test_settings_error_keeps_validation_errors(self) -> None:
        """Per-field errors are exposed as validation_errors."""
        errors: list[dict[str, object]] = [{"field": "limit", "issue": "too small"}]
        error = SettingsError("Configuration validation failed", errors=errors)
        assert error.code is ErrorCode.CONFIGURATION_ERROR
        assert error.context["validation_errors"] == errors
