"""Tests for doxsearch_common.problem_details module."""

from __future__ import annotations

import json

import pytest

from doxsearch_common.errors import ConfigurationError, SettingsError
from doxsearch_common.problem_details import (
    ExceptionProblemDetailsParams,
    ProblemDetailsParams,
    ProblemDetailsValidationError,
    build_configuration_problem,
    build_problem_details,
    coerce_json_value,
    problem_from_exception,
    render_problem,
    validate_problem_details,
)

_PARAMS = ProblemDetailsParams(
    problem_type="https://doxsearch.dev/problems/search-index-missing",
    title="Search data not found",
    status=404,
    detail="Search directory not found: html/search",
    instance="urn:doxsearch:cli:query",
    code="search-index-missing",
)


class TestBuildProblemDetails:
    """Tests for build_problem_details."""

    def test_from_params(self) -> None:
        """A params object produces the RFC 9457 members."""
        problem = build_problem_details(_PARAMS)
        assert problem == {
            "type": "https://doxsearch.dev/problems/search-index-missing",
            "title": "Search data not found",
            "status": 404,
            "detail": "Search directory not found: html/search",
            "instance": "urn:doxsearch:cli:query",
            "code": "search-index-missing",
        }

    def test_keyword_form_matches_params(self) -> None:
        """Keyword fields build the same payload."""
        problem = build_problem_details(
            problem_type=_PARAMS.problem_type,
            title=_PARAMS.title,
            status=_PARAMS.status,
            detail=_PARAMS.detail,
            instance=_PARAMS.instance,
            code=_PARAMS.code,
        )
        assert problem == build_problem_details(_PARAMS)

    def test_params_and_fields_are_exclusive(self) -> None:
        """Supplying both forms is a TypeError."""
        with pytest.raises(TypeError, match="not both"):
            build_problem_details(_PARAMS, status=500)

    @pytest.mark.parametrize(
        ("status", "code"),
        [(99, None), (404, "Search_Index")],
    )
    def test_rejects_invalid_payload(self, status: int, code: str | None) -> None:
        """Out-of-range statuses and non-kebab codes fail validation."""
        with pytest.raises(ProblemDetailsValidationError) as excinfo:
            build_problem_details(
                problem_type="https://doxsearch.dev/problems/x",
                title="x",
                status=status,
                detail="x",
                instance="urn:x",
                code=code,
            )
        assert excinfo.value.validation_errors

    def test_validate_rejects_unknown_members(self) -> None:
        """Members outside the schema are rejected."""
        payload = dict(build_problem_details(_PARAMS))
        payload["trace"] = "abc"
        with pytest.raises(ProblemDetailsValidationError, match="trace"):
            validate_problem_details(payload)


class TestProblemFromException:
    """Tests for problem_from_exception."""

    def test_records_exception_type(self) -> None:
        """The exception class name is added to the extensions."""
        problem = problem_from_exception(
            ExceptionProblemDetailsParams(exception=PermissionError("denied"), base=_PARAMS)
        )
        assert problem["extensions"] == {"exception_type": "PermissionError"}
        assert problem["detail"] == _PARAMS.detail


class TestConfigurationProblem:
    """Tests for build_configuration_problem."""

    def test_configuration_error(self) -> None:
        """ConfigurationError context becomes extensions."""
        error = ConfigurationError.with_details(field="search.mode", issue="Unknown mode")
        problem = build_configuration_problem(error)
        assert problem["type"] == "https://doxsearch.dev/problems/configuration-error"
        assert problem["instance"] == "urn:doxsearch:config:validation"
        assert problem["extensions"] == {"field": "search.mode", "issue": "Unknown mode"}

    def test_settings_error(self) -> None:
        """SettingsError validation errors are carried through."""
        error = SettingsError("bad", errors=[{"field": "limit", "issue": "too small"}])
        problem = build_configuration_problem(error)
        assert problem["code"] == "configuration-error"
        assert problem["extensions"] == {
            "validation_errors": [{"field": "limit", "issue": "too small"}]
        }


class TestHelpers:
    """Tests for coerce_json_value and render_problem."""

    def test_coerce_json_value(self) -> None:
        """Tuples become lists and unknown objects become strings."""
        assert coerce_json_value({"path": ("a", 1), "none": None}) == {
            "path": ["a", 1],
            "none": None,
        }
        assert coerce_json_value(object).startswith("<class")  # type: ignore[union-attr]

    def test_render_problem_is_single_line_json(self) -> None:
        """Rendered problems are compact, sorted JSON."""
        text = render_problem(build_problem_details(_PARAMS))
        assert "\n" not in text
        assert json.loads(text)["status"] == 404
        assert text.index('"code"') < text.index('"type"')
