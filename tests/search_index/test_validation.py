"""Tests for search_index.validation module."""

from __future__ import annotations

import pytest

from doxsearch_common.errors import SearchIndexValidationError
from search_index.models import SearchEntry, SearchTarget
from search_index.validation import ValidationIssue, validate_entries

_TARGET = SearchTarget("a.html", True, "")


class TestValidateEntries:
    """Tests for validate_entries."""

    def test_generator_shard_is_valid(self, all_16_entries: tuple[SearchEntry, ...]) -> None:
        """The real shard has non-empty keys and targets everywhere."""
        report = validate_entries(all_16_entries)
        assert report.ok
        assert report.entry_count == 74
        assert report.warnings == ()

    def test_reports_empty_key_and_missing_targets(self) -> None:
        """Contract violations become errors at the right index."""
        entries = [
            SearchEntry("abs_1", "abs", (_TARGET,)),
            SearchEntry("", "blank", (_TARGET,)),
            SearchEntry("none_2", "none", ()),
            SearchEntry("url_3", "url", (SearchTarget("", False, "std"),)),
        ]
        report = validate_entries(entries)
        assert not report.ok
        assert report.errors == (
            ValidationIssue(1, "", "key must be a non-empty string"),
            ValidationIssue(2, "none_2", "entry has no targets"),
            ValidationIssue(3, "url_3", "target 0 has an empty url"),
        )

    def test_duplicate_keys_are_warnings(self) -> None:
        """Repeated keys do not make the report fail."""
        entries = [SearchEntry("abs_1", "abs", (_TARGET,))] * 3
        report = validate_entries(entries)
        assert report.ok
        assert [issue.index for issue in report.warnings] == [1, 2]

    def test_accepts_generators(self) -> None:
        """Any iterable of entries is accepted."""
        report = validate_entries(SearchEntry(f"k_{n}", "k", (_TARGET,)) for n in range(3))
        assert report.entry_count == 3


class TestValidationReport:
    """Tests for ValidationReport.raise_for_errors."""

    def test_no_errors_does_not_raise(self) -> None:
        """A clean report returns None."""
        validate_entries([SearchEntry("abs_1", "abs", (_TARGET,))]).raise_for_errors()

    def test_raises_with_issue_context(self) -> None:
        """Errors are carried in the exception context."""
        report = validate_entries([SearchEntry("none_0", "none", ())])
        with pytest.raises(SearchIndexValidationError, match="all_0.js: 1 invalid") as excinfo:
            report.raise_for_errors(source="all_0.js")
        context = excinfo.value.context
        assert context["issues"] == [
            {"index": 0, "key": "none_0", "message": "entry has no targets"}
        ]
        assert context["source"] == "all_0.js"
