"""Structural checks over parsed search entries."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

from doxsearch_common.errors import SearchIndexValidationError
from doxsearch_common.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from search_index.models import SearchEntry

__all__ = [
    "ValidationIssue",
    "ValidationReport",
    "validate_entries",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A problem found at one position of the entry sequence."""

    index: int
    key: str
    message: str

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-compatible mapping of the issue."""
        return {"index": self.index, "key": self.key, "message": self.message}


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Outcome of :func:`validate_entries`.

    ``errors`` break the record contract (empty keys, missing targets, empty URLs).
    ``warnings`` are informational, for example keys shared by more than one record.
    """

    entry_count: int
    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        """Return True when no errors were found."""
        return not self.errors

    def raise_for_errors(self, *, source: str | None = None) -> None:
        """Raise :class:`SearchIndexValidationError` if the report holds errors.

        Parameters
        ----------
        source : str | None, optional
            File name added to the error message and context. Defaults to None.

        Raises
        ------
        SearchIndexValidationError
            Carries every error in ``context["issues"]``.
        """
        if self.ok:
            return
        first = self.errors[0]
        where = f"{source}: " if source else ""
        msg = (
            f"{where}{len(self.errors)} invalid search entries; "
            f"first at index {first.index}: {first.message}"
        )
        context: dict[str, object] = {
            "issues": [issue.to_payload() for issue in self.errors],
            "entry_count": self.entry_count,
        }
        if source is not None:
            context["source"] = source
        raise SearchIndexValidationError(msg, context=context)


def validate_entries(entries: Iterable[SearchEntry]) -> ValidationReport:
    """Check every entry against the search data record contract.

    Every key must be a non-empty string, every entry needs at least one target and every
    target URL must be non-empty. Repeated keys are reported as warnings.

    Parameters
    ----------
    entries : Iterable[SearchEntry]
        Entries in index order.

    Returns
    -------
    ValidationReport
        Errors and warnings, each in index order.
    """
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []
    seen: Counter[str] = Counter()
    count = 0
    for index, entry in enumerate(entries):
        count += 1
        if not isinstance(entry.key, str) or not entry.key:
            errors.append(ValidationIssue(index, str(entry.key), "key must be a non-empty string"))
        if not entry.targets:
            errors.append(ValidationIssue(index, entry.key, "entry has no targets"))
        for position, target in enumerate(entry.targets):
            if not target.url:
                message = f"target {position} has an empty url"
                errors.append(ValidationIssue(index, entry.key, message))
        seen[entry.key] += 1
        if seen[entry.key] > 1:
            warnings.append(ValidationIssue(index, entry.key, "key repeats an earlier entry"))
    report = ValidationReport(entry_count=count, errors=tuple(errors), warnings=tuple(warnings))
    logger.debug(
        "Search entries validated",
        extra={
            "operation": "validate_entries",
            "entries": count,
            "errors": len(report.errors),
            "warnings": len(report.warnings),
        },
    )
    return report
