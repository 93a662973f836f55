"""RFC 9457 Problem Details helpers with schema validation.

Every payload built here is validated against a JSON Schema 2020-12 description of
the RFC 9457 members before it is returned.

Examples
--------
>>> from doxsearch_common.problem_details import build_problem_details, render_problem
>>> problem = build_problem_details(
...     problem_type="https://doxsearch.dev/problems/search-index-format",
...     title="Malformed search data",
...     status=422,
...     detail="Expected ']' at line 3, column 7",
...     instance="urn:doxsearch:validate",
...     extensions={"source": "search/all_16.js"},
... )
>>> "search-index-format" in render_problem(problem)
True
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, TypedDict, cast

from jsonschema import Draft202012Validator

from doxsearch_common.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from doxsearch_common.types import JsonValue

__all__ = [
    "ExceptionProblemDetailsParams",
    "ProblemDetails",
    "ProblemDetailsParams",
    "ProblemDetailsValidationError",
    "build_configuration_problem",
    "build_problem_details",
    "coerce_json_value",
    "problem_from_exception",
    "render_problem",
    "validate_problem_details",
]

logger = get_logger(__name__)

PROBLEM_DETAILS_SCHEMA: Final[dict[str, object]] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://doxsearch.dev/schema/problem-details.json",
    "type": "object",
    "required": ["type", "title", "status", "detail", "instance"],
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "title": {"type": "string", "minLength": 1},
        "status": {"type": "integer", "minimum": 100, "maximum": 599},
        "detail": {"type": "string"},
        "instance": {"type": "string", "minLength": 1},
        "code": {"type": "string", "pattern": "^[a-z0-9]+(-[a-z0-9]+)*$"},
        "extensions": {"type": "object"},
    },
    "additionalProperties": False,
}

_VALIDATOR = Draft202012Validator(PROBLEM_DETAILS_SCHEMA)


class ProblemDetails(TypedDict, total=False):
    """TypedDict for RFC 9457 Problem Details payloads."""

    type: str
    title: str
    status: int
    detail: str
    instance: str
    code: str
    extensions: dict[str, JsonValue]


@dataclass(slots=True)
class ProblemDetailsParams:
    """Parameters used to construct a Problem Details payload."""

    problem_type: str
    title: str
    status: int
    detail: str
    instance: str
    code: str | None = None
    extensions: Mapping[str, JsonValue] | None = None


@dataclass(slots=True)
class ExceptionProblemDetailsParams:
    """Parameters describing an exception converted to Problem Details."""

    exception: Exception
    base: ProblemDetailsParams


class ProblemDetailsValidationError(Exception):
    """Raised when a Problem Details payload fails schema validation.

    Parameters
    ----------
    message : str
        Summary of the failure.
    validation_errors : list[str] | None, optional
        Individual validator messages. Defaults to None.
    """

    def __init__(self, message: str, validation_errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.validation_errors = list(validation_errors or [])


def validate_problem_details(payload: Mapping[str, JsonValue]) -> None:
    """Validate ``payload`` against the Problem Details schema.

    Parameters
    ----------
    payload : Mapping[str, JsonValue]
        Candidate payload.

    Raises
    ------
    ProblemDetailsValidationError
        If the payload violates the schema.
    """
    errors = sorted(_VALIDATOR.iter_errors(payload), key=lambda err: list(err.absolute_path))
    if not errors:
        return
    messages = [
        f"{'/'.join(str(part) for part in err.absolute_path) or '<root>'}: {err.message}"
        for err in errors
    ]
    logger.warning(
        "Problem Details validation failed",
        extra={"operation": "validate_problem_details", "errors": messages},
    )
    msg = f"Problem Details payload is invalid: {messages[0]}"
    raise ProblemDetailsValidationError(msg, messages)


def build_problem_details(
    params: ProblemDetailsParams | None = None,
    /,
    **fields: object,
) -> ProblemDetails:
    """Build a validated RFC 9457 Problem Details payload.

    Accepts either a :class:`ProblemDetailsParams` instance or the same fields as
    keyword arguments.

    Parameters
    ----------
    params : ProblemDetailsParams | None, optional
        Fully populated parameters. Defaults to None.
    **fields : object
        Keyword form of :class:`ProblemDetailsParams` used when ``params`` is omitted.

    Returns
    -------
    ProblemDetails
        Validated payload. ``code`` and ``extensions`` are present only when provided.

    Raises
    ------
    TypeError
        If both ``params`` and keyword fields are supplied.
    """
    if params is None:
        params = ProblemDetailsParams(**cast("dict[str, object]", fields))  # type: ignore[arg-type]
    elif fields:
        msg = "build_problem_details accepts either params or keyword fields, not both"
        raise TypeError(msg)

    payload: dict[str, object] = {
        "type": params.problem_type,
        "title": params.title,
        "status": params.status,
        "detail": params.detail,
        "instance": params.instance,
    }
    if params.code is not None:
        payload["code"] = params.code
    if params.extensions:
        payload["extensions"] = dict(params.extensions)

    validate_problem_details(cast("Mapping[str, JsonValue]", payload))
    return cast("ProblemDetails", payload)


def problem_from_exception(params: ExceptionProblemDetailsParams) -> ProblemDetails:
    """Build Problem Details for an arbitrary exception.

    The exception type is recorded under ``extensions.exception_type``.

    Parameters
    ----------
    params : ExceptionProblemDetailsParams
        The exception and the base payload fields.

    Returns
    -------
    ProblemDetails
        Validated payload.
    """
    base = params.base
    extensions: dict[str, JsonValue] = dict(base.extensions or {})
    extensions["exception_type"] = type(params.exception).__name__
    return build_problem_details(
        ProblemDetailsParams(
            problem_type=base.problem_type,
            title=base.title,
            status=base.status,
            detail=base.detail or str(params.exception),
            instance=base.instance,
            code=base.code,
            extensions=extensions,
        )
    )


def build_configuration_problem(config_error: Exception) -> ProblemDetails:
    """Convert a configuration or settings error into Problem Details.

    Parameters
    ----------
    config_error : Exception
        Usually a :class:`~doxsearch_common.errors.ConfigurationError` or
        :class:`~doxsearch_common.errors.SettingsError`.

    Returns
    -------
    ProblemDetails
        Payload with type ``configuration-error``.
    """
    message = getattr(config_error, "message", None) or str(config_error)
    http_status = getattr(config_error, "http_status", 500)
    context = getattr(config_error, "context", None)
    extensions = {str(key): coerce_json_value(value) for key, value in (context or {}).items()}
    return build_problem_details(
        ProblemDetailsParams(
            problem_type="https://doxsearch.dev/problems/configuration-error",
            title="Configuration Error",
            status=http_status if isinstance(http_status, int) else 500,
            detail=str(message),
            instance="urn:doxsearch:config:validation",
            code="configuration-error",
            extensions=extensions or None,
        )
    )


def coerce_json_value(value: object) -> JsonValue:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(key): coerce_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [coerce_json_value(item) for item in value]
    return str(value)


def render_problem(problem: ProblemDetails | Mapping[str, object]) -> str:
    """Render Problem Details as a minified JSON string without a trailing newline."""
    return json.dumps(problem, default=str, ensure_ascii=False, sort_keys=True)
