"""Write search data back out, either in generator layout or as a JSON export.

:func:`render_search_data` reproduces the generator's byte layout, so a file that was
parsed and rendered again is identical to the input. The JSON export is a plain array of
``{key, label, targets}`` rows checked against the packaged
``search-index.schema.json`` before it is written or after it is read.
"""

from __future__ import annotations

import json
import time
from functools import cache
from importlib import resources
from typing import TYPE_CHECKING, Final, cast

import msgspec
from jsonschema import Draft202012Validator

from doxsearch_common.errors import (
    SearchIndexFormatError,
    SearchIndexNotFoundError,
    SearchIndexValidationError,
    SerializationError,
)
from doxsearch_common.fs import atomic_write_text, read_text
from doxsearch_common.logging import get_logger
from search_index.models import SearchEntry, SearchTarget

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from jsonschema.exceptions import ValidationError as SchemaError

__all__ = [
    "SCHEMA_NAME",
    "SearchEntryModel",
    "SearchTargetModel",
    "entries_from_payload",
    "entries_to_payload",
    "export_json",
    "import_json",
    "load_schema",
    "render_entry",
    "render_search_data",
    "write_search_file",
]

logger = get_logger(__name__)

SCHEMA_NAME: Final = "search-index.schema.json"
_SCHEMA_ERROR_LIMIT: Final = 5
_JS_ESCAPES: Final = str.maketrans({"\\": "\\\\", "'": "\\'", "\n": "\\n", "\r": "\\r"})


class SearchTargetModel(msgspec.Struct, frozen=True, omit_defaults=True):
    """Schema model describing one link of an exported entry."""

    url: str
    local: bool
    scope: str | None = None


class SearchEntryModel(msgspec.Struct, frozen=True):
    """Schema model describing one exported search data row."""

    key: str
    label: str
    targets: list[SearchTargetModel]


def _js_string(value: str) -> str:
    return f"'{value.translate(_JS_ESCAPES)}'"


def _render_target(target: SearchTarget) -> str:
    fields = [_js_string(target.url), "1" if target.local else "0"]
    if target.scope is not None:
        fields.append(_js_string(target.scope))
    return f"[{','.join(fields)}]"


def render_entry(entry: SearchEntry) -> str:
    """Render one entry as a single-line JavaScript array literal."""
    targets = ",".join(_render_target(target) for target in entry.targets)
    return f"[{_js_string(entry.key)},[{_js_string(entry.label)},{targets}]]"


def render_search_data(
    entries: Iterable[SearchEntry], *, variable: str | None = "searchData"
) -> str:
    """Render entries in the generator's search data layout.

    Parameters
    ----------
    entries : Iterable[SearchEntry]
        Entries in output order.
    variable : str | None, optional
        Variable the array is bound to. None writes a bare array literal.
        Defaults to ``"searchData"``.

    Returns
    -------
    str
        ``var searchData=`` line, one indented record per line and a closing ``];``.

    Examples
    --------
    >>> entry = SearchEntry("abs_1", "abs", (SearchTarget("a.html", True, ""),))
    >>> print(render_search_data([entry]), end="")
    var searchData=
    [
      ['abs_1',['abs',['a.html',1,'']]]
    ];
    """
    lines = [f"  {render_entry(entry)}" for entry in entries]
    body = "[\n" + ",\n".join(lines) + ("\n]" if lines else "]")
    if variable is None:
        return body + "\n"
    return f"var {variable}=\n{body};\n"


def write_search_file(
    entries: Iterable[SearchEntry], path: Path, *, variable: str | None = "searchData"
) -> Path:
    """Render ``entries`` and write them atomically to ``path``.

    Raises
    ------
    SerializationError
        If the rendered text holds characters UTF-8 cannot encode, such as lone surrogates.
    """
    start = time.perf_counter()
    text = render_search_data(entries, variable=variable)
    try:
        atomic_write_text(path, text)
    except UnicodeEncodeError as exc:
        msg = f"Search data for {path} is not encodable as UTF-8: {exc.reason}"
        raise SerializationError(msg, cause=exc, context={"path": str(path)}) from exc
    logger.log_io(
        "Search data written",
        operation="write_search_file",
        io_type="write",
        size_bytes=len(text.encode("utf-8")),
        duration_ms=(time.perf_counter() - start) * 1000,
        path=str(path),
    )
    return path


@cache
def load_schema() -> dict[str, object]:
    """Return the packaged JSON Schema for exports."""
    text = resources.files("search_index").joinpath("schema", SCHEMA_NAME).read_text("utf-8")
    schema = cast("dict[str, object]", json.loads(text))
    Draft202012Validator.check_schema(schema)
    return schema


def _schema_path_key(error: SchemaError) -> tuple[str, ...]:
    return tuple(str(part) for part in error.absolute_path)


def _validate_payload(payload: object, *, source: str | None = None) -> None:
    validator = Draft202012Validator(load_schema())
    errors = sorted(validator.iter_errors(payload), key=_schema_path_key)
    if not errors:
        return
    messages: list[str] = []
    for error in errors[:_SCHEMA_ERROR_LIMIT]:
        location = "/".join(str(part) for part in error.absolute_path) or "<root>"
        messages.append(f"{location}: {error.message}")
    if len(errors) > _SCHEMA_ERROR_LIMIT:
        messages.append(f"... {len(errors) - _SCHEMA_ERROR_LIMIT} additional validation errors")
    context: dict[str, object] = {"errors": messages, "schema": SCHEMA_NAME}
    if source is not None:
        context["source"] = source
    msg = f"Search index export does not match {SCHEMA_NAME}: {messages[0]}"
    raise SearchIndexValidationError(msg, context=context)


def entries_to_payload(entries: Iterable[SearchEntry]) -> list[dict[str, object]]:
    """Convert entries to JSON-compatible rows, keeping their order.

    Targets without a scope omit the ``scope`` field.
    """
    models = [
        SearchEntryModel(
            key=entry.key,
            label=entry.label,
            targets=[
                SearchTargetModel(url=target.url, local=target.local, scope=target.scope)
                for target in entry.targets
            ],
        )
        for entry in entries
    ]
    return cast("list[dict[str, object]]", msgspec.to_builtins(models))


def entries_from_payload(
    payload: object, *, source: str | None = None
) -> tuple[SearchEntry, ...]:
    """Validate JSON rows against the export schema and convert them to entries.

    Parameters
    ----------
    payload : object
        Decoded JSON document, normally a list of row mappings.
    source : str | None, optional
        Name reported in error context. Defaults to None.

    Returns
    -------
    tuple[SearchEntry, ...]
        Entries in row order.

    Raises
    ------
    SearchIndexValidationError
        If the payload does not match the export schema.
    """
    _validate_payload(payload, source=source)
    try:
        models = msgspec.convert(payload, list[SearchEntryModel])
    except msgspec.ValidationError as exc:
        msg = f"Search index export rows are invalid: {exc}"
        raise SearchIndexValidationError(msg, cause=exc, context={"source": source}) from exc
    return tuple(
        SearchEntry(
            key=model.key,
            label=model.label,
            targets=tuple(
                SearchTarget(url=target.url, local=target.local, scope=target.scope)
                for target in model.targets
            ),
        )
        for model in models
    )


def export_json(entries: Iterable[SearchEntry], path: Path) -> Path:
    """Write entries as a schema-checked JSON export.

    Parameters
    ----------
    entries : Iterable[SearchEntry]
        Entries in output order.
    path : Path
        Destination file; parent directories are created.

    Returns
    -------
    Path
        ``path``, after the file has been replaced atomically.

    Raises
    ------
    SearchIndexValidationError
        If the rows do not satisfy the export schema (e.g. an entry without targets).
    SerializationError
        If the rows cannot be encoded as JSON.
    """
    start = time.perf_counter()
    payload = entries_to_payload(entries)
    _validate_payload(payload, source=str(path))
    try:
        text = msgspec.json.format(msgspec.json.encode(payload), indent=2).decode("utf-8")
    except msgspec.EncodeError as exc:
        msg = f"Failed to encode search index export for {path}"
        raise SerializationError(msg, cause=exc, context={"path": str(path)}) from exc
    atomic_write_text(path, text + "\n")
    logger.log_io(
        "Search index exported",
        operation="export_json",
        io_type="write",
        size_bytes=len(text.encode("utf-8")) + 1,
        duration_ms=(time.perf_counter() - start) * 1000,
        path=str(path),
        entries=len(payload),
    )
    return path


def import_json(path: Path) -> tuple[SearchEntry, ...]:
    """Read, validate and decode a JSON export written by :func:`export_json`.

    Raises
    ------
    SearchIndexNotFoundError
        If ``path`` does not exist.
    SearchIndexFormatError
        If the file is not UTF-8 or not valid JSON.
    SearchIndexValidationError
        If the document does not match the export schema.
    """
    try:
        text = read_text(path)
    except FileNotFoundError as exc:
        msg = f"Search index export not found: {path}"
        raise SearchIndexNotFoundError(msg, cause=exc, context={"path": str(path)}) from exc
    except UnicodeDecodeError as exc:
        msg = f"Search index export is not valid UTF-8: {path}"
        raise SearchIndexFormatError(msg, cause=exc, context={"source": str(path)}) from exc
    try:
        payload: object = msgspec.json.decode(text)
    except msgspec.DecodeError as exc:
        msg = f"Search index export is not valid JSON: {path}: {exc}"
        raise SearchIndexFormatError(msg, cause=exc, context={"source": str(path)}) from exc
    entries = entries_from_payload(payload, source=str(path))
    logger.info(
        "Search index export loaded",
        extra={"operation": "import_json", "path": str(path), "entries": len(entries)},
    )
    return entries
