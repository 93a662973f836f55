"""Parse Doxygen ``searchData`` JavaScript files into :class:`SearchEntry` records.

A search data file is a single JavaScript array literal, usually bound to a variable::

    var searchData=
    [
      ['u16string_2197',['u16string',['http://en.cppreference.com/...',0,'std::u16string']]],
      ...
    ];

The literal uses single-quoted strings, so it is not JSON. This module reads the small
JavaScript literal subset the generator emits (arrays, quoted strings, integers and
booleans) and then checks each record's shape.

Examples
--------
>>> entries = parse_search_data("var searchData=[['abs_1',['abs',['a.html',1,'']]]];")
>>> entries[0].label, entries[0].targets[0].local
('abs', True)
"""

from __future__ import annotations

import re
import time
from typing import TYPE_CHECKING, Final

from doxsearch_common.errors import SearchIndexFormatError, SearchIndexNotFoundError
from doxsearch_common.fs import read_text
from doxsearch_common.logging import get_logger
from search_index.models import SearchEntry, SearchTarget

if TYPE_CHECKING:
    from pathlib import Path

__all__ = [
    "load_search_file",
    "parse_search_data",
    "parse_variable_name",
]

logger = get_logger(__name__)

_PRELUDE_RE: Final = re.compile(
    r"\A[\s\ufeff]*(?:var|let|const)\s+(?P<name>[A-Za-z_$][\w$]*)\s*="
)
_SINGLE_QUOTED_RE: Final = re.compile(r"'((?:[^'\\\n]|\\.)*)'", re.DOTALL)
_DOUBLE_QUOTED_RE: Final = re.compile(r'"((?:[^"\\\n]|\\.)*)"', re.DOTALL)
_INTEGER_RE: Final = re.compile(r"-?\d+")
_ESCAPE_RE: Final = re.compile(r"\\(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)
_WHITESPACE: Final = " \t\r\n\ufeff"

_SIMPLE_ESCAPES: Final[dict[str, str]] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\n": "",
}

_MIN_TARGET_FIELDS: Final = 2
_MAX_TARGET_FIELDS: Final = 3
# records nest four arrays deep: file, record, body, target
_MAX_DEPTH: Final = 8

type _Literal = str | int | bool | list[_Literal]


def _unescape(body: str) -> str:
    def replace(match: re.Match[str]) -> str:
        token = match.group(1)
        if len(token) > 1:
            return chr(int(token[1:], 16))
        return _SIMPLE_ESCAPES.get(token, token)

    text = _ESCAPE_RE.sub(replace, body)
    if not any(0xD800 <= ord(char) <= 0xDFFF for char in text):
        return text
    # joins \uXXXX surrogate pairs; a lone surrogate raises UnicodeDecodeError
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le")


class _LiteralReader:
    """Cursor over the JavaScript literal text with position-aware errors."""

    def __init__(self, text: str, source: str | None) -> None:
        self.text = text
        self.source = source
        self.pos = 0
        self.depth = 0

    def location(self, pos: int) -> tuple[int, int]:
        line = self.text.count("\n", 0, pos) + 1
        column = pos - (self.text.rfind("\n", 0, pos) + 1) + 1
        return line, column

    def error(
        self, message: str, *, pos: int | None = None, **context: object
    ) -> SearchIndexFormatError:
        at = self.pos if pos is None else pos
        line, column = self.location(at)
        where = f"{self.source}:" if self.source else ""
        details: dict[str, object] = {"source": self.source, "line": line, "column": column}
        details.update(context)
        return SearchIndexFormatError(
            f"{where}{line}:{column}: {message}",
            context={key: value for key, value in details.items() if value is not None},
        )

    def skip_whitespace(self) -> None:
        text = self.text
        pos = self.pos
        while pos < len(text) and text[pos] in _WHITESPACE:
            pos += 1
        self.pos = pos

    def peek(self) -> str:
        self.skip_whitespace()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, char: str) -> None:
        if self.peek() != char:
            found = self.text[self.pos] if self.pos < len(self.text) else "end of input"
            raise self.error(f"expected {char!r}, found {found!r}")
        self.pos += 1

    def read_value(self) -> _Literal:
        char = self.peek()
        if char == "[":
            return self.read_array()
        if char in {"'", '"'}:
            return self.read_string()
        if char == "-" or char.isdigit():
            return self.read_integer()
        for keyword, value in (("true", True), ("false", False)):
            if self.text.startswith(keyword, self.pos):
                self.pos += len(keyword)
                return value
        if not char:
            raise self.error("unexpected end of input")
        raise self.error(f"unexpected character {char!r}")

    def read_array(self) -> list[_Literal]:
        return [value for _, value in self.read_positioned_array()]

    def read_positioned_array(self) -> list[tuple[int, _Literal]]:
        """Read an array, returning each element with its start offset."""
        if self.depth >= _MAX_DEPTH:
            raise self.error("array nesting too deep", depth=self.depth)
        self.expect("[")
        self.depth += 1
        try:
            return self._read_elements()
        finally:
            self.depth -= 1

    def _read_elements(self) -> list[tuple[int, _Literal]]:
        items: list[tuple[int, _Literal]] = []
        if self.peek() == "]":
            self.pos += 1
            return items
        while True:
            start = self.pos
            items.append((start, self.read_value()))
            char = self.peek()
            if char == ",":
                self.pos += 1
                if self.peek() == "]":
                    self.pos += 1
                    return items
                continue
            if char == "]":
                self.pos += 1
                return items
            raise self.error("expected ',' or ']' after array element")

    def read_string(self) -> str:
        quote = self.text[self.pos]
        pattern = _SINGLE_QUOTED_RE if quote == "'" else _DOUBLE_QUOTED_RE
        match = pattern.match(self.text, self.pos)
        if match is None:
            raise self.error("unterminated string literal")
        start = self.pos
        self.pos = match.end()
        try:
            return _unescape(match.group(1))
        except UnicodeDecodeError as exc:
            raise self.error("string contains an unpaired surrogate escape", pos=start) from exc

    def read_integer(self) -> int:
        match = _INTEGER_RE.match(self.text, self.pos)
        if match is None:
            raise self.error("malformed number")
        self.pos = match.end()
        return int(match.group(0))


def parse_variable_name(text: str) -> str | None:
    """Return the variable name declared before the array literal, if any.

    Parameters
    ----------
    text : str
        Search data file contents.

    Returns
    -------
    str | None
        ``"searchData"`` for generator output, None for a bare array literal.
    """
    match = _PRELUDE_RE.match(text)
    return match.group("name") if match else None


def parse_search_data(text: str, *, source: str | None = None) -> tuple[SearchEntry, ...]:
    """Parse search data text into entries, preserving array order.

    Parameters
    ----------
    text : str
        File contents: ``var <name>=[...];`` or a bare ``[...]`` literal.
    source : str | None, optional
        Name used in error messages (usually the file path). Defaults to None.

    Returns
    -------
    tuple[SearchEntry, ...]
        One entry per record, in array order.

    Raises
    ------
    SearchIndexFormatError
        If the text is not a well-formed literal or a record has the wrong shape. The
        error context carries ``line``, ``column`` and, for shape errors, ``record``.
    """
    reader = _LiteralReader(text, source)
    prelude = _PRELUDE_RE.match(text)
    if prelude is not None:
        reader.pos = prelude.end()
    records = reader.read_positioned_array()
    if reader.peek() == ";":
        reader.pos += 1
    if reader.peek():
        raise reader.error("unexpected content after search data array")
    return tuple(
        _entry_from_record(reader, value, index=index, pos=pos)
        for index, (pos, value) in enumerate(records)
    )


def _entry_from_record(
    reader: _LiteralReader, value: _Literal, *, index: int, pos: int
) -> SearchEntry:
    def fail(message: str) -> SearchIndexFormatError:
        return reader.error(f"record {index}: {message}", pos=pos, record=index)

    if not isinstance(value, list) or len(value) != 2:  # noqa: PLR2004
        raise fail("expected [key, [label, target, ...]]")
    key, body = value
    if not isinstance(key, str) or not key:
        raise fail("key must be a non-empty string")
    if not isinstance(body, list) or len(body) < 2:  # noqa: PLR2004
        raise fail(f"entry {key!r} must hold a label and at least one target")
    label = body[0]
    if not isinstance(label, str):
        raise fail(f"entry {key!r} label must be a string")
    targets: list[SearchTarget] = []
    for position, raw in enumerate(body[1:]):
        if not isinstance(raw, list) or not _MIN_TARGET_FIELDS <= len(raw) <= _MAX_TARGET_FIELDS:
            raise fail(f"entry {key!r} target {position} must be [url, flag] or [url, flag, scope]")
        url, flag, *rest = raw
        if not isinstance(url, str):
            raise fail(f"entry {key!r} target {position} url must be a string")
        if isinstance(flag, bool):
            local = flag
        elif isinstance(flag, int) and flag in {0, 1}:
            local = flag == 1
        else:
            raise fail(f"entry {key!r} target {position} flag must be 0 or 1")
        scope = rest[0] if rest else None
        if scope is not None and not isinstance(scope, str):
            raise fail(f"entry {key!r} target {position} scope must be a string")
        targets.append(SearchTarget(url=url, local=local, scope=scope))
    return SearchEntry(key=key, label=label, targets=tuple(targets))


def load_search_file(path: Path) -> tuple[SearchEntry, ...]:
    """Read and parse one search data file.

    Parameters
    ----------
    path : Path
        Path to a ``<section>_<n>.js`` file.

    Returns
    -------
    tuple[SearchEntry, ...]
        Parsed entries in file order.

    Raises
    ------
    SearchIndexNotFoundError
        If ``path`` does not exist.
    SearchIndexFormatError
        If the file is not UTF-8 or not well-formed search data.
    """
    start = time.perf_counter()
    try:
        text = read_text(path)
    except FileNotFoundError as exc:
        msg = f"Search data file not found: {path}"
        raise SearchIndexNotFoundError(msg, cause=exc, context={"path": str(path)}) from exc
    except UnicodeDecodeError as exc:
        msg = f"Search data file is not valid UTF-8: {path}"
        raise SearchIndexFormatError(msg, cause=exc, context={"source": str(path)}) from exc
    entries = parse_search_data(text, source=str(path))
    logger.log_io(
        "Search data loaded",
        operation="load_search_file",
        io_type="read",
        size_bytes=len(text.encode("utf-8")),
        duration_ms=(time.perf_counter() - start) * 1000,
        path=str(path),
        entries=len(entries),
    )
    return entries
