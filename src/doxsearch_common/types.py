"""Type aliases shared across doxsearch packages.

The aliases live in a dependency-free module so every package can import them without
circular imports.
"""

from __future__ import annotations

__all__ = [
    "JsonPrimitive",
    "JsonValue",
]


# Primitive JSON types (leaf values)
type JsonPrimitive = str | int | float | bool | None

# JSON value can be primitive or nested (dict/list)
type JsonValue = JsonPrimitive | dict[str, JsonValue] | list[JsonValue]
