"""Search id encoding used by Doxygen search data.

Doxygen stores every search key as a lower-case "search id": ASCII letters and digits
are kept, every other ASCII character becomes ``_`` followed by its code point in hex,
and a ``_<serial>`` suffix makes the key unique within the file. ``uint128_t`` is
therefore stored as ``uint128_5ft_2201``. The search widget runs the same conversion
on the typed query and compares prefixes, so queries and keys must be encoded the
same way before they are compared.

Examples
--------
>>> encode_search_id("uint128_t")
'uint128_5ft'
>>> split_serial("uint128_5ft_2201")
('uint128_5ft', 2201)
>>> decode_search_id("uint128_5ft")
'uint128_t'
"""

from __future__ import annotations

import re
from typing import Final

__all__ = [
    "decode_search_id",
    "encode_search_id",
    "normalize_query",
    "split_serial",
]

_SERIAL_RE: Final = re.compile(r"^(?P<search_id>.*?)_(?P<serial>\d+)$", re.DOTALL)
_ESCAPE_RE: Final = re.compile(r"_([0-9a-f]{2})")
_KEPT_ASCII: Final = frozenset("abcdefghijklmnopqrstuvwxyz0123456789")


def encode_search_id(text: str) -> str:
    """Convert ``text`` to the generator's search id form.

    Parameters
    ----------
    text : str
        Symbol name or query text.

    Returns
    -------
    str
        Lower-cased text with every ASCII character outside ``[a-z0-9]`` replaced by
        ``_`` plus its two-digit hex code point. Non-ASCII characters are kept.
    """
    parts: list[str] = []
    for char in text.lower():
        code = ord(char)
        if char in _KEPT_ASCII or code >= 0x80:
            parts.append(char)
        else:
            parts.append(f"_{code:02x}")
    return "".join(parts)


def decode_search_id(search_id: str) -> str:
    """Reverse :func:`encode_search_id` for ``_hh`` escapes.

    Letter case lost during encoding is not recovered. Underscores that are not
    followed by two hex digits are kept literally.

    Parameters
    ----------
    search_id : str
        Encoded search id without its serial suffix.

    Returns
    -------
    str
        Decoded symbol text.
    """
    return _ESCAPE_RE.sub(lambda match: chr(int(match.group(1), 16)), search_id)


def split_serial(key: str) -> tuple[str, int | None]:
    """Split a raw key into its search id and serial suffix.

    Parameters
    ----------
    key : str
        Raw key as stored in the search data, e.g. ``"u16string_2197"``.

    Returns
    -------
    tuple[str, int | None]
        ``(search_id, serial)``. ``serial`` is None when the key has no numeric suffix.
    """
    match = _SERIAL_RE.match(key)
    if match is None or not match.group("search_id"):
        return key, None
    return match.group("search_id"), int(match.group("serial"))


def normalize_query(query: str) -> str:
    """Strip surrounding spaces from ``query`` and encode it as a search id."""
    return encode_search_id(query.strip(" "))
