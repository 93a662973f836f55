"""In-memory records for documentation search data."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Final

from search_index.keys import decode_search_id, split_serial

__all__ = [
    "SearchEntry",
    "SearchHit",
    "SearchTarget",
]

_ABSOLUTE_URL_RE: Final = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


@dataclass(frozen=True, slots=True)
class SearchTarget:
    """One display variant of an entry: a link plus the scope shown beside it."""

    url: str
    """Absolute external URL or a path relative to the search page."""
    local: bool
    """True when the link stays inside the generated site (flag ``1``)."""
    scope: str | None = None
    """Scope label such as ``std::u16string``; None when the record omits it."""

    @property
    def page(self) -> str:
        """Return the URL without its fragment."""
        return self.url.partition("#")[0]

    @property
    def anchor(self) -> str | None:
        """Return the fragment after ``#``, or None when the URL has none."""
        _, sep, fragment = self.url.partition("#")
        return fragment if sep else None

    @property
    def is_absolute(self) -> bool:
        """Return True for ``scheme://`` URLs (external reference documentation)."""
        return _ABSOLUTE_URL_RE.match(self.url) is not None

    @property
    def display_scope(self) -> str:
        """Return the scope label with HTML entities unescaped, or ``""``."""
        return html.unescape(self.scope) if self.scope else ""


@dataclass(frozen=True, slots=True)
class SearchEntry:
    """One search data record: a key, its display label and one or more targets.

    Several entries may describe the same symbol (overload sets, namespace-qualified
    duplicates); nothing requires keys to be unique.
    """

    key: str
    label: str
    targets: tuple[SearchTarget, ...]

    @property
    def search_id(self) -> str:
        """Return the encoded search id without the serial suffix."""
        return split_serial(self.key)[0]

    @property
    def serial(self) -> int | None:
        """Return the numeric serial suffix of the key, if present."""
        return split_serial(self.key)[1]

    @property
    def symbol(self) -> str:
        """Return the decoded search id, e.g. ``uint128_t`` for ``uint128_5ft_2201``."""
        return decode_search_id(self.search_id)

    @property
    def display_label(self) -> str:
        """Return the label with HTML entities unescaped."""
        return html.unescape(self.label)

    def hits(self, section: str | None = None) -> tuple[SearchHit, ...]:
        """Flatten the entry into one hit per target, in target order."""
        return tuple(
            SearchHit(
                key=self.key,
                label=self.display_label,
                url=target.url,
                scope=target.display_scope,
                local=target.local,
                section=section,
            )
            for target in self.targets
        )


@dataclass(frozen=True, slots=True)
class SearchHit:
    """Presentation row for one target of a matching entry."""

    key: str
    label: str
    url: str
    scope: str
    local: bool
    section: str | None = None

    def to_payload(self) -> dict[str, str | bool | None]:
        """Return a JSON-compatible mapping of the hit."""
        return {
            "key": self.key,
            "label": self.label,
            "url": self.url,
            "scope": self.scope,
            "local": self.local,
            "section": self.section,
        }
