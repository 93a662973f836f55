"""Runtime settings with typed configuration and fail-fast validation.

Settings come from ``DOXSEARCH_*`` environment variables (nested sections use ``__``)
and keyword overrides. Invalid values raise :class:`~doxsearch_common.errors.SettingsError`
with the per-field validation errors attached.

Examples
--------
>>> from doxsearch_common.settings import load_settings
>>> settings = load_settings()
>>> settings.search.mode
'prefix'
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from doxsearch_common.errors import SettingsError
from doxsearch_common.logging import get_logger

__all__ = [
    "LoggingSettings",
    "RuntimeSettings",
    "SearchSettings",
    "load_settings",
]

logger = get_logger(__name__)

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class SearchSettings(BaseSettings):
    """Defaults for search queries (``DOXSEARCH_SEARCH_*``)."""

    model_config = SettingsConfigDict(env_prefix="DOXSEARCH_SEARCH_", extra="forbid")

    search_dir: Path = Field(
        default=Path("html/search"),
        description="Directory holding the generated <section>_<n>.js search shards",
    )
    section: str = Field(default="all", description="Search section queried by default")
    mode: Literal["prefix", "contains"] = Field(
        default="prefix", description="Match mode: 'prefix' (widget behaviour) or 'contains'"
    )
    limit: int = Field(default=50, gt=0, description="Maximum number of entries returned")


class LoggingSettings(BaseSettings):
    """Logging output options (``DOXSEARCH_LOG_*``)."""

    model_config = SettingsConfigDict(env_prefix="DOXSEARCH_LOG_", extra="forbid")

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    format: Literal["json", "text"] = Field(default="json", description="Log line format")

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in _LOG_LEVELS:
            msg = f"Unknown log level {value!r}; expected one of {sorted(_LOG_LEVELS)}"
            raise ValueError(msg)
        return normalized


class RuntimeSettings(BaseSettings):
    """Aggregate runtime configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DOXSEARCH_",
        env_nested_delimiter="__",
        extra="forbid",
        case_sensitive=False,
    )

    search: SearchSettings = Field(default_factory=SearchSettings)
    log: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(**overrides: object) -> RuntimeSettings:
    """Load :class:`RuntimeSettings`, converting validation failures to ``SettingsError``.

    Parameters
    ----------
    **overrides : object
        Field overrides, e.g. ``search={"limit": 10}``.

    Returns
    -------
    RuntimeSettings
        Validated settings.

    Raises
    ------
    SettingsError
        If any field fails validation.
    """
    try:
        return RuntimeSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        errors: list[dict[str, object]] = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "issue": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        logger.exception(
            "Settings validation failed",
            extra={"operation": "load_settings", "error_count": len(errors)},
        )
        msg = f"Configuration validation failed: {errors[0]['field']}: {errors[0]['issue']}"
        raise SettingsError(msg, errors=errors, cause=exc) from exc
