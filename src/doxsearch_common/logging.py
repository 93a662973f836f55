"""Structured logging helpers with correlation IDs.

This module provides a LoggerAdapter that stamps every record with ``operation`` and
``status`` fields, a JSON formatter for machine-readable output, and module-level
loggers guarded by a NullHandler so library imports never configure handlers.

Examples
--------
>>> from doxsearch_common.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.info("Index loaded", extra={"operation": "load_index", "entries": 74})
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Literal, Self, cast

if TYPE_CHECKING:
    from collections.abc import Mapping, MutableMapping
    from types import TracebackType

    from doxsearch_common.types import JsonValue

__all__ = [
    "CorrelationContext",
    "JsonFormatter",
    "LoggerAdapter",
    "get_correlation_id",
    "get_logger",
    "setup_logging",
    "with_fields",
]

LogFormat = Literal["json", "text"]

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(operation)s/%(status)s] %(message)s"

# Context variable for correlation ID propagation (async-safe)
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Standard LogRecord attributes that never count as structured extras
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "asctime",
        "ts",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Formats records as a single JSON object with ``ts``, ``level``, ``name`` and
    ``message`` plus every JSON-compatible extra field. The correlation ID is taken
    from the context when the record does not carry one.

    Examples
    --------
    >>> import logging
    >>> handler = logging.StreamHandler()
    >>> handler.setFormatter(JsonFormatter())
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Parameters
        ----------
        record : logging.LogRecord
            Record to format. Extra fields are read from ``record.__dict__``.

        Returns
        -------
        str
            JSON-encoded log entry.
        """
        data: dict[str, JsonValue] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if (
                key in _RESERVED_ATTRS
                or key in data
                or key.startswith("_")
                or value is None
                or not isinstance(value, (str, int, float, bool, list, dict))
            ):
                continue
            data[key] = cast("JsonValue", value)

        if "correlation_id" not in data:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                data["correlation_id"] = ctx_correlation_id

        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)


class _TextFormatter(logging.Formatter):
    """Human-readable formatter that tolerates records without structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        for field in ("operation", "status"):
            if not hasattr(record, field):
                setattr(record, field, "-")
        return super().format(record)


if TYPE_CHECKING:

    class _LoggerAdapterBase:  # pragma: no cover - typing helper
        logger: logging.Logger
        extra: Mapping[str, object] | None

        def __init__(self, logger: logging.Logger, extra: Mapping[str, object] | None) -> None: ...

        def log(self, level: int, msg: object, *args: object, **kwargs: object) -> None: ...

else:
    _LoggerAdapterBase = logging.LoggerAdapter


class LoggerAdapter(_LoggerAdapterBase):
    """Logger adapter that injects structured context fields.

    Bound fields (from the constructor or :func:`with_fields`) are merged into each
    record's ``extra`` without overriding per-call values. ``operation`` defaults to
    ``"unknown"`` and ``status`` is inferred from the level when missing.

    Parameters
    ----------
    logger : logging.Logger
        Base logger instance to wrap.
    extra : Mapping[str, object] | None, optional
        Structured fields bound to every record. Defaults to None.
    """

    logger: logging.Logger

    def process(self, msg: object, kwargs: MutableMapping[str, Any]) -> tuple[object, Any]:
        """Merge bound fields and the context correlation ID into ``kwargs['extra']``.

        Parameters
        ----------
        msg : object
            Log message.
        kwargs : MutableMapping[str, Any]
            Keyword arguments of the logging call.

        Returns
        -------
        tuple[object, Any]
            The message and the updated keyword arguments.
        """
        self._merge_extra(kwargs, logging.INFO)
        return msg, kwargs

    def _merge_extra(self, kwargs: MutableMapping[str, Any], level: int) -> None:
        raw_extra = kwargs.get("extra")
        extra: dict[str, Any] = dict(raw_extra) if isinstance(raw_extra, dict) else {}
        if self.extra:
            for key, value in self.extra.items():
                extra.setdefault(key, value)
        if "correlation_id" not in extra:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                extra["correlation_id"] = ctx_correlation_id
        extra.setdefault("operation", "unknown")
        if "status" not in extra:
            if level >= logging.ERROR:
                extra["status"] = "error"
            elif level >= logging.WARNING:
                extra["status"] = "warning"
            else:
                extra["status"] = "success"
        kwargs["extra"] = extra

    def log(self, level: int, msg: object, *args: object, **kwargs: object) -> None:
        """Log ``msg`` at ``level`` with structured fields."""
        if not self.logger.isEnabledFor(level):
            return
        kwargs_dict = cast("dict[str, Any]", kwargs)
        self._merge_extra(kwargs_dict, level)
        self.logger.log(level, msg, *args, **kwargs_dict)

    def debug(self, msg: object, *args: object, **kwargs: object) -> None:
        """Log a debug message with structured fields."""
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: object, *args: object, **kwargs: object) -> None:
        """Log an info message with structured fields."""
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: object, *args: object, **kwargs: object) -> None:
        """Log a warning message with structured fields."""
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: object, *args: object, **kwargs: object) -> None:
        """Log an error message with structured fields."""
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(
        self,
        msg: object,
        *args: object,
        exc_info: object = True,
        **kwargs: object,
    ) -> None:
        """Log an error with traceback using structured fields."""
        kwargs["exc_info"] = exc_info
        self.log(logging.ERROR, msg, *args, **kwargs)

    def critical(self, msg: object, *args: object, **kwargs: object) -> None:
        """Log a critical message with structured fields."""
        self.log(logging.CRITICAL, msg, *args, **kwargs)

    def log_success(
        self,
        message: str,
        *,
        operation: str | None = None,
        duration_ms: float | None = None,
        **fields: object,
    ) -> None:
        """Log a successful operation with structured fields.

        Parameters
        ----------
        message : str
            Success message.
        operation : str | None, optional
            Operation name. Defaults to the bound value or ``"unknown"``.
        duration_ms : float | None, optional
            Operation duration in milliseconds. Defaults to None.
        **fields : object
            Additional structured fields.

        Examples
        --------
        >>> logger = get_logger(__name__)
        >>> logger.log_success("Index parsed", operation="parse", duration_ms=3.2)
        """
        extra: dict[str, object] = {"status": "success"}
        if operation is not None:
            extra["operation"] = operation
        if duration_ms is not None:
            extra["duration_ms"] = round(duration_ms, 3)
        extra.update(fields)
        self.log(logging.INFO, message, extra=extra)

    def log_failure(
        self,
        message: str,
        *,
        exception: Exception | None = None,
        operation: str | None = None,
        duration_ms: float | None = None,
        **fields: object,
    ) -> None:
        """Log a failure with structured fields and optional exception details.

        Parameters
        ----------
        message : str
            Failure message.
        exception : Exception | None, optional
            Exception that caused the failure. Defaults to None.
        operation : str | None, optional
            Operation name. Defaults to None.
        duration_ms : float | None, optional
            Operation duration in milliseconds. Defaults to None.
        **fields : object
            Additional structured fields.
        """
        extra: dict[str, object] = {"status": "error"}
        if operation is not None:
            extra["operation"] = operation
        if duration_ms is not None:
            extra["duration_ms"] = round(duration_ms, 3)
        if exception is not None:
            extra["error_type"] = exception.__class__.__name__
            extra["error_detail"] = str(exception)
        extra.update(fields)
        self.log(logging.ERROR, message, extra=extra)

    def log_io(
        self,
        message: str,
        *,
        operation: str | None = None,
        io_type: str = "unknown",
        size_bytes: int | None = None,
        duration_ms: float | None = None,
        **fields: object,
    ) -> None:
        """Log a read or write of an index artifact.

        Parameters
        ----------
        message : str
            I/O message.
        operation : str | None, optional
            Operation name. Defaults to None.
        io_type : str, optional
            ``"read"``, ``"write"`` or ``"unknown"``. Defaults to ``"unknown"``.
        size_bytes : int | None, optional
            Bytes read or written. Defaults to None.
        duration_ms : float | None, optional
            I/O duration in milliseconds. Defaults to None.
        **fields : object
            Additional structured fields.
        """
        extra: dict[str, object] = {"status": "success", "io_type": io_type}
        if operation is not None:
            extra["operation"] = operation
        if size_bytes is not None:
            extra["size_bytes"] = size_bytes
        if duration_ms is not None:
            extra["duration_ms"] = round(duration_ms, 3)
        extra.update(fields)
        self.log(logging.INFO, message, extra=extra)


def get_logger(name: str) -> LoggerAdapter:
    """Get a logger adapter with structured logging support.

    Module-level loggers get a NullHandler so libraries never emit "no handler"
    warnings. Applications configure output with :func:`setup_logging`.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__``).

    Returns
    -------
    LoggerAdapter
        Adapter injecting structured context fields.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return LoggerAdapter(logger, {})


def setup_logging(level: int | str = logging.INFO, *, fmt: LogFormat = "json") -> None:
    """Configure the root logger to write to stderr.

    Parameters
    ----------
    level : int | str, optional
        Threshold level (``logging.DEBUG`` or ``"DEBUG"``). Defaults to INFO.
    fmt : {"json", "text"}, optional
        ``json`` for one JSON object per line, ``text`` for a readable line format.
        Defaults to ``"json"``.
    """
    handler = logging.StreamHandler(sys.stderr)
    formatter: logging.Formatter = JsonFormatter() if fmt == "json" else _TextFormatter(TEXT_FORMAT)
    handler.setFormatter(formatter)
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    logging.basicConfig(level=resolved, handlers=[handler], force=True)


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context, if any."""
    return _correlation_id.get()


class CorrelationContext:
    """Context manager that scopes a correlation ID and restores the previous one on exit.

    Parameters
    ----------
    correlation_id : str | None
        Correlation ID to set while the context is active.

    Examples
    --------
    >>> with CorrelationContext("cli-1234"):
    ...     get_correlation_id()
    'cli-1234'
    """

    def __init__(self, correlation_id: str | None) -> None:
        self.correlation_id = correlation_id
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> Self:
        self._token = _correlation_id.set(self.correlation_id)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _correlation_id.reset(self._token)
            self._token = None


class _WithFieldsContext(AbstractContextManager[LoggerAdapter]):
    """Context manager implementation for :func:`with_fields`."""

    def __init__(
        self, logger: logging.Logger | LoggerAdapter, fields: Mapping[str, object]
    ) -> None:
        self._logger = logger
        self._fields = dict(fields)
        self._scope: CorrelationContext | None = None

    def __enter__(self) -> LoggerAdapter:
        if isinstance(self._logger, LoggerAdapter):
            base_logger = self._logger.logger
            bound = dict(self._logger.extra or {})
        else:
            base_logger = self._logger
            bound = {}
        bound.update(self._fields)
        correlation_id = self._fields.get("correlation_id")
        if isinstance(correlation_id, str):
            self._scope = CorrelationContext(correlation_id)
            self._scope.__enter__()
        return LoggerAdapter(base_logger, bound)

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._scope is not None:
            self._scope.__exit__(exc_type, exc_value, exc_tb)
            self._scope = None


def with_fields(
    logger: logging.Logger | LoggerAdapter,
    **fields: object,
) -> AbstractContextManager[LoggerAdapter]:
    """Bind structured fields to a logger for the duration of a ``with`` block.

    A ``correlation_id`` field is also placed in the context so nested loggers pick
    it up, and it is restored when the block exits.

    Parameters
    ----------
    logger : logging.Logger | LoggerAdapter
        Logger to wrap. Fields already bound to an adapter are kept.
    **fields : object
        Fields injected into every record.

    Returns
    -------
    AbstractContextManager[LoggerAdapter]
        Context manager yielding the bound adapter.

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> with with_fields(logger, operation="query", section="all") as log:
    ...     log.info("Query started")
    """
    return _WithFieldsContext(logger, fields)
