"""``doxsearch`` command line: query, validate and convert documentation search data.

Every command logs under a fresh correlation ID. Failures print an RFC 9457 Problem
Details document followed by a one-line message on stderr and exit with status 2 for
configuration errors or 1 for anything else.
"""

from __future__ import annotations

import re
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated
from uuid import uuid4

import msgspec
import typer

from doxsearch_common.errors import (
    ConfigurationError,
    DoxSearchError,
    SearchIndexFormatError,
    SearchIndexNotFoundError,
    SettingsError,
)
from doxsearch_common.logging import (
    CorrelationContext,
    LoggerAdapter,
    get_correlation_id,
    get_logger,
    setup_logging,
    with_fields,
)
from doxsearch_common.problem_details import (
    ExceptionProblemDetailsParams,
    ProblemDetails,
    ProblemDetailsParams,
    build_configuration_problem,
    problem_from_exception,
    render_problem,
)
from doxsearch_common.settings import RuntimeSettings, load_settings
from search_index.catalog import SearchCatalog
from search_index.index import MatchMode
from search_index.parser import load_search_file
from search_index.serializer import export_json, import_json, write_search_file
from search_index.validation import validate_entries

__all__ = ["app"]

LOGGER = get_logger(__name__)

CLI_PROBLEM_TYPE_BASE = "https://doxsearch.dev/problems/cli"
STATUS_INTERNAL_ERROR = 500
EXIT_FAILURE = 1
EXIT_CONFIG = 2

_JS_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

app = typer.Typer(
    help="Query, validate and convert documentation search data.",
    no_args_is_help=True,
    add_completion=False,
)


@dataclass(slots=True)
class _CommandContext:
    """Structured context shared across a single command invocation."""

    command: str
    logger: LoggerAdapter
    start: float

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start) * 1000

    def instance(self) -> str:
        return f"urn:doxsearch:cli:{self.command}"


def _with_correlation(problem: ProblemDetails) -> ProblemDetails:
    correlation_id = get_correlation_id()
    if correlation_id is None:
        return problem
    extensions = dict(problem.get("extensions") or {})
    extensions["correlation_id"] = correlation_id
    problem["extensions"] = extensions
    return problem


def _problem_for(context: _CommandContext, exc: Exception) -> tuple[ProblemDetails, int]:
    if isinstance(exc, (ConfigurationError, SettingsError)):
        return build_configuration_problem(exc), EXIT_CONFIG
    if isinstance(exc, DoxSearchError):
        title = f"doxsearch {context.command} failed"
        return exc.to_problem_details(instance=context.instance(), title=title), EXIT_FAILURE
    problem = problem_from_exception(
        ExceptionProblemDetailsParams(
            exception=exc,
            base=ProblemDetailsParams(
                problem_type=f"{CLI_PROBLEM_TYPE_BASE}/{context.command}",
                title=f"doxsearch {context.command} failed",
                status=STATUS_INTERNAL_ERROR,
                detail=str(exc),
                instance=context.instance(),
            ),
        )
    )
    return problem, EXIT_FAILURE


def _handle_failure(context: _CommandContext, exc: Exception) -> int:
    problem, exit_code = _problem_for(context, exc)
    problem = _with_correlation(problem)
    detail = getattr(exc, "message", None) or str(exc)
    context.logger.log_failure(
        "Command failed",
        exception=exc,
        duration_ms=context.elapsed_ms(),
        exit_code=exit_code,
    )
    typer.echo(render_problem(problem), err=True)
    typer.echo(f"error: {detail}", err=True)
    return exit_code


@contextmanager
def _run_command(command: str, **log_fields: object) -> Iterator[_CommandContext]:
    filtered_fields = {key: value for key, value in log_fields.items() if value is not None}
    with (
        CorrelationContext(uuid4().hex),
        with_fields(LOGGER, operation=command, command=command, **filtered_fields) as logger,
    ):
        context = _CommandContext(
            command=command,
            logger=logger,
            start=time.monotonic(),
        )
        logger.info("Command started", extra={"status": "start"})
        try:
            yield context
        except (DoxSearchError, OSError) as exc:
            raise typer.Exit(code=_handle_failure(context, exc)) from exc
        logger.log_success("Command completed", duration_ms=context.elapsed_ms())


def _settings(ctx: typer.Context) -> RuntimeSettings:
    settings = ctx.obj
    if isinstance(settings, RuntimeSettings):
        return settings
    return _load_cli_settings()


def _load_cli_settings() -> RuntimeSettings:
    try:
        return load_settings()
    except SettingsError as exc:
        problem = build_configuration_problem(exc)
        typer.echo(render_problem(problem), err=True)
        typer.echo(f"error: {exc.message}", err=True)
        raise typer.Exit(code=EXIT_CONFIG) from exc


@app.callback()
def main(ctx: typer.Context) -> None:
    """Load ``DOXSEARCH_*`` settings and configure logging for the command."""
    settings = _load_cli_settings()
    setup_logging(settings.log.level, fmt=settings.log.format)
    ctx.obj = settings


_SearchDirOption = Annotated[
    Path | None,
    typer.Option(
        "--search-dir",
        help="Generated search/ directory [default: DOXSEARCH_SEARCH_SEARCH_DIR or html/search]",
        file_okay=False,
    ),
]
_SectionOption = Annotated[
    str | None,
    typer.Option("--section", help="Search section to query (all, classes, functions, ...)"),
]
_ModeOption = Annotated[
    MatchMode | None,
    typer.Option(
        "--mode", help="prefix (search widget behaviour) or contains", case_sensitive=False
    ),
]
_LimitOption = Annotated[
    int | None, typer.Option("--limit", min=1, help="Maximum number of matching entries")
]
_JsonOption = Annotated[bool, typer.Option("--json", help="Print hits as a JSON array")]
_OutputOption = Annotated[
    Path, typer.Option("--output", "-o", help="Destination file", dir_okay=False)
]


@app.command()
def query(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(metavar="QUERY", help="Symbol name or prefix")],
    search_dir: _SearchDirOption = None,
    section: _SectionOption = None,
    mode: _ModeOption = None,
    limit: _LimitOption = None,
    json_output: _JsonOption = False,
) -> None:
    """Print the hits for QUERY as ``label<TAB>scope<TAB>url`` rows."""
    settings = _settings(ctx).search
    directory = search_dir or settings.search_dir
    resolved_section = section or settings.section
    with _run_command("query", query=text, section=resolved_section) as context:
        catalog = SearchCatalog.load(directory)
        hits = catalog.index(resolved_section).hits(
            text,
            mode=mode or MatchMode(settings.mode),
            limit=limit or settings.limit,
        )
        if json_output:
            payload = [hit.to_payload() for hit in hits]
            typer.echo(msgspec.json.format(msgspec.json.encode(payload), indent=2).decode("utf-8"))
        else:
            for hit in hits:
                typer.echo(f"{hit.label}\t{hit.scope}\t{hit.url}")
        context.logger.info("Query answered", extra={"hits": len(hits)})


@app.command()
def sections(ctx: typer.Context, search_dir: _SearchDirOption = None) -> None:
    """List the sections of a search directory with their entry and file counts."""
    directory = search_dir or _settings(ctx).search.search_dir
    with _run_command("sections", search_dir=str(directory)):
        catalog = SearchCatalog.load(directory)
        for name in catalog.sections:
            index = catalog.index(name)
            typer.echo(f"{name}\t{len(index)}\t{len(catalog.shards(name))}")


@app.command()
def validate(
    files: Annotated[list[Path], typer.Argument(help="Search data files to check", dir_okay=False)],
    show_warnings: Annotated[
        bool, typer.Option("--warnings/--no-warnings", help="Also list warnings")
    ] = False,
) -> None:
    """Parse and check each FILE; exit 1 when any file has errors."""
    failed = 0
    with _run_command("validate", files=len(files)) as context:
        for path in files:
            try:
                entries = load_search_file(path)
            except (SearchIndexFormatError, SearchIndexNotFoundError) as exc:
                failed += 1
                typer.echo(f"{path}: {exc.message}")
                context.logger.warning(
                    "Search data file rejected", extra={"path": str(path), "code": exc.code.value}
                )
                continue
            report = validate_entries(entries)
            typer.echo(
                f"{path}: {report.entry_count} entries, "
                f"{len(report.errors)} errors, {len(report.warnings)} warnings"
            )
            for issue in report.errors:
                typer.echo(f"  error [{issue.index}] {issue.key}: {issue.message}")
            if show_warnings:
                for issue in report.warnings:
                    typer.echo(f"  warning [{issue.index}] {issue.key}: {issue.message}")
            if not report.ok:
                failed += 1
        typer.echo(f"{len(files)} files checked, {failed} failed")
    if failed:
        raise typer.Exit(code=EXIT_FAILURE)


@app.command()
def export(
    file: Annotated[Path, typer.Argument(help="Search data file to export", dir_okay=False)],
    output: _OutputOption,
) -> None:
    """Write FILE as a JSON export."""
    with _run_command("export", source=str(file), output=str(output)):
        entries = load_search_file(file)
        export_json(entries, output)
        typer.echo(f"Exported {len(entries)} entries to {output}")


@app.command()
def render(
    file: Annotated[Path, typer.Argument(help="JSON export to convert", dir_okay=False)],
    output: _OutputOption,
    variable: Annotated[
        str, typer.Option("--variable", help="JavaScript variable bound to the array")
    ] = "searchData",
) -> None:
    """Convert a JSON export back to a search data file."""
    with _run_command("render", source=str(file), output=str(output)):
        if not _JS_IDENTIFIER_RE.match(variable):
            raise ConfigurationError.with_details(
                field="variable",
                issue=f"{variable!r} is not a JavaScript identifier",
                hint="Use letters, digits, '_' or '$', not starting with a digit",
            )
        entries = import_json(file)
        write_search_file(entries, output, variable=variable)
        typer.echo(f"Rendered {len(entries)} entries to {output}")
