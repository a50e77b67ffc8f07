"""`csv-replace` command line interface."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from csv_replace import __version__
from csv_replace.common.encoding import json_dumps
from csv_replace.common.logging import setup_logging
from csv_replace.core.events import ERROR, ProgressChannel
from csv_replace.core.models import FileDescriptor, ProcessRequest
from csv_replace.core.pipeline import SearchPipeline
from csv_replace.infra.acquisition import FileAcquirer
from csv_replace.infra.storage import ArtifactStorage
from csv_replace.settings import Settings, get_settings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Streaming search and replace across CSV files.",
)


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address.")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port.")] = None,
    reload: Annotated[bool, typer.Option(help="Reload on code changes.")] = False,
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    host = host or settings.server_host
    port = port or settings.server_port
    typer.echo(f"csv-replace API on http://{host}:{port}")
    uvicorn.run(
        "csv_replace.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.logging_level.lower(),
    )


@app.command()
def search(
    files: Annotated[
        list[Path],
        typer.Argument(exists=True, dir_okay=False, readable=True, help="CSV files to scan."),
    ],
    term: Annotated[str, typer.Option("--term", "-t", help="Text or pattern to find.")],
    replace: Annotated[
        str | None, typer.Option("--replace", "-r", help="Write this value into matched rows.")
    ] = None,
    field: Annotated[
        list[str] | None,
        typer.Option("--field", "-f", help="Field to replace into (repeatable; default all)."),
    ] = None,
    case_sensitive: Annotated[bool, typer.Option("--case-sensitive")] = False,
    whole_word: Annotated[bool, typer.Option("--whole-word")] = False,
    regex: Annotated[bool, typer.Option("--regex", help="Treat --term as a regex.")] = False,
    only_matches: Annotated[
        bool, typer.Option("--only-matches", help="Keep only matched rows in outputs.")
    ] = False,
) -> None:
    """Search FILES and print every progress event as one JSON line."""
    settings = get_settings()
    setup_logging("WARNING")

    request = ProcessRequest(
        search_term=term,
        replace_term=replace,
        case_sensitive=case_sensitive,
        whole_word=whole_word,
        use_regex=regex,
        selected_fields=list(field or []),
        show_only_matches=only_matches,
    )
    failed = asyncio.run(_run_search(settings, request, files))
    if failed:
        raise typer.Exit(code=1)


async def _run_search(settings: Settings, request: ProcessRequest, files: list[Path]) -> bool:
    storage = ArtifactStorage(settings.storage_dir, download_path=settings.download_path)
    descriptors: list[FileDescriptor] = []
    for path in files:
        locator = await storage.save(path.name, path.read_bytes())
        descriptors.append(FileDescriptor(path=str(path), name=path.name, location=locator))
    request.files = descriptors

    acquirer = FileAcquirer(
        storage,
        timeout=settings.remote_timeout_seconds,
        max_bytes=settings.remote_max_bytes,
    )
    pipeline = SearchPipeline(
        request,
        source=acquirer,
        store=storage,
        stats_interval=settings.stats_interval,
    )

    channel = ProgressChannel()
    producer = asyncio.create_task(pipeline.run(channel))
    failed = False
    async for event in channel:
        failed = failed or event.name == ERROR
        typer.echo(json_dumps({"event": event.name, "data": event.data}))
    await producer
    return failed


@app.command()
def version() -> None:
    """Print the installed version."""
    typer.echo(__version__)


def main() -> None:
    app()


__all__ = ["app", "main"]
