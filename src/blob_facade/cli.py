"""CLI for blob-facade."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import resolve_config
from .errors import BlobFacadeError, ConfigError, NotFoundError
from .facade import BlobStore
from .storage_models import ListSegment
from .utils import format_timestamp, humanize_size


app = typer.Typer(help="""\
Upload, download, list and delete text and JSON blobs in Azure Blob Storage
(or a local directory). Credentials come from options, AZURE_STORAGE_*
environment variables, or a YAML profile.""")

console = Console()
err_console = Console(stderr=True)


def _setup_logging() -> None:
    """Send DEBUG logs to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )
    # The SDK logs every HTTP request at DEBUG
    logging.getLogger("azure").setLevel(logging.WARNING)


def _fail(message: str, code: int = 1) -> None:
    console.print(f"[red]✗[/red] {message}")
    raise typer.Exit(code)


def _run(ctx: typer.Context, operation: Callable[[BlobStore], Awaitable[Any]]) -> Any:
    """Run one store operation to completion, mapping errors to exit codes.

    Exit codes:
        1: Any blob-facade error
        2: Container or blob not found
    """
    async def runner():
        async with BlobStore(config=ctx.obj) as store:
            return await operation(store)

    try:
        return asyncio.run(runner())
    except NotFoundError as e:
        _fail(str(e), code=2)
    except BlobFacadeError as e:
        _fail(str(e))


def _print_continuation(segment: ListSegment) -> None:
    if segment.continuation_token:
        console.print()
        console.print(f"[dim]More results available. Continue with:[/dim] --token {segment.continuation_token}")


@app.callback()
def main(
    ctx: typer.Context,
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Storage provider: azure, fs or memory"),
    account: Optional[str] = typer.Option(None, "--account", help="Storage account name"),
    key: Optional[str] = typer.Option(None, "--key", help="Storage account key"),
    account_url: Optional[str] = typer.Option(None, "--account-url", help="Blob endpoint override (e.g. Azurite)"),
    root: Optional[Path] = typer.Option(None, "--root", help="Root directory for the fs provider"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML profile with storage settings"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Resolve storage configuration once for the invoked command."""
    if verbose:
        _setup_logging()

    try:
        ctx.obj = resolve_config(
            account,
            key,
            profile=config_file,
            provider=provider,
            account_url=account_url,
            root=root,
        )
    except ConfigError as e:
        _fail(str(e))


@app.command()
def containers(
    ctx: typer.Context,
    max_results: Optional[int] = typer.Option(None, "--max", min=1, help="Maximum containers to return"),
    token: Optional[str] = typer.Option(None, "--token", help="Continuation token from a previous listing"),
):
    """List one page of containers in the account.

    Examples:
        blob-facade containers
        blob-facade containers --max 10 --token <token>
    """
    segment = _run(ctx, lambda store: store.list_containers(token, max_results))

    if not segment.items:
        console.print("[dim]No containers[/dim]")
        return

    table = Table(title="Containers")
    table.add_column("Name", style="cyan")
    table.add_column("Last Modified", style="dim")
    for item in segment.items:
        table.add_row(item.name, format_timestamp(item.last_modified))
    console.print(table)
    _print_continuation(segment)


@app.command("ls")
def list_blobs(
    ctx: typer.Context,
    container: str = typer.Argument(..., help="Container name"),
    max_results: Optional[int] = typer.Option(None, "--max", min=1, help="Maximum blobs to return"),
    token: Optional[str] = typer.Option(None, "--token", help="Continuation token from a previous listing"),
):
    """List one page of blobs in a container.

    Examples:
        blob-facade ls reports
        blob-facade ls reports --max 100
    """
    segment = _run(ctx, lambda store: store.list_blobs(container, token, max_results))

    if not segment.items:
        console.print(f"[dim]No blobs in {container}[/dim]")
        return

    table = Table(title=f"Blobs in {container}")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Last Modified", style="dim")
    table.add_column("Content Type", style="dim")
    for item in segment.items:
        table.add_row(
            item.name,
            humanize_size(item.size),
            format_timestamp(item.last_modified),
            item.content_type or "-",
        )
    console.print(table)
    _print_continuation(segment)


@app.command()
def put(
    ctx: typer.Context,
    container: str = typer.Argument(..., help="Container name (created if missing)"),
    path: str = typer.Argument(..., help="Blob path within the container"),
    text: Optional[str] = typer.Argument(None, help="Content to upload (default: --file or stdin)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", exists=True, dir_okay=False, help="Upload content of a local file"),
    as_json: bool = typer.Option(False, "--json", help="Validate content as JSON and store it as application/json"),
):
    """Upload text to a blob, overwriting it if present.

    Examples:
        blob-facade put notes todo.txt "buy milk"
        blob-facade put reports 2024/summary.json --file summary.json --json
        echo hello | blob-facade put notes hello.txt
    """
    if text is not None and file is not None:
        _fail("Pass either TEXT or --file, not both")

    if text is not None:
        content = text
    elif file is not None:
        content = file.read_text(encoding="utf-8")
    else:
        content = typer.get_text_stream("stdin").read()

    if as_json:
        try:
            obj = json.loads(content)
        except json.JSONDecodeError as e:
            _fail(f"Content is not valid JSON: {e}")
        _run(ctx, lambda store: store.post_json(container, path, obj))
    else:
        _run(ctx, lambda store: store.post_text(container, path, content))

    console.print(f"[green]✓[/green] Uploaded {container}/{path}")


@app.command()
def get(
    ctx: typer.Context,
    container: str = typer.Argument(..., help="Container name"),
    path: str = typer.Argument(..., help="Blob path within the container"),
    as_json: bool = typer.Option(False, "--json", help="Parse content as JSON and pretty-print it"),
):
    """Print the content of a blob.

    Examples:
        blob-facade get notes todo.txt
        blob-facade get reports 2024/summary.json --json
    """
    if as_json:
        obj = _run(ctx, lambda store: store.get_json(container, path))
        console.print_json(data=obj)
        return

    content = _run(ctx, lambda store: store.get_text(container, path))
    typer.echo(content, nl=not content.endswith("\n"))


@app.command()
def rm(
    ctx: typer.Context,
    container: str = typer.Argument(..., help="Container name"),
    path: str = typer.Argument(..., help="Blob path within the container"),
):
    """Delete a blob. Deleting a missing blob is not an error.

    Examples:
        blob-facade rm notes todo.txt
    """
    deleted = _run(ctx, lambda store: store.delete_blob(container, path))

    if deleted:
        console.print(f"[green]✓[/green] Deleted {container}/{path}")
    else:
        console.print(f"[yellow]⚠[/yellow] Nothing to delete at {container}/{path}")


if __name__ == "__main__":
    app()
