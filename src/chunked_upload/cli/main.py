"""CLI interface for resumable chunked uploads."""

import logging
import sys

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from ..core.api import ChunkedUploadAPI
from ..core.config import UploadSettings
from ..core.exceptions import ChunkUploadError

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()


def build_api(ctx, **overrides) -> ChunkedUploadAPI:
    """Create the API from environment settings plus command-line overrides."""
    settings = UploadSettings.from_env(state_path=ctx.obj["state_file"], **overrides)
    return ChunkedUploadAPI(settings)


@click.group()
@click.option(
    "--state-file",
    envvar="CHUNKED_UPLOAD_STATE_PATH",
    type=click.Path(dir_okay=False),
    help="JSON file holding upload progress (or set CHUNKED_UPLOAD_STATE_PATH)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, state_file, verbose):
    """Chunked Upload CLI - resumable uploads of large files."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj["state_file"] = state_file


@cli.command()
@click.argument("local_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--endpoint",
    envvar="CHUNKED_UPLOAD_ENDPOINT_URL",
    help="URL receiving the chunks (or set CHUNKED_UPLOAD_ENDPOINT_URL)",
)
@click.option("--concurrency", "-c", type=int, help="Chunks in flight at once")
@click.option("--retries", "-r", type=int, help="Extra attempts per failed chunk")
@click.option("--chunk-size", type=int, help="Chunk size in bytes (default: 5 MiB)")
@click.option("--backoff", type=float, help="Base delay in seconds between retries")
@click.pass_context
def upload(ctx, local_path, endpoint, concurrency, retries, chunk_size, backoff):
    """Upload a file, resuming from any previously completed chunks."""
    try:
        api = build_api(
            ctx,
            endpoint_url=endpoint,
            max_concurrent=concurrency,
            retry_times=retries,
            chunk_size=chunk_size,
            retry_backoff=backoff,
        )
        snapshot = api.get_progress(local_path)
        if snapshot.completed_chunks:
            console.print(
                f"Resuming: [cyan]{snapshot.completed_chunks}[/cyan] of "
                f"{snapshot.total_chunks} chunks already uploaded"
            )

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(
                f"Uploading {click.format_filename(local_path)}",
                total=100,
                completed=snapshot.percent,
            )
            api.upload_file(
                local_path,
                progress_callback=lambda pct: progress.update(task, completed=pct),
            )
            progress.update(task, completed=100)

        console.print("[green]✓[/green] Upload completed successfully!")

    except KeyboardInterrupt:
        console.print(
            "\n[yellow]Upload paused. Run the same command again to resume.[/yellow]"
        )
        sys.exit(130)
    except (ChunkUploadError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("local_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--chunk-size", type=int, help="Chunk size in bytes (default: 5 MiB)")
@click.pass_context
def status(ctx, local_path, chunk_size):
    """Show persisted upload progress for a file."""
    try:
        api = build_api(ctx, chunk_size=chunk_size)
        snapshot = api.get_progress(local_path)

        table = Table(title=f"Upload progress for {click.format_filename(local_path)}")
        table.add_column("Session key", style="cyan")
        table.add_column("Completed", justify="right", style="green")
        table.add_column("Total", justify="right")
        table.add_column("Progress", justify="right")
        table.add_row(
            snapshot.session_key,
            str(snapshot.completed_chunks),
            str(snapshot.total_chunks),
            f"{snapshot.percent:.1f}%",
        )
        console.print(table)

    except (ChunkUploadError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("local_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option("--chunk-size", type=int, help="Chunk size the progress was recorded with (default: 5 MiB)")
@click.pass_context
def clear(ctx, local_path, yes, chunk_size):
    """Discard persisted progress so the next upload starts over."""
    try:
        if not yes and not click.confirm(
            f"Discard upload progress for {click.format_filename(local_path)}?"
        ):
            console.print("[yellow]Nothing cleared.[/yellow]")
            return
        api = build_api(ctx, chunk_size=chunk_size)
        api.clear_progress(local_path)
        console.print("[green]✓[/green] Upload progress cleared")

    except (ChunkUploadError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
