"""CLI interface for B2 storage."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ..core.api import B2StorageAPI
from ..core.config import StorageConfig
from ..core.exceptions import B2StorageError

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()


def get_api(ctx) -> B2StorageAPI:
    """Build the storage API from CLI options and B2_* env vars."""
    config = StorageConfig.from_env(**ctx.obj)
    return B2StorageAPI(config)


@click.group()
@click.option("--account-id", envvar="B2_ACCOUNT_ID", help="B2 account id (or set B2_ACCOUNT_ID)")
@click.option("--app-key", envvar="B2_APP_KEY", help="B2 application key (or set B2_APP_KEY)")
@click.option("--bucket", envvar="B2_BUCKET", help="Bucket name (or set B2_BUCKET)")
@click.option("--path", envvar="B2_PATH", help="Remote path prefix (or set B2_PATH)")
@click.option("--part-size", type=int, envvar="B2_PART_SIZE", help="Part size in bytes for large files")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, account_id, app_key, bucket, path, part_size, verbose):
    """B2 Storage CLI - store and remove files in a Backblaze B2 bucket."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj.update(
        account_id=account_id,
        app_key=app_key,
        bucket=bucket,
        path=path,
        part_size=part_size,
    )


@cli.command()
@click.argument("local_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("remote_path", required=False)
@click.pass_context
def upload(ctx, local_path, remote_path):
    """Upload a file, in parts if it is large."""
    try:
        api = get_api(ctx)
        remote_path = remote_path or Path(local_path).name

        console.print(f"Uploading [cyan]{local_path}[/cyan] to [green]{remote_path}[/green]")
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Uploading...", total=None)
            file_version = api.transfer(local_path, remote_path)
            progress.update(task, completed=1)

        console.print(f"[green]✓[/green] Stored as {file_version.file_name} ({file_version.file_id})")

    except B2StorageError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("remote_path")
@click.pass_context
def remove(ctx, remote_path):
    """Remove a file. Removing a file that is already gone succeeds."""
    try:
        api = get_api(ctx)
        if api.remove(remote_path):
            console.print(f"[green]✓[/green] Deleted {remote_path}")
        else:
            console.print(f"[yellow]{remote_path} was already gone.[/yellow]")

    except B2StorageError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command(name="ls")
@click.argument("prefix", default="")
@click.pass_context
def list_files(ctx, prefix):
    """List files under the remote path."""
    try:
        files = get_api(ctx).list_files(prefix)

        if not files:
            console.print("[yellow]No files found.[/yellow]")
            return

        table = Table(title="Files")
        table.add_column("Name", style="cyan")
        table.add_column("Size", justify="right")
        table.add_column("File ID", style="blue")

        for info in files:
            size = "N/A" if info.content_length is None else str(info.content_length)
            table.add_row(info.file_name, size, info.file_id)

        console.print(table)

    except B2StorageError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.pass_context
def buckets(ctx):
    """List buckets visible to the credentials."""
    try:
        bucket_list = get_api(ctx).list_buckets()

        table = Table(title="Buckets")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Type", style="blue")

        for bucket in bucket_list:
            table.add_row(bucket.bucket_id, bucket.bucket_name, bucket.bucket_type or "N/A")

        console.print(table)

    except B2StorageError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


def main():
    """Main entry point."""
    cli()
