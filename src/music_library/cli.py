"""Command line interface for the music library."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from .core.library import MusicLibrary
from .exceptions import MusicLibraryError
from .models.config import LibraryConfig, create_default_config, load_config
from .models.library_entry import MetadataUpdate

console = Console()


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich with timestamps and coloured levels."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%x %X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


def _format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(round(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def _print_catalog(catalog, title: str) -> None:
    if not catalog:
        console.print("[yellow]No audio files found[/yellow]")
        return

    table = Table(title=title)
    table.add_column("♥", justify="center")
    table.add_column("Title", style="cyan")
    table.add_column("Artist")
    table.add_column("Album")
    table.add_column("Year", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("ID", style="dim")

    for item in catalog:
        table.add_row(
            "[red]♥[/red]" if item["is_liked"] else "",
            item["title"],
            item["artist"],
            item["album"],
            str(item["year"]) if item["year"] else "",
            _format_duration(item["duration_seconds"]),
            item["id"],
        )

    console.print(table)


def _run(ctx: click.Context, coro):
    """Run a library coroutine, turning library errors into exit status 1."""
    try:
        return asyncio.run(coro)
    except MusicLibraryError as e:
        console.print(f"\n[red]Error: {escape(str(e))}[/red]")
        ctx.exit(1)


@click.group()
@click.version_option(package_name="music-library")
@click.option('--config', 'config_path', type=click.Path(exists=True, path_type=Path),
              help='Configuration file path')
@click.option('--root', type=click.Path(file_okay=False, path_type=Path),
              help='Library root directory')
@click.option('--favorites', type=click.Path(dir_okay=False, path_type=Path),
              help='Favorites JSON file')
@click.option('--workers', type=click.IntRange(min=1),
              help='Concurrent tag reads while scanning')
@click.option('--verbose', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx: click.Context,
        config_path: Optional[Path],
        root: Optional[Path],
        favorites: Optional[Path],
        workers: Optional[int],
        verbose: bool):
    """Browse and manage the audio files in a library folder."""
    setup_logging(verbose)

    try:
        config = load_config(config_path) if config_path else LibraryConfig.default()
        config = config.apply_environment().with_overrides(
            library_root=root, favorites_path=favorites, max_concurrency=workers
        )
    except MusicLibraryError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        ctx.exit(1)

    ctx.obj = config


def _library(ctx: click.Context) -> MusicLibrary:
    return MusicLibrary(ctx.obj)


@cli.command()
@click.pass_context
def scan(ctx: click.Context):
    """Rescan the library root and show the catalog."""
    library = _library(ctx)
    catalog = _run(ctx, library.refresh())
    _print_catalog(catalog, f"Library: {library.root}")
    console.print(f"\n[green]Found {len(catalog)} audio files[/green]")


@cli.command(name='list')
@click.option('--liked', is_flag=True, help='Only show liked entries')
@click.pass_context
def list_entries(ctx: click.Context, liked: bool):
    """Show the catalog."""
    catalog = _run(ctx, _library(ctx).get_catalog())
    if liked:
        catalog = [item for item in catalog if item["is_liked"]]
    _print_catalog(catalog, "Liked" if liked else "Library")


@cli.command()
@click.argument('entry_id')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Where to write the image (default: <id>.<ext> in the current directory)')
@click.pass_context
def art(ctx: click.Context, entry_id: str, output: Optional[Path]):
    """Extract the embedded cover art of ENTRY_ID."""
    image = _run(ctx, _library(ctx).get_art(entry_id))
    if image is None:
        console.print("[yellow]No embedded art[/yellow]")
        return

    target = output or Path(f"{entry_id.rstrip('=')}{image.extension}")
    target.write_bytes(image.data)
    console.print(f"[green]Wrote {image.mime_type} ({len(image.data)} bytes) to {target}[/green]")


@cli.command()
@click.argument('entry_id')
@click.option('--title', help='New title')
@click.option('--artist', help='New artist')
@click.option('--album', help='New album')
@click.option('--year', type=int, help='New year')
@click.option('--track', 'track_number', type=int, help='New track number')
@click.pass_context
def tag(ctx: click.Context, entry_id: str, title: Optional[str], artist: Optional[str],
        album: Optional[str], year: Optional[int], track_number: Optional[int]):
    """Update tags of ENTRY_ID. Options that are not given are left alone."""
    update = MetadataUpdate(title=title, artist=artist, album=album,
                            year=year, track_number=track_number)
    if update.is_empty():
        console.print("[yellow]Nothing to update[/yellow]")
        return

    _run(ctx, _library(ctx).update_metadata(entry_id, update))
    console.print(f"[green]Updated {', '.join(update.provided_fields())}[/green]")


@cli.command()
@click.argument('entry_ids', nargs=-1, required=True)
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def delete(ctx: click.Context, entry_ids: Tuple[str, ...], yes: bool):
    """Delete one or more entries from disk."""
    if not yes and not Confirm.ask(f"Delete {len(entry_ids)} file(s)?", console=console):
        console.print("[yellow]Cancelled[/yellow]")
        return

    library = _library(ctx)

    if len(entry_ids) == 1:
        _run(ctx, library.delete_entry(entry_ids[0]))
        console.print("[green]Deleted 1 file[/green]")
        return

    result = _run(ctx, library.bulk_delete(entry_ids))
    console.print(f"[green]Deleted {len(result.success)} file(s)[/green]")

    if result.failed:
        console.print(f"\n[red]{len(result.failed)} failed:[/red]")
        for failure in result.failed:
            console.print(f"  • {failure.id}: {escape(failure.reason)}")
        ctx.exit(1)


@cli.command()
@click.argument('entry_ids', nargs=-1, required=True)
@click.pass_context
def like(ctx: click.Context, entry_ids: Tuple[str, ...]):
    """Mark entries as liked."""
    _run(ctx, _library(ctx).bulk_favorite(entry_ids, True))
    console.print(f"[green]Liked {len(entry_ids)} entries[/green]")


@cli.command()
@click.argument('entry_ids', nargs=-1, required=True)
@click.pass_context
def unlike(ctx: click.Context, entry_ids: Tuple[str, ...]):
    """Remove entries from the liked set."""
    _run(ctx, _library(ctx).bulk_favorite(entry_ids, False))
    console.print(f"[green]Unliked {len(entry_ids)} entries[/green]")


@cli.command(name='toggle-like')
@click.argument('entry_id')
@click.pass_context
def toggle_like(ctx: click.Context, entry_id: str):
    """Flip the liked state of ENTRY_ID."""
    liked = _run(ctx, _library(ctx).toggle_favorite(entry_id))
    console.print("[red]♥ liked[/red]" if liked else "not liked")


@cli.command(name='init-config')
@click.argument('config_file', type=click.Path(dir_okay=False, path_type=Path))
def init_config(config_file: Path):
    """Write a default configuration file."""
    if config_file.exists() and not Confirm.ask(f"Overwrite {config_file}?", console=console):
        console.print("[yellow]Cancelled[/yellow]")
        return
    create_default_config(config_file)
    console.print(f"[green]Wrote default configuration to {config_file}[/green]")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    sys.exit(main())
