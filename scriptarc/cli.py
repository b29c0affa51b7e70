"""Command-line interface for inspecting and editing script archives."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from scriptarc.archive import ScriptArchive, check_name
from scriptarc.errors import ArchiveIOError, ScriptArchiveError
from scriptarc.shortcuts import convert, pack, unpack

logger = logging.getLogger(__name__)

app = typer.Typer(help="Read, convert and edit RGSS script archives")
console = Console()
err_console = Console(stderr=True)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s - %(message)s",
    )


def _fail(exc: Exception) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {exc}", highlight=False)
    raise typer.Exit(1)


def _resolve_index(archive: ScriptArchive, key: str) -> Optional[int]:
    if key.isdigit():
        index = int(key)
        return index if index < len(archive) else None
    script = archive.find(key)
    return archive.index_of(script.id) if script is not None else None


@app.command("list")
def list_scripts(
    archive_path: Path = typer.Argument(..., help="Path to the script archive"),
):
    """List the scripts in an archive, in execution order."""
    try:
        archive = ScriptArchive.read(archive_path)
    except ScriptArchiveError as e:
        _fail(e)

    table = Table(title=f"{archive_path.name} ({archive.format})")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Id", style="yellow", justify="right")
    table.add_column("Magic", style="magenta", justify="right")
    table.add_column("Name")
    table.add_column("Size", style="green", justify="right")
    for index, script in enumerate(archive):
        table.add_row(str(index), str(script.id), str(script.magic), script.name, str(len(script.data)))
    console.print(table)


@app.command("show")
def show_script(
    archive_path: Path = typer.Argument(..., help="Path to the script archive"),
    key: str = typer.Argument(..., help="Script name or position"),
):
    """Print one script's source."""
    try:
        archive = ScriptArchive.read(archive_path)
    except ScriptArchiveError as e:
        _fail(e)

    index = _resolve_index(archive, key)
    if index is None:
        err_console.print(f"[bold red]Error:[/bold red] No script {key!r}", highlight=False)
        raise typer.Exit(1)
    typer.echo(archive.scripts[index].data, nl=False)


@app.command("convert")
def convert_archive(
    src: Path = typer.Argument(..., help="Archive to read"),
    dst: Path = typer.Argument(..., help="Destination; its extension picks the format"),
):
    """Save an archive under another name and format generation."""
    try:
        archive = convert(src, dst)
    except ScriptArchiveError as e:
        _fail(e)
    console.print(f"Wrote {len(archive)} scripts to {dst} ({archive.format})")


@app.command("unpack")
def unpack_archive(
    archive_path: Path = typer.Argument(..., help="Archive to export"),
    folder: Path = typer.Argument(..., help="Destination folder"),
):
    """Export scripts as an index file plus numbered source files."""
    try:
        result = unpack(archive_path, folder)
    except ScriptArchiveError as e:
        _fail(e)

    if not result.ok:
        err_console.print(
            f"[yellow]Partial export:[/yellow] {result.written} of {result.total} scripts written; "
            f"stopped at #{result.failed_index}: {result.error}",
            highlight=False,
        )
        raise typer.Exit(1)
    console.print(f"Exported {result.written} scripts to {folder}")


@app.command("pack")
def pack_archive(
    folder: Path = typer.Argument(..., help="Folder produced by unpack"),
    archive_path: Path = typer.Argument(..., help="Archive to create"),
):
    """Build an archive from an exported folder."""
    try:
        archive = pack(folder, archive_path)
    except ScriptArchiveError as e:
        _fail(e)
    console.print(f"Packed {len(archive)} scripts into {archive_path} ({archive.format})")


@app.command("insert")
def insert_script(
    archive_path: Path = typer.Argument(..., help="Archive to edit in place"),
    index: int = typer.Argument(..., help="Position of the new script"),
    name: str = typer.Option("", "--name", "-n", help="Name of the new script"),
    source: Optional[Path] = typer.Option(None, "--source", "-s", help="File holding the script source"),
):
    """Insert a new script."""
    try:
        archive = ScriptArchive.read(archive_path)
        script_id = archive.insert_script(index)
        script = archive.get_script_for_id(script_id)
        script.name = check_name(name)
        if source is not None:
            try:
                script.data = source.read_bytes()
            except OSError as exc:
                raise ArchiveIOError(source, exc, "read") from exc
        archive.write(archive_path)
    except ScriptArchiveError as e:
        _fail(e)
    console.print(f"Inserted script at #{archive.index_of(script_id)} ({len(archive)} total)")


@app.command("delete")
def delete_script(
    archive_path: Path = typer.Argument(..., help="Archive to edit in place"),
    index: int = typer.Argument(..., help="Position of the script to delete"),
):
    """Delete a script."""
    try:
        archive = ScriptArchive.read(archive_path)
        removed = archive.delete_script(index)
        archive.write(archive_path)
    except (ScriptArchiveError, IndexError) as e:
        _fail(e)
    console.print(f"Deleted {removed.name!r} ({len(archive)} left)", highlight=False)


@app.command("rename")
def rename_script(
    archive_path: Path = typer.Argument(..., help="Archive to edit in place"),
    index: int = typer.Argument(..., help="Position of the script"),
    name: str = typer.Argument(..., help="New name"),
):
    """Rename a script."""
    try:
        archive = ScriptArchive.read(archive_path)
        archive.rename_script(index, name)
        archive.write(archive_path)
    except (ScriptArchiveError, IndexError) as e:
        _fail(e)
    console.print(f"Renamed #{index} to {name!r}", highlight=False)


def main():
    app()


if __name__ == "__main__":
    main()
