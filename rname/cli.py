"""CLI entrypoints."""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from rname.errors import (
    BackupCorruptError,
    BackupIOError,
    BackupNotFoundError,
    InvalidDirectoryError,
    InvalidPatternError,
)
from rname.models.rename import RenameEvent, RenameOptions, RenameReason, RenameStatus
from rname.processors.backup_store import BackupStore, directory_key
from rname.processors.rename_engine import RenameEngine, validate_directory


console = Console()

REASON_MESSAGES = {
    RenameReason.UNCHANGED: "name unchanged",
    RenameReason.BLANK_RESULT: "blank name not set",
    RenameReason.NAME_COLLISION: "file already exists",
    RenameReason.SOURCE_MISSING: "file does not exist",
    RenameReason.INVALID_NAME: "not a plain file name",
    RenameReason.IO_FAILURE: "error renaming file",
}

directory_option = click.option(
    "-d",
    "--directory",
    type=click.Path(),
    default=".",
    help="Directory whose files are renamed.",
)
backup_dir_option = click.option(
    "--backup-dir",
    type=click.Path(file_okay=False),
    envvar="RNAME_BACKUP_DIR",
    default=None,
    help="Where backups are stored. Defaults to the system temp directory.",
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _print_event(event: RenameEvent) -> None:
    """Print a single rename outcome."""
    source, target = escape(event.source), escape(event.target)

    if event.status is RenameStatus.RENAMED:
        console.print(f"[green]Renamed[/green] '{source}' -> '{target}'")
        return

    message = REASON_MESSAGES.get(event.reason, "unknown")
    if event.detail:
        message += f": {escape(event.detail)}"

    if event.status is RenameStatus.SKIPPED:
        console.print(f"[dim]Skipped '{source}' ({message})[/dim]")
    else:
        console.print(f"[red]Failed[/red] '{source}' -> '{target}' ({message})")


def _pairs_table(pairs: list[tuple[str, str]]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Original", style="cyan")
    table.add_column("Renamed", style="green")
    for original, renamed in pairs:
        table.add_row(escape(original), escape(renamed))
    return table


@click.group(context_settings=dict(show_default=True))
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """rname - Batch rename files in a directory with regular expressions."""
    _configure_logging(verbose)


@cli.command("process")
@click.argument("pattern", type=str)
@click.argument("replacement", type=str, required=False, default="")
@directory_option
@backup_dir_option
@click.option(
    "--allow-blank",
    is_flag=True,
    default=False,
    help="Allow renames that leave an empty base name.",
)
@click.option(
    "--include-directories",
    is_flag=True,
    default=False,
    help="Rename subdirectories as well as files.",
)
def process(
    pattern: str,
    replacement: str,
    directory: str,
    backup_dir: str | None,
    allow_blank: bool,
    include_directories: bool,
) -> None:
    """Replace PATTERN with REPLACEMENT in the base name of every file.

    The extension is kept. REPLACEMENT may reference groups (\\1, \\g<name>)
    and defaults to the empty string, which removes the matched parts.

    Examples:

        rname process "[0-9]" _

        rname process -d photos "^IMG_(\\d+)" "holiday_\\1"
    """
    options = RenameOptions(skip_if_result_blank=not allow_blank, include_directories=include_directories)
    engine = RenameEngine(options=options, on_event=_print_event)

    try:
        result = engine.process(directory, pattern, replacement)
    except (InvalidDirectoryError, InvalidPatternError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise SystemExit(1) from e

    store = BackupStore(backup_dir)
    replacing = store.exists(result.directory)
    try:
        store.save(result.directory, result.pairs)
    except BackupIOError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        if result.pairs:
            console.print("[bold red]Undo is not possible for these renames:[/bold red]")
            console.print(_pairs_table(result.pairs))
        raise SystemExit(1) from e

    if replacing:
        console.print("[dim]Replaced the previous backup of this directory[/dim]")

    counts = f"[bold green]{result.renamed_count}[/bold green] file(s) processed by `{escape(pattern)}`"
    if result.skipped_count:
        counts += f", {result.skipped_count} skipped"
    if result.failed_count:
        counts += f", [red]{result.failed_count} failed[/red]"
    console.print(counts)
    if result.renamed_count:
        console.print("[dim]To undo: rname undo -d <directory>[/dim]")


@cli.command("undo")
@directory_option
@backup_dir_option
@click.option(
    "--keep-on-failure",
    is_flag=True,
    default=False,
    help="Keep the backup if any file could not be restored, so undo can be retried.",
)
def undo(directory: str, backup_dir: str | None, keep_on_failure: bool) -> None:
    """Undo the last rename operation in the directory."""
    store = BackupStore(backup_dir)
    engine = RenameEngine(on_event=_print_event)

    try:
        path = validate_directory(directory)
        record = store.load(path)
    except BackupNotFoundError as e:
        console.print(f"[yellow]{escape(str(e))}[/yellow]")
        return
    except (InvalidDirectoryError, BackupCorruptError, BackupIOError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise SystemExit(1) from e

    result = engine.undo(path, record)
    console.print(f"[bold green]{result.renamed_count}[/bold green] file(s) restored")

    key = escape(directory_key(path))
    if keep_on_failure and result.failed_count:
        console.print(f"[yellow]{result.failed_count} file(s) could not be restored. Backup kept for `{key}`[/yellow]")
        return

    try:
        removed = store.delete(path)
    except BackupIOError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise SystemExit(1) from e

    if removed:
        console.print(f"Backup deleted for `{key}`")
    else:
        console.print(f"[yellow]Backup for `{key}` was already removed[/yellow]")


@cli.command("show")
@directory_option
@backup_dir_option
def show(directory: str, backup_dir: str | None) -> None:
    """Show the renames that undo would revert."""
    store = BackupStore(backup_dir)

    try:
        path = validate_directory(directory)
        record = store.load(path)
    except BackupNotFoundError as e:
        console.print(f"[yellow]{escape(str(e))}[/yellow]")
        return
    except (InvalidDirectoryError, BackupCorruptError, BackupIOError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise SystemExit(1) from e

    if not record.pairs:
        console.print("[yellow]The last operation renamed no files.[/yellow]")
        return

    console.print(_pairs_table(record.pairs))
    console.print(f"[bold]{len(record)}[/bold] file(s) can be restored with `rname undo`")
