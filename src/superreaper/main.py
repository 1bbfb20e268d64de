"""Super Reaper CLI - removes methods that only forward to their superclass."""
from contextlib import nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from superreaper.analyzer.ast_nodes import Ast
from superreaper.analyzer.compiler import Compiler
from superreaper.analyzer.parser import JSParser, JSParseError
from superreaper.analyzer.type_annotator import TypeAnnotator
from superreaper.config import Config, __version__
from superreaper.reaper.js_remover import JSMethodRemover
from superreaper.reaper.safe_delete import SafeDeleter
from superreaper.reaper.super_methods import RemoveSuperMethodsPass, RemovedMethod
from superreaper.utils.logger import configure_logging
from superreaper.utils.safe_console import SafeConsole

app = typer.Typer(
    name="super-reaper",
    help="Remove JavaScript methods that only forward to the same superclass method",
    add_completion=False
)
console = SafeConsole()


@dataclass
class AnalysisResult:
    """Outcome of parsing, annotating and running the pass over a project."""
    files: List[Path]
    removed: List[RemovedMethod]
    parse_errors: List[JSParseError] = field(default_factory=list)


def discover_files(project_path: Path, excluded_dirs,
                   trash_dir: Optional[Path] = None) -> List[Path]:
    """All *.js files below project_path outside excluded directories.

    Backup copies under trash_dir are never sources, whatever the
    directory is called.
    """
    trash = trash_dir.resolve() if trash_dir is not None else None
    files = []
    for file_path in project_path.rglob("*.js"):
        relative_parts = file_path.relative_to(project_path).parts
        if any(part in excluded_dirs for part in relative_parts):
            continue
        if trash is not None and file_path.resolve().is_relative_to(trash):
            continue
        files.append(file_path)
    return sorted(files)


def analyze_project(project_path: Path, config: Config, exclusion_tags=None,
                    show_progress: bool = True) -> AnalysisResult:
    """Shared analysis logic for both audit and clean commands.

    Every file is parsed into ONE program, so a method declared twice in two
    different files is seen as a duplicate and kept.

    Args:
        project_path: Project root
        config: Loaded configuration
        exclusion_tags: Tags protecting declarations (default: configured tags)
        show_progress: Render a progress bar while parsing

    Returns:
        AnalysisResult with removable methods and per-file parse errors
    """
    if exclusion_tags is None:
        exclusion_tags = config.exclusion_tags

    files = discover_files(project_path, config.excluded_dirs, config.trash_dir)
    parser = JSParser()
    ast = Ast()
    errors: List[JSParseError] = []

    if show_progress:
        progress_ctx = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True
        )
    else:
        progress_ctx = nullcontext()

    with progress_ctx as progress:
        if show_progress:
            task = progress.add_task("[cyan]Parsing sources...", total=len(files))

        for file_path in files:
            try:
                parser.parse_file(ast, file_path)
            except JSParseError as e:
                errors.append(e)
            except OSError as e:
                errors.append(JSParseError(str(file_path), 1, 1, f"cannot read file ({e})"))
            if show_progress:
                progress.advance(task)

        if show_progress:
            progress.update(task, description="[yellow]Resolving types...")
        registry = TypeAnnotator().annotate(ast)

        if show_progress:
            progress.update(task, description="[green]Matching super calls...")
        compiler = Compiler(registry, exclusion_tags)
        removed = RemoveSuperMethodsPass(compiler).process(ast)

    return AnalysisResult(files=files, removed=removed, parse_errors=errors)


def _load_config(ctx: typer.Context, project_path: Path) -> Config:
    try:
        config = Config(project_path)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    configure_logging("DEBUG" if verbose else config.log_level)
    return config


def _resolve_project(project_path: str) -> Path:
    path = Path(project_path).resolve()
    if not path.exists():
        console.print(f"[bold red]Error:[/bold red] Project path does not exist: {escape(str(project_path))}")
        raise typer.Exit(1)
    return path


def _display_path(file_path: Optional[str], project_path: Path) -> str:
    if not file_path:
        return "<memory>"
    try:
        return str(Path(file_path).relative_to(project_path))
    except ValueError:
        return file_path


def _print_parse_errors(errors: List[JSParseError], project_path: Path):
    table = Table(title="Unparsable Files")
    table.add_column("File", style="magenta", no_wrap=False)
    table.add_column("Line", style="green", justify="right")
    table.add_column("Error", style="red")
    for error in errors:
        table.add_row(
            escape(_display_path(error.file_path, project_path)),
            str(error.line),
            escape(error.message),
        )
    console.print(table)


def _print_removed(removed: List[RemovedMethod], project_path: Path, title: str):
    table = Table(title=title)
    table.add_column("Method", style="cyan")
    table.add_column("File", style="magenta", no_wrap=False)
    table.add_column("Line", style="green", justify="right")
    for method in sorted(removed, key=lambda m: (m.file_path or "", m.start)):
        table.add_row(
            escape(method.qualified_name),
            escape(_display_path(method.file_path, project_path)),
            str(method.line),
        )
    console.print(table)


@app.command()
def audit(
    ctx: typer.Context,
    project_path: str = typer.Argument(".", help="Project root path to analyze"),
    exclude_tag: List[str] = typer.Option([], "--exclude-tag", help="Extra JSDoc tag that protects a method (repeatable)"),
):
    """List methods that only forward to the same superclass method."""
    path = _resolve_project(project_path)
    config = _load_config(ctx, path)
    tags = config.exclusion_tags | {tag.lstrip("@") for tag in exclude_tag}

    console.print(f"[bold blue]Analyzing project:[/bold blue] {escape(str(path))}\n")
    result = analyze_project(path, config, tags)

    if result.parse_errors:
        console.print(f"[bold yellow]Skipped {len(result.parse_errors)} unparsable file(s):[/bold yellow]")
        _print_parse_errors(result.parse_errors, path)
        console.print()

    if not result.removed:
        console.print("[bold green]No removable super methods found![/bold green]")
        return

    _print_removed(result.removed, path, "Removable Super Methods")
    console.print(f"\n[bold yellow]Summary:[/bold yellow]")
    console.print(f"  Files scanned: {len(result.files)}")
    console.print(f"  Removable methods: {len(result.removed)}")
    console.print(f"[dim]Use 'super-reaper clean' to remove them[/dim]")


@app.command()
def clean(
    ctx: typer.Context,
    project_path: str = typer.Argument(".", help="Project root path to clean"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be removed without changing files"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    exclude_tag: List[str] = typer.Option([], "--exclude-tag", help="Extra JSDoc tag that protects a method (repeatable)"),
    skip_unparsable: bool = typer.Option(False, "--skip-unparsable", help="Clean even if some files could not be parsed"),
):
    """Remove methods that only forward to the same superclass method."""
    path = _resolve_project(project_path)
    config = _load_config(ctx, path)
    tags = config.exclusion_tags | {tag.lstrip("@") for tag in exclude_tag}

    console.print(f"[bold blue]Analyzing project:[/bold blue] {escape(str(path))}\n")
    result = analyze_project(path, config, tags)

    if result.parse_errors:
        _print_parse_errors(result.parse_errors, path)
        if not skip_unparsable:
            # A method declared again in an unparsed file would not be seen
            console.print(
                f"[bold red]Error:[/bold red] {len(result.parse_errors)} file(s) could not be parsed. "
                "Fix them or pass --skip-unparsable."
            )
            raise typer.Exit(1)
        console.print("[yellow]Warning: Skipping unparsable files (--skip-unparsable)[/yellow]\n")

    if not result.removed:
        console.print("[bold green]Project is clean. No removable super methods found.[/bold green]")
        return

    _print_removed(result.removed, path, "Methods to Remove")

    if dry_run:
        console.print("\n[bold blue]DRY RUN - No changes were made[/bold blue]")
        return

    if not yes:
        console.print("\n[bold yellow]Warning:[/bold yellow] This will modify files in place.")
        if not typer.confirm("Proceed with cleanup?", default=False):
            console.print("[red]Aborted[/red]")
            raise typer.Exit(0)

    remover = JSMethodRemover()
    deleter = SafeDeleter(config.trash_dir)
    by_file = {}
    for method in result.removed:
        if method.file_path:
            by_file.setdefault(Path(method.file_path), []).append(method)

    spans = remover.spans_for(result.removed)
    total = 0
    backups = []
    for file_path, methods in sorted(by_file.items()):
        backup_id = deleter.backup(
            file_path,
            reason="super-methods",
            removed_methods=[m.to_dict() for m in methods],
        )
        try:
            total += remover.rewrite_file(file_path, spans[file_path])
        except OSError as e:
            console.print(f"[red]Error rewriting {escape(str(file_path))}: {escape(str(e))}. Restoring...[/red]")
            deleter.restore(backup_id)
            raise typer.Exit(1)
        backups.append((file_path, backup_id))

    console.print(f"\n[bold green]Removed {total} method(s) from {len(backups)} file(s).[/bold green]")
    for file_path, backup_id in backups:
        console.print(f"  {escape(_display_path(str(file_path), path))} -> backup [cyan]{backup_id}[/cyan]")
    console.print(f"[dim]Use 'super-reaper restore <backup-id>' to undo[/dim]")


@app.command()
def restore(
    ctx: typer.Context,
    backup_id: str = typer.Argument(..., help="Backup ID printed by 'clean'"),
    project_path: str = typer.Argument(".", help="Project root holding the trash directory"),
):
    """Restore a file from a backup made by 'clean'."""
    path = _resolve_project(project_path)
    config = _load_config(ctx, path)
    deleter = SafeDeleter(config.trash_dir)

    try:
        deleter.restore(backup_id)
    except (ValueError, IOError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[bold green]Restored backup {escape(backup_id)}[/bold green]")


def _version_callback(value: bool):
    if value:
        console.print(f"super-reaper {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit"),
):
    """Super Reaper - removes methods that only forward to their superclass."""
    ctx.obj = {"verbose": verbose}


if __name__ == "__main__":
    app()
