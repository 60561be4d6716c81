"""CLI entry point for tocsmith."""

import asyncio
import click
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.markup import escape
from tocsmith.utils.logging import configure_logging, get_logger
from tocsmith.models.config import Config, WatchSettings
from tocsmith.models.marker import MARKER_KEY
from tocsmith.outline.header import parse_header
from tocsmith.outline.engine import locator_hints
from tocsmith.outline.locator import find_block_in_content
from tocsmith.outline.patterns import validate_pattern
from tocsmith.outline.scanner import MarkdownHeadingScanner
from tocsmith.services.exceptions import FileModifiedError
from tocsmith.services.file_monitor import FileMonitor
from tocsmith.services.file_operations import generate_for_file, read_document
from tocsmith.services.scheduler import RefreshScheduler
from tocsmith.services.session import GenerationStatus, OutlineService, Trigger


logger = get_logger(__name__)
console = Console()

VERSION = "0.1.0"

STATUS_STYLES = {
    GenerationStatus.UPDATED: "green",
    GenerationStatus.UNCHANGED: "dim",
    GenerationStatus.SKIPPED: "dim",
    GenerationStatus.FAILED: "red",
}


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration (default: ~/.config/tocsmith/config.yaml).

    Returns:
        Validated Config instance

    Raises:
        click.ClickException: If the file is unreadable or validation fails
    """
    try:
        config = Config.load(config_path)
        logger.info("config_loaded", path=str(config_path) if config_path else "default")
        return config
    except PermissionError as e:
        logger.error("config_permission_error", path=str(config_path))
        raise click.ClickException(str(e))
    except Exception as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")


config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: ~/.config/tocsmith/config.yaml)",
)


@click.group()
@click.version_option(version=VERSION, prog_name="tocsmith")
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level")
def cli(verbose: bool):
    """tocsmith: keep a table of contents in your markdown notes up to date."""
    configure_logging(verbose=verbose)


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@click.option("--dry-run", is_flag=True, help="Print the result instead of writing it")
def generate(files: tuple[Path, ...], config_path: Optional[Path], dry_run: bool):
    """
    Insert or refresh the table of contents of each FILE.

    Examples:
        tocsmith generate notes/project.md
        tocsmith generate --dry-run notes/*.md
    """
    logger.info("generate_command_started", files=len(files), dry_run=dry_run)

    config = load_config(config_path)
    service = OutlineService(config.outline)
    monitor = FileMonitor()
    failures = 0

    for path in files:
        try:
            result = generate_for_file(path, service, Trigger.MANUAL, monitor, dry_run=dry_run)
        except FileModifiedError as e:
            logger.error("generate_file_modified", path=str(path), error=str(e))
            console.print(f"[red]{escape(str(path))}[/red]: {escape(str(e))}")
            failures += 1
            continue
        except OSError as e:
            logger.error("generate_io_error", path=str(path), error=str(e))
            console.print(f"[red]{escape(str(path))}[/red]: {escape(str(e))}")
            failures += 1
            continue

        if dry_run and result.status is GenerationStatus.UPDATED:
            click.echo(result.content, nl=False)
            continue

        style = STATUS_STYLES[result.status]
        detail = result.message or result.status.value
        if result.status is not GenerationStatus.FAILED:
            detail = f"{detail} ({result.item_count} headings)"
        else:
            failures += 1
        console.print(f"[{style}]{escape(str(path))}[/{style}]: {detail}")

    logger.info("generate_command_completed", files=len(files), failures=failures)
    if failures:
        raise SystemExit(1)


async def watch_documents(
    paths: list[Path],
    service: OutlineService,
    settings: WatchSettings,
    stop: asyncio.Event,
    monitor: Optional[FileMonitor] = None,
) -> None:
    """
    Poll documents and refresh their outline after edits settle.

    Only documents already carrying the outline marker are rewritten. Runs
    until ``stop`` is set.
    """
    monitor = monitor or FileMonitor()
    monitor.record_all(paths)
    scheduler = RefreshScheduler(delay=settings.debounce_seconds)

    def refresh(path: Path) -> None:
        try:
            result = generate_for_file(path, service, Trigger.AUTO, monitor)
        except FileModifiedError:
            # Edited again mid-refresh; the next poll reschedules it
            logger.info("auto_refresh_deferred", path=str(path))
            return
        if result.status is GenerationStatus.UPDATED:
            console.print(f"[green]{escape(str(path))}[/green]: table of contents refreshed")

    logger.info("watch_started", files=len(paths), debounce=settings.debounce_seconds)
    try:
        while not stop.is_set():
            for path in monitor.changed_paths():
                monitor.refresh(path)
                scheduler.schedule(path, lambda path=path: refresh(path))
            try:
                await asyncio.wait_for(stop.wait(), timeout=settings.poll_interval)
            except asyncio.TimeoutError:
                pass
    finally:
        scheduler.cancel_all()
        logger.info("watch_stopped")


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@click.option("--auto-refresh", is_flag=True, help="Enable auto-refresh even if the config disables it")
def watch(files: tuple[Path, ...], config_path: Optional[Path], auto_refresh: bool):
    """
    Refresh existing tables of contents whenever FILES change.

    Documents without a generated table of contents are left alone; run
    `tocsmith generate` on them first.
    """
    config = load_config(config_path)
    if not (config.outline.auto_refresh or auto_refresh):
        raise click.ClickException(
            "Auto-refresh is disabled. Set outline.auto_refresh in the config or pass --auto-refresh."
        )

    service = OutlineService(config.outline)
    console.print(f"Watching {len(files)} file(s). Press Ctrl+C to stop.")

    async def run():
        await watch_documents(list(files), service, config.watch, asyncio.Event())

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        console.print("Stopped.")


@cli.command("check-pattern")
@click.argument("pattern")
def check_pattern(pattern: str):
    """
    Check whether PATTERN is accepted as a heading exclusion pattern.

    Examples:
        tocsmith check-pattern '^Draft'
        tocsmith check-pattern '(a*)+'
    """
    result = validate_pattern(pattern)
    if result.is_valid:
        console.print(f"[green]Valid pattern:[/green] {escape(pattern)}")
        return
    console.print(f"[red]Rejected pattern:[/red] {escape(pattern)}\n  {escape(result.error or '')}")
    raise SystemExit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
def inspect(file: Path, config_path: Optional[Path]):
    """Show the table of contents metadata of FILE."""
    config = load_config(config_path)
    content = read_document(file)

    header, _ = parse_header(content)
    marker = header.get(MARKER_KEY)
    scanner = MarkdownHeadingScanner()
    headings = scanner.headings(content)
    block = find_block_in_content(content, header.line_span, **locator_hints(headings, config.outline))

    console.print(f"[bold]File:[/bold] {escape(str(file))}")
    console.print(f"[bold]Header:[/bold] {'present' if header.present else 'absent'}")
    console.print(f"[bold]TOC marker:[/bold] {'present' if marker else 'absent'}")
    if isinstance(marker, dict):
        console.print(f"[bold]Last update:[/bold] {marker.get('lastUpdate', 'unknown')}")
    console.print(f"[bold]Headings:[/bold] {len(headings)}")
    if block is None:
        console.print("[bold]TOC block:[/bold] not found")
    else:
        console.print(f"[bold]TOC block:[/bold] lines {block.start + 1}-{block.end + 1}")


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()
