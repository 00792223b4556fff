"""
Entry point for the 'unitsync' command-line tool.

    unitsync sync ROOT     Synchronize the workspace with ROOT once
    unitsync watch ROOT    Synchronize, then follow descriptor changes
"""
import asyncio
from pathlib import Path
from typing import Optional

import typer

from src.core.bootstrap import ApplicationBuilder, run_app
from src.core.errors import SyncError
from src.core.locator import ServiceLocator
from src.unitsync.bundle import UnitSyncBundle
from src.unitsync.models import SyncResult
from src.unitsync.service import WorkspaceSyncService

app = typer.Typer(help="Keep a workspace model in sync with the build descriptors under a root.")


def _builder(config_path: str) -> ApplicationBuilder:
    return (ApplicationBuilder("unitsync", config_path)
            .with_default_systems()
            .add_bundle(UnitSyncBundle())
            .with_logging())


def _report(result: SyncResult):
    typer.echo(result.summary())
    for failure in result.failed:
        typer.echo(f"  failed: {failure.info.name}: {failure.error}", err=True)


async def _sync(locator: ServiceLocator, root: Path) -> SyncResult:
    service = locator.get_system(WorkspaceSyncService)
    service.open_root(root)
    return await service.synchronize()


async def _watch(locator: ServiceLocator, root: Path, duration: Optional[float]):
    service = locator.get_system(WorkspaceSyncService)
    service.open_root(root)
    _report(await service.synchronize())
    service.start_watching()
    typer.echo(f"Watching {root} (Ctrl+C to stop)")
    if duration is None:
        await asyncio.Event().wait()
    else:
        await asyncio.sleep(duration)


@app.command()
def sync(
    root: Path = typer.Argument(..., exists=True, file_okay=False, help="Workspace root to scan"),
    config: str = typer.Option("unitsync.json", "--config", "-c", help="JSON or TOML config file"),
):
    """Synchronize the workspace with ROOT once and print a summary."""
    try:
        result = run_app(_builder(config), lambda locator: _sync(locator, root))
    except SyncError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    if result is None:
        raise typer.Exit(code=130)
    _report(result)
    if result.canceled:
        raise typer.Exit(code=2)


@app.command()
def watch(
    root: Path = typer.Argument(..., exists=True, file_okay=False, help="Workspace root to watch"),
    config: str = typer.Option("unitsync.json", "--config", "-c", help="JSON or TOML config file"),
    duration: Optional[float] = typer.Option(None, help="Stop after this many seconds"),
):
    """Synchronize the workspace with ROOT, then follow descriptor changes."""
    try:
        run_app(_builder(config), lambda locator: _watch(locator, root, duration))
    except SyncError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Stopped")


if __name__ == "__main__":
    app()
