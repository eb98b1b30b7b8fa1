"""CLI — Module add/delete commands."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.syntax import Syntax

from modforge.config import Settings, override_settings
from modforge.descriptor import Layout, Location
from modforge.exceptions import ModforgeError
from modforge.logging import configure_logging
from modforge.orchestration import ModuleOperationResult, Orchestrator

console = Console()
err_console = Console(stderr=True)


class ModuleKind(str, Enum):
    CLIENT = "client"
    SERVER = "server"


@dataclass(frozen=True)
class LogOverrides:
    """Logging options given on the command line; None defers to settings."""

    level: str | None = None
    format: str | None = None
    file: str | None = None


def _orchestrator(ctx: typer.Context, root: Path, config: Path | None) -> Orchestrator:
    root = root.resolve()
    settings = Settings.load(root=root, config_file=config)
    override_settings(settings)

    flags = ctx.obj if isinstance(ctx.obj, LogOverrides) else LogOverrides()
    configured = settings.logging
    log_file = flags.file or (str(configured.file) if configured.file else None)
    configure_logging(
        level=flags.level or configured.level,
        format=flags.format or configured.format,
        log_file=log_file,
    )
    return Orchestrator(root, settings)


def _fail(exc: ModforgeError) -> typer.Exit:
    err_console.print(f"[red]✘ {exc.message}[/red]")
    return typer.Exit(exc.exit_code)


def _print_results(results: list[ModuleOperationResult]) -> None:
    payload = [r.to_dict() for r in results]
    console.print(Syntax(json.dumps(payload, indent=2), "json"))


def add_module(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", help="Name of the new module."),
    module: ModuleKind = typer.Option(..., "--module", "-m", help="Add to the client or the server."),
    old: bool = typer.Option(False, "--old", help="Use the legacy project layout."),
    root: Path = typer.Option(Path("."), "--root", help="Project root directory."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Extra YAML config file."),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Create a module from templates and register it."""
    layout = Layout.LEGACY if old else Layout.CURRENT
    try:
        orchestrator = _orchestrator(ctx, root, config)
        descriptor = orchestrator.describe(name, Location(module.value), layout)[0]
        result = orchestrator.add_module(descriptor)
    except ModforgeError as exc:
        raise _fail(exc)

    if json_output:
        _print_results([result])
        return
    console.print(f"[green]✔ New module {name} for {module.value} successfully created![/green]")
    console.print(f"  {result.module_path}")


def delete_module(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", "-n", help="Name of the module to delete."),
    module: ModuleKind = typer.Option(..., "--module", "-m", help="Delete from the client or the server."),
    old: bool = typer.Option(False, "--old", help="Use the legacy project layout."),
    location: Location | None = typer.Option(
        None, "--location", "-l", help="Override --module: client, server or both."
    ),
    root: Path = typer.Option(Path("."), "--root", help="Project root directory."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Extra YAML config file."),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Remove a module's files and unregister it."""
    layout = Layout.LEGACY if old else Layout.CURRENT
    target = location or Location(module.value)
    try:
        orchestrator = _orchestrator(ctx, root, config)
        results = orchestrator.delete_modules(orchestrator.describe(name, target, layout))
    except ModforgeError as exc:
        raise _fail(exc)

    if json_output:
        _print_results(results)
        return
    for result in results:
        for warning in result.warnings:
            console.print(f"[yellow]! {warning}[/yellow]")
        console.print(
            f"[green]✔ Module {name} for {result.descriptor.location.value} successfully deleted![/green]"
        )
