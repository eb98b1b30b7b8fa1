"""modforge CLI — Entry point.

Usage:
    modforge add-module --name <id> --module <client|server> [--old]
    modforge delete-module --name <id> --module <client|server> [--old]
                           [--location <client|server|both>]
"""

from __future__ import annotations

import typer

from modforge.cli.commands import modules
from modforge.logging import configure_logging

app = typer.Typer(
    name="modforge",
    help="modforge — Scaffold and retire feature modules of a multi-package application.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

app.command("add-module")(modules.add_module)
app.command("delete-module")(modules.delete_module)


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str | None = typer.Option(None, "--log-level", help="debug, info, warning, error."),
    log_format: str | None = typer.Option(None, "--log-format", help="console or json."),
    log_file: str | None = typer.Option(None, "--log-file", help="Also write logs to this file."),
) -> None:
    # Flags win over the project's logging block, applied once settings load.
    ctx.obj = modules.LogOverrides(level=log_level, format=log_format, file=log_file)
    configure_logging(
        level=log_level or "warning", format=log_format or "console", log_file=log_file
    )


if __name__ == "__main__":
    app()
