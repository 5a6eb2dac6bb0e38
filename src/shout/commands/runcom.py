# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Runcom command for shout.

Reads key=value settings files.
"""

import typer
from rich.console import Console
from rich.table import Table

from shout import runcom
from shout.errors import RuncomError

app = typer.Typer(help="Read key=value settings files")
console = Console()


def _load(path: str) -> dict:
    try:
        return runcom.load(path)
    except (OSError, RuncomError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def show(path: str = typer.Argument(..., help="Settings file, e.g. /etc/adduser.conf")):
    """Show all settings of a file."""
    settings = _load(path)
    if not settings:
        typer.echo(f"No settings in {path}")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in settings.items():
        table.add_row(key, value)
    console.print(table)


@app.command()
def get(
    path: str = typer.Argument(..., help="Settings file"),
    key: str = typer.Argument(..., help="Setting to print"),
):
    """Print the value of one setting."""
    settings = _load(path)
    if key not in settings:
        typer.echo(f"Error: '{key}' not set in {path}", err=True)
        raise typer.Exit(1)
    typer.echo(settings[key])
