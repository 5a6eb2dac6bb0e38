"""
Run command for shout.

Executes a pipeline and prints the output of its last stage.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging

import typer
from rich.console import Console
from rich.table import Table

from shout.cmd import parse_pipeline
from shout.cmd import run as run_pipeline
from shout.errors import RunError

app = typer.Typer(help="Run a command pipeline", invoke_without_command=True)
console = Console()


def _show_stages(command: str, run_config) -> None:
    """Display the parsed stages of a pipeline using rich."""
    stages = parse_pipeline(command, run_config)

    table = Table(show_header=True, header_style="bold", show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("executable", no_wrap=True)
    table.add_column("arguments")
    table.add_column("env")

    inherited = run_config.environ
    for i, stage in enumerate(stages):
        extra = [f"{k}={v}" for k, v in stage.env.items() if inherited.get(k) != v]
        table.add_row(str(i), stage.path, " ".join(repr(a) for a in stage.argv[1:]),
                      " ".join(extra) or "-")
    console.print(table)


@app.callback(invoke_without_command=True)
def run_command(
    ctx: typer.Context,
    command: str = typer.Argument(None, help="Pipeline, e.g. \"ls ~/*.txt | wc -l\""),
):
    """Execute a pipeline without a shell.

    Exits 1 when the last stage fails, with or without an error message.

    Examples:
        shout run "grep -c processor /proc/cpuinfo"
        shout run "LANG=C ls ~/src/*.py | wc -l"
        shout --dry-run run "sudo xargs rm"
    """
    if command is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)

    logger = logging.getLogger(__name__)

    run_config = ctx.obj["run_config"]
    dry_run = ctx.obj.get("dry_run", False)
    verbose = ctx.obj.get("verbose", False)

    try:
        if dry_run:
            typer.echo(f"[DRY RUN] Would execute: {command}")
            _show_stages(command, run_config)
            return

        result = run_pipeline(command, config=run_config)

    except RunError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    except Exception as e:
        logger.exception("Pipeline execution failed")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if result.output:
        typer.echo(result.output.decode(errors="replace"), nl=False)

    if verbose:
        typer.echo(f"exit codes: {result.returncodes}", err=True)

    if not result.ok:
        raise typer.Exit(1)
