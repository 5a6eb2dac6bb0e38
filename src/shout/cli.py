"""
Main CLI entry point for shout.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
from typing import Optional

import typer
import yaml

from shout import __version__
from shout.boot import setup_boot
from shout.commands import edit, pkg, run, runcom, script
from shout.config import load_config, run_config_from

# Initialize main app
app = typer.Typer(
    name="shout",
    help="Run command pipelines without a shell, edit config files, manage packages",
    no_args_is_help=True,
)

# Add subcommands
app.add_typer(run.app, name="run")
app.add_typer(pkg.app, name="pkg")
app.add_typer(edit.app, name="edit")
app.add_typer(runcom.app, name="runcom")
app.add_typer(script.app, name="script")


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: ~/shout.yml or ./shout.yml)",
    ),
    boot: bool = typer.Option(
        False,
        "--boot",
        help="Run commands with the minimal boot-time PATH",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be executed without running commands",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
):
    """
    shout: shell scripting without a shell.

    Pipelines support |, VAR=value prefixes, ~, wildcards and quotes.
    """
    state = {"config": {}, "dry_run": dry_run, "verbose": verbose}

    setup_logging(verbose)

    # Every command works without a config file
    if ctx.invoked_subcommand and ctx.invoked_subcommand != "version":
        try:
            state["config"] = load_config(config_path)
            if verbose:
                logging.debug(f"Loaded config from: {config_path or 'default location'}")
        except FileNotFoundError as e:
            if config_path:
                typer.echo(f"Error: {e}", err=True)
                raise typer.Exit(1)
            logging.debug("No config file found, using defaults")
        except yaml.YAMLError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)

    boot = boot or bool(state["config"].get("boot", False))
    if boot:
        # File log only when boot_log is configured
        setup_boot(state["config"].get("boot_log"))
    state["run_config"] = run_config_from(state["config"], boot=boot)

    # Store state in context for subcommands
    ctx.obj = state


@app.command()
def version():
    """Show version information."""
    typer.echo(f"shout version {__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
