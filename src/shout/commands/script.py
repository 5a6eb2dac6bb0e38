"""
Script command for shout.

Lists, inspects and runs scripts defined in YAML files.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
from typing import List, Optional

import typer
import yaml

from shout.config import get_scripts_dir
from shout.errors import RunError
from shout.script import (
    ScriptLoadError,
    StepFailedError,
    UnsubstitutedVariableError,
    get_script,
    list_scripts,
    run_script,
)

app = typer.Typer(help="List, inspect and run scripts")


def _scripts_dir(ctx: typer.Context):
    scripts_dir = get_scripts_dir(ctx.obj.get("config", {}))
    if not scripts_dir.exists():
        typer.echo(f"Scripts directory not found: {scripts_dir}", err=True)
        typer.echo("Create it with: mkdir -p ~/.shout/scripts", err=True)
        raise typer.Exit(1)
    return scripts_dir


def _report_load_errors(e: ScriptLoadError) -> None:
    typer.echo("Error loading script files:", err=True)
    for path, err in e.errors:
        typer.echo(f"  - {path.name}: {err}", err=True)


@app.command("list")
def list_command(
    ctx: typer.Context,
    errors: bool = typer.Option(
        False,
        "--errors",
        help="Show detailed YAML parse errors",
    ),
):
    """List all available scripts.

    Examples:
        shout script list
        shout script list --errors
    """
    scripts_dir = _scripts_dir(ctx)

    try:
        scripts = list_scripts(scripts_dir)
    except ScriptLoadError as e:
        if errors:
            _report_load_errors(e)
        else:
            typer.echo(
                f"Error: {len(e.errors)} script file(s) failed to parse. "
                "Use --errors for details.",
                err=True,
            )
        raise typer.Exit(1)

    if not scripts:
        typer.echo("No scripts found.")
        typer.echo(f"Add script definitions to: {scripts_dir}")
        return

    typer.echo("Available scripts:\n")
    for script in scripts:
        desc = script["description"] or "(no description)"
        typer.echo(f"  {script['script_id']}")
        typer.echo(f"    {desc}\n")


@app.command("show")
def show_command(
    ctx: typer.Context,
    script_id: str = typer.Argument(..., help="Script ID to show"),
):
    """Show a script definition."""
    scripts_dir = _scripts_dir(ctx)

    try:
        script = get_script(script_id, scripts_dir)
    except ScriptLoadError as e:
        _report_load_errors(e)
        raise typer.Exit(1)
    except KeyError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Script: {script_id}\n")
    typer.echo(yaml.dump({script_id: script}, default_flow_style=False, sort_keys=False))


@app.command("run")
def run_command(
    ctx: typer.Context,
    script_id: str = typer.Argument(..., help="Script ID to run"),
    var: Optional[List[str]] = typer.Option(
        None,
        "--var",
        "-V",
        help="Variable in KEY=VALUE format (can be repeated)",
    ),
):
    """Run the steps of a script in order.

    Examples:
        shout script run ssh-harden
        shout script run --var config=/etc/ssh/sshd_config ssh-harden
        shout --dry-run script run ssh-harden
    """
    logger = logging.getLogger(__name__)
    dry_run = ctx.obj.get("dry_run", False)
    verbose = ctx.obj.get("verbose", False)
    scripts_dir = _scripts_dir(ctx)

    variables = {}
    for v in var or []:
        if "=" not in v:
            typer.echo(f"Error: Invalid variable format '{v}'. Use KEY=VALUE", err=True)
            raise typer.Exit(1)
        key, value = v.split("=", 1)
        variables[key] = value

    try:
        result = run_script(
            script_id,
            scripts_dir=scripts_dir,
            dry_run=dry_run,
            variables=variables,
            config=ctx.obj["run_config"],
        )

    except ScriptLoadError as e:
        _report_load_errors(e)
        raise typer.Exit(1)

    except KeyError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    except UnsubstitutedVariableError as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo("Use --var KEY=VALUE to provide missing variables", err=True)
        raise typer.Exit(1)

    except (StepFailedError, RunError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    except Exception as e:
        logger.exception("Script execution failed")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Script: {script_id}")
    typer.echo(f"Status: {result['status']}")
    typer.echo("")

    for i, step in enumerate(result["steps"], 1):
        if step.get("dry_run"):
            icon = "○"
        elif step["status"] == "success":
            icon = "✓"
        else:
            icon = "✗"
        typer.echo(f"  {icon} Step {i}: {step['step']}")
        if verbose or step.get("dry_run"):
            typer.echo(f"    run: {step['run']}")
        if verbose and step.get("output"):
            typer.echo(f"    {step['output']}")

    if dry_run:
        typer.echo("\n[DRY RUN] No changes made")
