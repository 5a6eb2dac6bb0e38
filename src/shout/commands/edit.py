# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Edit command for shout.

Edits configuration files in place; each edit backs the file up first.
"""

from typing import List, Optional

import typer

from shout import edit as editing
from shout import fileio
from shout.edit import DEFAULT_COMMENT_CHAR, Editor, LineReplacer, Replacer
from shout.errors import EditError

app = typer.Typer(help="Edit configuration files with automatic backups")


def _comment_char(ctx: typer.Context, override: Optional[str]) -> str:
    return override or ctx.obj.get("config", {}).get("comment_char", DEFAULT_COMMENT_CHAR)


def _open(ctx: typer.Context, path: str, comment_char: Optional[str] = None) -> Editor:
    try:
        return Editor(path, _comment_char(ctx, comment_char))
    except OSError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _report(changed: bool, path: str) -> None:
    if changed:
        typer.echo(f"✓ Updated {path}")
    else:
        typer.echo(f"No changes to {path}")


@app.command()
def backup(path: str = typer.Argument(..., help="File to back up")):
    """Back up a file as FILE+N~ (N rotates from 1 to 9)."""
    try:
        target = fileio.backup(path)
    except OSError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if target is None:
        typer.echo(f"Nothing to back up: {path} is missing or empty")
    else:
        typer.echo(f"✓ Backed up to {target}")


@app.command()
def append(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to edit"),
    text: str = typer.Argument(..., help="Text to append (a newline is added)"),
):
    """Append a line at the end of a file."""
    with _open(ctx, path) as e:
        e.append(text + "\n")
    _report(True, path)


@app.command()
def insert(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to edit"),
    text: str = typer.Argument(..., help="Text to insert (a newline is added)"),
):
    """Insert a line at the start of a file."""
    with _open(ctx, path) as e:
        e.insert(text + "\n")
    _report(True, path)


@app.command()
def comment(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to edit"),
    patterns: List[str] = typer.Argument(..., help="Regular expressions of lines to comment"),
    char: Optional[str] = typer.Option(None, "--char", help="Comment character"),
):
    """Comment the lines matching any pattern."""
    try:
        with _open(ctx, path, char) as e:
            changed = e.comment(patterns)
    except EditError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(1)
    _report(changed, path)


@app.command()
def uncomment(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to edit"),
    patterns: List[str] = typer.Argument(..., help="Regular expressions of lines to uncomment"),
    char: Optional[str] = typer.Option(None, "--char", help="Comment character"),
):
    """Remove the comment marker of the lines matching any pattern."""
    try:
        with _open(ctx, path, char) as e:
            changed = e.comment_out(patterns)
    except EditError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(1)
    _report(changed, path)


@app.command()
def replace(
    path: str = typer.Argument(..., help="File to edit"),
    search: str = typer.Argument(..., help="Regular expression to search"),
    replacement: str = typer.Argument(..., help="Literal replacement"),
    count: int = typer.Option(-1, "--count", "-n", help="Maximum matches (negative: all)"),
    line: Optional[str] = typer.Option(
        None, "--line", help="Only replace on lines matching this expression"
    ),
):
    """Replace regular expression matches in a file.

    Examples:
        shout edit replace /etc/ssh/sshd_config "yes" "no" --line "^PermitRootLogin"
    """
    try:
        if line is None:
            changed = editing.replace(path, [Replacer(search, replacement)], count)
        else:
            changed = editing.replace_at_line(
                path, [LineReplacer(line, search, replacement)], count
            )
    except EditError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(1)
    except OSError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(1)
    _report(changed, path)
