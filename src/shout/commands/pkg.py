# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Package command for shout.

Installs, removes and upgrades packages with the system package manager.
"""

import logging
from typing import List, Optional

import typer

from shout.errors import PackagerError, RunError
from shout.packager import PackageType, Packager, detect, new_packager

app = typer.Typer(help="Manage packages with the system package manager")
logger = logging.getLogger(__name__)

ManagerOption = typer.Option(
    None,
    "--manager",
    "-m",
    help="Package manager: deb, rpm, pacman, ebuild or zypp (default: config or detected)",
)
SimulateOption = typer.Option(
    None,
    "--simulate/--no-simulate",
    help="Only simulate changes where the manager supports it",
)


def _get_packager(ctx: typer.Context, manager: Optional[str],
                  simulate: Optional[bool]) -> Packager:
    """Pick the packager from the option, the config, or the system."""
    config = ctx.obj.get("config", {})
    name = manager or config.get("packager")

    if name is None:
        found = detect()
        if found is None:
            typer.echo("Error: No supported package manager found", err=True)
            raise typer.Exit(1)
        package_type = found[0]
    else:
        try:
            package_type = PackageType(name)
        except ValueError:
            valid = ", ".join(p.value for p in PackageType)
            typer.echo(f"Error: Unknown package manager '{name}'. Valid: {valid}", err=True)
            raise typer.Exit(1)

    if simulate is None:
        simulate = bool(config.get("simulate", False))
    return new_packager(package_type, config=ctx.obj["run_config"], simulate=simulate)


def _apply(ctx: typer.Context, packager: Packager, action: str, commands: List[str],
           call) -> None:
    """Run a packager action, or list its commands on --dry-run."""
    if ctx.obj.get("dry_run", False):
        typer.echo(f"[DRY RUN] {action} would execute:")
        for args in commands:
            typer.echo(f"  {packager.bin} {args}")
        return

    try:
        call()
    except (PackagerError, RunError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"✓ {action}")


@app.command("detect")
def detect_command():
    """Show the package manager found on this system."""
    found = detect()
    if found is None:
        typer.echo("No supported package manager found")
        raise typer.Exit(1)
    package_type, path = found
    typer.echo(f"{package_type.value}: {path}")


@app.command()
def install(
    ctx: typer.Context,
    names: List[str] = typer.Argument(..., help="Packages to install"),
    manager: Optional[str] = ManagerOption,
    simulate: Optional[bool] = SimulateOption,
):
    """Install packages (package lists are refreshed first)."""
    packager = _get_packager(ctx, manager, simulate)
    commands = packager.refresh_commands()
    for name in names:
        commands = commands + packager.install_commands(name)

    def call():
        for name in names:
            packager.install(name)

    _apply(ctx, packager, f"install {' '.join(names)}", commands, call)


@app.command()
def remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Package to remove"),
    meta: bool = typer.Option(False, "--meta", help="Also remove unused dependencies"),
    manager: Optional[str] = ManagerOption,
    simulate: Optional[bool] = SimulateOption,
):
    """Remove a package."""
    packager = _get_packager(ctx, manager, simulate)
    _apply(ctx, packager, f"remove {name}", packager.remove_commands(name, meta),
           lambda: packager.remove(name, meta))


@app.command()
def purge(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Package to purge"),
    meta: bool = typer.Option(False, "--meta", help="Also remove unused dependencies"),
    manager: Optional[str] = ManagerOption,
    simulate: Optional[bool] = SimulateOption,
):
    """Remove a package and its configuration files."""
    packager = _get_packager(ctx, manager, simulate)
    _apply(ctx, packager, f"purge {name}", packager.purge_commands(name, meta),
           lambda: packager.purge(name, meta))


@app.command()
def update(
    ctx: typer.Context,
    manager: Optional[str] = ManagerOption,
):
    """Retrieve new lists of packages."""
    packager = _get_packager(ctx, manager, None)
    _apply(ctx, packager, "update", packager.refresh_commands(), packager.update)


@app.command()
def upgrade(
    ctx: typer.Context,
    manager: Optional[str] = ManagerOption,
    simulate: Optional[bool] = SimulateOption,
):
    """Upgrade all the packages on the system."""
    packager = _get_packager(ctx, manager, simulate)
    _apply(ctx, packager, "upgrade", packager.upgrade_commands(), packager.upgrade)


@app.command()
def clean(
    ctx: typer.Context,
    manager: Optional[str] = ManagerOption,
):
    """Erase downloaded archive files."""
    packager = _get_packager(ctx, manager, None)
    _apply(ctx, packager, "clean", packager.clean_commands(), packager.clean)
