"""Step-based script runner.

A script is a named list of pipelines kept in YAML, run one after another
through shout.cmd.run:

    scripts:
      ssh-harden:
        description: "Disable root login"
        steps:
          - name: check
            run: "grep -q PermitRootLogin {config}"
            expect_ok: true
          - name: reload
            run: "sudo systemctl reload ssh"

Functions here return results and never print. A script file that fails
to parse raises ScriptLoadError naming every broken file, and a {var}
placeholder left without a value stops the script before its first step.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from shout.cmd import run
from shout.env import RunConfig
from shout.errors import ShoutError

logger = logging.getLogger(__name__)


class ScriptLoadError(ShoutError):
    """Raised when script YAML files fail to load."""

    def __init__(self, errors: List[Tuple[Path, str]]):
        self.errors = errors
        msg = "Failed to load script files:\n" + "\n".join(
            f"  - {path}: {err}" for path, err in errors
        )
        super().__init__(msg)


class UnsubstitutedVariableError(ShoutError, ValueError):
    """Raised when {var} placeholders remain after substitution."""

    pass


class StepFailedError(ShoutError):
    """Raised when a step expected to succeed is not ok."""

    def __init__(self, step_name: str, command: str):
        self.step_name = step_name
        self.command = command
        super().__init__(f"Step '{step_name}' did not succeed: `{command}`")


# Regex to find {placeholder} patterns
_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")

_ESCAPE_OPEN = "\x00ESCAPED_OPEN\x00"
_ESCAPE_CLOSE = "\x00ESCAPED_CLOSE\x00"


def load_scripts(scripts_dir: Path) -> Dict[str, Dict]:
    """Load all scripts from YAML files in scripts_dir.

    Raises ScriptLoadError if any YAML file fails to parse.
    """
    all_scripts: Dict[str, Dict] = {}
    errors: List[Tuple[Path, str]] = []

    if not scripts_dir.exists():
        return all_scripts

    for yaml_file in sorted(scripts_dir.glob("*.yaml")) + sorted(scripts_dir.glob("*.yml")):
        try:
            data = yaml.safe_load(yaml_file.read_text()) or {}
            all_scripts.update(data.get("scripts", {}))
        except yaml.YAMLError as e:
            errors.append((yaml_file, str(e)))

    if errors:
        raise ScriptLoadError(errors)

    return all_scripts


def get_script(script_id: str, scripts_dir: Path) -> Dict:
    """Get a single script definition by ID.

    Raises KeyError if script not found.
    """
    scripts = load_scripts(scripts_dir)
    if script_id not in scripts:
        raise KeyError(f"Script not found: {script_id}. Available: {list(scripts.keys())}")
    return scripts[script_id]


def list_scripts(scripts_dir: Path) -> List[Dict[str, str]]:
    """List all available scripts."""
    scripts = load_scripts(scripts_dir)
    return [
        {"script_id": script_id, "description": spec.get("description", "")}
        for script_id, spec in sorted(scripts.items())
    ]


def substitute_variables(command: str, variables: Dict[str, str]) -> str:
    """
    Substitute {name} placeholders in a command.

    Double braces escape: {{text}} becomes {text}.

    Raises:
        UnsubstitutedVariableError: If placeholders remain
    """
    result = command.replace("{{", _ESCAPE_OPEN).replace("}}", _ESCAPE_CLOSE)

    for key, value in variables.items():
        result = result.replace(f"{{{key}}}", str(value))

    remaining = _PLACEHOLDER_RE.findall(result)
    if remaining:
        raise UnsubstitutedVariableError(
            f"Unsubstituted variables in `{command}`: {sorted(set(remaining))}"
        )

    return result.replace(_ESCAPE_OPEN, "{").replace(_ESCAPE_CLOSE, "}")


def run_script(
    script_id: str,
    *,
    scripts_dir: Path,
    dry_run: bool = False,
    variables: Optional[Dict[str, str]] = None,
    config: Optional[RunConfig] = None,
) -> Dict[str, Any]:
    """Run a script by ID.

    Every step is substituted before the first one runs, so a missing
    variable fails the script without side effects.

    Returns stable shape: {"script_id": str, "status": str, "steps": list}
    """
    scripts = load_scripts(scripts_dir)
    if script_id not in scripts:
        raise KeyError(f"Script not found: {script_id}. Available: {list(scripts.keys())}")

    steps = scripts[script_id].get("steps", [])
    variables = variables or {}

    planned = []
    for step in steps:
        step_name = step.get("name", "unnamed")
        command = substitute_variables(step["run"], variables)
        planned.append((step_name, command, bool(step.get("expect_ok", False))))

    if config is None:
        config = RunConfig.from_environ()

    results: List[Dict[str, Any]] = []
    for step_name, command, expect_ok in planned:
        if dry_run:
            logger.info(f"[DRY RUN] Would execute: {command}")
            results.append({"step": step_name, "run": command, "status": "skipped",
                            "dry_run": True})
            continue

        logger.info(f"Executing: {command}")
        result = run(command, config=config)
        if expect_ok and not result.ok:
            raise StepFailedError(step_name, command)

        results.append(
            {
                "step": step_name,
                "run": command,
                "status": "success" if result.ok else "not_ok",
                "output": result.text,
            }
        )

    return {"script_id": script_id, "status": "success", "steps": results}
