"""
shout - shell scripting without a shell.

Runs pipelines of external commands safely, edits configuration files with
automatic backups, and drives the package managers of Linux distributions.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from shout.cmd import PipelineResult, Stage, parse_pipeline, prime_sudo, run, runf
from shout.env import BOOT_PATH, RunConfig
from shout.errors import RunError, ShoutError

__version__ = "0.1.0"

__all__ = [
    "BOOT_PATH",
    "PipelineResult",
    "RunConfig",
    "RunError",
    "ShoutError",
    "Stage",
    "parse_pipeline",
    "prime_sudo",
    "run",
    "runf",
]
