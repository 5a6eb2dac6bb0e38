"""
Execution environment for pipelines.

A RunConfig is built once by the caller and handed to every pipeline run,
so there is no process-wide state for the environment or the home directory.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

# Search path used while the system is booting
BOOT_PATH = "/sbin:/bin:/usr/sbin:/usr/bin"


@dataclass(frozen=True)
class RunConfig:
    """Environment snapshot used to run pipelines.

    Attributes:
        environ: Base environment passed to every stage
        home: Value substituted for "~"
        boot: True when running from a boot script (PATH-only environment)
    """

    environ: Mapping[str, str] = field(default_factory=dict)
    home: str = ""
    boot: bool = False

    @classmethod
    def from_environ(
        cls,
        boot: bool = False,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[str] = None,
    ) -> "RunConfig":
        """
        Snapshot the process environment.

        Args:
            boot: Use a minimal environment holding only PATH=BOOT_PATH
            environ: Environment to snapshot (default: os.environ)
            home: Home directory override (default: $HOME, then Path.home())

        Returns:
            New RunConfig
        """
        source = dict(os.environ if environ is None else environ)
        if home is None:
            home = source.get("HOME") or str(Path.home())

        if boot:
            base = {"PATH": BOOT_PATH}
        else:
            base = source
        return cls(environ=base, home=home, boot=boot)

    @property
    def path(self) -> str:
        """Search path used to resolve executables."""
        return self.environ.get("PATH", BOOT_PATH if self.boot else os.defpath)

    def stage_environ(self) -> Dict[str, str]:
        """Fresh copy of the base environment for one stage."""
        return dict(self.environ)
