# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Reader of runcom files: shell-style ``key=value`` settings such as
/etc/adduser.conf or /etc/default/*.
"""

from pathlib import Path
from typing import Dict, Union

from shout.errors import RuncomError


def load(name: Union[str, Path]) -> Dict[str, str]:
    """
    Load the settings of a runcom file.

    Blank lines and lines starting with "#" are skipped. Surrounding double
    quotes are removed from values.

    Raises:
        FileNotFoundError: If the file does not exist
        RuncomError: If a line is not key=value
    """
    settings: Dict[str, str] = {}
    with open(name, "r") as f:
        for lineno, line in enumerate(f, 1):
            line = line.rstrip("\n")
            if not line.strip() or line.lstrip().startswith("#"):
                continue
            if "=" not in line:
                raise RuncomError(str(name), lineno, line)

            key, value = line.split("=", 1)
            settings[key.strip()] = value.strip().strip('"')
    return settings
