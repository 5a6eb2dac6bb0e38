# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
File helpers for configuration scripts.

Every function that overwrites a file backs it up first. Backups are named
``{name}+N~`` with N rotating from 1 to 9.
"""

import glob
import logging
import os
import shutil
import stat
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

BACKUP_PATTERN = "+[1-9]~"

PathLike = Union[str, Path]
Data = Union[str, bytes]


def _to_bytes(data: Data) -> bytes:
    return data.encode() if isinstance(data, str) else data


def backup(name: PathLike) -> Optional[Path]:
    """
    Back up a file before it is modified.

    Missing and empty files are not backed up.

    Args:
        name: File to back up

    Returns:
        Path of the backup, or None when nothing was copied
    """
    path = Path(name)
    try:
        size = path.stat().st_size
    except FileNotFoundError:
        return None
    if size == 0:
        return None

    # Newest backup last; ties go to the highest number
    existing = sorted(
        glob.glob(glob.escape(str(path)) + BACKUP_PATTERN),
        key=lambda f: (os.stat(f).st_mtime_ns, f),
    )
    number = 1
    if existing:
        number = int(existing[-1][-2]) + 1
        if number > 9:
            number = 1

    target = Path(f"{path}+{number}~")
    shutil.copyfile(path, target)
    shutil.copymode(path, target)
    logger.debug(f"Backed up {path} to {target}")
    return target


def copy(source: PathLike, dest: PathLike) -> int:
    """
    Copy source to dest keeping the permission bits.

    dest is backed up first unless it is itself a backup file.

    Returns:
        Number of bytes copied
    """
    if not str(dest).endswith("~"):
        backup(dest)
    shutil.copyfile(source, dest)
    shutil.copymode(source, dest)
    return Path(dest).stat().st_size


def create(name: PathLike, data: Data) -> None:
    """Create (or truncate) a file with the given content."""
    Path(name).write_bytes(_to_bytes(data))


def overwrite(name: PathLike, data: Data) -> None:
    """Replace the content of a file, backing it up first."""
    backup(name)
    create(name, data)


def find_string(s: str, name: PathLike) -> bool:
    """Report whether any line of the file contains s."""
    with open(name, "r", errors="replace") as f:
        return any(s in line for line in f)


class FileInfo:
    """Type and permission checks on a file."""

    def __init__(self, name: PathLike):
        self.path = Path(name)
        self.mode = self.path.stat().st_mode

    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)

    def is_file(self) -> bool:
        return stat.S_ISREG(self.mode)

    def is_readable(self) -> bool:
        """Read permission for the owner."""
        return bool(self.mode & stat.S_IRUSR)

    def is_writable(self) -> bool:
        """Write permission for the owner."""
        return bool(self.mode & stat.S_IWUSR)

    def is_executable(self) -> bool:
        """Execute permission for the owner."""
        return bool(self.mode & stat.S_IXUSR)

    def has_mode(self, perm: int) -> bool:
        """Report whether all bits in perm are set."""
        return self.mode & perm == perm


def is_dir(name: PathLike) -> bool:
    return FileInfo(name).is_dir()


def is_file(name: PathLike) -> bool:
    return FileInfo(name).is_file()


def is_readable(name: PathLike) -> bool:
    return FileInfo(name).is_readable()


def is_writable(name: PathLike) -> bool:
    return FileInfo(name).is_writable()


def is_executable(name: PathLike) -> bool:
    return FileInfo(name).is_executable()
